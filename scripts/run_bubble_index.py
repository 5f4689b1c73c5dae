from __future__ import annotations

import argparse
import sys

from common.config import ContextConfig, RunConfig, load_config_from_yaml, make_run_id
from common.context import RunContext
from common.logging import get_logger, setup_logging
from data.cache import DailyDataCache
from data.layout import DataLayout
from grid.factory import build_grid
from tasks.run_task import RunTask, TaskStatus

logger = get_logger("cli")


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {n}")
    return n


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the bubble index over configured instruments.")
    parser.add_argument("--config", required=True, help="Path to YAML config.")
    parser.add_argument("--force-host", action="store_true", help="Skip the accelerator path.")
    parser.add_argument("--threads", type=_positive_int, default=None, help="Host scan thread count.")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--json-logs", action="store_true")
    return parser.parse_args(argv)


def build_tasks(cfg: RunConfig, context: RunContext) -> list[RunTask]:
    layout = DataLayout.from_config(cfg.data)
    tasks: list[RunTask] = []
    for selection in cfg.selections:
        for name in selection.names:
            # windows of one instrument share the loaded series
            cache = DailyDataCache()
            for params in cfg.model.parameters():
                tasks.append(RunTask(params, selection.category, name, cache, layout, context))
    return tasks


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, json_output=args.json_logs)
    cfg = load_config_from_yaml(args.config)
    overrides: dict[str, object] = {}
    if args.force_host:
        overrides["force_host"] = True
    if args.threads is not None:
        overrides["thread_count"] = args.threads
    if overrides:
        cfg.context = ContextConfig.model_validate({**cfg.context.model_dump(), **overrides})

    run_id = make_run_id(cfg.run_name)
    context = RunContext.from_config(cfg.context, progress=print if not cfg.context.headless else None)
    logger.info("Starting %s with %d selections", run_id, len(cfg.selections))

    grid = build_grid(cfg.grid, context)
    try:
        for handle, task in enumerate(build_tasks(cfg, context)):
            grid.submit(handle, task)
        done = grid.execute_all()
    except KeyboardInterrupt:
        context.request_stop()
        raise
    finally:
        grid.shutdown()

    for task in sorted(done, key=lambda t: (t.category, t.selection, t.window)):
        print(task.summary())
    failed = [t for t in done if t.status == TaskStatus.FAILED]
    print(f"run_id={run_id} tasks={len(done)} failed={len(failed)}")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
