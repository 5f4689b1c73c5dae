from output.snapshot import entry_name_for, restore, snapshot
from output.writer import (
    HEADER,
    AppendOutcome,
    OutputRow,
    WriteMode,
    append_results,
    format_rows,
    period_numbers,
    read_prior_rows,
)

__all__ = [
    "AppendOutcome",
    "HEADER",
    "OutputRow",
    "WriteMode",
    "append_results",
    "entry_name_for",
    "format_rows",
    "period_numbers",
    "read_prior_rows",
    "restore",
    "snapshot",
]
