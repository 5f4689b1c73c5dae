from tasks.run_task import RunTask, TaskStatus

__all__ = ["RunTask", "TaskStatus"]
