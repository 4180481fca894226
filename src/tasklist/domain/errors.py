from __future__ import annotations


class TaskError(Exception):
    """Base class for every failure raised by the task core."""


class InvalidArgumentError(TaskError, ValueError):
    pass


class TaskNotFoundError(TaskError, LookupError):
    def __init__(self, task_id: str):
        super().__init__(f"task with ID {task_id} not found")
        self.task_id = task_id


class StorageError(TaskError):
    """I/O, serialization, connection or constraint failure in a backend."""
