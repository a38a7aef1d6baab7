"""Task runtime: service interfaces, lifecycle events and the task handle."""

from qtask.runtime.services import TaskServices
from qtask.runtime.events import TaskCreationEvent, TaskStatusEvent, TaskCompletionEvent
from qtask.runtime.task import (
    CacheMode,
    CancellationToken,
    QuantumTask,
    count_tasks_with_status,
)

__all__ = [
    "TaskServices",
    "TaskCreationEvent",
    "TaskStatusEvent",
    "TaskCompletionEvent",
    "CacheMode",
    "CancellationToken",
    "QuantumTask",
    "count_tasks_with_status",
]
