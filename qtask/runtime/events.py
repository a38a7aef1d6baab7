"""Task lifecycle events and their delivery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from qtask.runtime.services import EventSink


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskCreationEvent:
    task_id: str
    shots: int
    is_job_task: bool
    device_arn: str


@dataclass(frozen=True)
class TaskStatusEvent:
    task_id: str
    status: str


@dataclass(frozen=True)
class TaskCompletionEvent:
    task_id: str
    status: str
    execution_duration: Optional[float] = None


TaskEvent = Union[TaskCreationEvent, TaskStatusEvent, TaskCompletionEvent]


def broadcast_event(sink: Optional[EventSink], event: TaskEvent) -> None:
    """Deliver ``event`` to ``sink``; a failing sink never fails the caller."""
    if sink is None:
        return
    try:
        sink.notify(event)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Event sink failed for %s: %s", type(event).__name__, exc)
