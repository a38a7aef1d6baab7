"""
Interfaces of the backend services a task talks to.

Transport, authentication and wire decoding live behind these protocols;
tests and embedding applications supply their own implementations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol

from qtask.core.io_spec import SubmissionEnvelope
from qtask.core.results import RawResultPayload, TaskMetadata


class SubmissionService(Protocol):
    def submit(self, envelope: SubmissionEnvelope, headers: Mapping[str, str]) -> str:
        """Create a task and return its identifier."""
        ...


class StatusService(Protocol):
    def get_status(self, task_id: str) -> TaskMetadata:
        ...


class CancellationService(Protocol):
    def cancel(self, task_id: str, client_token: str) -> str:
        """Request cancellation; returns the backend's cancellation status."""
        ...


class ObjectStorage(Protocol):
    def fetch_blob(self, bucket: str, key: str) -> bytes:
        ...


class ResultDecoder(Protocol):
    def decode(self, payload: bytes) -> RawResultPayload:
        ...


class TaskSearchService(Protocol):
    def search_tasks(self, filters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...


class EventSink(Protocol):
    def notify(self, event: Any) -> None:
        ...


@dataclass
class TaskServices:
    """
    The collaborators a task handle uses.

    Attributes:
        status: Status lookups
        cancellation: Cancellation requests
        storage: Result blob retrieval
        decoder: Result blob decoding
        submission: Task creation, needed only to create tasks
        events: Optional event sink; notification failures are ignored
    """
    status: StatusService
    cancellation: CancellationService
    storage: ObjectStorage
    decoder: ResultDecoder
    submission: Optional[SubmissionService] = None
    events: Optional[EventSink] = None
