"""
Task handle and lifecycle state machine.

A :class:`QuantumTask` is created from a submitted task's identifier. It
polls the status service until the task reaches a terminal state and, when
the task completed, downloads, decodes and formats the result once.

States::

    CREATED -> QUEUED | RUNNING -> COMPLETED | FAILED | CANCELLED

Handles share no state with each other, so distinct handles can be polled
from different threads. A single handle must be used from one thread at a
time.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from qtask.config import DEFAULT_RESULTS_POLL_INTERVAL, DEFAULT_RESULTS_POLL_TIMEOUT
from qtask.core.io_spec import SubmissionEnvelope
from qtask.core.results import StructuredResult, TaskMetadata, TaskStatus
from qtask.errors import ConfigurationError, ResultDataError
from qtask.results.formatter import format_result
from qtask.runtime.events import (
    TaskCompletionEvent,
    TaskCreationEvent,
    TaskStatusEvent,
    broadcast_event,
)
from qtask.runtime.services import TaskSearchService, TaskServices
from qtask.submission.context import SubmissionContext


logger = logging.getLogger(__name__)


class CacheMode(Enum):
    """Whether a metadata lookup may be answered from the handle's cache."""
    CACHED = "cached"
    FRESH = "fresh"


class CancellationToken:
    """Lets a caller abandon a blocking wait; checked between polls."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)


class QuantumTask:
    """
    Handle for one submitted task.

    Usage:
        envelope = prepare_task_input(circuit, device_arn, shots=100)
        task = QuantumTask.create(envelope, services)
        result = task.result()

    Attributes:
        id: Backend identifier of the task
        client_token: Idempotency token the task was created with
        poll_timeout_seconds: Total time :meth:`result` waits
        poll_interval_seconds: Sleep between status polls
    """

    def __init__(
        self,
        task_id: str,
        services: TaskServices,
        client_token: Optional[str] = None,
        poll_timeout_seconds: float = DEFAULT_RESULTS_POLL_TIMEOUT,
        poll_interval_seconds: float = DEFAULT_RESULTS_POLL_INTERVAL,
    ):
        self.id = task_id
        self.client_token = client_token or str(uuid.uuid4())
        self.poll_timeout_seconds = poll_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self._services = services
        self._metadata: Optional[TaskMetadata] = None
        self._result: Optional[StructuredResult] = None

    @classmethod
    def create(
        cls,
        envelope: SubmissionEnvelope,
        services: TaskServices,
        context: Optional[SubmissionContext] = None,
    ) -> QuantumTask:
        """
        Submit ``envelope`` and return a handle for the new task.

        Raises:
            ConfigurationError: If ``services`` has no submission service
        """
        if services.submission is None:
            raise ConfigurationError("A submission service is required to create tasks")
        context = context or SubmissionContext()
        with context.submission_headers() as headers:
            task_id = services.submission.submit(envelope, headers)
        logger.debug("Created task %s on %s", task_id, envelope.device_arn)
        broadcast_event(
            services.events,
            TaskCreationEvent(
                task_id=task_id,
                shots=envelope.shots,
                is_job_task="jobToken" in envelope.extra_options,
                device_arn=envelope.device_arn,
            ),
        )
        return cls(
            task_id,
            services,
            client_token=envelope.client_token,
            poll_timeout_seconds=envelope.poll_timeout_seconds,
            poll_interval_seconds=envelope.poll_interval_seconds,
        )

    def metadata(self, mode: CacheMode = CacheMode.FRESH) -> TaskMetadata:
        """
        Task metadata, from the cache or the status service.

        With ``CacheMode.CACHED`` a cached snapshot is returned when there is
        one. Otherwise fresh metadata is fetched and cached, except that a
        recorded terminal state is never replaced.
        """
        if mode is CacheMode.CACHED and self._metadata is not None:
            return self._metadata

        fresh = self._services.status.get_status(self.id)
        broadcast_event(self._services.events, TaskStatusEvent(self.id, fresh.status.value))

        cached = self._metadata
        if cached is not None and cached.status.is_terminal and fresh.status is not cached.status:
            logger.debug("Task %s already %s, ignoring reported %s",
                         self.id, cached.status.value, fresh.status.value)
            return cached

        self._metadata = fresh
        if fresh.status.has_no_result:
            logger.warning("Task %s is in terminal state %s and no result is available",
                           self.id, fresh.status.value)
            if fresh.status is TaskStatus.FAILED:
                logger.warning("Task %s failure reason is: %s",
                               self.id, fresh.failure_reason or "unknown")
        return fresh

    def refresh_status(self, mode: CacheMode = CacheMode.FRESH) -> TaskStatus:
        """Current status; see :meth:`metadata` for the cache rules."""
        return self.metadata(mode).status

    def cancel(self) -> None:
        """
        Ask the backend to cancel the task.

        Does not wait for the cancellation and does not interrupt a
        running :meth:`result` call.
        """
        response = self._services.cancellation.cancel(self.id, self.client_token)
        broadcast_event(self._services.events, TaskStatusEvent(self.id, str(response)))

    def result(self, token: Optional[CancellationToken] = None) -> Optional[StructuredResult]:
        """
        Block until the task's result is available.

        Returns the cached result immediately when there is one. Returns
        None when the task ended FAILED or CANCELLED, when
        ``poll_timeout_seconds`` runs out, or when ``token`` is cancelled;
        in the last two cases a later call can resume waiting.

        Args:
            token: Optional token to abandon the wait early

        Returns:
            The structured result, or None
        """
        if self._result is not None:
            return self._result
        if self._metadata is not None:
            status = self._metadata.status
            if status.has_no_result:
                return None
            if status is TaskStatus.COMPLETED:
                return self._download_result()
        return self._wait_for_result(token)

    def result_async(
        self,
        executor: Optional[ThreadPoolExecutor] = None,
        token: Optional[CancellationToken] = None,
    ) -> Future:
        """
        Run :meth:`result` on a worker thread.

        Cancel ``token`` to make the worker give up at its next poll.
        """
        if executor is not None:
            return executor.submit(self.result, token)
        own_executor = ThreadPoolExecutor(max_workers=1)
        try:
            return own_executor.submit(self.result, token)
        finally:
            own_executor.shutdown(wait=False)

    def _wait_for_result(self, token: Optional[CancellationToken]) -> Optional[StructuredResult]:
        start = time.monotonic()
        while True:
            status = self.refresh_status(CacheMode.FRESH)
            if status.is_terminal:
                break
            if time.monotonic() - start >= self.poll_timeout_seconds:
                logger.debug("Timed out waiting for task %s (last status %s)",
                             self.id, status.value)
                return None
            if token is None:
                time.sleep(self.poll_interval_seconds)
            elif token.wait(self.poll_interval_seconds):
                logger.debug("Stopped waiting for task %s", self.id)
                return None

        if status is TaskStatus.COMPLETED:
            return self._download_result()
        return None

    def _download_result(self) -> StructuredResult:
        metadata = self.metadata(CacheMode.CACHED)
        location = metadata.output_location
        if location is None:
            raise ResultDataError(f"Task {self.id} completed without an output location")

        logger.debug("Downloading result of task %s from %s/%s",
                     self.id, location.bucket, location.results_key)
        blob = self._services.storage.fetch_blob(location.bucket, location.results_key)
        raw = self._services.decoder.decode(blob)
        result = format_result(raw)
        if self._result is None:
            self._result = result

        duration = raw.execution_duration
        if duration is None:
            logger.warning("Execution duration not found for task %s", self.id)
        broadcast_event(
            self._services.events,
            TaskCompletionEvent(self.id, metadata.status.value, duration),
        )
        return self._result

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, QuantumTask):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"QuantumTask(id={self.id!r})"


def count_tasks_with_status(
    search: TaskSearchService,
    device_arn: str,
    statuses: Union[str, TaskStatus, Iterable[Union[str, TaskStatus]]],
) -> int:
    """Number of tasks on ``device_arn`` in any of ``statuses``."""
    if isinstance(statuses, (str, TaskStatus)):
        statuses = [statuses]
    total = 0
    for status in statuses:
        value = status.value if isinstance(status, TaskStatus) else status
        filters: List[Dict[str, Any]] = [
            {"name": "status", "operator": "EQUAL", "values": [value]},
            {"name": "deviceArn", "operator": "EQUAL", "values": [device_arn]},
        ]
        total += len(search.search_tasks(filters))
    return total
