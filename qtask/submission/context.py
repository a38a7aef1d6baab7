"""
Per-caller submission context.

Trackers (cost or usage trackers a caller has active) are reported to the
backend as a request header on each submission. The context owns that state
explicitly instead of a process-wide registry.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


TRACKERS_HEADER = "Braket-Trackers"


@dataclass
class SubmissionContext:
    """
    Submission-scoped state shared by the tasks one caller creates.

    Attributes:
        trackers: Active trackers, innermost last
        job_token: Token of the hybrid job the caller runs in, if any
    """
    trackers: List[Any] = field(default_factory=list)
    job_token: Optional[str] = None
    _headers: Optional[Dict[str, str]] = field(default=None, init=False, repr=False)

    @contextmanager
    def track(self, tracker: Any) -> Iterator[Any]:
        """Keep ``tracker`` active for the duration of the block."""
        self.trackers.append(tracker)
        try:
            yield tracker
        finally:
            self.trackers.remove(tracker)

    @contextmanager
    def submission_headers(self) -> Iterator[Dict[str, str]]:
        """
        Headers for a single submission call.

        The headers only exist inside the block and are released on exit.
        """
        if self._headers is not None:
            raise RuntimeError("Submission headers are already acquired")
        self._headers = {TRACKERS_HEADER: str(len(self.trackers))}
        try:
            yield dict(self._headers)
        finally:
            self._headers = None

    @property
    def is_job_task(self) -> bool:
        return self.job_token is not None
