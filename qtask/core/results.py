"""
Task metadata, raw result payloads and structured results.

Raw payloads are what the result decoder hands back for a completed task;
structured results are what :func:`qtask.results.formatter.format_result`
builds from them and what a task handle caches.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from qtask.core.io_spec import ProblemType, ResultTypeRequest


class TaskStatus(Enum):
    """Lifecycle states of a task as reported by the backend."""
    CREATED = "CREATED"
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    CANCELLING = "CANCELLING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

    @property
    def has_no_result(self) -> bool:
        """Terminal without a result to download."""
        return self in (TaskStatus.FAILED, TaskStatus.CANCELLED)


TERMINAL_STATES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED})


@dataclass(frozen=True)
class OutputLocation:
    """Where the backend wrote a task's output."""
    bucket: str
    directory: str

    @property
    def results_key(self) -> str:
        return f"{self.directory}/results.json"


@dataclass(frozen=True)
class TaskMetadata:
    """
    Backend-reported state of a task.

    Attributes:
        status: Current lifecycle state
        failure_reason: Backend explanation for a FAILED task
        output_location: Where results are written once COMPLETED
        raw: The full metadata record as returned by the status service
    """
    status: TaskStatus
    failure_reason: Optional[str] = None
    output_location: Optional[OutputLocation] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class PayloadKind(Enum):
    GATE_MODEL = "gate_model"
    ANNEALING = "annealing"
    PHOTONIC = "photonic"
    ANALOG_HAMILTONIAN = "analog_hamiltonian"


@dataclass(frozen=True)
class ResultTaskMetadata:
    """Task metadata echoed inside a result payload."""
    id: str
    shots: int
    device_id: str = ""


@dataclass(frozen=True)
class ResultTypeValue:
    """A result type request together with its computed value."""
    request: ResultTypeRequest
    value: Any


class _RawPayload:
    kind: ClassVar[PayloadKind]
    task_metadata: ResultTaskMetadata
    additional_metadata: Dict[str, Any]

    @property
    def action(self) -> Dict[str, Any]:
        """The IR of the task specification that produced this payload."""
        return self.additional_metadata.get("action") or {}

    @property
    def execution_duration(self) -> Optional[float]:
        simulator = self.additional_metadata.get("simulatorMetadata") or {}
        duration = simulator.get("executionDuration")
        if duration is None:
            duration = self.additional_metadata.get("executionDuration")
        return duration


@dataclass(frozen=True)
class GateModelRaw(_RawPayload):
    kind: ClassVar[PayloadKind] = PayloadKind.GATE_MODEL

    task_metadata: ResultTaskMetadata
    additional_metadata: Dict[str, Any] = field(default_factory=dict)
    measurements: Optional[List[List[int]]] = None
    measurement_probabilities: Optional[Dict[str, float]] = None
    measured_qubits: Optional[List[int]] = None
    result_types: Optional[List[ResultTypeValue]] = None


@dataclass(frozen=True)
class AnnealingRaw(_RawPayload):
    kind: ClassVar[PayloadKind] = PayloadKind.ANNEALING

    task_metadata: ResultTaskMetadata
    solutions: List[List[int]]
    values: List[float]
    solution_counts: Optional[List[int]] = None
    additional_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PhotonicRaw(_RawPayload):
    kind: ClassVar[PayloadKind] = PayloadKind.PHOTONIC

    task_metadata: ResultTaskMetadata
    measurements: Optional[List[List[List[int]]]] = None
    additional_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalogShotRaw:
    shot_status: str
    pre_sequence: Optional[List[int]] = None
    post_sequence: Optional[List[int]] = None


@dataclass(frozen=True)
class AnalogHamiltonianRaw(_RawPayload):
    kind: ClassVar[PayloadKind] = PayloadKind.ANALOG_HAMILTONIAN

    task_metadata: ResultTaskMetadata
    measurements: Optional[List[AnalogShotRaw]] = None
    additional_metadata: Dict[str, Any] = field(default_factory=dict)


RawResultPayload = Union[GateModelRaw, AnnealingRaw, PhotonicRaw, AnalogHamiltonianRaw]


@dataclass(frozen=True, eq=False)
class GateModelResult:
    """
    Result of a gate-model task.

    For sampled tasks (shots > 0) the measurement fields are populated and
    the ``*_copied_from_device`` flags record whether each field was
    reported by the device or derived here. For exact tasks (shots == 0)
    only ``result_types`` and ``values`` are set.
    """
    task_metadata: ResultTaskMetadata
    additional_metadata: Dict[str, Any]
    result_types: List[ResultTypeValue]
    values: List[Any]
    measurements: Optional[np.ndarray] = None
    measured_qubits: Optional[List[int]] = None
    measurement_counts: Optional[Counter] = None
    measurement_probabilities: Optional[Dict[str, float]] = None
    measurements_copied_from_device: Optional[bool] = None
    measurement_counts_copied_from_device: Optional[bool] = None
    measurement_probabilities_copied_from_device: Optional[bool] = None

    def get_value_by_result_type(self, request: ResultTypeRequest) -> Any:
        """Look up the value computed for ``request``."""
        wanted = request.to_ir()
        for rt in self.result_types:
            if rt.request.to_ir() == wanted:
                return rt.value
        raise ValueError(f"Result type not found in result: {wanted}")

    def __repr__(self) -> str:
        return (f"GateModelResult(task={self.task_metadata.id!r}, "
                f"result_types={len(self.result_types)})")


ANNEALING_RECORD_FIELDS = ("solution", "value", "solution_count")


@dataclass(frozen=True, eq=False)
class AnnealingResult:
    """
    Result of an annealing task.

    ``record_array`` is a numpy structured array with one row per solution
    and the fields ``solution``, ``value`` and ``solution_count``.
    """
    record_array: np.ndarray
    variable_count: int
    problem_type: Optional[ProblemType]
    task_metadata: ResultTaskMetadata
    additional_metadata: Dict[str, Any] = field(default_factory=dict)

    def data(
        self,
        selected_fields: Optional[Sequence[str]] = None,
        sorted_by: Optional[str] = "value",
        reverse: bool = False,
    ) -> Iterator[Tuple[Any, ...]]:
        """
        Iterate over solution rows.

        Args:
            selected_fields: Fields to include, default all
            sorted_by: Field to sort by, or None to keep solution order
            reverse: Sort descending

        Yields:
            Tuples holding the selected fields of one row
        """
        fields = tuple(selected_fields) if selected_fields else ANNEALING_RECORD_FIELDS
        for name in fields + ((sorted_by,) if sorted_by else ()):
            if name not in ANNEALING_RECORD_FIELDS:
                raise ValueError(f"Unknown annealing record field: {name}")
        order = np.arange(len(self.record_array))
        if sorted_by:
            order = np.argsort(self.record_array[sorted_by], kind="stable")
            if reverse:
                order = order[::-1]
        for i in order:
            row = self.record_array[i]
            yield tuple(row[name] for name in fields)


@dataclass(frozen=True, eq=False)
class PhotonicResult:
    task_metadata: ResultTaskMetadata
    additional_metadata: Dict[str, Any] = field(default_factory=dict)
    measurements: Optional[np.ndarray] = None


class AnalogShotStatus(Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"


# Shot statuses as the backend spells them, lower-cased
ANALOG_SHOT_STATUSES: Dict[str, AnalogShotStatus] = {
    "success": AnalogShotStatus.SUCCESS,
    "partial success": AnalogShotStatus.PARTIAL_SUCCESS,
    "failure": AnalogShotStatus.FAILURE,
}


@dataclass(frozen=True, eq=False)
class ShotResult:
    """One analog-Hamiltonian shot; a missing sequence stays ``None``."""
    status: AnalogShotStatus
    pre_sequence: Optional[np.ndarray] = None
    post_sequence: Optional[np.ndarray] = None


@dataclass(frozen=True, eq=False)
class AnalogHamiltonianResult:
    task_metadata: ResultTaskMetadata
    measurements: Optional[List[ShotResult]] = None


StructuredResult = Union[GateModelResult, AnnealingResult, PhotonicResult, AnalogHamiltonianResult]
