"""Task specifications, result type requests and the submission envelope."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union

from qtask.config import DEFAULT_RESULTS_POLL_INTERVAL, DEFAULT_RESULTS_POLL_TIMEOUT
from qtask.core.observables import Observable, observable_from_ir
from qtask.errors import MissingObservableError, UnsupportedResultTypeError


class TaskSpecKind(Enum):
    GATE_MODEL = "gate_model"
    ANNEALING = "annealing"
    PHOTONIC = "photonic"
    ANALOG_HAMILTONIAN = "analog_hamiltonian"
    GENERIC_IR = "generic_ir"


class ProblemType(Enum):
    ISING = "ISING"
    QUBO = "QUBO"


class ResultKind(Enum):
    PROBABILITY = "probability"
    SAMPLE = "sample"
    EXPECTATION = "expectation"
    VARIANCE = "variance"

    @property
    def requires_observable(self) -> bool:
        return self is not ResultKind.PROBABILITY


@dataclass(frozen=True)
class ResultTypeRequest:
    """
    A requested statistic over measured qubits.

    ``kind`` is kept as the raw string so that requests for kinds this
    library cannot compute (e.g. ``"statevector"``) can still be carried
    around and validated; :attr:`result_kind` resolves it.

    Attributes:
        kind: Result type name, e.g. "probability" or "expectation"
        observable: Observable for sample/expectation/variance
        targets: Target qubits; empty means all measured qubits
    """
    kind: str
    observable: Optional[Observable] = None
    targets: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "kind", self.kind.lower())
        object.__setattr__(self, "targets", tuple(self.targets or ()))

    @property
    def result_kind(self) -> ResultKind:
        try:
            kind = ResultKind(self.kind)
        except ValueError:
            raise UnsupportedResultTypeError(self.kind) from None
        if kind.requires_observable and self.observable is None:
            raise MissingObservableError(self.kind)
        return kind

    @classmethod
    def from_ir(cls, ir: Mapping[str, Any]) -> ResultTypeRequest:
        observable = ir.get("observable")
        return cls(
            kind=str(ir["type"]),
            observable=observable_from_ir(observable) if observable is not None else None,
            targets=tuple(ir.get("targets") or ()),
        )

    def to_ir(self) -> Dict[str, Any]:
        ir: Dict[str, Any] = {"type": self.kind}
        if self.observable is not None:
            ir["observable"] = self.observable.to_ir()
        if self.targets:
            ir["targets"] = list(self.targets)
        return ir


class _TaskSpec:
    kind: ClassVar[TaskSpecKind]

    def to_ir(self) -> Dict[str, Any]:
        raise NotImplementedError

    def action(self) -> str:
        """Serialized form sent to the backend."""
        return json.dumps(self.to_ir())


@dataclass(frozen=True)
class GateModelCircuit(_TaskSpec):
    """
    A gate-model circuit in JSON IR form.

    Attributes:
        qubit_count: Number of qubits the circuit uses
        instructions: Gate instructions as IR dictionaries
        result_types: Declared result types as IR dictionaries
        basis_rotation_instructions: Rotations applied before measurement
    """
    kind: ClassVar[TaskSpecKind] = TaskSpecKind.GATE_MODEL

    qubit_count: int
    instructions: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    result_types: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    basis_rotation_instructions: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def result_type_names(self) -> List[str]:
        return [str(rt.get("type", "")).lower() for rt in self.result_types]

    def to_ir(self) -> Dict[str, Any]:
        ir: Dict[str, Any] = {"instructions": list(self.instructions)}
        if self.result_types:
            ir["results"] = list(self.result_types)
        if self.basis_rotation_instructions:
            ir["basis_rotation_instructions"] = list(self.basis_rotation_instructions)
        return ir


@dataclass(frozen=True)
class GenericIRProgram(_TaskSpec):
    """A program in a textual IR such as OpenQASM."""
    kind: ClassVar[TaskSpecKind] = TaskSpecKind.GENERIC_IR

    source: str
    ir_format: str = "OPENQASM"
    inputs: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_qiskit(cls, circuit, inputs: Optional[Dict[str, Any]] = None) -> GenericIRProgram:
        """
        Serialize a Qiskit ``QuantumCircuit`` to an OpenQASM 3 program.

        Args:
            circuit: A qiskit.QuantumCircuit object
            inputs: Values for the program's input parameters
        """
        try:
            from qiskit import qasm3
        except ImportError:
            raise ImportError("Qiskit is required for circuit conversion. "
                              "Install with: pip install qiskit")
        return cls(source=qasm3.dumps(circuit), inputs=dict(inputs or {}))

    def to_ir(self) -> Dict[str, Any]:
        ir: Dict[str, Any] = {"source": self.source}
        if self.inputs:
            ir["inputs"] = dict(self.inputs)
        return ir


@dataclass(frozen=True)
class AnnealingProblem(_TaskSpec):
    """An Ising or QUBO problem for an annealer."""
    kind: ClassVar[TaskSpecKind] = TaskSpecKind.ANNEALING

    problem_type: ProblemType
    linear: Dict[int, float] = field(default_factory=dict)
    quadratic: Dict[Tuple[int, int], float] = field(default_factory=dict)

    @property
    def variable_count(self) -> int:
        variables = set(self.linear)
        for a, b in self.quadratic:
            variables.update((a, b))
        return len(variables)

    def to_ir(self) -> Dict[str, Any]:
        return {
            "type": self.problem_type.value,
            "linear": {str(k): v for k, v in self.linear.items()},
            "quadratic": {f"{a},{b}": v for (a, b), v in self.quadratic.items()},
        }


@dataclass(frozen=True)
class PhotonicProgram(_TaskSpec):
    """A photonic program (Blackbird source)."""
    kind: ClassVar[TaskSpecKind] = TaskSpecKind.PHOTONIC

    source: str

    def to_ir(self) -> Dict[str, Any]:
        return {"source": self.source}


@dataclass(frozen=True)
class AnalogHamiltonianProgram(_TaskSpec):
    """Atom register setup plus the driving and shifting Hamiltonian terms."""
    kind: ClassVar[TaskSpecKind] = TaskSpecKind.ANALOG_HAMILTONIAN

    setup: Dict[str, Any]
    hamiltonian: Dict[str, Any]

    def to_ir(self) -> Dict[str, Any]:
        return {"setup": self.setup, "hamiltonian": self.hamiltonian}


TaskSpec = Union[
    GateModelCircuit,
    AnnealingProblem,
    PhotonicProgram,
    AnalogHamiltonianProgram,
    GenericIRProgram,
]


@dataclass(frozen=True)
class SubmissionEnvelope:
    """
    Everything the submission service needs to create a task.

    Attributes:
        action: Serialized task specification
        client_token: Idempotency key, unique per envelope
        device_arn: Target device
        output_bucket: Bucket receiving task output
        output_key_prefix: Key prefix for task output
        shots: Number of shots
        device_parameters: Serialized device parameters
        tags: Tags attached to the task
        extra_options: Additional provider options (e.g. job token)
        poll_timeout_seconds: Poll timeout handed to the created task
        poll_interval_seconds: Poll interval handed to the created task
    """
    action: str
    client_token: str
    device_arn: str
    output_bucket: str
    output_key_prefix: str
    shots: int
    device_parameters: str
    tags: Dict[str, str] = field(default_factory=dict)
    extra_options: Dict[str, Any] = field(default_factory=dict)
    poll_timeout_seconds: float = DEFAULT_RESULTS_POLL_TIMEOUT
    poll_interval_seconds: float = DEFAULT_RESULTS_POLL_INTERVAL
