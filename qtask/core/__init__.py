"""Core QTask types: task specifications, observables and result records."""

from qtask.core.io_spec import (
    TaskSpecKind,
    ProblemType,
    ResultKind,
    ResultTypeRequest,
    GateModelCircuit,
    GenericIRProgram,
    AnnealingProblem,
    PhotonicProgram,
    AnalogHamiltonianProgram,
    SubmissionEnvelope,
)
from qtask.core.observables import (
    Observable,
    StandardObservable,
    Identity,
    Hermitian,
    TensorProduct,
    observable_from_ir,
)
from qtask.core.results import (
    TaskStatus,
    TaskMetadata,
    OutputLocation,
    PayloadKind,
    ResultTaskMetadata,
    ResultTypeValue,
    GateModelRaw,
    AnnealingRaw,
    PhotonicRaw,
    AnalogShotRaw,
    AnalogHamiltonianRaw,
    GateModelResult,
    AnnealingResult,
    PhotonicResult,
    AnalogShotStatus,
    ShotResult,
    AnalogHamiltonianResult,
)

__all__ = [
    # Task specifications
    "TaskSpecKind",
    "ProblemType",
    "ResultKind",
    "ResultTypeRequest",
    "GateModelCircuit",
    "GenericIRProgram",
    "AnnealingProblem",
    "PhotonicProgram",
    "AnalogHamiltonianProgram",
    "SubmissionEnvelope",
    # Observables
    "Observable",
    "StandardObservable",
    "Identity",
    "Hermitian",
    "TensorProduct",
    "observable_from_ir",
    # Task state
    "TaskStatus",
    "TaskMetadata",
    "OutputLocation",
    # Raw payloads
    "PayloadKind",
    "ResultTaskMetadata",
    "ResultTypeValue",
    "GateModelRaw",
    "AnnealingRaw",
    "PhotonicRaw",
    "AnalogShotRaw",
    "AnalogHamiltonianRaw",
    # Structured results
    "GateModelResult",
    "AnnealingResult",
    "PhotonicResult",
    "AnalogShotStatus",
    "ShotResult",
    "AnalogHamiltonianResult",
]
