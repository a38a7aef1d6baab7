"""
Exception hierarchy for qtask.

All exceptions raised by qtask itself inherit from :class:`QTaskError`.
Errors raised by external collaborators (status service, object storage,
result decoder, ...) are never wrapped and propagate unchanged.

Hierarchy::

    QTaskError
    ├── ContractError (ValueError)
    │   ├── MissingObservableError
    │   ├── TargetNotMeasuredError
    │   ├── ObservableTargetMismatchError
    │   ├── UnsupportedResultTypeError
    │   ├── UnknownDeviceError
    │   ├── InvalidShotCountError
    │   ├── InvalidTaskSpecError
    │   └── ConfigurationError
    └── ResultDataError
        ├── MissingMeasurementDataError
        ├── EmptySolutionSetError
        ├── MeasurementShapeError
        └── DivisionByZeroError (ZeroDivisionError)

Contract errors mean the caller asked for something impossible. Result data
errors mean the backend handed back a payload that cannot be post-processed.
Neither is ever retried.
"""

from __future__ import annotations

from typing import Optional, Sequence


class QTaskError(Exception):
    """Base class for all qtask errors."""


class ContractError(QTaskError, ValueError):
    """A caller-contract violation."""


class MissingObservableError(ContractError):
    """Raised when an observable-based result type has no observable."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Result type '{kind}' requires an observable")


class TargetNotMeasuredError(ContractError):
    """
    Raised when a requested target qubit was not measured.

    Attributes:
        targets: Requested target qubits
        measured_qubits: Qubits actually present in the measurement columns
    """

    def __init__(self, targets: Sequence[int], measured_qubits: Sequence[int]):
        self.targets = list(targets)
        self.measured_qubits = list(measured_qubits)
        missing = [t for t in self.targets if t not in self.measured_qubits]
        super().__init__(
            f"Targets {missing} are not among measured qubits {self.measured_qubits}"
        )


class ObservableTargetMismatchError(ContractError):
    """Raised when an observable is applied to the wrong number of target columns."""

    def __init__(self, qubit_count: int, num_columns: int):
        self.qubit_count = qubit_count
        self.num_columns = num_columns
        super().__init__(
            f"Observable acts on {qubit_count} qubit(s), got {num_columns} target column(s)"
        )


class UnsupportedResultTypeError(ContractError):
    """Raised for a result type kind the calculator does not know."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unknown result type '{kind}'")


class UnknownDeviceError(ContractError):
    """Raised when a device ARN matches no known product line."""

    def __init__(self, device_arn: str):
        self.device_arn = device_arn
        super().__init__(
            f"Could not find a device with the ARN: {device_arn}. Make sure that "
            "the device ARN corresponds to a valid QPU."
        )


class InvalidShotCountError(ContractError):
    """Raised when the shot count is not acceptable for the task or device."""

    def __init__(self, shots: int, reason: Optional[str] = None):
        self.shots = shots
        message = f"Invalid shot count {shots}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidTaskSpecError(ContractError):
    """Raised when a task specification cannot be submitted as given."""


class ConfigurationError(ContractError):
    """Raised for missing or malformed configuration."""


class ResultDataError(QTaskError):
    """The backend returned result data that cannot be processed."""


class MissingMeasurementDataError(ResultDataError):
    """Raised when a sampled gate-model result has neither shots nor probabilities."""

    def __init__(self):
        super().__init__(
            "One of `measurements` or `measurement_probabilities` must be "
            "populated in the result object"
        )


class EmptySolutionSetError(ResultDataError):
    """Raised when an annealing result contains no solutions."""

    def __init__(self):
        super().__init__("Annealing result contains no solutions")


class MeasurementShapeError(ResultDataError):
    """Raised when a measurement tensor does not have the expected shape."""


class DivisionByZeroError(ResultDataError, ZeroDivisionError):
    """Raised when probabilities are requested for zero shots."""

    def __init__(self):
        super().__init__("Cannot compute probabilities from zero shots")
