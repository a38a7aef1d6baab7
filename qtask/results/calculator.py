"""
Result type calculation from measured shots.

Each :class:`~qtask.core.io_spec.ResultTypeRequest` is evaluated on its own;
expectation and variance recompute their eigenvalue samples rather than
sharing them with a sample request for the same observable.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence

import numpy as np

from qtask.core.io_spec import ResultKind, ResultTypeRequest
from qtask.core.observables import Observable
from qtask.core.results import ResultTypeValue
from qtask.stats.expectation import eigen_sample_values, expectation, variance
from qtask.stats.marginals import probability_distribution, select_columns


def _observable_value(
    kind: ResultKind,
    observable: Observable,
    measurements: np.ndarray,
    measured_qubits: Sequence[int],
    targets: Sequence[int]
) -> Any:
    rows = select_columns(measurements, measured_qubits, targets)
    samples = eigen_sample_values(observable, rows)
    if kind is ResultKind.SAMPLE:
        return samples
    if kind is ResultKind.EXPECTATION:
        return expectation(samples)
    return variance(samples)


def calculate_for_request(
    request: ResultTypeRequest,
    measurements: np.ndarray,
    measured_qubits: Sequence[int]
) -> Any:
    """
    Compute the value of a single result type.

    A single-qubit observable requested without targets is evaluated on
    every measured qubit separately and yields a list with one value per
    qubit.

    Raises:
        UnsupportedResultTypeError: Unknown result type kind
        MissingObservableError: Observable-based kind without an observable
        TargetNotMeasuredError: A target qubit was not measured
    """
    kind = request.result_kind
    if kind is ResultKind.PROBABILITY:
        return probability_distribution(
            select_columns(measurements, measured_qubits, request.targets)
        )

    observable = request.observable
    if not request.targets and observable.qubit_count == 1:
        return [
            _observable_value(kind, observable, measurements, measured_qubits, (q,))
            for q in measured_qubits
        ]
    targets = request.targets or tuple(measured_qubits)
    return _observable_value(kind, observable, measurements, measured_qubits, targets)


def calculate_result_types(
    requests: Iterable[ResultTypeRequest],
    measurements: np.ndarray,
    measured_qubits: Sequence[int]
) -> List[ResultTypeValue]:
    """Evaluate requests in order, one value per request."""
    return [
        ResultTypeValue(request, calculate_for_request(request, measurements, measured_qubits))
        for request in requests
    ]


def requests_from_ir(action: Mapping[str, Any]) -> List[ResultTypeRequest]:
    """Result type requests declared by a task's IR; empty if it declares none."""
    results: List[Dict[str, Any]] = list(action.get("results") or [])
    return [ResultTypeRequest.from_ir(rt) for rt in results]
