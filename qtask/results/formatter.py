"""
Turn raw result payloads into structured results.

Dispatch is on the payload's ``kind``; see :data:`FORMATTERS`.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from qtask.core.io_spec import ProblemType
from qtask.core.results import (
    AnalogHamiltonianRaw,
    AnalogHamiltonianResult,
    ANALOG_SHOT_STATUSES,
    AnalogShotStatus,
    AnnealingRaw,
    AnnealingResult,
    GateModelRaw,
    GateModelResult,
    PayloadKind,
    PhotonicRaw,
    PhotonicResult,
    RawResultPayload,
    ShotResult,
    StructuredResult,
)
from qtask.errors import (
    EmptySolutionSetError,
    MeasurementShapeError,
    MissingMeasurementDataError,
    ResultDataError,
)
from qtask.results.calculator import calculate_result_types, requests_from_ir
from qtask.stats.marginals import as_measurement_matrix
from qtask.stats.sampler import (
    count_outcomes,
    probabilities_from_counts,
    synthesize_outcomes_from_probabilities,
)


logger = logging.getLogger(__name__)


def computational_basis_sampling(raw: GateModelRaw) -> GateModelResult:
    """
    Build a sampled gate-model result.

    Device-reported shots are preferred. When only probabilities are
    reported, shots are synthesized from them and every measurement field
    is flagged as not copied from the device.

    Raises:
        MissingMeasurementDataError: Neither shots nor probabilities present
    """
    measured_qubits = list(raw.measured_qubits) if raw.measured_qubits else None
    width = len(measured_qubits) if measured_qubits else None

    if raw.measurements is not None:
        measurements = as_measurement_matrix(raw.measurements, width)
        counts = count_outcomes(measurements)
        probabilities = probabilities_from_counts(counts, measurements.shape[0])
        copied_from_device = True
    elif raw.measurement_probabilities is not None:
        probabilities = dict(raw.measurement_probabilities)
        measurements = as_measurement_matrix(
            synthesize_outcomes_from_probabilities(probabilities, raw.task_metadata.shots),
            width,
        )
        counts = count_outcomes(measurements)
        copied_from_device = False
    else:
        raise MissingMeasurementDataError()

    if measured_qubits is None:
        measured_qubits = list(range(measurements.shape[1]))

    if raw.result_types:
        requests = [rt.request for rt in raw.result_types]
    else:
        requests = requests_from_ir(raw.action)
    result_types = calculate_result_types(requests, measurements, measured_qubits)

    return GateModelResult(
        task_metadata=raw.task_metadata,
        additional_metadata=raw.additional_metadata,
        result_types=result_types,
        values=[rt.value for rt in result_types],
        measurements=measurements,
        measured_qubits=measured_qubits,
        measurement_counts=counts,
        measurement_probabilities=probabilities,
        measurements_copied_from_device=copied_from_device,
        measurement_counts_copied_from_device=copied_from_device,
        measurement_probabilities_copied_from_device=copied_from_device,
    )


def _format_gate_model(raw: GateModelRaw) -> GateModelResult:
    if raw.task_metadata.shots > 0:
        return computational_basis_sampling(raw)
    # Exact results: values were computed by the backend
    result_types = list(raw.result_types or [])
    return GateModelResult(
        task_metadata=raw.task_metadata,
        additional_metadata=raw.additional_metadata,
        result_types=result_types,
        values=[rt.value for rt in result_types],
    )


def _format_annealing(raw: AnnealingRaw) -> AnnealingResult:
    if raw.solutions is None or len(raw.solutions) == 0:
        raise EmptySolutionSetError()
    solutions = as_measurement_matrix(raw.solutions)
    n_solutions, n_variables = solutions.shape
    values = np.asarray(raw.values, dtype=np.float64)
    if raw.solution_counts is None:
        counts = np.ones(n_solutions, dtype=np.int64)
    else:
        counts = np.asarray(raw.solution_counts, dtype=np.int64)
    if values.shape != (n_solutions,) or counts.shape != (n_solutions,):
        raise MeasurementShapeError(
            f"Expected {n_solutions} values and solution counts, "
            f"got {values.shape} and {counts.shape}"
        )

    record_array = np.zeros(
        n_solutions,
        dtype=[
            ("solution", np.int64, (n_variables,)),
            ("value", np.float64),
            ("solution_count", np.int64),
        ],
    )
    record_array["solution"] = solutions
    record_array["value"] = values
    record_array["solution_count"] = counts

    problem_type = raw.action.get("type")
    return AnnealingResult(
        record_array=record_array,
        variable_count=n_variables,
        problem_type=ProblemType(problem_type) if problem_type else None,
        task_metadata=raw.task_metadata,
        additional_metadata=raw.additional_metadata,
    )


def _format_photonic(raw: PhotonicRaw) -> PhotonicResult:
    measurements: Optional[np.ndarray] = None
    if raw.measurements is not None:
        try:
            measurements = np.asarray(raw.measurements, dtype=np.int64)
        except ValueError as exc:
            raise MeasurementShapeError(f"Photonic measurements are ragged: {exc}") from None
        if measurements.ndim != 3:
            raise MeasurementShapeError(
                "Photonic measurements must have shape (shots, steps, modes), "
                f"got {measurements.shape}"
            )
    return PhotonicResult(
        task_metadata=raw.task_metadata,
        additional_metadata=raw.additional_metadata,
        measurements=measurements,
    )


def _sequence(values) -> Optional[np.ndarray]:
    return None if values is None else np.asarray(values, dtype=np.int64)


def _shot_status(code: str) -> AnalogShotStatus:
    try:
        return ANALOG_SHOT_STATUSES[code.lower()]
    except KeyError:
        raise ResultDataError(f"Unknown analog shot status: {code!r}") from None


def _format_analog_hamiltonian(raw: AnalogHamiltonianRaw) -> AnalogHamiltonianResult:
    if raw.measurements is None:
        return AnalogHamiltonianResult(task_metadata=raw.task_metadata, measurements=None)
    shots: List[ShotResult] = [
        ShotResult(
            status=_shot_status(shot.shot_status),
            pre_sequence=_sequence(shot.pre_sequence),
            post_sequence=_sequence(shot.post_sequence),
        )
        for shot in raw.measurements
    ]
    return AnalogHamiltonianResult(task_metadata=raw.task_metadata, measurements=shots)


FORMATTERS: Dict[PayloadKind, Callable[..., StructuredResult]] = {
    PayloadKind.GATE_MODEL: _format_gate_model,
    PayloadKind.ANNEALING: _format_annealing,
    PayloadKind.PHOTONIC: _format_photonic,
    PayloadKind.ANALOG_HAMILTONIAN: _format_analog_hamiltonian,
}


def format_result(raw: RawResultPayload) -> StructuredResult:
    """
    Build the structured result for a raw payload.

    Args:
        raw: Decoded backend payload

    Returns:
        The structured result matching the payload kind
    """
    kind = getattr(raw, "kind", None)
    if kind not in FORMATTERS:
        raise TypeError(f"Unsupported result payload: {type(raw).__name__}")
    logger.debug("Formatting %s result for task %s", kind.value, raw.task_metadata.id)
    return FORMATTERS[kind](raw)
