"""
Column selection and probability vectors over measured qubits.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from qtask.errors import MeasurementShapeError, TargetNotMeasuredError


def as_measurement_matrix(outcomes, num_columns: Optional[int] = None) -> np.ndarray:
    """
    Convert shot rows to a 2D integer array.

    Args:
        outcomes: Shot rows, each a sequence of 0/1 values
        num_columns: Expected number of columns (usually len(measured_qubits))

    Raises:
        MeasurementShapeError: If rows are ragged or have the wrong width
    """
    try:
        matrix = np.asarray(outcomes, dtype=np.int64)
    except ValueError as exc:
        raise MeasurementShapeError(f"Measurement rows are ragged: {exc}") from None
    if matrix.ndim == 1 and matrix.size == 0:
        matrix = matrix.reshape(0, num_columns or 0)
    if matrix.ndim != 2:
        raise MeasurementShapeError(
            f"Measurements must be a 2D array of shots x qubits, got shape {matrix.shape}"
        )
    if num_columns is not None and matrix.shape[1] != num_columns:
        raise MeasurementShapeError(
            f"Measurement rows have {matrix.shape[1]} entries, expected {num_columns}"
        )
    return matrix


def select_columns(
    outcomes: np.ndarray,
    measured_qubits: Sequence[int],
    targets: Optional[Sequence[int]] = None
) -> np.ndarray:
    """
    Project measurement rows onto the target qubits.

    Columns come back in ``targets`` order, not ``measured_qubits`` order.
    No targets, or targets equal to ``measured_qubits``, returns ``outcomes``
    itself.

    Raises:
        TargetNotMeasuredError: If a target was not measured
    """
    measured = list(measured_qubits)
    if not targets or list(targets) == measured:
        return outcomes
    if any(t not in measured for t in targets):
        raise TargetNotMeasuredError(targets, measured)
    columns = [measured.index(t) for t in targets]
    return np.asarray(outcomes)[:, columns]


def to_base10(bits) -> Union[int, np.ndarray]:
    """
    Read bit rows as big-endian binary numbers.

    A 1D row gives an int; a 2D array gives one integer per row.
    """
    arr = np.asarray(bits, dtype=np.int64)
    width = arr.shape[-1]
    powers = 2 ** np.arange(width - 1, -1, -1, dtype=np.int64)
    values = arr @ powers
    if arr.ndim == 1:
        return int(values)
    return values


def probability_distribution(rows: np.ndarray, num_qubits: Optional[int] = None) -> np.ndarray:
    """
    Dense probability vector over the ``2**num_qubits`` basis states.

    Entry ``i`` is the fraction of rows whose base-10 value is ``i``.
    With zero rows every entry is 0.0.
    """
    rows = np.asarray(rows, dtype=np.int64)
    if num_qubits is None:
        num_qubits = rows.shape[1]
    probabilities = np.zeros(2 ** num_qubits, dtype=np.float64)
    if rows.shape[0] == 0:
        return probabilities
    counts = np.bincount(to_base10(rows), minlength=2 ** num_qubits)
    return counts / rows.shape[0]
