"""
Eigenvalue sampling, expectation and variance from measured shots.
"""

from __future__ import annotations

import numpy as np

from qtask.core.observables import Observable
from qtask.errors import MeasurementShapeError, ObservableTargetMismatchError
from qtask.stats.marginals import to_base10


def eigen_sample_values(observable: Observable, rows: np.ndarray) -> np.ndarray:
    """
    Map each measured row to the observable eigenvalue it represents.

    Rows must already be restricted to the observable's targets (see
    :func:`qtask.stats.marginals.select_columns`) and measured in the
    observable's eigenbasis.

    Args:
        observable: Observable the rows were measured for
        rows: Array of shape (shots, observable.qubit_count)

    Returns:
        One real eigenvalue per shot
    """
    rows = np.asarray(rows, dtype=np.int64)
    if rows.ndim != 2:
        raise MeasurementShapeError(f"Expected a 2D array of shots, got shape {rows.shape}")
    if rows.shape[1] != observable.qubit_count:
        raise ObservableTargetMismatchError(observable.qubit_count, rows.shape[1])
    if observable.is_standard:
        return 1.0 - 2.0 * rows[:, 0]
    indices = to_base10(rows)
    return np.real(observable.eigenvalues[indices])


def expectation(samples) -> float:
    """Arithmetic mean of eigenvalue samples."""
    return float(np.mean(samples))


def variance(samples) -> float:
    """Unbiased (n - 1) sample variance of eigenvalue samples."""
    return float(np.var(samples, ddof=1))
