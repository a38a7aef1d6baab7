"""
Shot counting and probability bookkeeping.

Measurement rows are rendered as bitstrings by concatenating bit values in
column order, so ``[1, 0, 0]`` becomes ``"100"``.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from qtask.errors import DivisionByZeroError


def bitstring(row: Sequence[int]) -> str:
    return "".join(str(int(b)) for b in row)


def count_outcomes(outcomes) -> Counter:
    """
    Count how often each measurement outcome occurred.

    Args:
        outcomes: Shot rows, each a sequence of 0/1 values

    Returns:
        Counter mapping bitstring -> number of shots
    """
    return Counter(bitstring(row) for row in outcomes)


def probabilities_from_counts(
    counts: Mapping[str, int],
    total_shots: Optional[int] = None
) -> Dict[str, float]:
    """
    Convert counts to probabilities.

    Args:
        counts: Bitstring -> count
        total_shots: Normalisation; defaults to the sum of ``counts``

    Raises:
        DivisionByZeroError: If there are no shots
    """
    if total_shots is None:
        total_shots = sum(counts.values())
    if total_shots == 0:
        raise DivisionByZeroError()
    return {key: count / total_shots for key, count in counts.items()}


def synthesize_outcomes_from_probabilities(
    probabilities: Mapping[str, float],
    shots: int
) -> np.ndarray:
    """
    Rebuild shot rows from a probability distribution.

    Each bitstring is repeated ``round(p * shots)`` times. Python's
    round-half-to-even is used and the total is not adjusted, so the number
    of rows can differ slightly from ``shots``.

    Returns:
        Integer array of shape (rows, num_bits)
    """
    width = len(next(iter(probabilities), ""))
    rows = []
    for key, prob in probabilities.items():
        bits = [int(b) for b in key]
        rows.extend([bits] * int(round(prob * shots)))
    return np.array(rows, dtype=np.int64).reshape(-1, width)
