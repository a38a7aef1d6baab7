"""
Observable descriptors.

Only what result post-processing needs is modelled here: how many qubits an
observable acts on and its eigenvalues in the computational-basis ordering
used by :func:`qtask.stats.marginals.to_base10` (most significant bit first).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import reduce
from typing import Any, List, Sequence, Tuple, Union

import numpy as np
from scipy.linalg import eigvalsh


STANDARD_OBSERVABLES = ("x", "y", "z", "h")


class Observable:
    """Base class for observables acting on one or more qubits."""

    @property
    def qubit_count(self) -> int:
        raise NotImplementedError

    @property
    def eigenvalues(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def is_standard(self) -> bool:
        """Whether this is a single-qubit observable with eigenvalues +1, -1."""
        return False

    def to_ir(self) -> List[Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class StandardObservable(Observable):
    """One of the Pauli-like observables X, Y, Z, H."""
    name: str

    def __post_init__(self):
        name = self.name.lower()
        if name not in STANDARD_OBSERVABLES:
            raise ValueError(f"Unknown standard observable: {self.name}")
        object.__setattr__(self, "name", name)

    @property
    def qubit_count(self) -> int:
        return 1

    @property
    def eigenvalues(self) -> np.ndarray:
        return np.array([1.0, -1.0])

    @property
    def is_standard(self) -> bool:
        return True

    def to_ir(self) -> List[Any]:
        return [self.name]


@dataclass(frozen=True)
class Identity(Observable):

    @property
    def qubit_count(self) -> int:
        return 1

    @property
    def eigenvalues(self) -> np.ndarray:
        return np.array([1.0, 1.0])

    def to_ir(self) -> List[Any]:
        return ["i"]


@dataclass(eq=False)
class Hermitian(Observable):
    """Arbitrary Hermitian matrix observable of dimension ``2**n``."""
    matrix: np.ndarray

    def __post_init__(self):
        self.matrix = np.asarray(self.matrix, dtype=np.complex128)
        dim = self.matrix.shape[0] if self.matrix.ndim == 2 else 0
        if self.matrix.shape != (dim, dim) or dim < 2 or dim & (dim - 1):
            raise ValueError(
                f"Hermitian matrix must be square with power-of-two size, got {self.matrix.shape}"
            )
        if not np.allclose(self.matrix, self.matrix.conj().T):
            raise ValueError("Matrix is not Hermitian")

    @property
    def qubit_count(self) -> int:
        return int(np.log2(self.matrix.shape[0]))

    @property
    def eigenvalues(self) -> np.ndarray:
        return eigvalsh(self.matrix)

    def to_ir(self) -> List[Any]:
        rows = [[[float(v.real), float(v.imag)] for v in row] for row in self.matrix]
        return [rows]


@dataclass(frozen=True)
class TensorProduct(Observable):
    """Tensor product of observables, ordered like their target qubits."""
    factors: Tuple[Observable, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if len(self.factors) < 2:
            raise ValueError("A tensor product needs at least two factors")
        object.__setattr__(self, "factors", tuple(self.factors))

    @property
    def qubit_count(self) -> int:
        return sum(f.qubit_count for f in self.factors)

    @property
    def eigenvalues(self) -> np.ndarray:
        return reduce(np.kron, (f.eigenvalues for f in self.factors))

    def to_ir(self) -> List[Any]:
        ir: List[Any] = []
        for factor in self.factors:
            ir.extend(factor.to_ir())
        return ir


def _factor_from_ir(item: Any) -> Observable:
    if isinstance(item, str):
        name = item.lower()
        if name == "i":
            return Identity()
        return StandardObservable(name)
    if isinstance(item, Observable):
        return item
    # Matrices arrive as nested [real, imag] pairs
    arr = np.asarray(item, dtype=np.float64)
    if arr.ndim == 3 and arr.shape[-1] == 2:
        return Hermitian(arr[..., 0] + 1j * arr[..., 1])
    return Hermitian(arr)


def observable_from_ir(ir: Union[str, Observable, Sequence[Any]]) -> Observable:
    """
    Build an observable from its IR description.

    Examples:
        "z"                -> StandardObservable("z")
        ["x", "z"]         -> TensorProduct((X, Z))
        [[[[1, 0], [0, 0]],
          [[0, 0], [-1, 0]]]] -> Hermitian(diag(1, -1))
    """
    if isinstance(ir, (str, Observable)):
        return _factor_from_ir(ir)
    factors = [_factor_from_ir(item) for item in ir]
    if not factors:
        raise ValueError("Observable IR is empty")
    if len(factors) == 1:
        return factors[0]
    return TensorProduct(tuple(factors))
