"""
Pre-submission checks on task specifications and shot counts.

Device limits come from :class:`DeviceCapabilities`, which callers fill in
from whatever device metadata service they use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import networkx as nx

from qtask.core.io_spec import AnnealingProblem, GateModelCircuit, TaskSpec
from qtask.errors import InvalidShotCountError, InvalidTaskSpecError


# Result types that describe the exact state and so only make sense with shots=0
EXACT_ONLY_RESULT_TYPES = frozenset({"statevector", "amplitude", "densitymatrix"})


@dataclass
class DeviceCapabilities:
    """
    Limits of a target device relevant before submission.

    Attributes:
        shots_range: Inclusive (min, max) shots the device accepts
        qubit_count: Number of qubits on the device
        connectivity: Adjacency lists, qubit -> connected qubits
        fully_connected: Whether every qubit pair is connected
    """
    shots_range: Optional[Tuple[int, int]] = None
    qubit_count: Optional[int] = None
    connectivity: Dict[int, List[int]] = field(default_factory=dict)
    fully_connected: bool = False
    _graph: Optional[nx.DiGraph] = field(default=None, repr=False)

    @property
    def topology_graph(self) -> Optional[nx.DiGraph]:
        """Directed connectivity graph, or None when nothing is known."""
        if self._graph is None:
            if self.fully_connected and self.qubit_count:
                self._graph = nx.complete_graph(self.qubit_count, create_using=nx.DiGraph)
            elif self.connectivity:
                graph = nx.DiGraph()
                for qubit, neighbors in self.connectivity.items():
                    graph.add_node(int(qubit))
                    graph.add_edges_from((int(qubit), int(n)) for n in neighbors)
                self._graph = graph
        return self._graph

    @property
    def available_qubits(self) -> Optional[int]:
        if self.qubit_count is not None:
            return self.qubit_count
        graph = self.topology_graph
        return graph.number_of_nodes() if graph is not None else None


def validate_circuit_and_shots(circuit: GateModelCircuit, shots: int) -> None:
    """
    Check that a circuit can be run with the given number of shots.

    Raises:
        InvalidShotCountError: If ``shots`` is negative, if ``shots`` is 0
            and the circuit declares no result types, or if ``shots`` > 0
            and the circuit asks for exact-only result types
    """
    if shots < 0:
        raise InvalidShotCountError(shots, "shots must be non-negative")
    names = circuit.result_type_names
    if shots == 0 and not names:
        raise InvalidShotCountError(shots, "no result types specified for circuit and shots=0")
    exact_only = sorted(EXACT_ONLY_RESULT_TYPES.intersection(names))
    if shots > 0 and exact_only:
        raise InvalidShotCountError(
            shots, f"{', '.join(exact_only)} cannot be specified when shots>0"
        )


def validate_shots_for_device(shots: int, capabilities: DeviceCapabilities) -> None:
    if capabilities.shots_range is None:
        return
    low, high = capabilities.shots_range
    if not low <= shots <= high:
        raise InvalidShotCountError(shots, f"device accepts between {low} and {high} shots")


def task_size(task_spec: TaskSpec) -> Optional[int]:
    """Number of qubits (or annealing variables) a task needs, if known."""
    if isinstance(task_spec, GateModelCircuit):
        return task_spec.qubit_count
    if isinstance(task_spec, AnnealingProblem):
        return task_spec.variable_count
    return None


def validate_task(
    task_spec: TaskSpec,
    shots: int,
    capabilities: Optional[DeviceCapabilities] = None
) -> None:
    """
    Run every applicable pre-submission check.

    Raises:
        InvalidShotCountError: Shot count rejected for the task or device
        InvalidTaskSpecError: Task does not fit on the device
    """
    if isinstance(task_spec, GateModelCircuit):
        validate_circuit_and_shots(task_spec, shots)
    elif shots < 0:
        raise InvalidShotCountError(shots, "shots must be non-negative")
    if isinstance(task_spec, AnnealingProblem) and task_spec.variable_count == 0:
        raise InvalidTaskSpecError("Annealing problem has no variables")

    if capabilities is None:
        return
    validate_shots_for_device(shots, capabilities)
    size = task_size(task_spec)
    available = capabilities.available_qubits
    if size is not None and available is not None and size > available:
        raise InvalidTaskSpecError(
            f"Task needs {size} qubits but the device has {available}"
        )
