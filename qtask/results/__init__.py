"""Result type calculation and payload formatting."""

from qtask.results.calculator import calculate_result_types, requests_from_ir
from qtask.results.formatter import computational_basis_sampling, format_result

__all__ = [
    "calculate_result_types",
    "requests_from_ir",
    "computational_basis_sampling",
    "format_result",
]
