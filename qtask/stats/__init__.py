"""Shot statistics: counting, marginals and observable estimators."""

from qtask.stats.sampler import (
    count_outcomes,
    probabilities_from_counts,
    synthesize_outcomes_from_probabilities,
)
from qtask.stats.marginals import select_columns, to_base10, probability_distribution
from qtask.stats.expectation import eigen_sample_values, expectation, variance

__all__ = [
    "count_outcomes",
    "probabilities_from_counts",
    "synthesize_outcomes_from_probabilities",
    "select_columns",
    "to_base10",
    "probability_distribution",
    "eigen_sample_values",
    "expectation",
    "variance",
]
