"""
QTask - quantum task lifecycle and result formatting.

Prepares task submissions for quantum devices, tracks submitted tasks to a
terminal state and turns raw result payloads into structured results.
"""

from qtask.config import TaskConfig
from qtask.submission.prepare import prepare_task_input
from qtask.runtime.task import CacheMode, CancellationToken, QuantumTask
from qtask.results.formatter import format_result

__version__ = "0.1.0"
__all__ = [
    "TaskConfig",
    "prepare_task_input",
    "QuantumTask",
    "CacheMode",
    "CancellationToken",
    "format_result",
]
