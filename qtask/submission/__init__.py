"""Submission preparation: device parameters, validation and envelopes."""

from qtask.submission.context import SubmissionContext
from qtask.submission.device_params import (
    create_annealing_device_params,
    create_gate_model_device_params,
)
from qtask.submission.validation import DeviceCapabilities, validate_circuit_and_shots
from qtask.submission.prepare import create_device_params, prepare_task_input

__all__ = [
    "SubmissionContext",
    "DeviceCapabilities",
    "create_annealing_device_params",
    "create_gate_model_device_params",
    "create_device_params",
    "validate_circuit_and_shots",
    "prepare_task_input",
]
