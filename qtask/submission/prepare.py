"""
Task input builder.

Turns a task specification plus device identity into a
:class:`~qtask.core.io_spec.SubmissionEnvelope`. Nothing here talks to the
backend.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from qtask.config import TaskConfig
from qtask.core.io_spec import SubmissionEnvelope, TaskSpec, TaskSpecKind
from qtask.errors import InvalidTaskSpecError
from qtask.submission.context import SubmissionContext
from qtask.submission.device_params import (
    DeviceParameters,
    EmptyDeviceParameters,
    create_annealing_device_params,
    create_gate_model_device_params,
)
from qtask.submission.validation import DeviceCapabilities, validate_task


logger = logging.getLogger(__name__)


def _annealing_params(task_spec, device_arn, device_params, disable_qubit_rewiring):
    return create_annealing_device_params(device_arn, device_params)


def _gate_model_params(task_spec, device_arn, device_params, disable_qubit_rewiring):
    return create_gate_model_device_params(
        device_arn, task_spec.qubit_count, disable_qubit_rewiring
    )


def _no_params(task_spec, device_arn, device_params, disable_qubit_rewiring):
    return EmptyDeviceParameters()


DEVICE_PARAMS_BUILDERS: Dict[TaskSpecKind, Callable[..., DeviceParameters]] = {
    TaskSpecKind.ANNEALING: _annealing_params,
    TaskSpecKind.GATE_MODEL: _gate_model_params,
    TaskSpecKind.PHOTONIC: _no_params,
    TaskSpecKind.ANALOG_HAMILTONIAN: _no_params,
    TaskSpecKind.GENERIC_IR: _no_params,
}


def create_device_params(
    task_spec: TaskSpec,
    device_arn: str,
    device_params: Optional[Mapping[str, Any]] = None,
    disable_qubit_rewiring: bool = False
) -> DeviceParameters:
    """
    Select and build device parameters for a task.

    Raises:
        InvalidTaskSpecError: If ``task_spec`` is not a known task kind
        UnknownDeviceError: Annealing task on an unrecognised device
    """
    kind = getattr(task_spec, "kind", None)
    if kind not in DEVICE_PARAMS_BUILDERS:
        raise InvalidTaskSpecError(f"Unsupported task specification: {type(task_spec).__name__}")
    return DEVICE_PARAMS_BUILDERS[kind](task_spec, device_arn, device_params, disable_qubit_rewiring)


def prepare_task_input(
    task_spec: TaskSpec,
    device_arn: str,
    destination: Optional[Tuple[str, str]] = None,
    shots: Optional[int] = None,
    device_params: Optional[Mapping[str, Any]] = None,
    disable_qubit_rewiring: bool = False,
    tags: Optional[Mapping[str, str]] = None,
    poll_timeout_seconds: Optional[float] = None,
    poll_interval_seconds: Optional[float] = None,
    config: Optional[TaskConfig] = None,
    context: Optional[SubmissionContext] = None,
    capabilities: Optional[DeviceCapabilities] = None,
) -> SubmissionEnvelope:
    """
    Build the submission envelope for a task.

    Args:
        task_spec: What to run
        device_arn: Where to run it
        destination: (bucket, key prefix) for results; defaults to config
        shots: Number of shots; defaults to config
        device_params: Caller-supplied device parameters (annealing only)
        disable_qubit_rewiring: Forbid qubit rewiring during compilation
        tags: Tags for the task
        poll_timeout_seconds: Poll timeout for the created task
        poll_interval_seconds: Poll interval for the created task
        config: Defaults; a plain :class:`TaskConfig` when omitted
        context: Submission context carrying the job token, if any
        capabilities: Device limits to validate against

    Returns:
        A new envelope with a fresh client token

    Raises:
        InvalidShotCountError: Shot count rejected for the task or device
        InvalidTaskSpecError: Unsupported or oversized task
        UnknownDeviceError: Annealing task on an unrecognised device
        ConfigurationError: No destination given or configured
    """
    config = config or TaskConfig()
    shots = config.default_shots if shots is None else shots
    bucket, key_prefix = destination or config.destination()

    device_parameters = create_device_params(
        task_spec, device_arn, device_params, disable_qubit_rewiring
    )
    validate_task(task_spec, shots, capabilities)

    extra_options: Dict[str, Any] = {}
    job_token = context.job_token if context is not None and context.job_token else config.job_token
    if job_token:
        extra_options["jobToken"] = job_token

    envelope = SubmissionEnvelope(
        action=task_spec.action(),
        client_token=str(uuid.uuid4()),
        device_arn=device_arn,
        output_bucket=bucket,
        output_key_prefix=key_prefix,
        shots=shots,
        device_parameters=device_parameters.to_json(),
        tags=dict(tags or {}),
        extra_options=extra_options,
        poll_timeout_seconds=(
            config.poll_timeout_seconds if poll_timeout_seconds is None else poll_timeout_seconds
        ),
        poll_interval_seconds=(
            config.poll_interval_seconds if poll_interval_seconds is None else poll_interval_seconds
        ),
    )
    logger.debug("Prepared %s task for %s with %d shots",
                 task_spec.kind.value, device_arn, shots)
    return envelope
