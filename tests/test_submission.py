"""
Tests for submission preparation, device parameters and configuration.
"""

import json
import logging

import pytest

from qtask.config import DEFAULT_SHOTS, TaskConfig, parse_s3_uri
from qtask.core.io_spec import (
    AnalogHamiltonianProgram,
    AnnealingProblem,
    GateModelCircuit,
    PhotonicProgram,
    ProblemType,
)
from qtask.errors import (
    ConfigurationError,
    InvalidShotCountError,
    InvalidTaskSpecError,
    UnknownDeviceError,
)
from qtask.submission.context import TRACKERS_HEADER, SubmissionContext
from qtask.submission.device_params import (
    DWAVE_COMMON_FIELDS,
    Dwave2000QDeviceParameters,
    DwaveAdvantageDeviceParameters,
    GateModelSimulatorDeviceParameters,
    IonqDeviceParameters,
    OqcDeviceParameters,
    RigettiDeviceParameters,
    create_annealing_device_params,
    create_gate_model_device_params,
)
from qtask.submission.prepare import create_device_params, prepare_task_input
from qtask.submission.validation import DeviceCapabilities, validate_circuit_and_shots


DESTINATION = ("results-bucket", "tasks")
ADVANTAGE_ARN = "arn:aws:braket:::device/qpu/d-wave/Advantage_system4"
DWAVE_2000Q_ARN = "arn:aws:braket:::device/qpu/d-wave/DW_2000Q_6"
SV1_ARN = "arn:aws:braket:::device/quantum-simulator/amazon/sv1"

BELL = GateModelCircuit(
    qubit_count=2,
    instructions=({"type": "h", "target": 0}, {"type": "cnot", "control": 0, "target": 1}),
)
ISING = AnnealingProblem(ProblemType.ISING, {0: 0.5}, {(0, 1): -1.0})


class TestGateModelDeviceParams:
    """Tests for gate-model device parameter selection."""

    @pytest.mark.parametrize("arn, expected", [
        ("arn:aws:braket:us-east-1::device/qpu/ionq/Aria-1", IonqDeviceParameters),
        ("arn:aws:braket:us-west-1::device/qpu/rigetti/Ankaa-2", RigettiDeviceParameters),
        ("arn:aws:braket:eu-west-2::device/qpu/oqc/Lucy", OqcDeviceParameters),
        (SV1_ARN, GateModelSimulatorDeviceParameters),
    ])
    def test_provider_selection(self, arn, expected):
        params = create_gate_model_device_params(arn, 2)
        assert type(params) is expected

    def test_serialization(self):
        params = create_gate_model_device_params(SV1_ARN, 3, disable_qubit_rewiring=True)
        data = json.loads(params.to_json())
        assert data["paradigmParameters"]["qubitCount"] == 3
        assert data["paradigmParameters"]["disableQubitRewiring"] is True
        assert data["braketSchemaHeader"]["name"] == params.schema_name


class TestAnnealingDeviceParams:
    """Tests for D-Wave device parameters."""

    def test_product_line_selection(self):
        assert type(create_annealing_device_params(ADVANTAGE_ARN)) is DwaveAdvantageDeviceParameters
        assert type(create_annealing_device_params(DWAVE_2000Q_ARN)) is Dwave2000QDeviceParameters

    def test_unknown_device(self):
        with pytest.raises(UnknownDeviceError) as exc_info:
            create_annealing_device_params("arn:aws:braket:::device/qpu/acme/Thing")
        assert exc_info.value.device_arn.endswith("acme/Thing")

    def test_known_fields_default_to_none(self):
        params = create_annealing_device_params(ADVANTAGE_ARN, {})
        assert set(params.device_level_parameters) == set(DWAVE_COMMON_FIELDS)
        assert all(v is None for v in params.device_level_parameters.values())

    def test_provider_level_fallback(self):
        params = create_annealing_device_params(
            DWAVE_2000Q_ARN, {"providerLevelParameters": {"beta": 0.2, "maxResults": 10}}
        )
        assert params.device_level_parameters["beta"] == 0.2
        assert params.device_level_parameters["maxResults"] == 10

    def test_device_level_preferred(self):
        params = create_annealing_device_params(ADVANTAGE_ARN, {
            "deviceLevelParameters": {"maxResults": 5},
            "providerLevelParameters": {"maxResults": 10},
        })
        assert params.device_level_parameters["maxResults"] == 5

    def test_unknown_fields_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            params = create_annealing_device_params(
                ADVANTAGE_ARN, {"deviceLevelParameters": {"beta": 0.2, "bogus": 1}}
            )
        assert "beta" not in params.device_level_parameters
        assert "bogus" in caplog.text

    def test_serialization_has_schema_headers(self):
        data = json.loads(create_annealing_device_params(ADVANTAGE_ARN).to_json())
        assert data["braketSchemaHeader"]["name"].endswith("dwave_advantage_device_parameters")
        levels = data["deviceLevelParameters"]
        assert levels["braketSchemaHeader"]["name"].endswith("device_level_parameters")


class TestValidation:
    """Tests for pre-submission checks."""

    def test_zero_shots_needs_result_types(self):
        with pytest.raises(InvalidShotCountError):
            validate_circuit_and_shots(BELL, 0)

    def test_exact_result_types_need_zero_shots(self):
        circuit = GateModelCircuit(2, result_types=({"type": "StateVector"},))
        validate_circuit_and_shots(circuit, 0)
        with pytest.raises(InvalidShotCountError):
            validate_circuit_and_shots(circuit, 100)

    def test_negative_shots(self):
        with pytest.raises(InvalidShotCountError):
            validate_circuit_and_shots(BELL, -1)

    def test_device_topology(self):
        capabilities = DeviceCapabilities(connectivity={0: [1], 1: [0, 2], 2: [1]})
        assert capabilities.available_qubits == 3
        assert capabilities.topology_graph.has_edge(1, 2)

    def test_fully_connected_topology(self):
        capabilities = DeviceCapabilities(qubit_count=4, fully_connected=True)
        assert capabilities.topology_graph.number_of_edges() == 12


class TestPrepareTaskInput:
    """Tests for building submission envelopes."""

    def test_gate_model_envelope(self):
        envelope = prepare_task_input(BELL, SV1_ARN, destination=DESTINATION, shots=100)
        assert envelope.shots == 100
        assert envelope.output_bucket == "results-bucket"
        assert envelope.output_key_prefix == "tasks"
        assert json.loads(envelope.action) == BELL.to_ir()
        assert json.loads(envelope.device_parameters)["paradigmParameters"]["qubitCount"] == 2
        assert envelope.extra_options == {}

    def test_client_tokens_are_unique(self):
        first = prepare_task_input(BELL, SV1_ARN, destination=DESTINATION, shots=10)
        second = prepare_task_input(BELL, SV1_ARN, destination=DESTINATION, shots=10)
        assert first.client_token != second.client_token

    def test_defaults_from_config(self):
        config = TaskConfig(results_destination=DESTINATION, poll_interval_seconds=5)
        envelope = prepare_task_input(BELL, SV1_ARN, config=config)
        assert envelope.shots == DEFAULT_SHOTS
        assert envelope.poll_interval_seconds == 5

    def test_missing_destination(self):
        with pytest.raises(ConfigurationError):
            prepare_task_input(BELL, SV1_ARN, shots=10)

    def test_job_token(self):
        context = SubmissionContext(job_token="job-123")
        envelope = prepare_task_input(BELL, SV1_ARN, destination=DESTINATION, shots=10,
                                      context=context)
        assert envelope.extra_options == {"jobToken": "job-123"}

    def test_annealing_envelope(self):
        envelope = prepare_task_input(
            ISING, ADVANTAGE_ARN, destination=DESTINATION, shots=10,
            device_params={"deviceLevelParameters": {"maxResults": 3}},
        )
        params = json.loads(envelope.device_parameters)
        assert params["deviceLevelParameters"]["maxResults"] == 3

    def test_empty_parameters_for_other_kinds(self):
        photonic = PhotonicProgram("Vac | q[0]")
        analog = AnalogHamiltonianProgram(setup={}, hamiltonian={})
        assert create_device_params(photonic, SV1_ARN).to_dict() == {}
        assert create_device_params(analog, SV1_ARN).to_dict() == {}

    def test_unsupported_task_spec(self):
        with pytest.raises(InvalidTaskSpecError):
            create_device_params({"not": "a task"}, SV1_ARN)

    def test_task_too_large_for_device(self):
        with pytest.raises(InvalidTaskSpecError):
            prepare_task_input(BELL, SV1_ARN, destination=DESTINATION, shots=10,
                               capabilities=DeviceCapabilities(qubit_count=1))

    def test_shots_outside_device_range(self):
        with pytest.raises(InvalidShotCountError):
            prepare_task_input(BELL, SV1_ARN, destination=DESTINATION, shots=10,
                               capabilities=DeviceCapabilities(shots_range=(100, 1000)))


class TestSubmissionContext:
    """Tests for the submission context."""

    def test_tracker_header(self):
        context = SubmissionContext()
        with context.track("cost-tracker"):
            with context.submission_headers() as headers:
                assert headers == {TRACKERS_HEADER: "1"}
        with context.submission_headers() as headers:
            assert headers == {TRACKERS_HEADER: "0"}

    def test_headers_are_not_constructor_arguments(self):
        with pytest.raises(TypeError):
            SubmissionContext(_headers={TRACKERS_HEADER: "5"})
        assert "_headers" not in repr(SubmissionContext())

    def test_headers_not_reentrant(self):
        context = SubmissionContext()
        with context.submission_headers():
            with pytest.raises(RuntimeError):
                with context.submission_headers():
                    pass


class TestConfig:
    """Tests for environment configuration."""

    def test_from_env(self):
        config = TaskConfig.from_env({
            "QTASK_RESULTS_S3_URI": "s3://my-bucket/some/prefix",
            "QTASK_JOB_TOKEN": "tok",
            "QTASK_POLL_INTERVAL_SECONDS": "3",
        })
        assert config.destination() == ("my-bucket", "some/prefix")
        assert config.job_token == "tok"
        assert config.poll_interval_seconds == 3
        assert config.default_shots == DEFAULT_SHOTS

    def test_bad_integer(self):
        with pytest.raises(ConfigurationError):
            TaskConfig.from_env({"QTASK_DEFAULT_SHOTS": "lots"})

    def test_bad_s3_uri(self):
        with pytest.raises(ConfigurationError):
            parse_s3_uri("https://my-bucket/prefix")
        with pytest.raises(ConfigurationError):
            parse_s3_uri("s3://my-bucket")
