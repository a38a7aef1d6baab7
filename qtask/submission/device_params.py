"""
Provider-specific device parameters.

Which parameter class a task gets is decided from the device ARN by
scanning an ordered table of ``(marker, class)`` pairs; first match wins.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from qtask.errors import UnknownDeviceError


logger = logging.getLogger(__name__)


def _header(name: str, version: str = "1") -> Dict[str, str]:
    return {"name": name, "version": version}


class DeviceParameters:
    """Base class; subclasses serialize to the provider's schema."""
    schema_name: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class EmptyDeviceParameters(DeviceParameters):
    """Used for task kinds that take no device parameters."""

    def to_dict(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class GateModelParameters:
    qubit_count: int
    disable_qubit_rewiring: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "braketSchemaHeader": _header("braket.device_schema.gate_model_parameters"),
            "qubitCount": self.qubit_count,
            "disableQubitRewiring": self.disable_qubit_rewiring,
        }


@dataclass(frozen=True)
class _GateModelDeviceParameters(DeviceParameters):
    paradigm_parameters: GateModelParameters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "braketSchemaHeader": _header(self.schema_name),
            "paradigmParameters": self.paradigm_parameters.to_dict(),
        }


@dataclass(frozen=True)
class GateModelSimulatorDeviceParameters(_GateModelDeviceParameters):
    schema_name: ClassVar[str] = "braket.device_schema.simulators.gate_model_simulator_device_parameters"


@dataclass(frozen=True)
class IonqDeviceParameters(_GateModelDeviceParameters):
    schema_name: ClassVar[str] = "braket.device_schema.ionq.ionq_device_parameters"


@dataclass(frozen=True)
class RigettiDeviceParameters(_GateModelDeviceParameters):
    schema_name: ClassVar[str] = "braket.device_schema.rigetti.rigetti_device_parameters"


@dataclass(frozen=True)
class OqcDeviceParameters(_GateModelDeviceParameters):
    schema_name: ClassVar[str] = "braket.device_schema.oqc.oqc_device_parameters"


# Device-level annealing parameters understood by each D-Wave product line.
# Anything not listed here is dropped with a warning.
DWAVE_COMMON_FIELDS = (
    "annealingOffsets",
    "annealingSchedule",
    "annealingDuration",
    "autoScale",
    "compensateFluxDrift",
    "fluxBiases",
    "initialState",
    "maxResults",
    "programmingThermalizationDuration",
    "readoutThermalizationDuration",
    "reduceIntersampleCorrelation",
    "reinitializeState",
    "resultFormat",
    "spinReversalTransformCount",
)

DWAVE_2000Q_EXTRA_FIELDS = (
    "beta",
    "chains",
    "postprocessingType",
)


@dataclass(frozen=True)
class _DwaveDeviceParameters(DeviceParameters):
    level_schema_name: ClassVar[str] = ""
    level_fields: ClassVar[Tuple[str, ...]] = DWAVE_COMMON_FIELDS

    device_level_parameters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_user_params(cls, device_params: Optional[Mapping[str, Any]]) -> _DwaveDeviceParameters:
        """
        Build parameters from the caller's ``device_params`` mapping.

        Values are read from ``deviceLevelParameters``, falling back to
        ``providerLevelParameters``. Every known field is present in the
        result, ``None`` when not given.
        """
        device_params = dict(device_params or {})
        if "deviceLevelParameters" in device_params:
            given = dict(device_params["deviceLevelParameters"] or {})
        else:
            given = dict(device_params.get("providerLevelParameters") or {})
        given.pop("braketSchemaHeader", None)

        unknown = sorted(set(given) - set(cls.level_fields))
        if unknown:
            logger.warning("Dropping unknown %s parameters: %s", cls.__name__, ", ".join(unknown))
        levels = {name: given.get(name) for name in cls.level_fields}
        return cls(device_level_parameters=levels)

    def to_dict(self) -> Dict[str, Any]:
        levels = {"braketSchemaHeader": _header(self.level_schema_name)}
        levels.update(self.device_level_parameters)
        return {
            "braketSchemaHeader": _header(self.schema_name),
            "deviceLevelParameters": levels,
        }


@dataclass(frozen=True)
class DwaveAdvantageDeviceParameters(_DwaveDeviceParameters):
    schema_name: ClassVar[str] = "braket.device_schema.dwave.dwave_advantage_device_parameters"
    level_schema_name: ClassVar[str] = "braket.device_schema.dwave.dwave_advantage_device_level_parameters"


@dataclass(frozen=True)
class Dwave2000QDeviceParameters(_DwaveDeviceParameters):
    schema_name: ClassVar[str] = "braket.device_schema.dwave.dwave_2000Q_device_parameters"
    level_schema_name: ClassVar[str] = "braket.device_schema.dwave.dwave_2000Q_device_level_parameters"
    level_fields: ClassVar[Tuple[str, ...]] = DWAVE_COMMON_FIELDS + DWAVE_2000Q_EXTRA_FIELDS


GATE_MODEL_PROVIDERS: List[Tuple[str, Type[_GateModelDeviceParameters]]] = [
    ("ionq", IonqDeviceParameters),
    ("rigetti", RigettiDeviceParameters),
    ("oqc", OqcDeviceParameters),
]

ANNEALING_PRODUCT_LINES: List[Tuple[str, Type[_DwaveDeviceParameters]]] = [
    ("Advantage", DwaveAdvantageDeviceParameters),
    ("2000Q", Dwave2000QDeviceParameters),
]


def gate_model_parameters_class(device_arn: str) -> Type[_GateModelDeviceParameters]:
    """Parameter class for a gate-model device; simulators are the fallback."""
    for marker, params_cls in GATE_MODEL_PROVIDERS:
        if marker in device_arn:
            return params_cls
    return GateModelSimulatorDeviceParameters


def annealing_parameters_class(device_arn: str) -> Type[_DwaveDeviceParameters]:
    """
    Parameter class for an annealing device.

    Raises:
        UnknownDeviceError: If the ARN names no known product line
    """
    for marker, params_cls in ANNEALING_PRODUCT_LINES:
        if marker in device_arn:
            return params_cls
    raise UnknownDeviceError(device_arn)


def create_gate_model_device_params(
    device_arn: str,
    qubit_count: int,
    disable_qubit_rewiring: bool = False
) -> _GateModelDeviceParameters:
    params_cls = gate_model_parameters_class(device_arn)
    return params_cls(GateModelParameters(qubit_count, disable_qubit_rewiring))


def create_annealing_device_params(
    device_arn: str,
    device_params: Optional[Mapping[str, Any]] = None
) -> _DwaveDeviceParameters:
    return annealing_parameters_class(device_arn).from_user_params(device_params)
