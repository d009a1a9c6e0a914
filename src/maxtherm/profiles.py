from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Tuple, Type, TypeVar, Union

from . import cvd
from .errors import ConfigurationError
from .faults import (
    RTD_FAULTS,
    TC_CJ_RANGE,
    TC_OPEN,
    TC_OVUV,
    TC_RANGE,
    THERMOCOUPLE_FAULTS,
    FaultTable,
    fault_mask,
)
from .frames import CodeLayout

WRITE_FLAG = 0x80
DEFAULT_SETTLE_SEC = 0.2

# RTD converter registers: read starts at RTD MSB (0x01), fault status lands at byte 7
RTD_READ_ADDRESS = 0x01
RTD_FRAME_LENGTH = 8
RTD_STATUS_OFFSET = 7
RTD_CFG_VBIAS = 0x80
RTD_CFG_AUTO_CONVERT = 0x40
RTD_CFG_3WIRE = 0x10
RTD_CFG_FAULT_CLEAR = 0x02
RTD_CFG_50HZ = 0x01

# Thermocouple converter registers: read starts at CJTH (0x0A), SR lands at byte 6
TC_READ_ADDRESS = 0x0A
TC_FRAME_LENGTH = 7
TC_STATUS_OFFSET = 6
TC_CR0_AUTO_CONVERT = 0x80
TC_CR0_50HZ = 0x01

TC_RESOLUTION = 0.0078125
CJ_RESOLUTION = 0.015625


class SensorType(str, enum.Enum):
    RTD = "rtd"
    RTD_3WIRE = "rtd-3wire"
    THERMOCOUPLE = "thermocouple"


class ThermocoupleType(str, enum.Enum):
    B = "B"
    E = "E"
    J = "J"
    K = "K"
    N = "N"
    R = "R"
    S = "S"
    T = "T"

    @property
    def code(self) -> int:
        return list(ThermocoupleType).index(self)


class ChipSelect(enum.IntEnum):
    CE0 = 0
    CE1 = 1
    BOTH = 2
    NONE = 3


class ConversionStrategy(str, enum.Enum):
    LINEAR = "linear"
    CVD_QUADRATIC = "cvd-quadratic"
    CVD_FULL_RANGE = "cvd-full-range"


@dataclass(frozen=True)
class ChannelSpec:
    name: str
    layout: CodeLayout
    strategy: ConversionStrategy
    resolution: float = 0.0
    fatal_mask: int = 0


@dataclass(frozen=True)
class DeviceProfile:
    """Immutable register layout, fault table and conversion setup for one sensor type."""

    name: str
    sensor_type: SensorType
    frame_length: int
    status_offset: int
    fault_table: FaultTable = field(hash=False)
    channels: Tuple[ChannelSpec, ...]
    read_command: bytes
    config_command: bytes
    reference_resistance: float = 0.0
    r0: float = cvd.R0
    settle_sec: float = DEFAULT_SETTLE_SEC
    thermocouple_type: Optional[ThermocoupleType] = None

    @property
    def channel_names(self) -> Tuple[str, ...]:
        return tuple(channel.name for channel in self.channels)


_E = TypeVar("_E", bound=enum.Enum)


def _lookup(enum_cls: Type[_E], value: Union[_E, str, int], label: str) -> _E:
    if isinstance(value, enum_cls):
        return value
    candidates = [value]
    if isinstance(value, str):
        candidates = [value.strip(), value.strip().lower(), value.strip().upper()]
    for candidate in candidates:
        try:
            return enum_cls(candidate)
        except ValueError:
            continue
    choices = ", ".join(str(member.value) for member in enum_cls)
    raise ConfigurationError(f"Unknown {label} {value!r}. Expected one of: {choices}")


def resolve_chip_select(value: Union[ChipSelect, int, str]) -> ChipSelect:
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    elif isinstance(value, str):
        try:
            return ChipSelect[value.strip().upper()]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown chip select {value!r}") from exc
    return _lookup(ChipSelect, value, "chip select")


def _require_positive(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive number, got {value!r}")
    return value


def _rtd_profile(
    sensor_type: SensorType,
    *,
    reference_resistance: float,
    r0: float,
    full_range: bool,
    filter_50hz: bool,
    settle_sec: float,
    **_: object,
) -> DeviceProfile:
    config = RTD_CFG_VBIAS | RTD_CFG_AUTO_CONVERT | RTD_CFG_FAULT_CLEAR
    if sensor_type is SensorType.RTD_3WIRE:
        config |= RTD_CFG_3WIRE
    if filter_50hz:
        config |= RTD_CFG_50HZ
    strategy = ConversionStrategy.CVD_FULL_RANGE if full_range else ConversionStrategy.CVD_QUADRATIC
    channel = ChannelSpec(
        name="rtd",
        layout=CodeLayout(offsets=(1, 2), shift=1, width=15, signed=False),
        strategy=strategy,
        fatal_mask=fault_mask(0xFF, RTD_FAULTS),
    )
    return DeviceProfile(
        name=sensor_type.value,
        sensor_type=sensor_type,
        frame_length=RTD_FRAME_LENGTH,
        status_offset=RTD_STATUS_OFFSET,
        fault_table=RTD_FAULTS,
        channels=(channel,),
        read_command=bytes([RTD_READ_ADDRESS] + [0x00] * (RTD_FRAME_LENGTH - 1)),
        config_command=bytes([WRITE_FLAG, config]),
        reference_resistance=_require_positive("reference_resistance", reference_resistance),
        r0=_require_positive("r0", r0),
        settle_sec=settle_sec,
    )


def _thermocouple_profile(
    sensor_type: SensorType,
    *,
    thermocouple_type: Union[ThermocoupleType, str],
    filter_50hz: bool,
    settle_sec: float,
    **_: object,
) -> DeviceProfile:
    tc_type = _lookup(ThermocoupleType, thermocouple_type, "thermocouple type")
    cr0 = TC_CR0_AUTO_CONVERT | (TC_CR0_50HZ if filter_50hz else 0)
    thermocouple = ChannelSpec(
        name="thermocouple",
        layout=CodeLayout(offsets=(3, 4, 5), shift=5, width=19, signed=True),
        strategy=ConversionStrategy.LINEAR,
        resolution=TC_RESOLUTION,
        fatal_mask=TC_RANGE | TC_OVUV | TC_OPEN,
    )
    cold_junction = ChannelSpec(
        name="cold_junction",
        layout=CodeLayout(offsets=(1, 2), shift=2, width=14, signed=True),
        strategy=ConversionStrategy.LINEAR,
        resolution=CJ_RESOLUTION,
        fatal_mask=TC_CJ_RANGE | TC_OVUV,
    )
    return DeviceProfile(
        name=f"{sensor_type.value}-{tc_type.value}",
        sensor_type=sensor_type,
        frame_length=TC_FRAME_LENGTH,
        status_offset=TC_STATUS_OFFSET,
        fault_table=THERMOCOUPLE_FAULTS,
        channels=(thermocouple, cold_junction),
        read_command=bytes([TC_READ_ADDRESS] + [0x00] * (TC_FRAME_LENGTH - 1)),
        config_command=bytes([WRITE_FLAG, cr0, tc_type.code]),
        settle_sec=settle_sec,
        thermocouple_type=tc_type,
    )


PROFILE_BUILDERS: Mapping[SensorType, Callable[..., DeviceProfile]] = MappingProxyType(
    {
        SensorType.RTD: _rtd_profile,
        SensorType.RTD_3WIRE: _rtd_profile,
        SensorType.THERMOCOUPLE: _thermocouple_profile,
    }
)


def select_profile(
    sensor_type: Union[SensorType, str],
    *,
    reference_resistance: float = 430.0,
    r0: float = cvd.R0,
    full_range: bool = False,
    thermocouple_type: Union[ThermocoupleType, str] = ThermocoupleType.K,
    filter_50hz: bool = False,
    settle_sec: float = DEFAULT_SETTLE_SEC,
) -> DeviceProfile:
    """
    Build the immutable profile for *sensor_type*.

    Every enumeration value and constant is validated here so that a bad
    configuration fails before the first read.
    """
    kind = _lookup(SensorType, sensor_type, "sensor type")
    settle = float(settle_sec)
    if not math.isfinite(settle) or settle < 0:
        raise ConfigurationError(f"settle_sec must be >= 0, got {settle_sec!r}")
    builder = PROFILE_BUILDERS[kind]
    return builder(
        kind,
        reference_resistance=reference_resistance,
        r0=r0,
        full_range=full_range,
        thermocouple_type=thermocouple_type,
        filter_50hz=filter_50hz,
        settle_sec=settle,
    )
