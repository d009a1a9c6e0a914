from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple, Union

from . import cvd
from .errors import FaultCondition, FrameError, MathDomainError
from .faults import classify_faults
from .frames import RegisterFrame, extract_code
from .profiles import ChannelSpec, ConversionStrategy, DeviceProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelReading:
    name: str
    code: int
    celsius: Optional[float]
    faults: FrozenSet[str] = frozenset()
    error: Optional[MathDomainError] = field(default=None, compare=False)

    @property
    def fatal(self) -> bool:
        return bool(self.faults)

    @property
    def valid(self) -> bool:
        return self.celsius is not None


@dataclass(frozen=True)
class TemperatureReading:
    """Result of decoding one frame: per-channel values plus the active faults."""

    profile: str
    status: int
    faults: FrozenSet[str]
    channels: Tuple[ChannelReading, ...]

    @property
    def celsius(self) -> Optional[float]:
        return self.channels[0].celsius

    @property
    def values(self) -> Tuple[Optional[float], ...]:
        return tuple(channel.celsius for channel in self.channels)

    @property
    def valid(self) -> bool:
        """True when every channel carries a value; alarm-only faults do not count."""
        return all(channel.valid for channel in self.channels)

    @property
    def ok(self) -> bool:
        return not self.faults and all(channel.valid for channel in self.channels)

    def channel(self, name: str) -> ChannelReading:
        for channel in self.channels:
            if channel.name == name:
                return channel
        raise KeyError(name)

    def raise_for_faults(self) -> None:
        if self.faults:
            raise FaultCondition(self.status, self.faults)

    def raise_for_errors(self) -> None:
        for channel in self.channels:
            if channel.error is not None:
                raise channel.error


def convert_code(code: int, channel: ChannelSpec, profile: DeviceProfile) -> float:
    if channel.strategy is ConversionStrategy.LINEAR:
        return cvd.linear_temperature(code, channel.resolution)
    if channel.strategy is ConversionStrategy.CVD_QUADRATIC:
        return cvd.quadratic_temperature(code, profile.reference_resistance, profile.r0)
    if channel.strategy is ConversionStrategy.CVD_FULL_RANGE:
        return cvd.full_range_temperature(code, profile.reference_resistance, profile.r0)
    raise ValueError(f"Unsupported conversion strategy {channel.strategy!r}")


def _decode_channel(
    frame: RegisterFrame, channel: ChannelSpec, profile: DeviceProfile, status: int
) -> ChannelReading:
    code = extract_code(frame, channel.layout)
    fatal = classify_faults(status & channel.fatal_mask, profile.fault_table)
    if fatal:
        return ChannelReading(channel.name, code, None, fatal)
    try:
        celsius = convert_code(code, channel, profile)
    except MathDomainError as exc:
        return ChannelReading(channel.name, code, None, error=exc)
    return ChannelReading(channel.name, code, celsius)


def decode_frame(frame: Union[RegisterFrame, bytes], profile: DeviceProfile) -> TemperatureReading:
    if not isinstance(frame, RegisterFrame):
        frame = RegisterFrame(frame)
    if len(frame) != profile.frame_length:
        raise FrameError(
            f"{profile.name} frame must be {profile.frame_length} bytes, got {len(frame)}"
        )
    status = frame[profile.status_offset]
    faults = classify_faults(status, profile.fault_table)
    channels = tuple(_decode_channel(frame, channel, profile, status) for channel in profile.channels)
    logger.debug(
        "Decoded %s frame %s: status=0x%02X codes=%s values=%s",
        profile.name,
        frame.hex(),
        status,
        [channel.code for channel in channels],
        [channel.celsius for channel in channels],
    )
    return TemperatureReading(
        profile=profile.name,
        status=status,
        faults=faults,
        channels=channels,
    )
