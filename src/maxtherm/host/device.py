from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

try:
    import spidev  # type: ignore[import]
except ImportError:  # pragma: no cover - handled when the transport is opened
    spidev = None  # type: ignore[assignment]

from ..engine import TemperatureReading, decode_frame
from ..errors import ConfigurationError
from ..frames import RegisterFrame
from ..profiles import ChipSelect, DeviceProfile, resolve_chip_select
from .config import SpiConfig

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def write(self, data: bytes) -> None:
        ...

    def transfer(self, data: bytes) -> bytes:
        ...


class SpidevTransport:
    """Full-duplex SPI transport backed by the Linux spidev driver."""

    def __init__(
        self,
        bus: int = 0,
        chip_select: ChipSelect | int = ChipSelect.CE0,
        max_speed_hz: int = 2_000_000,
        mode: int = 3,
    ) -> None:
        cs = resolve_chip_select(chip_select)
        if cs is ChipSelect.BOTH:
            raise ConfigurationError("spidev cannot assert both chip-select lines at once")
        if spidev is None:
            raise ImportError("spidev is required but not installed. Install extra 'spi'.")
        self.chip_select = cs
        self._spi = spidev.SpiDev()
        self._spi.open(bus, 0 if cs is ChipSelect.NONE else int(cs))
        self._spi.max_speed_hz = max_speed_hz
        self._spi.mode = mode
        if cs is ChipSelect.NONE:
            self._spi.no_cs = True

    @classmethod
    def from_config(cls, settings: SpiConfig) -> "SpidevTransport":
        return cls(
            bus=settings.bus,
            chip_select=settings.chip_select_enum,
            max_speed_hz=settings.max_speed_hz,
            mode=settings.mode,
        )

    def write(self, data: bytes) -> None:
        self._spi.writebytes(list(data))

    def transfer(self, data: bytes) -> bytes:
        return bytes(self._spi.xfer2(list(data)))

    def close(self) -> None:
        self._spi.close()


class Device:
    """
    Driver shell binding a profile to a transport.

    Each configure/read sequence holds an exclusive lock so concurrent callers
    cannot interleave register writes with reads. The conversion settle delay
    goes through the injectable *sleep* callable.
    """

    def __init__(
        self,
        profile: DeviceProfile,
        transport: Transport,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.profile = profile
        self.transport = transport
        self._sleep = sleep
        self._lock = threading.Lock()

    def configure(self) -> None:
        with self._lock:
            self._write_config()

    def read_frame(self, *, trigger: bool = True) -> RegisterFrame:
        with self._lock:
            if trigger:
                self._write_config()
            response = self.transport.transfer(self.profile.read_command)
        return RegisterFrame(response)

    def read(self, *, trigger: bool = True) -> TemperatureReading:
        reading = decode_frame(self.read_frame(trigger=trigger), self.profile)
        if reading.faults:
            logger.warning(
                "%s status 0x%02X: %s",
                self.profile.name,
                reading.status,
                ", ".join(sorted(reading.faults)),
            )
        return reading

    def _write_config(self) -> None:
        self.transport.write(self.profile.config_command)
        self._sleep(self.profile.settle_sec)
