"""Frame decoding and temperature conversion for RTD and thermocouple converters."""

from importlib.metadata import PackageNotFoundError, version

from .engine import ChannelReading, TemperatureReading, decode_frame
from .errors import ConfigurationError, FaultCondition, FrameError, MathDomainError, MaxthermError
from .faults import RTD_FAULTS, THERMOCOUPLE_FAULTS, classify_faults
from .frames import CodeLayout, RegisterFrame, extract_code
from .profiles import DeviceProfile, SensorType, ThermocoupleType, select_profile

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("maxtherm")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "ChannelReading",
    "TemperatureReading",
    "decode_frame",
    "ConfigurationError",
    "FaultCondition",
    "FrameError",
    "MathDomainError",
    "MaxthermError",
    "RTD_FAULTS",
    "THERMOCOUPLE_FAULTS",
    "classify_faults",
    "CodeLayout",
    "RegisterFrame",
    "extract_code",
    "DeviceProfile",
    "SensorType",
    "ThermocoupleType",
    "select_profile",
]
