"""
Host-side shell around the decoding core: SPI transport, JSON configuration
and offline decoding of captured frames.

The core package stays free of I/O; everything that touches a bus, a file or
a plot lives here.
"""

from .capture import CaptureSummary, decode_capture, load_capture_csv, summarize_capture
from .config import DeviceConfig, SpiConfig, load_config
from .device import Device, SpidevTransport, Transport

__all__ = [
    "CaptureSummary",
    "decode_capture",
    "load_capture_csv",
    "summarize_capture",
    "DeviceConfig",
    "SpiConfig",
    "load_config",
    "Device",
    "SpidevTransport",
    "Transport",
]
