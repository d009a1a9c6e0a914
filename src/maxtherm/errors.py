"""Exception hierarchy shared by the decoding core and the host shell."""
from __future__ import annotations

from typing import FrozenSet


class MaxthermError(Exception):
    """Base exception for maxtherm errors."""


class ConfigurationError(MaxthermError, ValueError):
    """Unknown sensor type, chip select or invalid device constant."""


class FrameError(MaxthermError, ValueError):
    """Register frame does not match the layout of its device profile."""


class FaultCondition(MaxthermError):
    """One or more fault bits were set in the status register."""

    def __init__(self, status: int, faults: FrozenSet[str]):
        self.status = status
        self.faults = faults
        names = ", ".join(sorted(faults)) or "none"
        super().__init__(f"Fault status 0x{status:02X}: {names}")


class MathDomainError(MaxthermError, ArithmeticError):
    """Conversion produced no real, finite temperature."""
