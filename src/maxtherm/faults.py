from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping

FaultTable = Mapping[int, str]

RTD_HIGH_THRESHOLD = 0x80
RTD_LOW_THRESHOLD = 0x40
RTD_REFIN_HIGH = 0x20
RTD_REFIN_LOW = 0x10
RTD_RTDIN_LOW = 0x08
RTD_OVUV = 0x04
RTD_OPEN = 0x01

# bits 7/6 fire on cable faults via the breakout's 10 Mohm bias resistor
RTD_FAULTS: FaultTable = MappingProxyType(
    {
        RTD_HIGH_THRESHOLD: "High threshold limit (Cable fault/open)",
        RTD_LOW_THRESHOLD: "Low threshold limit (Cable fault/short)",
        RTD_REFIN_HIGH: "REFIN- > 0.85 x VBias",
        RTD_REFIN_LOW: "REFIN- < 0.85 x VBias (FORCE- open)",
        RTD_RTDIN_LOW: "RTDIN- < 0.85 x VBias (FORCE- open)",
        RTD_OVUV: "Overvoltage or Undervoltage Error",
        RTD_OPEN: "RTD Open-Circuit Fault",
    }
)

TC_CJ_RANGE = 0x80
TC_RANGE = 0x40
TC_CJ_HIGH = 0x20
TC_CJ_LOW = 0x10
TC_HIGH = 0x08
TC_LOW = 0x04
TC_OVUV = 0x02
TC_OPEN = 0x01

THERMOCOUPLE_FAULTS: FaultTable = MappingProxyType(
    {
        TC_CJ_RANGE: "Cold Junction Out-of-Range",
        TC_RANGE: "Thermocouple Out-of-Range",
        TC_CJ_HIGH: "Cold-Junction High Fault",
        TC_CJ_LOW: "Cold-Junction Low Fault",
        TC_HIGH: "Thermocouple Temperature High Fault",
        TC_LOW: "Thermocouple Temperature Low Fault",
        TC_OVUV: "Overvoltage or Undervoltage Input Fault",
        TC_OPEN: "Thermocouple Open-Circuit Fault",
    }
)


def classify_faults(status: int, table: FaultTable) -> FrozenSet[str]:
    """Return every fault in *table* whose bit is set in *status*."""
    return frozenset(name for mask, name in table.items() if (status & mask) != 0)


def fault_mask(status: int, table: FaultTable) -> int:
    known = 0
    for mask in table:
        known |= mask
    return status & known
