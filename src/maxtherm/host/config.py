from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Sequence

from ..errors import ConfigurationError
from ..profiles import DEFAULT_SETTLE_SEC, ChipSelect, DeviceProfile, resolve_chip_select, select_profile


@dataclass
class SpiConfig:
    bus: int = 0
    chip_select: int = 0
    max_speed_hz: int = 2_000_000
    mode: int = 3

    @property
    def chip_select_enum(self) -> ChipSelect:
        return resolve_chip_select(self.chip_select)


@dataclass
class DeviceConfig:
    sensor: str = "rtd"
    reference_resistance: float = 430.0
    r0: float = 100.0
    full_range: bool = False
    thermocouple_type: str = "K"
    filter_50hz: bool = False
    settle_sec: float = DEFAULT_SETTLE_SEC
    spi: SpiConfig = field(default_factory=SpiConfig)

    def profile(self) -> DeviceProfile:
        """Build the device profile; unknown sensor or chip select raises ConfigurationError."""
        self.spi.chip_select_enum  # fail on a bad chip select before any bus access
        return select_profile(
            self.sensor,
            reference_resistance=self.reference_resistance,
            r0=self.r0,
            full_range=self.full_range,
            thermocouple_type=self.thermocouple_type,
            filter_50hz=self.filter_50hz,
            settle_sec=self.settle_sec,
        )


def _read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be a JSON object")
    return data


def _layer(base: Dict[str, Any], top: Dict[str, Any]) -> Dict[str, Any]:
    """Return *base* with *top* laid over it; nested sections merge key by key."""
    result = dict(base)
    for key, value in top.items():
        below = result.get(key)
        result[key] = _layer(below, value) if isinstance(below, dict) and isinstance(value, dict) else value
    return result


def _flag(name: str, value: Any) -> bool:
    # JSON "false" would otherwise be truthy.
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ConfigurationError(f"{name} must be true or false, got {value!r}")


def load_config(path: Path | str | None = None, overrides: Sequence[str] | None = None) -> DeviceConfig:
    """
    Load a device configuration from JSON and apply CLI-style overrides.

    Overrides are expressed as dotted `key=value` pairs, e.g.:
        ["sensor=thermocouple", "spi.chip_select=1"]

    Without a path the defaults of the RTD breakout are used.
    """
    settings: Dict[str, Any] = _read_json(Path(path)) if path is not None else {}
    layered: Dict[str, Any] = {}
    for item in overrides or []:
        dotted, value = _split_override(item)
        _set_dotted(layered, dotted, value)
    settings = _layer(settings, layered)
    defaults = DeviceConfig()
    spi_settings = settings.get("spi") or {}
    spi_defaults = defaults.spi
    try:
        spi = SpiConfig(
            bus=int(spi_settings.get("bus", spi_defaults.bus)),
            chip_select=int(spi_settings.get("chip_select", spi_defaults.chip_select)),
            max_speed_hz=int(spi_settings.get("max_speed_hz", spi_defaults.max_speed_hz)),
            mode=int(spi_settings.get("mode", spi_defaults.mode)),
        )
        return DeviceConfig(
            sensor=str(settings.get("sensor", defaults.sensor)),
            reference_resistance=float(settings.get("reference_resistance", defaults.reference_resistance)),
            r0=float(settings.get("r0", defaults.r0)),
            full_range=_flag("full_range", settings.get("full_range", defaults.full_range)),
            thermocouple_type=str(settings.get("thermocouple_type", defaults.thermocouple_type)),
            filter_50hz=_flag("filter_50hz", settings.get("filter_50hz", defaults.filter_50hz)),
            settle_sec=float(settings.get("settle_sec", defaults.settle_sec)),
            spi=spi,
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid device configuration: {exc}") from exc


def _split_override(item: str) -> tuple[str, Any]:
    dotted, sep, text = item.partition("=")
    dotted = dotted.strip()
    if not sep:
        raise ConfigurationError(f"Override '{item}' must use key=value syntax")
    if not dotted:
        raise ConfigurationError("Override key may not be empty")
    return dotted, _scalar(text.strip())


def _scalar(text: str) -> Any:
    """Interpret an override value as bool, hex/decimal int or float; anything else stays text."""
    lowered = text.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    parsers = [lambda t: int(t, 16)] if lowered.startswith("0x") else [int, float]
    for parse in parsers:
        try:
            return parse(text)
        except ValueError:
            continue
    return text


def _set_dotted(target: Dict[str, Any], dotted: str, value: Any) -> None:
    *sections, leaf = dotted.split(".")
    for section in sections:
        target = target.setdefault(section, {})
    target[leaf] = value
