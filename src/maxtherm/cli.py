"""Command line interface for the maxtherm package."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional, Tuple

import typer

from .engine import TemperatureReading, decode_frame
from .errors import ConfigurationError, FrameError
from .frames import RegisterFrame
from .host.capture import decode_capture, load_capture_csv, summarize_capture
from .host.config import DeviceConfig, load_config
from .host.device import Device, SpidevTransport
from .profiles import DeviceProfile, SensorType, ThermocoupleType, select_profile

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="RTD / thermocouple converter frame decoding utilities.",
)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level (DEBUG, INFO, ...)."),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(
    config_path: Optional[Path], override: Optional[List[str]]
) -> Tuple[DeviceConfig, DeviceProfile]:
    try:
        cfg = load_config(config_path, override or None)
        profile = cfg.profile()
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return cfg, profile


def _format_reading(reading: TemperatureReading) -> str:
    parts = []
    for channel in reading.channels:
        if channel.celsius is not None:
            value = f"{channel.celsius:.4f}C"
        elif channel.error is not None:
            value = f"ERROR({channel.error})"
        else:
            value = "INVALID"
        parts.append(f"{channel.name}={value} (code={channel.code})")
    faults = ", ".join(sorted(reading.faults)) or "none"
    return f"{' '.join(parts)} status=0x{reading.status:02X} faults={faults}"


ConfigOption = typer.Option(None, "--config", "-c", help="Device configuration JSON.")
OverrideOption = typer.Option(
    None,
    "--set",
    help="Override config keys, e.g. --set sensor=thermocouple --set reference_resistance=4300",
)


@app.command()
def decode(
    frames: List[str] = typer.Argument(..., help="Register frames as hex strings."),
    config_path: Optional[Path] = ConfigOption,
    override: Optional[List[str]] = OverrideOption,
) -> None:
    """Decode register frames captured from the converter."""

    _, profile = _load(config_path, override)
    all_valid = True
    for text in frames:
        try:
            reading = decode_frame(RegisterFrame.from_hex(text), profile)
        except FrameError as exc:
            raise typer.BadParameter(str(exc), param_hint="FRAMES") from exc
        all_valid = all_valid and reading.valid
        typer.echo(f"{text}: {_format_reading(reading)}")
    if not all_valid:
        raise typer.Exit(code=1)


@app.command()
def profiles() -> None:
    """List the supported sensor types and their register layouts."""

    for sensor in SensorType:
        profile = select_profile(sensor)
        typer.echo(
            f"{sensor.value}: frame={profile.frame_length} bytes "
            f"status@{profile.status_offset} config={profile.config_command.hex().upper()}"
        )
        for channel in profile.channels:
            layout = channel.layout
            typer.echo(
                f"  {channel.name}: bytes={list(layout.offsets)} width={layout.width} "
                f"shift={layout.shift} signed={layout.signed} strategy={channel.strategy.value}"
            )
    typer.echo(f"thermocouple types: {', '.join(member.value for member in ThermocoupleType)}")


@app.command()
def read(
    config_path: Optional[Path] = ConfigOption,
    override: Optional[List[str]] = OverrideOption,
    count: int = typer.Option(1, "--count", "-n", help="Number of readings (0 = until Ctrl+C)."),
    interval: float = typer.Option(1.0, "--interval", help="Seconds between readings."),
    trigger: bool = typer.Option(True, "--trigger/--no-trigger", help="Write config before each read."),
) -> None:
    """Poll a converter over SPI and print readings."""

    cfg, profile = _load(config_path, override)
    try:
        transport = SpidevTransport.from_config(cfg.spi)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except ImportError as exc:
        raise typer.BadParameter(f"{exc} (pip install .[spi])") from exc
    device = Device(profile, transport)
    taken = 0
    try:
        if not trigger:
            device.configure()
        while count == 0 or taken < count:
            reading = device.read(trigger=trigger)
            typer.echo(_format_reading(reading))
            taken += 1
            if count == 0 or taken < count:
                time.sleep(interval)
    except KeyboardInterrupt:
        logger.info("Stopping reads (Ctrl+C)")
    finally:
        transport.close()


@app.command()
def capture(
    input_path: Path = typer.Option(..., "--in", help="Capture CSV with a 'frame' column.", exists=True),
    config_path: Optional[Path] = ConfigOption,
    override: Optional[List[str]] = OverrideOption,
    plot: Optional[Path] = typer.Option(None, "--plot", help="Write a temperature trace PNG."),
) -> None:
    """Decode a capture file and print per-channel statistics."""

    _, profile = _load(config_path, override)
    try:
        decoded = decode_capture(load_capture_csv(input_path), profile)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--in") from exc
    summary = summarize_capture(decoded, profile)
    typer.echo(f"frames={summary.frames} valid={summary.valid}")
    for name, stats in summary.channels.items():
        typer.echo(
            f"{name}: n={stats.count} mean={stats.mean:.4f} std={stats.std:.4f} "
            f"min={stats.minimum:.4f} max={stats.maximum:.4f}"
        )
    for fault, hits in sorted(summary.fault_counts.items()):
        typer.echo(f"fault {fault}: {hits}")
    if plot is not None:
        from .host.plotting import plot_capture

        try:
            written = plot_capture(decoded, profile, plot)
        except RuntimeError as exc:
            typer.echo(f"[warning] plotting skipped: {exc}")
        else:
            typer.echo(f"Plot written to {written}")


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
