"""Quick look at a capture file decoded with the device config."""

from __future__ import annotations

import sys
from pathlib import Path

import matplotlib.pyplot as plt

from maxtherm.host.capture import decode_capture, load_capture_csv
from maxtherm.host.config import load_config


def plot_timeseries(csv_path: Path, config_path: Path) -> None:
    """Plot every channel of a decoded capture against time."""
    profile = load_config(config_path).profile()
    data = decode_capture(load_capture_csv(csv_path), profile)
    x = data["ts_ms"] / 1000.0 if "ts_ms" in data.columns else data.index
    fig, ax = plt.subplots(figsize=(10, 5))
    for name in profile.channel_names:
        ax.plot(x, data[f"{name}_c"], label=name)
    ax.set_xlabel("Time [s]")
    ax.set_ylabel("Temperature [°C]")
    ax.legend(loc="best")
    fig.tight_layout()
    plt.show()


if __name__ == "__main__":
    plot_timeseries(Path(sys.argv[1]), Path(sys.argv[2] if len(sys.argv) > 2 else "host_pi/config.json"))
