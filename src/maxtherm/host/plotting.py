"""Plotting helpers for decoded captures."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..profiles import DeviceProfile


def plot_capture(decoded: pd.DataFrame, profile: DeviceProfile, out_path: Path) -> Path:
    plt = _require_matplotlib()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(10, 5))

    if "ts_ms" in decoded.columns:
        x = decoded["ts_ms"].to_numpy(dtype=float) / 1000.0
        ax.set_xlabel("Time [s]")
    else:
        x = np.arange(len(decoded), dtype=float)
        ax.set_xlabel("Frame")

    for name in profile.channel_names:
        ax.plot(x, decoded[f"{name}_c"].to_numpy(dtype=float), label=name)

    faulted = decoded["faults"].astype(str) != ""
    if faulted.any():
        for xpos in x[faulted.to_numpy()]:
            ax.axvline(xpos, color="red", alpha=0.2, linewidth=0.8)

    ax.set_title(f"{profile.name} temperature")
    ax.set_ylabel("Temperature [°C]")
    ax.legend(loc="best")
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path


def _require_matplotlib() -> Any:
    try:
        import matplotlib
        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("matplotlib is required for plotting; install maxtherm[plot]") from exc
    except Exception as exc:  # pragma: no cover - environment issues
        raise RuntimeError(f"matplotlib initialisation failed: {exc}") from exc
    return plt
