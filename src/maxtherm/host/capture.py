"""Offline decoding of captured register frames."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from ..engine import decode_frame
from ..errors import FrameError
from ..frames import RegisterFrame
from ..profiles import DeviceProfile

REQUIRED_COLUMNS = {"frame"}
OPTIONAL_COLUMNS = {"ts_ms"}
FAULT_SEPARATOR = ";"


@dataclass(frozen=True)
class ChannelStats:
    count: int
    mean: float
    std: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class CaptureSummary:
    frames: int
    valid: int
    fault_counts: Dict[str, int]
    channels: Dict[str, ChannelStats]


def load_capture_csv(path: str | Path) -> pd.DataFrame:
    """Load a capture file with a `frame` column of hex strings and optional `ts_ms`."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    df = pd.read_csv(path, dtype={"frame": str}, comment="#")
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")
    df = df.dropna(subset=["frame"]).copy()
    df["frame"] = df["frame"].str.strip()
    df.reset_index(drop=True, inplace=True)
    return df


def decode_capture(df: pd.DataFrame, profile: DeviceProfile) -> pd.DataFrame:
    """Decode every frame of *df*; one output row per input row."""

    has_ts = "ts_ms" in df.columns
    rows: List[Dict[str, Any]] = []
    for idx, text in enumerate(df["frame"]):
        try:
            reading = decode_frame(RegisterFrame.from_hex(text), profile)
        except FrameError as exc:
            raise FrameError(f"Row {idx}: {exc}") from exc
        row: Dict[str, Any] = {
            "frame": text,
            "status": reading.status,
            "faults": FAULT_SEPARATOR.join(sorted(reading.faults)),
            "valid": reading.ok,
        }
        if has_ts:
            row["ts_ms"] = float(df["ts_ms"].iloc[idx])
        errors = []
        for channel in reading.channels:
            row[f"{channel.name}_code"] = channel.code
            row[f"{channel.name}_c"] = np.nan if channel.celsius is None else channel.celsius
            if channel.error is not None:
                errors.append(f"{channel.name}: {channel.error}")
        row["error"] = FAULT_SEPARATOR.join(errors)
        rows.append(row)

    columns = (["ts_ms"] if has_ts else []) + ["frame", "status", "faults", "valid"]
    for name in profile.channel_names:
        columns.extend([f"{name}_code", f"{name}_c"])
    columns.append("error")
    return pd.DataFrame(rows, columns=columns)


def _channel_stats(values: np.ndarray) -> ChannelStats:
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return ChannelStats(count=0, mean=np.nan, std=np.nan, minimum=np.nan, maximum=np.nan)
    return ChannelStats(
        count=int(finite.size),
        mean=float(np.mean(finite)),
        std=float(np.std(finite)),
        minimum=float(np.min(finite)),
        maximum=float(np.max(finite)),
    )


def summarize_capture(decoded: pd.DataFrame, profile: DeviceProfile) -> CaptureSummary:
    counts: Counter[str] = Counter()
    for entry in decoded["faults"]:
        counts.update(name for name in str(entry).split(FAULT_SEPARATOR) if name)
    channels = {
        name: _channel_stats(decoded[f"{name}_c"].to_numpy(dtype=float))
        for name in profile.channel_names
    }
    return CaptureSummary(
        frames=int(len(decoded)),
        valid=int(decoded["valid"].sum()),
        fault_counts=dict(counts),
        channels=channels,
    )
