from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from maxtherm.errors import FrameError
from maxtherm.host.capture import decode_capture, load_capture_csv, summarize_capture
from maxtherm.profiles import select_profile


def rtd_frame(code: int, status: int = 0x00) -> str:
    shifted = code << 1
    return bytes([0x00, (shifted >> 8) & 0xFF, shifted & 0xFF, 0xFF, 0xFF, 0x00, 0x00, status]).hex()


def _write_capture(path: Path, rows) -> Path:
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


def test_decode_rtd_capture(tmp_path: Path) -> None:
    path = _write_capture(
        tmp_path / "capture.csv",
        [
            {"ts_ms": 0, "frame": rtd_frame(10554)},
            {"ts_ms": 200, "frame": rtd_frame(10554, status=0x01)},
            {"ts_ms": 400, "frame": rtd_frame(10560)},
        ],
    )
    profile = select_profile("rtd")
    decoded = decode_capture(load_capture_csv(path), profile)
    assert list(decoded.columns) == ["ts_ms", "frame", "status", "faults", "valid", "rtd_code", "rtd_c", "error"]
    assert decoded["valid"].tolist() == [True, False, True]
    assert decoded["rtd_code"].tolist() == [10554, 10554, 10560]
    assert math.isnan(decoded["rtd_c"].iloc[1])
    assert decoded["faults"].iloc[1] == "RTD Open-Circuit Fault"

    summary = summarize_capture(decoded, profile)
    assert summary.frames == 3
    assert summary.valid == 2
    assert summary.fault_counts == {"RTD Open-Circuit Fault": 1}
    stats = summary.channels["rtd"]
    assert stats.count == 2
    assert stats.minimum < stats.maximum
    assert np.isclose(stats.mean, decoded["rtd_c"].mean())


def test_thermocouple_capture_without_timestamps(tmp_path: Path) -> None:
    path = _write_capture(
        tmp_path / "tc.csv",
        [
            {"frame": "00 1900 019000 00"},
            {"frame": "00 1900 019000 08"},
        ],
    )
    profile = select_profile("thermocouple")
    decoded = decode_capture(load_capture_csv(path), profile)
    assert "ts_ms" not in decoded.columns
    assert decoded["thermocouple_c"].tolist() == [25.0, 25.0]
    assert decoded["cold_junction_c"].tolist() == [25.0, 25.0]
    summary = summarize_capture(decoded, profile)
    assert summary.fault_counts == {"Thermocouple Temperature High Fault": 1}
    assert summary.channels["thermocouple"].std == 0.0


def test_all_invalid_channel_yields_nan_stats(tmp_path: Path) -> None:
    path = _write_capture(tmp_path / "open.csv", [{"frame": rtd_frame(0, status=0x01)}])
    profile = select_profile("rtd")
    summary = summarize_capture(decode_capture(load_capture_csv(path), profile), profile)
    assert summary.channels["rtd"].count == 0
    assert math.isnan(summary.channels["rtd"].mean)


def test_domain_errors_are_recorded(tmp_path: Path) -> None:
    path = _write_capture(tmp_path / "mismatch.csv", [{"frame": rtd_frame(0x7FFF)}])
    profile = select_profile("rtd", reference_resistance=4300.0)
    decoded = decode_capture(load_capture_csv(path), profile)
    assert decoded["error"].iloc[0].startswith("rtd: ")
    assert not decoded["valid"].iloc[0]


def test_missing_frame_column(tmp_path: Path) -> None:
    path = _write_capture(tmp_path / "bad.csv", [{"ts_ms": 1, "data": "00"}])
    with pytest.raises(ValueError):
        load_capture_csv(path)


def test_malformed_row_reports_index(tmp_path: Path) -> None:
    path = _write_capture(tmp_path / "short.csv", [{"frame": rtd_frame(1)}, {"frame": "0001"}])
    with pytest.raises(FrameError, match="Row 1"):
        decode_capture(load_capture_csv(path), select_profile("rtd"))


def test_plot_capture_writes_png(tmp_path: Path) -> None:
    pytest.importorskip("matplotlib")
    from maxtherm.host.plotting import plot_capture

    path = _write_capture(
        tmp_path / "capture.csv",
        [{"ts_ms": 0, "frame": rtd_frame(10554)}, {"ts_ms": 200, "frame": rtd_frame(10554, status=0x01)}],
    )
    profile = select_profile("rtd")
    decoded = decode_capture(load_capture_csv(path), profile)
    out = plot_capture(decoded, profile, tmp_path / "plots" / "trace.png")
    assert out.exists()
