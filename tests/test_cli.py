from __future__ import annotations

from pathlib import Path
from typing import List

from typer.testing import CliRunner

from maxtherm.cli import app

runner = CliRunner()

GOOD_RTD = "00527400000000" + "00"
OPEN_RTD = "00527400000000" + "01"


def test_decode_prints_reading() -> None:
    result = runner.invoke(app, ["decode", GOOD_RTD])
    assert result.exit_code == 0, result.output
    assert "rtd=" in result.output
    assert "faults=none" in result.output


def test_decode_fault_sets_exit_code() -> None:
    result = runner.invoke(app, ["decode", OPEN_RTD])
    assert result.exit_code == 1
    assert "RTD Open-Circuit Fault" in result.output
    assert "INVALID" in result.output


def test_decode_thermocouple_override() -> None:
    result = runner.invoke(app, ["decode", "--set", "sensor=thermocouple", "00190001900000"])
    assert result.exit_code == 0, result.output
    assert "thermocouple=25.0000C" in result.output
    assert "cold_junction=25.0000C" in result.output


def test_unknown_sensor_is_bad_parameter() -> None:
    result = runner.invoke(app, ["decode", "--set", "sensor=bogus", GOOD_RTD])
    assert result.exit_code == 2


def test_wrong_length_is_bad_parameter() -> None:
    result = runner.invoke(app, ["decode", "0052"])
    assert result.exit_code == 2


def test_profiles_lists_sensor_types() -> None:
    result = runner.invoke(app, ["profiles"])
    assert result.exit_code == 0
    for name in ("rtd:", "rtd-3wire:", "thermocouple:"):
        assert name in result.output


def test_capture_summary(tmp_path: Path) -> None:
    path = tmp_path / "capture.csv"
    path.write_text(f"ts_ms,frame\n0,{GOOD_RTD}\n200,{OPEN_RTD}\n", encoding="utf-8")
    result = runner.invoke(app, ["capture", "--in", str(path)])
    assert result.exit_code == 0, result.output
    assert "frames=2 valid=1" in result.output
    assert "fault RTD Open-Circuit Fault: 1" in result.output


def test_decode_alarm_only_frame_exits_zero() -> None:
    # Thermocouple high-threshold alarm: reported, but the value is kept.
    result = runner.invoke(app, ["decode", "--set", "sensor=thermocouple", "00190001900008"])
    assert result.exit_code == 0, result.output
    assert "Thermocouple Temperature High Fault" in result.output
    assert "thermocouple=25.0000C" in result.output


def test_decode_open_thermocouple_exits_one() -> None:
    result = runner.invoke(app, ["decode", "--set", "sensor=thermocouple", "00190001900001"])
    assert result.exit_code == 1
    assert "Thermocouple Open-Circuit Fault" in result.output


class FakeSpiDev:
    def __init__(self, reply: bytes) -> None:
        self.reply = reply
        self.written: List[List[int]] = []
        self.transfers = 0
        self.closed = False

    def open(self, bus: int, device: int) -> None:
        self.opened = (bus, device)

    def writebytes(self, data: List[int]) -> None:
        self.written.append(data)

    def xfer2(self, data: List[int]) -> List[int]:
        self.transfers += 1
        return list(self.reply)

    def close(self) -> None:
        self.closed = True


class FakeSpidevModule:
    def __init__(self, reply: bytes) -> None:
        self.reply = reply
        self.instances: List[FakeSpiDev] = []

    def SpiDev(self) -> FakeSpiDev:
        instance = FakeSpiDev(self.reply)
        self.instances.append(instance)
        return instance


def test_read_polls_device(monkeypatch) -> None:
    fake = FakeSpidevModule(bytes.fromhex(GOOD_RTD))
    monkeypatch.setattr("maxtherm.host.device.spidev", fake)
    pauses: List[float] = []
    monkeypatch.setattr("maxtherm.cli.time.sleep", pauses.append)
    result = runner.invoke(app, ["read", "--count", "2", "--interval", "0.5", "--set", "settle_sec=0"])
    assert result.exit_code == 0, result.output
    assert result.output.count("rtd=") == 2
    spi = fake.instances[0]
    assert spi.transfers == 2
    assert spi.written == [[0x80, 0xC2], [0x80, 0xC2]]
    assert pauses == [0.5]
    assert spi.closed


def test_read_without_trigger_configures_once(monkeypatch) -> None:
    fake = FakeSpidevModule(bytes.fromhex(GOOD_RTD))
    monkeypatch.setattr("maxtherm.host.device.spidev", fake)
    monkeypatch.setattr("maxtherm.cli.time.sleep", lambda _: None)
    result = runner.invoke(app, ["read", "-n", "3", "--no-trigger", "--set", "settle_sec=0"])
    assert result.exit_code == 0, result.output
    spi = fake.instances[0]
    assert spi.written == [[0x80, 0xC2]]
    assert spi.transfers == 3
    assert spi.closed


def test_read_without_spidev_is_bad_parameter(monkeypatch) -> None:
    monkeypatch.setattr("maxtherm.host.device.spidev", None)
    result = runner.invoke(app, ["read"])
    assert result.exit_code == 2


def test_read_rejects_both_chip_selects(monkeypatch) -> None:
    fake = FakeSpidevModule(bytes.fromhex(GOOD_RTD))
    monkeypatch.setattr("maxtherm.host.device.spidev", fake)
    result = runner.invoke(app, ["read", "--set", "spi.chip_select=2"])
    assert result.exit_code == 2
    assert fake.instances == []
