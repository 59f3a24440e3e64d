"""缓冲区分析报告与 schema 校验测试。"""
import copy
import sys
from pathlib import Path

import pytest
from jsonschema import ValidationError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from singen.render.analysis import ANALYSIS_SCHEMA, analyze, render_info  # noqa: E402
from singen.render.synth import WaveformSpec, plan_buffer  # noqa: E402
from singen.utils.schema import load_schema, validate_report  # noqa: E402


def _report(**overrides) -> dict:
    values = {"frequency": 440.0, "sample_rate": 16000, "channels": 2, "bits": 16, "duration_ms": 1.0}
    values.update(overrides)
    spec = WaveformSpec.from_values(**values)
    return analyze(spec, plan_buffer(spec))


def test_report_numbers_for_reference_example() -> None:
    report = _report()
    assert report["schema"] == ANALYSIS_SCHEMA
    assert report["buffer"]["frames"] == 16
    assert report["buffer"]["total_bytes"] == 64
    assert report["buffer"]["packets"] == 1
    assert report["frequency"]["period_samples"] == pytest.approx(16000 / 440)
    assert report["frequency"]["full_cycles"] == pytest.approx(0.44)
    assert report["config"]["standard_rate"] is True
    validate_report(report)


def test_schema_file_matches_report_id() -> None:
    assert load_schema("analysis")["properties"]["schema"]["const"] == ANALYSIS_SCHEMA
    with pytest.raises(KeyError):
        load_schema("words")


def test_validation_rejects_inconsistent_arithmetic() -> None:
    report = _report()
    broken = copy.deepcopy(report)
    broken["buffer"]["total_bytes"] = 65
    with pytest.raises(ValidationError):
        validate_report(broken)
    broken = copy.deepcopy(report)
    broken["config"]["bits"] = 20
    with pytest.raises(ValidationError):
        validate_report(broken)


def test_render_info_text() -> None:
    text = render_info(_report())
    assert text.startswith("Sine Wave Generator - Configuration\n")
    assert "Frequency:      440 Hz\n" in text
    assert "Sample Rate:    16000 Hz\n" in text
    assert "Channels:       2 (stereo)\n" in text
    assert "Bit Depth:      16-bit\n" in text
    assert "  Samples:      16\n" in text
    assert "  Total bytes:  64\n" in text
    assert "  Period:       36.36 samples\n" in text
    assert "  Full cycles:  0.44\n" in text
    assert "Packets:" not in text


def test_render_info_packet_mode_and_mono() -> None:
    report = _report(channels=1, bits=24, packet_mode=True)
    validate_report(report)
    text = render_info(report)
    assert "Channels:       1 (mono)\n" in text
    assert "  Padding:      48 frames\n" in text
    assert "  Packets:      3 x 64 bytes\n" in text
