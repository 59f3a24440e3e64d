"""验证结构化日志的格式、等级过滤与文件追加。"""
import io
import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from singen.utils.logging import bind_context, get_logger  # noqa: E402


def _read_json_lines(path: Path) -> list:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def test_jsonl_records_written_to_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "run.log"
    logger = get_logger(format="jsonl", level="INFO", log_file=str(log_path), quiet=True)
    bound = bind_context(logger, format="hex")
    bound.info("waveform rendered", frames=16)
    bound.debug("dropped below threshold")
    records = _read_json_lines(log_path)
    assert len(records) == 1
    record = records[0]
    assert record["level"] == "INFO"
    assert record["msg"] == "waveform rendered"
    assert record["format"] == "hex"
    assert record["frames"] == 16
    assert record["ts"].endswith("Z")
    bound.warning("second record")
    assert [item["msg"] for item in _read_json_lines(log_path)] == ["waveform rendered", "second record"]


def test_console_goes_to_given_stream_and_respects_level() -> None:
    console = io.StringIO()
    logger = get_logger(level="WARNING", console=console)
    logger.info("hidden")
    logger.warning("22050 Hz is not in the standard supported rates list", supported="16000,44100,48000")
    lines = console.getvalue().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("[WARNING] ")
    assert "supported=16000,44100,48000" in lines[0]


def test_default_console_is_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    get_logger().error("invalid configuration", error="bad bits")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[ERROR]" in captured.err
    assert "    error=bad bits" in captured.err


def test_exception_includes_trace() -> None:
    console = io.StringIO()
    logger = get_logger(console=console)
    try:
        raise OSError("disk full")
    except OSError as exc:
        logger.exception("fatal render error", exc=exc)
    text = console.getvalue()
    assert "error_type=OSError error=disk full" in text
    assert "Traceback" in text


def test_rejects_unknown_format_and_level() -> None:
    with pytest.raises(ValueError):
        get_logger(format="xml")
    with pytest.raises(ValueError):
        get_logger(level="LOUD")


def test_log_file_pointing_at_directory_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(IsADirectoryError):
        get_logger(log_file=str(tmp_path))
