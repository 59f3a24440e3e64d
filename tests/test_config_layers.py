"""配置系统的层级合并与校验测试集合。"""  # 模块说明。
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from singen.utils.config import (  # noqa: E402
    ConfigError,
    load_and_merge_config,
    parse_cli_set_items,
    render_effective_config,
    save_config,
)


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """在空目录中运行，避免读取仓库或开发者机器上的 config/user.yaml 与 .env。"""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    for key in list(os.environ):
        if key.startswith("SINGEN_"):
            monkeypatch.delenv(key)


def _write_yaml(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def test_defaults() -> None:
    config = load_and_merge_config().config
    assert config["waveform"] == {
        "frequency": 440.0,
        "sample_rate": 16000,
        "channels": 2,
        "bits": 16,
        "duration_ms": 1.0,
        "packet_mode": False,
    }
    assert config["output"]["format"] == "hex"
    assert config["log_level"] == "WARNING"
    assert config["meta"]["profile"] is None


def test_layer_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """验证默认→用户→ENV→CLI→--set 的覆盖顺序。"""
    user_cfg = tmp_path / "user.yaml"
    _write_yaml(
        user_cfg,
        """waveform:
  sample_rate: 44100
  channels: 1
  duration_ms: 5
output:
  format: carray
""",
    )
    monkeypatch.setenv("SINGEN_WAVEFORM__SAMPLE_RATE", "48000")  # 环境层覆盖用户层。
    monkeypatch.setenv("SINGEN_WAVEFORM__BITS", "24")
    bundle = load_and_merge_config(
        cli_overrides={"waveform": {"channels": 2}},
        cli_set_overrides=parse_cli_set_items(["waveform.duration_ms=2.5", "output.format=rust"]),
        config_path=str(user_cfg),
    )
    waveform = bundle.config["waveform"]
    assert waveform["sample_rate"] == 48000
    assert waveform["bits"] == 24
    assert waveform["channels"] == 2  # CLI 覆盖用户配置。
    assert waveform["duration_ms"] == 2.5  # --set 优先级最高。
    assert bundle.config["output"]["format"] == "rustarray"  # 别名被规范化。
    assert bundle.sources["waveform"]["sample_rate"] == "env:SINGEN_WAVEFORM__SAMPLE_RATE"
    assert bundle.sources["waveform"]["channels"] == "cli:args"
    assert bundle.sources["output"]["format"] == "cli:set"


def test_profile_application_and_override() -> None:
    bundle = load_and_merge_config(
        cli_set_overrides=parse_cli_set_items(["waveform.bits=32"]),
        profile_name="usb-audio",
    )
    waveform = bundle.config["waveform"]
    assert waveform["sample_rate"] == 48000
    assert waveform["packet_mode"] is True
    assert waveform["bits"] == 32
    assert bundle.config["output"]["format"] == "carray"
    assert bundle.config["meta"]["profile"] == "usb-audio"
    assert bundle.sources["waveform"]["packet_mode"] == "profile:usb-audio"


def test_profile_selected_from_user_meta(tmp_path: Path) -> None:
    user_cfg = tmp_path / "user.yaml"
    _write_yaml(user_cfg, "meta:\n  profile: speech\n")
    bundle = load_and_merge_config(config_path=str(user_cfg))
    assert bundle.profile == "speech"
    assert bundle.config["waveform"]["channels"] == 1


def test_unknown_profile() -> None:
    with pytest.raises(ConfigError, match="Unknown profile"):
        load_and_merge_config(profile_name="vinyl")


def test_env_file_support(tmp_path: Path) -> None:
    """验证与用户配置同目录的 .env 会被解析并应用。"""
    config_dir = tmp_path / "cfg"
    config_dir.mkdir()
    user_cfg = config_dir / "user.yaml"
    _write_yaml(user_cfg, "output:\n  format: raw\n")
    (config_dir / ".env").write_text("# tone settings\nSINGEN_WAVEFORM__CHANNELS=1\nSINGEN_OUTPUT__FORMAT='C'\n", encoding="utf-8")
    bundle = load_and_merge_config(config_path=str(user_cfg))
    assert bundle.config["waveform"]["channels"] == 1
    assert bundle.config["output"]["format"] == "carray"


def test_user_config_in_working_directory() -> None:
    Path("config").mkdir()
    _write_yaml(Path("config") / "user.yaml", "waveform:\n  sample_rate: 48000.0\n")
    bundle = load_and_merge_config()
    assert bundle.config["waveform"]["sample_rate"] == 48000
    assert isinstance(bundle.config["waveform"]["sample_rate"], int)


@pytest.mark.parametrize(
    ("yaml_text", "key"),
    [
        ("waveform:\n  bits: 20\n", "waveform.bits"),
        ("waveform:\n  channels: 3\n", "waveform.channels"),
        ("waveform:\n  sample_rate: 0\n", "waveform.sample_rate"),
        ("waveform:\n  frequency: -1\n", "waveform.frequency"),
        ("waveform:\n  duration_ms: -5\n", "waveform.duration_ms"),
        ("waveform:\n  packet_mode: maybe\n", "waveform.packet_mode"),
        ("output:\n  format: mp3\n", "output.format"),
        ("output:\n  bytes_per_line: 0\n", "output.bytes_per_line"),
        ("log_level: chatty\n", "log_level"),
    ],
)
def test_validation_failure(tmp_path: Path, yaml_text: str, key: str) -> None:
    """非法取值应抛出 ConfigError 并指明字段与来源层。"""
    bad_cfg = tmp_path / "bad.yaml"
    _write_yaml(bad_cfg, yaml_text)
    with pytest.raises(ConfigError) as exc:
        load_and_merge_config(config_path=str(bad_cfg))
    assert f"Invalid value for {key}" in str(exc.value)
    assert "source=user:" in str(exc.value)


def test_missing_explicit_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_and_merge_config(config_path=str(tmp_path / "absent.yaml"))


def test_parse_cli_set_items() -> None:
    assert parse_cli_set_items(["waveform.duration_ms=0.5", "output.header=false"]) == {
        "waveform": {"duration_ms": 0.5},
        "output": {"header": False},
    }
    with pytest.raises(ConfigError):
        parse_cli_set_items(["waveform.bits"])


def test_render_and_save_snapshot(tmp_path: Path) -> None:
    bundle = load_and_merge_config(profile_name="cd")
    snapshot = render_effective_config(bundle, include_sources=True)
    assert "sample_rate: 44100  # profile:cd" in snapshot
    assert "format: hex  # default:" in snapshot
    target_path = tmp_path / "snapshot.yaml"
    save_config(bundle, target_path)
    assert target_path.read_text(encoding="utf-8") == snapshot
