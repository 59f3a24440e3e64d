"""各输出格式的渲染结果测试。"""
import ast
import io
import sys
import wave
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from singen.render.formatters import create_formatter, resolve_format_name  # noqa: E402
from singen.render.formatters.arrays import CArrayFormatter, RustArrayFormatter, _ArrayFormatter, array_identifier  # noqa: E402
from singen.render.formatters.wav import WavFormatter  # noqa: E402
from singen.render.synth import RenderedWaveform, WaveformSpec, plan_buffer, render_waveform  # noqa: E402
from singen.utils.errors import InvalidParameterError  # noqa: E402


def _example() -> RenderedWaveform:
    return render_waveform(WaveformSpec.from_values(440.0, 16000, channels=2, bits=16, duration_ms=1.0))


def _with_data(data: bytes) -> RenderedWaveform:
    """构造携带任意字节的渲染结果，便于精确比对文本输出。"""
    spec = WaveformSpec.from_values(440.0, 16000, channels=1, bits=16, duration_ms=0.0)
    return RenderedWaveform(spec=spec, layout=plan_buffer(spec), samples=[], data=data)


def test_hex_listing_wraps_lines() -> None:
    text = create_formatter("hex").render(_with_data(bytes(range(20))))
    expected = (
        "[0x00, 0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0x0A, 0x0B, 0x0C, 0x0D, 0x0E, 0x0F,\n"
        " 0x10, 0x11, 0x12, 0x13]\n"
    )
    assert text == expected


def test_hex_listing_custom_width_and_empty() -> None:
    assert create_formatter("hex", bytes_per_line=2).render(_with_data(b"\xab\xcd\xef")) == "[0xAB, 0xCD,\n 0xEF]\n"
    assert create_formatter("hex").render(_with_data(b"")) == "[]\n"


def test_c_array_declaration() -> None:
    lines = CArrayFormatter().render(_example()).splitlines()
    assert lines[0] == "// Sine wave: 440 Hz, 1 ms, 16-bit, 2 channels"
    assert lines[1] == "// Sample rate: 16000 Hz"
    assert lines[2] == "// Total bytes: 64"
    assert lines[3] == "const uint8_t SINE_440HZ_1MS_16BIT_2CH[64] = {"
    assert lines[4].startswith("    0x00, 0x00, 0x00, 0x00, 0x01, 0x16, 0x01, 0x16,")
    assert lines[4].endswith(",")
    assert len(lines) == 3 + 1 + 4 + 1
    assert not lines[-2].endswith(",")
    assert lines[-1] == "};"


def test_rust_array_declaration() -> None:
    lines = RustArrayFormatter().render(_example()).splitlines()
    assert lines[3] == "pub const SINE_440HZ_1MS_16BIT_2CH: [u8; 64] = ["
    assert lines[-1] == "];"
    body = " ".join(line.strip() for line in lines[4:-1])
    assert body.count("0x") == 64


def test_array_identifier_for_fractional_values_and_mono() -> None:
    spec = WaveformSpec.from_values(997.5, 48000, channels=1, bits=24, duration_ms=2.5)
    assert array_identifier(spec) == "SINE_997_5HZ_2_5MS_24BIT_1CH"
    text = create_formatter("rust").render(render_waveform(spec))
    assert "// Sine wave: 997.5 Hz, 2.5 ms, 24-bit, 1 channel\n" in text


def test_empty_array_is_still_well_formed() -> None:
    text = create_formatter("c").render(_with_data(b""))
    assert text.endswith("[0] = {\n};\n")


def test_raw_passthrough() -> None:
    waveform = _example()
    formatter = create_formatter("bytes")
    assert formatter.binary
    assert formatter.render(waveform) == waveform.data


@pytest.mark.parametrize("bits", [16, 24, 32])
@pytest.mark.parametrize("channels", [1, 2])
def test_wav_container_round_trip(bits: int, channels: int) -> None:
    """标准 wave 读取器解码后应得到原始幅值序列。"""
    waveform = render_waveform(WaveformSpec.from_values(1000.0, 48000, channels=channels, bits=bits, duration_ms=2.0))
    payload = WavFormatter().render(waveform)
    assert payload[:4] == b"RIFF"
    assert payload[8:12] == b"WAVE"
    assert len(payload) == 44 + len(waveform.data)
    width = bits // 8
    with wave.open(io.BytesIO(payload), "rb") as reader:
        assert reader.getnchannels() == channels
        assert reader.getsampwidth() == width
        assert reader.getframerate() == 48000
        assert reader.getnframes() == waveform.frames
        frames = reader.readframes(reader.getnframes())
    decoded = [int.from_bytes(frames[offset : offset + width], "little", signed=True) for offset in range(0, len(frames), width)]
    assert decoded == waveform.samples


def test_wav_container_with_no_frames() -> None:
    payload = create_formatter("pcm").render(render_waveform(WaveformSpec.from_values(440.0, 16000, duration_ms=0.0)))
    with wave.open(io.BytesIO(payload), "rb") as reader:
        assert reader.getnframes() == 0


def test_format_registry_aliases_and_errors() -> None:
    assert resolve_format_name(" C ") == "carray"
    assert resolve_format_name("Rust") == "rustarray"
    assert resolve_format_name("pcm") == "wav"
    assert isinstance(create_formatter("RUSTARRAY"), RustArrayFormatter)
    with pytest.raises(InvalidParameterError, match="Unsupported output format"):
        create_formatter("mp3")
    with pytest.raises(InvalidParameterError):
        create_formatter("hex", bytes_per_line=0)


def test_unknown_formatter_option_is_rejected() -> None:
    """拼错的选项名不会被静默忽略。"""
    with pytest.raises(TypeError):
        create_formatter("hex", bytes_perline=8)


def test_array_formatter_requires_declaration_hooks() -> None:
    class _HalfDeclared(_ArrayFormatter):
        name = "half"

        def open_declaration(self, name: str, length: int) -> str:
            return f"{name}[{length}]"

    with pytest.raises(TypeError):
        _HalfDeclared()


def test_hex_listing_is_a_valid_list_literal() -> None:
    """多行十六进制输出可作为列表字面量解析，内容与原始字节一致。"""
    data = bytes(range(37))
    text = create_formatter("hex", bytes_per_line=8).render(_with_data(data))
    assert len(text.splitlines()) == 5
    assert bytes(ast.literal_eval(text)) == data


def test_array_identifier_separates_tones_at_same_rate() -> None:
    low = WaveformSpec.from_values(440.0, 48000, duration_ms=1.0)
    high = WaveformSpec.from_values(1000.0, 48000, duration_ms=1.0)
    assert array_identifier(low) != array_identifier(high)
    assert array_identifier(high) == "SINE_1000HZ_1MS_16BIT_2CH"
