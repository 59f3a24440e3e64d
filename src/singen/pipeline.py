"""单次渲染管线：配置 → 规格 → 尺寸规划 → 合成 → 格式化 → 写出。"""  # 模块说明。
from __future__ import annotations

import sys
from typing import Any, BinaryIO, Dict

from singen.render import (
    SUPPORTED_SAMPLE_RATES,
    WaveformSpec,
    analyze,
    create_formatter,
    plan_buffer,
    render_info,
    render_waveform,
)
from singen.render.formatters import INFO_FORMAT
from singen.utils.errors import OutputError
from singen.utils.io import atomic_write_bytes, atomic_write_json
from singen.utils.logging import StructuredLogger, bind_context
from singen.utils.schema import validate_report

# 文本格式在信息头与数据之间插入的小标题。
SECTION_TITLES = {
    "hex": "Buffer data (hexadecimal):",
    "carray": "C array declaration:",
    "rustarray": "Rust array declaration:",
}


def build_spec(config: Dict[str, Any]) -> WaveformSpec:
    """从合并后的配置字典构造波形规格。"""  # 函数说明。
    waveform = config.get("waveform", {})
    return WaveformSpec.from_values(
        frequency=waveform.get("frequency", 440.0),
        sample_rate=waveform.get("sample_rate", 16000),
        channels=waveform.get("channels", 2),
        bits=waveform.get("bits", 16),
        duration_ms=waveform.get("duration_ms", 1.0),
        packet_mode=waveform.get("packet_mode", False),
    )


def _warn_on_questionable_input(spec: WaveformSpec, logger: StructuredLogger) -> None:
    """非标准采样率与超过奈奎斯特频率的输入仍会渲染，但给出警告。"""
    if not spec.is_standard_rate:
        logger.warning(
            f"{spec.sample_rate} Hz is not in the standard supported rates list",
            supported=",".join(str(rate) for rate in SUPPORTED_SAMPLE_RATES),
        )
    if spec.frequency > spec.nyquist:
        logger.warning(
            "frequency exceeds the Nyquist limit, output will alias",
            frequency=spec.frequency,
            nyquist=spec.nyquist,
        )


def _write_payload(payload: bytes, out_file: str | None, stream: BinaryIO) -> None:
    try:
        if out_file:
            atomic_write_bytes(out_file, payload)
        else:
            stream.write(payload)
            stream.flush()
    except OSError as exc:
        raise OutputError(f"Failed to write output to {out_file or 'stdout'}: {exc}") from exc


def run(config: Dict[str, Any], logger: StructuredLogger, stream: BinaryIO | None = None) -> Dict[str, Any]:
    """执行一次完整渲染并返回摘要；info 格式只做尺寸分析不合成采样。"""  # 函数说明。
    output_cfg = config.get("output", {})
    fmt = output_cfg.get("format", "hex")
    out_file = output_cfg.get("out_file")
    report_file = output_cfg.get("report_file")
    logger = bind_context(logger, format=fmt)
    spec = build_spec(config)
    layout = plan_buffer(spec)
    _warn_on_questionable_input(spec, logger)
    logger.debug(
        "buffer planned",
        frames=layout.frames,
        padding_frames=layout.padding_frames,
        total_bytes=layout.total_bytes,
    )
    report = analyze(spec, layout)
    validate_report(report)
    info_text = render_info(report)

    if fmt == INFO_FORMAT:
        payload = info_text.encode("utf-8")
    else:
        waveform = render_waveform(spec)
        formatter = create_formatter(fmt, bytes_per_line=output_cfg.get("bytes_per_line", 16))
        rendered = formatter.render(waveform)
        if formatter.binary:
            payload = rendered
        else:
            if output_cfg.get("header", True):
                rendered = f"{info_text}\n{SECTION_TITLES[fmt]}\n{rendered}"
            payload = rendered.encode("utf-8")

    _write_payload(payload, out_file, stream if stream is not None else sys.stdout.buffer)
    if report_file:
        try:
            atomic_write_json(report_file, report)
        except OSError as exc:
            raise OutputError(f"Failed to write report to {report_file}: {exc}") from exc
    logger.info(
        "waveform rendered",
        frames=layout.frames,
        total_bytes=layout.total_bytes,
        payload_bytes=len(payload),
        destination=out_file or "stdout",
    )
    return {
        "format": fmt,
        "frames": layout.frames,
        "total_bytes": layout.total_bytes,
        "payload_bytes": len(payload),
        "out_file": out_file,
        "report_file": report_file,
    }
