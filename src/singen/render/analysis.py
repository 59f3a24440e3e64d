"""缓冲区分析：生成结构化报告并渲染为人类可读文本。"""  # 模块说明。
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from singen.render.formatters.base import format_number
from singen.render.synth import PACKET_SIZE, BufferLayout, WaveformSpec

# 报告的 schema 标识，与 schemas/analysis.schema.json 中的 const 保持一致。
ANALYSIS_SCHEMA = "singen.analysis.v1"


def analyze(spec: WaveformSpec, layout: BufferLayout) -> Dict[str, Any]:
    """根据规格与尺寸规划构造分析报告，不需要实际合成采样。"""
    period_samples = spec.sample_rate / spec.frequency  # 一个周期跨越的采样数。
    return {
        "schema": ANALYSIS_SCHEMA,
        "config": {
            "frequency_hz": float(spec.frequency),
            "sample_rate_hz": spec.sample_rate,
            "channels": spec.channels,
            "bits": spec.width.bits,
            "duration_ms": float(spec.duration_ms),
            "packet_mode": spec.packet_mode,
            "standard_rate": spec.is_standard_rate,
        },
        "buffer": {
            "requested_frames": layout.requested_frames,
            "frames": layout.frames,
            "padding_frames": layout.padding_frames,
            "bytes_per_sample": layout.bytes_per_sample,
            "bytes_per_frame": layout.bytes_per_frame,
            "total_bytes": layout.total_bytes,
            "packet_size": PACKET_SIZE,
            "packets": layout.packets,
        },
        "frequency": {
            "period_samples": period_samples,
            "full_cycles": layout.frames / period_samples,
            "nyquist_hz": spec.nyquist,
        },
        "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),  # UTC 生成时间。
    }


def render_info(report: Dict[str, Any]) -> str:
    """将分析报告渲染为配置、缓冲区与频率三段文本。"""
    config = report["config"]
    buffer = report["buffer"]
    frequency = report["frequency"]
    channels = config["channels"]  # 1 为单声道，其余为立体声。
    lines = [
        "Sine Wave Generator - Configuration",
        "=====================================",
        f"Frequency:      {format_number(config['frequency_hz'])} Hz",
        f"Sample Rate:    {config['sample_rate_hz']} Hz",
        f"Channels:       {channels} ({'mono' if channels == 1 else 'stereo'})",
        f"Bit Depth:      {config['bits']}-bit",
        f"Duration:       {format_number(config['duration_ms'])} ms",
        f"Packet Mode:    {'on' if config['packet_mode'] else 'off'}",
        "",
        "Buffer Analysis:",
        f"  Samples:      {buffer['frames']}",
        f"  Total bytes:  {buffer['total_bytes']}",
    ]
    if config["packet_mode"]:  # 仅包模式输出补齐与分包信息。
        lines.append(f"  Padding:      {buffer['padding_frames']} frames")
        lines.append(f"  Packets:      {buffer['packets']} x {buffer['packet_size']} bytes")
    lines.extend(
        [
            "",
            "Frequency Analysis:",
            f"  Period:       {frequency['period_samples']:.2f} samples",
            f"  Full cycles:  {frequency['full_cycles']:.2f}",
        ]
    )
    return "\n".join(lines) + "\n"
