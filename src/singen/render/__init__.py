"""波形渲染：合成、分析与输出格式。"""
from singen.render.analysis import ANALYSIS_SCHEMA, analyze, render_info
from singen.render.formatters import OUTPUT_FORMATS, create_formatter, resolve_format_name
from singen.render.synth import (
    PACKET_SIZE,
    SUPPORTED_BITS,
    SUPPORTED_SAMPLE_RATES,
    BufferLayout,
    RenderedWaveform,
    SampleWidth,
    WaveformSpec,
    plan_buffer,
    render_waveform,
)

__all__ = [
    "ANALYSIS_SCHEMA",
    "OUTPUT_FORMATS",
    "PACKET_SIZE",
    "SUPPORTED_BITS",
    "SUPPORTED_SAMPLE_RATES",
    "BufferLayout",
    "RenderedWaveform",
    "SampleWidth",
    "WaveformSpec",
    "analyze",
    "create_formatter",
    "plan_buffer",
    "render_info",
    "render_waveform",
    "resolve_format_name",
]
