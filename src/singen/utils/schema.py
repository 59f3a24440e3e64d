"""提供 JSON Schema 加载、缓存与分析报告补充校验的工具函数。"""  # 模块文档说明。
import json
from collections import deque
from pathlib import Path
from typing import Dict

# 从 jsonschema 导入校验器、格式检查器与异常类型。
from jsonschema import Draft202012Validator, FormatChecker, ValidationError

# schema 文件随包分发，位于 singen/schemas。
SCHEMA_DIR = Path(__file__).resolve().parents[1] / "schemas"
SCHEMA_FILES = {
    "analysis": "analysis.schema.json",
}
_SCHEMA_CACHE: Dict[str, dict] = {}
_VALIDATOR_CACHE: Dict[str, Draft202012Validator] = {}
_FORMAT_CHECKER = FormatChecker()


def load_schema(name: str) -> dict:
    """加载指定名称的 JSON Schema，并在内存中缓存。"""  # 函数文档说明。
    key = name.strip().lower()
    if key not in SCHEMA_FILES:
        raise KeyError(f"Unknown schema: {name}")
    if key in _SCHEMA_CACHE:
        return _SCHEMA_CACHE[key]
    with (SCHEMA_DIR / SCHEMA_FILES[key]).open("r", encoding="utf-8") as handle:
        schema = json.load(handle)
    _SCHEMA_CACHE[key] = schema
    return schema


def _get_validator(name: str) -> Draft202012Validator:
    """获取编译后的 Draft2020-12 校验器实例并缓存。"""
    key = name.strip().lower()
    if key not in _VALIDATOR_CACHE:
        _VALIDATOR_CACHE[key] = Draft202012Validator(load_schema(key), format_checker=_FORMAT_CHECKER)
    return _VALIDATOR_CACHE[key]


def _enforce_buffer_arithmetic(buffer: dict) -> None:
    """补充验证 schema 无法表达的算术关系：帧数、补齐与总字节数。"""
    frames = buffer["frames"]
    if frames - buffer["requested_frames"] != buffer["padding_frames"]:
        raise ValidationError(
            "padding_frames does not equal frames - requested_frames",
            path=deque(("buffer", "padding_frames")),
        )
    if frames * buffer["bytes_per_frame"] != buffer["total_bytes"]:
        raise ValidationError(
            "total_bytes does not equal frames * bytes_per_frame",
            path=deque(("buffer", "total_bytes")),
        )


def validate_report(payload: dict) -> None:
    """校验分析报告结构并在需要时抛出 ValidationError。"""  # 函数文档说明。
    _get_validator("analysis").validate(payload)
    _enforce_buffer_arithmetic(payload["buffer"])
