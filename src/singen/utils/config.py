"""配置系统：分层加载、Profile、校验与快照导出工具集合。"""  # 模块说明。
from __future__ import annotations

import copy  # 导入 copy 以执行深拷贝避免引用共享。
import math
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

import yaml  # 导入 PyYAML 以读取/写出 YAML 文件。

from singen.render.formatters import OUTPUT_FORMATS, resolve_format_name
from singen.render.synth import SUPPORTED_BITS
from singen.utils.io import atomic_write_text
from singen.utils.logging import LOG_FORMATS

ENV_PREFIX = "SINGEN_"  # 所有环境变量需以此前缀开头才会被解析。
# 默认配置随包分发。
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "default.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ConfigBundle:
    """封装配置加载结果，包含配置体、来源映射与激活的 Profile。"""  # 数据类说明。

    config: Dict[str, Any]  # 最终合并并经过规范化的配置字典。
    sources: Dict[str, Any]  # 与 config 对应的来源追踪树，叶子为字符串。
    profile: str | None
    profile_source: str | None  # profile 由哪一层触发，例如 "profile:usb-audio"。


class ConfigError(ValueError):
    """对外统一的配置异常类型，包含来源链路信息。"""  # 自定义异常说明。


def _load_yaml(path: Path) -> Dict[str, Any]:
    """读取 YAML 文件并返回字典结构，若为空则返回空字典。"""  # 工具函数说明。
    try:
        text = path.read_text(encoding="utf-8")  # 目录、权限与编码问题统一转为配置错误。
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)  # 使用 safe_load 避免执行任意代码。
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping")
    return data


def _build_source_tree(node: Any, label: str) -> Any:
    """根据数据结构构造来源树，叶子为层级标签。"""  # 工具函数说明。
    if isinstance(node, dict):
        return {key: _build_source_tree(value, label) for key, value in node.items()}
    return label


def _deep_merge(base: Dict[str, Any], incoming: Dict[str, Any], sources: Dict[str, Any], incoming_sources: Any) -> None:
    """递归地将 incoming 合并进 base，并同步更新来源信息。"""  # 工具函数说明。
    for key, value in incoming.items():
        source_info = incoming_sources.get(key) if isinstance(incoming_sources, dict) else incoming_sources
        if isinstance(value, dict):
            base_child = base.get(key)
            source_child = sources.get(key) if isinstance(sources, dict) else None
            if not isinstance(base_child, dict):
                base_child = {}
            if not isinstance(source_child, dict):
                source_child = {}
            base[key] = base_child
            sources[key] = source_child
            if isinstance(source_info, str):  # 若来源只是标签需扩展为整棵树。
                source_info = _build_source_tree(value, source_info)
            _deep_merge(base_child, value, source_child, source_info)
            continue
        if value is None and key in base and base[key] is not None:  # None 不会覆盖已有非空值。
            continue
        base[key] = copy.deepcopy(value)
        sources[key] = source_info


def _parse_scalar(value: str) -> Any:
    """将字符串尝试解析为布尔、整数或浮点类型，失败时返回原字符串。"""  # 工具函数说明。
    lowered = value.strip().lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    # 以 0 开头的多位纯数字保持原样避免八进制误判。
    if lowered.isdigit() and len(lowered) > 1 and lowered.startswith("0"):
        return value.strip()
    try:
        return int(lowered)
    except ValueError:
        try:
            return float(lowered)
        except ValueError:
            return value.strip()


def _keypath_to_tree(keypath: Iterable[str], value: Any) -> Dict[str, Any]:
    """根据层级列表生成嵌套字典，用于 --set 与环境变量合并。"""  # 工具函数说明。
    result: Dict[str, Any] = {}
    cursor = result
    components = list(keypath)
    for index, part in enumerate(components):
        if index == len(components) - 1:
            cursor[part] = value
        else:
            cursor = cursor.setdefault(part, {})
    return result


def _collect_env_from_mapping(env: Mapping[str, str], source_prefix: str) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """从映射中提取 SINGEN_* 变量并构造值树与来源树。"""  # 工具函数说明。
    values: Dict[str, Any] = {}
    value_sources: Dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        trimmed = key[len(ENV_PREFIX) :]
        path = [segment.lower() for segment in trimmed.split("__") if segment]  # 双下划线表示层级。
        if not path:
            continue
        tree = _keypath_to_tree(path, _parse_scalar(raw_value))
        source_tree = _keypath_to_tree(path, f"env:{source_prefix}{key}")
        _deep_merge(values, tree, value_sources, source_tree)
    return values, value_sources


def _parse_dotenv_file(path: Path) -> Dict[str, str]:
    """解析 .env 文件，仅返回键值对字典。"""  # 工具函数说明。
    result: Dict[str, str] = {}
    if not path.is_file():
        return result
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read dotenv file {path}: {exc}") from exc
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, raw_value = stripped.partition("=")
        result[key.strip()] = raw_value.strip().strip("\"'")
    return result


def _normalize_path(value: str) -> str:
    """展开用户目录与环境变量，保持平台兼容。"""  # 工具函数说明。
    return os.path.expanduser(os.path.expandvars(value.strip()))


def _normalize_config(config: Dict[str, Any]) -> None:
    """对配置进行就地规范化，例如格式别名、大小写与路径形态。"""  # 工具函数说明。
    waveform = config.setdefault("waveform", {})
    output = config.setdefault("output", {})
    fmt = output.get("format")
    if isinstance(fmt, str):
        output["format"] = resolve_format_name(fmt)
    # YAML 中的 16000.0 之类整数值浮点统一为 int。
    for key in ("sample_rate", "channels", "bits"):
        value = waveform.get(key)
        if isinstance(value, float) and value.is_integer():
            waveform[key] = int(value)
        elif isinstance(value, str) and value.strip().isdigit():
            waveform[key] = int(value.strip())
    log_format = config.get("log_format")
    if isinstance(log_format, str):
        config["log_format"] = log_format.strip().lower()
    log_level = config.get("log_level")
    if isinstance(log_level, str):
        config["log_level"] = log_level.strip().upper()
    for parent, leaf in ((output, "out_file"), (output, "report_file"), (config, "log_file")):
        value = parent.get(leaf)
        if isinstance(value, str) and value.strip():
            parent[leaf] = _normalize_path(value)


def _source_for_path(path: Iterable[str], sources: Dict[str, Any]) -> str:
    """根据键路径在来源树中查找对应标签。"""  # 工具函数说明。
    cursor: Any = sources
    for part in path:
        if not isinstance(cursor, dict):
            return "unknown"
        cursor = cursor.get(part)
        if cursor is None:
            return "unknown"
    if isinstance(cursor, str):
        return cursor
    return "unknown"


def _assert_condition(condition: bool, path: Iterable[str], message: str, value: Any, sources: Dict[str, Any]) -> None:
    """若条件不成立则抛出包含来源信息的配置异常。"""  # 工具函数说明。
    if condition:
        return
    dotted = ".".join(path)
    origin = _source_for_path(path, sources)
    raise ConfigError(f"Invalid value for {dotted}: {message} (value={value!r}, source={origin})")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_config(config: Dict[str, Any], sources: Dict[str, Any]) -> None:
    """执行语义校验，确保关键字段满足约束。"""  # 工具函数说明。
    waveform = config.get("waveform", {})
    frequency = waveform.get("frequency")
    _assert_condition(
        _is_number(frequency) and frequency > 0,
        ["waveform", "frequency"],
        "frequency must be a positive number of Hz",
        frequency,
        sources,
    )
    sample_rate = waveform.get("sample_rate")
    _assert_condition(
        _is_int(sample_rate) and sample_rate > 0,
        ["waveform", "sample_rate"],
        "sample_rate must be a positive integer",
        sample_rate,
        sources,
    )
    channels = waveform.get("channels")
    _assert_condition(
        _is_int(channels) and channels in (1, 2),
        ["waveform", "channels"],
        "channel count must be 1 or 2",
        channels,
        sources,
    )
    bits = waveform.get("bits")
    _assert_condition(
        _is_int(bits) and bits in SUPPORTED_BITS,
        ["waveform", "bits"],
        "bit depth must be 16, 24, or 32",
        bits,
        sources,
    )
    duration = waveform.get("duration_ms")
    _assert_condition(
        _is_number(duration) and duration >= 0,
        ["waveform", "duration_ms"],
        "duration_ms must be a non-negative number",
        duration,
        sources,
    )
    packet_mode = waveform.get("packet_mode")
    _assert_condition(
        isinstance(packet_mode, bool),
        ["waveform", "packet_mode"],
        "packet_mode must be true or false",
        packet_mode,
        sources,
    )
    output = config.get("output", {})
    fmt = output.get("format")
    _assert_condition(
        fmt in OUTPUT_FORMATS,
        ["output", "format"],
        f"format must be one of {list(OUTPUT_FORMATS)}",
        fmt,
        sources,
    )
    bytes_per_line = output.get("bytes_per_line")
    _assert_condition(
        _is_int(bytes_per_line) and bytes_per_line >= 1,
        ["output", "bytes_per_line"],
        "bytes_per_line must be >= 1",
        bytes_per_line,
        sources,
    )
    _assert_condition(
        isinstance(output.get("header"), bool),
        ["output", "header"],
        "header must be true or false",
        output.get("header"),
        sources,
    )
    _assert_condition(
        config.get("log_format") in LOG_FORMATS,
        ["log_format"],
        f"log_format must be one of {list(LOG_FORMATS)}",
        config.get("log_format"),
        sources,
    )
    _assert_condition(
        config.get("log_level") in LOG_LEVELS,
        ["log_level"],
        f"log_level must be one of {list(LOG_LEVELS)}",
        config.get("log_level"),
        sources,
    )


def parse_cli_set_items(items: Iterable[str]) -> Dict[str, Any]:
    """将 --set KEY=VALUE 形式的列表解析为嵌套字典。"""  # 公共函数说明。
    overrides: Dict[str, Any] = {}
    for raw in items:
        if "=" not in raw:
            raise ConfigError(f"Invalid --set entry '{raw}', expected KEY=VALUE")
        key, value = raw.split("=", 1)  # 仅拆分首个等号以允许值中包含等号。
        path = [segment.strip().lower() for segment in key.split(".") if segment.strip()]
        if not path:
            continue
        tree = _keypath_to_tree(path, _parse_scalar(value))
        _deep_merge(overrides, tree, {}, "cli:set")
    return overrides


def load_and_merge_config(
    cli_overrides: Dict[str, Any] | None = None,
    cli_set_overrides: Dict[str, Any] | None = None,
    config_path: str | None = None,
    profile_name: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigBundle:
    """按照默认→用户→profile→环境→CLI→--set 顺序加载配置并返回结果。"""  # 主函数说明。
    if not DEFAULT_CONFIG_PATH.exists():
        raise FileNotFoundError(f"Default config not found: {DEFAULT_CONFIG_PATH}")
    config = copy.deepcopy(_load_yaml(DEFAULT_CONFIG_PATH))
    sources = _build_source_tree(config, f"default:{DEFAULT_CONFIG_PATH}")
    user_path = Path(config_path) if config_path else Path.cwd() / "config" / "user.yaml"
    if config_path and not user_path.exists():
        raise ConfigError(f"Config file not found: {user_path}")
    user_config: Dict[str, Any] = {}
    if user_path.exists():
        user_config = _load_yaml(user_path)
        _deep_merge(config, user_config, sources, _build_source_tree(user_config, f"user:{user_path}"))
    effective_profile = (
        profile_name
        or (user_config.get("meta") or {}).get("profile")
        or (config.get("meta") or {}).get("profile")
    )
    profile_source = None
    if effective_profile:
        profile_data = (config.get("profiles") or {}).get(effective_profile)
        if profile_data is None:
            raise ConfigError(f"Unknown profile '{effective_profile}'")
        profile_source = f"profile:{effective_profile}"
        _deep_merge(config, profile_data, sources, _build_source_tree(profile_data, profile_source))
    environ = os.environ if environ is None else environ
    env_layers: list[tuple[Dict[str, Any], Dict[str, Any]]] = []
    dotenv_candidates = [Path.cwd() / ".env"]
    if user_path.exists() and user_path.parent / ".env" not in dotenv_candidates:
        dotenv_candidates.append(user_path.parent / ".env")
    for dotenv_path in dotenv_candidates:
        env_map = _parse_dotenv_file(dotenv_path)
        if env_map:
            env_layers.append(_collect_env_from_mapping(env_map, f"{dotenv_path}:"))
    env_layers.append(_collect_env_from_mapping(environ, ""))  # 真实环境变量优先于 .env。
    for values, source_tree in env_layers:
        if values:
            _deep_merge(config, values, sources, source_tree)
    if cli_overrides:
        _deep_merge(config, cli_overrides, sources, _build_source_tree(cli_overrides, "cli:args"))
    if cli_set_overrides:
        _deep_merge(config, cli_set_overrides, sources, _build_source_tree(cli_set_overrides, "cli:set"))
    _normalize_config(config)
    _validate_config(config, sources)
    meta = config.setdefault("meta", {})
    meta_sources = sources.setdefault("meta", {})
    if not isinstance(meta_sources, dict):
        meta_sources = {}
        sources["meta"] = meta_sources
    meta["profile"] = effective_profile
    if effective_profile is not None:
        meta_sources["profile"] = profile_source
    meta["config_generated_at"] = datetime.now(timezone.utc).isoformat()
    meta_sources["config_generated_at"] = "runtime:generated"
    return ConfigBundle(config=config, sources=sources, profile=effective_profile, profile_source=profile_source)


def render_effective_config(bundle: ConfigBundle, include_sources: bool = True) -> str:
    """将配置与来源以 YAML 文本渲染，可附带来源注释。"""  # 导出函数说明。

    def _render(node: Any, source_node: Any, indent: int) -> list[str]:
        lines: list[str] = []
        for key in sorted(node.keys()):
            value = node[key]
            child_source = source_node.get(key) if isinstance(source_node, dict) else source_node
            prefix = " " * indent
            if isinstance(value, dict) and value:
                lines.append(f"{prefix}{key}:")
                lines.extend(_render(value, child_source, indent + 2))
                continue
            rendered = yaml.safe_dump(value, default_flow_style=True).strip()
            # safe_dump 对标量会追加文档结束标记。
            if rendered.endswith("\n..."):
                rendered = rendered[: -len("\n...")]
            line = f"{prefix}{key}: {rendered}"
            if include_sources and isinstance(child_source, str):
                line += f"  # {child_source}"
            lines.append(line)
        return lines

    return "\n".join(_render(bundle.config, bundle.sources, 0)) + "\n"


def save_config(bundle: ConfigBundle, path: str | os.PathLike[str], include_sources: bool = True) -> None:
    """将配置快照写入目标路径，使用原子写入避免半成品。"""  # 导出函数说明。
    atomic_write_text(path, render_effective_config(bundle, include_sources=include_sources))
