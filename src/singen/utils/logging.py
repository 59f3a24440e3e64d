"""提供 human/jsonl 两种格式的结构化日志器。"""  # 模块文档说明。
from __future__ import annotations

import errno
import json
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from singen.utils.io import append_line_locked, safe_mkdirs

_LEVELS = {  # 定义日志等级到数值的映射，兼容 logging 模块的约定。
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}
LOG_FORMATS = ("human", "jsonl")


def _normalize_level(level: str) -> str:
    """将外部传入的日志等级规范化为大写并验证合法性。"""  # 函数说明。
    upper = level.upper()
    if upper not in _LEVELS:
        raise ValueError(f"Unsupported log level: {level}")
    return upper


class _LoggerCore:
    """封装日志格式化与写入细节的内部核心类。"""  # 类说明。

    def __init__(
        self,
        log_format: str,
        level: str,
        log_file: str | None,
        quiet: bool,
        console: TextIO | None = None,
    ) -> None:
        normalized = log_format.lower()
        if normalized not in LOG_FORMATS:
            raise ValueError(f"Unsupported log format: {log_format}")
        self.format = normalized
        self.level = _LEVELS[_normalize_level(level)]
        self.log_file = Path(log_file) if log_file else None
        self.quiet = quiet
        # 标准输出保留给波形数据，诊断信息一律写入标准错误。
        self._console = console if console is not None else sys.stderr
        if self.log_file is not None:
            if self.log_file.is_dir():
                raise IsADirectoryError(errno.EISDIR, "Log file path is a directory", str(self.log_file))
            safe_mkdirs(self.log_file.parent)

    def _timestamp(self) -> str:
        """返回带毫秒精度的 UTC ISO8601 时间戳。"""  # 方法说明。
        now = datetime.now(timezone.utc)
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def _render_human(self, record: Dict[str, Any]) -> str:
        """将日志记录渲染为人类易读的字符串。"""  # 方法说明。
        parts = [f"[{record['level']}]", record["ts"], record["msg"]]
        skip = {"ts", "level", "msg", "error", "error_type", "trace"}
        # 其余上下文字段以 key=value 形式附加在同一行。
        parts.extend(f"{key}={value}" for key, value in record.items() if key not in skip)
        base = " ".join(str(part) for part in parts)

        extra_lines: list[str] = []
        error_fields: list[str] = []
        if record.get("error_type"):
            error_fields.append(f"error_type={record['error_type']}")
        if record.get("error"):
            error_fields.append(f"error={record['error']}")
        if error_fields:
            extra_lines.append("    " + " ".join(error_fields))
        trace_text = record.get("trace")
        if isinstance(trace_text, str) and trace_text.strip():
            for line in trace_text.rstrip().splitlines():
                extra_lines.append("    " + line)
        if extra_lines:
            return "\n".join([base, *extra_lines])
        return base

    def emit(self, level: str, message: str, fields: Dict[str, Any]) -> None:
        """根据配置输出一条日志记录。"""  # 方法说明。
        normalized = _normalize_level(level)
        if _LEVELS[normalized] < self.level:
            return
        record: Dict[str, Any] = {
            "ts": self._timestamp(),
            "level": normalized,
            "msg": message,
        }
        record.update(fields)
        if self.format == "human":
            rendered = self._render_human(record)
        else:
            rendered = json.dumps(record, ensure_ascii=False, default=str)
        if not self.quiet:
            self._console.write(rendered + "\n")
            self._console.flush()
        if self.log_file is not None:
            append_line_locked(self.log_file, rendered)


class StructuredLogger:
    """对外暴露的结构化日志器，支持上下文绑定与多格式输出。"""  # 类说明。

    def __init__(self, core: _LoggerCore, context: Optional[Dict[str, Any]] = None, parent: "StructuredLogger" | None = None) -> None:
        self._core = core
        self._context = context or {}
        self._parent = parent

    def _collect_context(self) -> Dict[str, Any]:
        """递归合并父级上下文并返回总上下文字典。"""  # 方法说明。
        aggregated: Dict[str, Any] = {}
        if self._parent is not None:
            aggregated.update(self._parent._collect_context())
        aggregated.update(self._context)
        return aggregated

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        """基于当前实例追加上下文字段并返回新的子日志器。"""  # 方法说明。
        return StructuredLogger(self._core, context=kwargs, parent=self)

    def log(self, level: str, message: str, **fields: Any) -> None:
        payload = self._collect_context()
        payload.update(fields)
        self._core.emit(level, message, payload)

    def debug(self, message: str, **fields: Any) -> None:
        self.log("DEBUG", message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log("INFO", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log("WARNING", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log("ERROR", message, **fields)

    def exception(self, message: str, exc: BaseException | None = None, **fields: Any) -> None:
        """输出包含异常堆栈的 ERROR 级日志。"""  # 方法说明。
        exception_obj = exc
        if exception_obj is None:
            _, exception_obj, _ = sys.exc_info()
        if exception_obj is not None:
            fields.setdefault("error", str(exception_obj))
            fields.setdefault("error_type", exception_obj.__class__.__name__)
            fields.setdefault(
                "trace",
                "".join(
                    traceback.format_exception(
                        exception_obj.__class__, exception_obj, exception_obj.__traceback__
                    )
                ),
            )
        self.log("ERROR", message, **fields)


def get_logger(
    format: str = "human",
    level: str = "WARNING",
    log_file: str | None = None,
    quiet: bool = False,
    *,
    console: TextIO | None = None,
) -> StructuredLogger:
    """创建并返回结构化日志器，支持 human/jsonl 两种模式。"""  # 函数说明。
    core = _LoggerCore(format, level, log_file, quiet, console=console)
    return StructuredLogger(core)


def bind_context(logger: StructuredLogger, **kwargs: Any) -> StructuredLogger:
    """为现有日志器绑定额外上下文并返回新的实例。"""  # 函数说明。
    return logger.bind(**kwargs)
