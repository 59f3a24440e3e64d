"""提供跨平台的 I/O 工具，包括原子写入与文件锁。"""  # 模块说明。
from __future__ import annotations

import json
# 导入 os 模块以执行文件系统操作与原子替换。
import os
import stat
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

# 尝试导入 fcntl 以在 POSIX 系统上实现文件锁。
try:
    import fcntl  # type: ignore
except ImportError:
    fcntl = None  # 若导入失败则后续退化到基于文件创建的锁。

try:
    import msvcrt  # type: ignore
except ImportError:
    msvcrt = None


def safe_mkdirs(path: str | os.PathLike[str]) -> None:
    """创建目标目录及其父级目录，目录已存在时静默跳过。"""  # 函数说明。
    Path(path).mkdir(parents=True, exist_ok=True)


def atomic_write_bytes(path: str | os.PathLike[str], data: bytes) -> None:
    """通过临时文件写入二进制内容，并以原子方式替换目标文件。"""  # 函数说明。
    target_path = Path(path)
    safe_mkdirs(target_path.parent)
    # 临时文件与目标位于同一目录，保证 os.replace 不跨文件系统。
    tmp_path = target_path.with_name(f"{target_path.name}.tmp")
    try:
        with open(tmp_path, "wb") as handle:
            handle.write(data)
        atomic_replace(tmp_path, target_path)
    finally:
        # 如果临时文件仍然存在（替换失败），进行清理。
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def atomic_write_text(path: str | os.PathLike[str], text: str) -> None:
    """以 UTF-8 编码原子写入文本内容。"""  # 函数说明。
    atomic_write_bytes(path, text.encode("utf-8"))


def atomic_write_json(path: str | os.PathLike[str], data: Any) -> None:
    """将数据序列化为 JSON 文本后执行原子写入。"""  # 函数说明。
    json_text = json.dumps(data, ensure_ascii=False, indent=2)
    atomic_write_text(path, json_text + "\n")


def atomic_replace(tmp_path: str | os.PathLike[str], final_path: str | os.PathLike[str]) -> None:
    """使用 os.replace 将临时文件移动到目标位置，确保父目录存在。"""  # 函数说明。
    final = Path(final_path)
    safe_mkdirs(final.parent)
    os.replace(Path(tmp_path), final)


@contextmanager
def with_file_lock(lock_path: str | os.PathLike[str], timeout_sec: float) -> Iterator[None]:
    """尝试在指定路径创建独占文件锁，超时则抛出 TimeoutError。"""  # 函数说明。
    path = Path(lock_path)
    safe_mkdirs(path.parent)
    start = time.monotonic()
    interval = 0.05  # 轮询间隔。
    file_obj = None
    fd: int | None = None
    while True:
        try:
            if fcntl is not None:
                fd = os.open(path, os.O_RDWR | os.O_CREAT, mode=stat.S_IRUSR | stat.S_IWUSR)
                try:
                    fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    os.close(fd)
                    fd = None
            elif msvcrt is not None:
                file_obj = open(path, "a+")
                try:
                    msvcrt.locking(file_obj.fileno(), msvcrt.LK_NBLCK, 1)
                    break
                except OSError:
                    file_obj.close()
                    file_obj = None
            else:
                # 无系统级锁支持时，使用 O_EXCL 创建文件实现自旋锁。
                fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_RDWR)
                break
        except FileExistsError:
            fd = None
        if time.monotonic() - start >= timeout_sec:
            raise TimeoutError(f"Timed out acquiring lock: {path}")
        time.sleep(interval)
    try:
        yield
    finally:
        try:
            if fcntl is not None and fd is not None:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
            elif msvcrt is not None and file_obj is not None:
                try:
                    msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
                finally:
                    file_obj.close()
            elif fd is not None:
                os.close(fd)
        finally:
            # flock 锁文件需保留，删除后其他进程可能锁住不同 inode。
            if fcntl is None:
                path.unlink(missing_ok=True)


def append_line_locked(path: str | os.PathLike[str], line: str) -> None:
    """在文件锁保护下向文本文件追加一行。"""  # 函数说明。
    target = Path(path)
    safe_mkdirs(target.parent)
    lock_path = target.with_suffix(target.suffix + ".lock")
    with with_file_lock(lock_path, timeout_sec=30):
        with target.open("a", encoding="utf-8") as handle:
            handle.write(line)
            handle.write("\n")
