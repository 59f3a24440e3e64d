"""定义波形生成流程使用的错误类型与退出码映射。"""  # 模块说明。
# 导入 errno 以识别常见的 I/O 错误码。
import errno


class SingenError(Exception):
    """所有 singen 自定义异常的基类。"""


# 参数非法属于用户输入问题，重试无意义。
class InvalidParameterError(SingenError, ValueError):
    """表示波形参数（位深、声道、采样率等）不受支持。"""  # 类说明。


class OutputError(SingenError):
    """表示数据或报告无法写出到目标位置。"""  # 类说明。


EXIT_CODES = {
    "invalid-input": 2,
    "output": 1,
    "unknown": 1,
}


def classify_exception(exc: BaseException) -> str:
    """根据异常类型返回 invalid-input/output/unknown 标签。"""  # 函数说明。
    # InvalidParameterError 与配置层的 ConfigError 均继承 ValueError。
    if isinstance(exc, ValueError):
        return "invalid-input"
    if isinstance(exc, OutputError):
        return "output"
    # 写出阶段的系统错误同样归入 output。
    if isinstance(exc, (PermissionError, IsADirectoryError, NotADirectoryError)):
        return "output"
    if isinstance(exc, OSError) and exc.errno in {errno.ENOSPC, errno.EROFS, errno.EPIPE, errno.EACCES}:
        return "output"
    return "unknown"


def exit_code_for(exc: BaseException) -> int:
    """将异常映射为进程退出码，非法输入返回 2，其余返回 1。"""  # 函数说明。
    return EXIT_CODES[classify_exception(exc)]
