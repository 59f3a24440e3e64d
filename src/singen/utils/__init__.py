"""通用工具：配置、日志、错误类型、I/O 与 schema 校验。"""
