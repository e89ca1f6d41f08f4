"""消息格式化工具模块。

提供统一的错误消息、进度消息格式化功能。
"""

from pathlib import Path

from humanize import naturalsize


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: str | Path) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def no_match(pattern: str, cwd: str | Path) -> str:
        """路径模式没有匹配任何文件"""
        return f"没有匹配的文件: {pattern} (cwd={cwd})"

    @staticmethod
    def operation_failed(
        operation: str, target: str | Path, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def format_error(operation: str, path: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{path}]: {error}"

    @staticmethod
    def format_bytes(size: int) -> str:
        """人类可读的字节数，负数保留符号"""
        if size < 0:
            return f"-{naturalsize(-size)}"
        return naturalsize(size)

    @staticmethod
    def format_percent(percent: float) -> str:
        """保留一位小数，整数时去掉 .0"""
        text = f"{percent:.1f}"
        return text[:-2] if text.endswith(".0") else text

    @staticmethod
    def item_progress(relative_path: str, position: int, total: int) -> str:
        """单个文件的进度前缀"""
        return f'Minifying image "{relative_path}" ({position} of {total})'
