"""图像优化异常处理模块。

定义统一的异常分类和错误处理机制：

- ConfigurationError：插件或配置模块错误，运行开始前致命
- ItemError：单个文件的读取、转换、写入错误，只记录在该文件的结果中
- RoutingError：多个结果请求写入单一输出，致命
"""

from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.outcome import ItemFailure
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


class ImageminError(Exception):
    """所有错误的基类"""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.message = message
        self.path = path


# 配置错误
class ConfigurationError(ImageminError):
    """配置错误基类，总是致命"""

    pass


class UnknownPluginError(ConfigurationError):
    """未知插件名称"""

    def __init__(self, name: str):
        super().__init__(
            f"Unknown plugin: {name}\n"
            "Did you forget to register the plugin?\n"
            f'Use --config to load a module exporting "plugins" that includes "{name}".'
        )
        self.name = name


class ConfigLoadError(ConfigurationError):
    """配置模块无法加载"""

    def __init__(self, path: Path, cause: Exception | str):
        super().__init__(f'cannot load config "{path}"\n{cause}', path)
        self.cause = cause


class InvalidChainError(ConfigurationError):
    """插件链不合法"""

    pass


# 单项错误
class ItemError(ImageminError):
    """单个文件处理错误基类"""

    pass


class SourceReadError(ItemError):
    """源文件无法读取"""

    pass


class TransformError(ItemError):
    """插件转换失败"""

    def __init__(self, message: str, stage: str | None = None, path: Path | None = None):
        super().__init__(message, path)
        self.stage = stage


class DestinationWriteError(ItemError):
    """输出文件无法写入"""

    pass


# 路由错误
class RoutingError(ImageminError):
    """输出路由错误基类"""

    pass


class MultipleOutputsError(RoutingError):
    """多个结果无法写入单一输出"""

    def __init__(self, count: int):
        super().__init__(
            "cannot write multiple files to a single output, "
            "specify an output directory"
        )
        self.count = count


# 运行级错误
class BatchFailedError(ImageminError):
    """批量处理中存在失败且未忽略错误"""

    def __init__(self, first_error: str, failure_count: int):
        super().__init__(first_error)
        self.first_error = first_error
        self.failure_count = failure_count


def handle_transform_errors(stage_name: str):
    """插件转换异常处理装饰器

    把 Pillow 抛出的各类异常统一为 TransformError。

    Args:
        stage_name: 插件名称，用于错误信息
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except TransformError:
                raise
            except UnidentifiedImageError as e:
                raise TransformError(
                    f"{stage_name}: 无法识别图像格式: {e}", stage_name
                ) from e
            except DecompressionBombError as e:
                raise TransformError(
                    f"{stage_name}: 图像过大，可能存在安全风险: {e}", stage_name
                ) from e
            except (OSError, ValueError, SyntaxError) as e:
                # Pillow 对损坏数据抛出 OSError/SyntaxError
                raise TransformError(f"{stage_name}: 图像数据损坏: {e}", stage_name) from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    把单项处理中的任意异常转换为 ItemFailure，保证每个输入都有结果。
    """

    @staticmethod
    def _log_error(
        operation: str, path: str | Path, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录

        Args:
            operation: 操作名称
            path: 相关文件路径
            error: 异常对象
            level: 日志级别 ("error", "warning", "debug")
        """
        log_msg = MessageFormatter.format_error(operation, path, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def create_failure(relative_path: str, error: Exception) -> ItemFailure:
        """创建标准化的失败结果"""
        detail = error.message if isinstance(error, ImageminError) else str(error)
        return ItemFailure(
            relative_path=relative_path,
            error_detail=detail or type(error).__name__,
            error_type=type(error).__name__,
        )

    @staticmethod
    def handle_with_context(
        error: Exception,
        relative_path: str,
        operation: str = "图像优化",
        log_level: str = "warning",
    ) -> ItemFailure:
        """记录日志并返回失败结果

        Args:
            error: 异常对象
            relative_path: 条目的相对路径
            operation: 操作名称
            log_level: 日志级别

        Returns:
            ItemFailure: 标准化的失败结果
        """
        ErrorHandler._log_error(operation, relative_path, error, log_level)
        return ErrorHandler.create_failure(relative_path, error)

    @staticmethod
    def handle_item_error(error: Exception, relative_path: str) -> ItemFailure:
        """按错误类型记录日志

        单项失败由报告器面向用户输出，这里只写调试日志；
        非预期的异常类型记为 warning。
        """
        match error:
            case SourceReadError():
                return ErrorHandler.handle_with_context(
                    error, relative_path, "读取源文件", log_level="debug"
                )
            case TransformError():
                return ErrorHandler.handle_with_context(
                    error, relative_path, "插件转换", log_level="debug"
                )
            case DestinationWriteError():
                return ErrorHandler.handle_with_context(
                    error, relative_path, "写入输出", log_level="debug"
                )
            case _:
                return ErrorHandler.handle_with_context(
                    error, relative_path, "图像优化", log_level="warning"
                )
