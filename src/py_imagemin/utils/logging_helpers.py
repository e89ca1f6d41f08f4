"""日志工具模块。

提供统一的日志记录功能，标准化日志格式和配置。
"""

import inspect
import logging
import sys
from logging.handlers import RotatingFileHandler

from ..config import get_config


ROOT_LOGGER_NAME = "py_imagemin"


def get_logger(name: str | None = None) -> logging.Logger:
    """获取标准化配置的日志记录器。

    Args:
        name: 日志记录器名称，默认使用调用模块的 __name__

    Returns:
        logging.Logger: 配置好的日志记录器
    """
    if name is None:
        # 获取调用者的模块名
        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            name = "unknown"

    return logging.getLogger(name)


def setup_logging(level: str | None = None) -> logging.Logger:
    """配置包级日志记录器。

    日志只写入 stderr（以及可选的滚动文件），标准输出保留给图像数据。

    Args:
        level: 日志级别，None 时使用配置默认值

    Returns:
        logging.Logger: 包级日志记录器
    """
    settings = get_config().logging
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel((level or settings.LOG_LEVEL).upper())

    # 重复调用时替换已有的处理器
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(settings.LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if settings.ENABLE_FILE_LOGGING:
        file_handler = RotatingFileHandler(
            settings.LOG_FILE_PATH,
            maxBytes=settings.LOG_FILE_MAX_SIZE,
            backupCount=settings.LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    return root
