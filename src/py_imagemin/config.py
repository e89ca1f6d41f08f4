"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass, field


def _cpu_count() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class ProcessingDefaults:
    """批量处理相关的默认配置"""

    # 并发设置，默认与可用处理单元数一致
    MAX_CONCURRENCY: int = field(default_factory=_cpu_count)
    EXECUTOR_TYPE: str = "thread"

    # 未指定插件且未提供配置模块时使用的插件
    DEFAULT_PLUGINS: tuple[str, ...] = ("gifsicle", "jpegtran", "optipng", "svgo")

    # 标准输入模式下的虚拟文件名
    STDIN_NAME: str = "stdin"


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_imagemin.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.processing = ProcessingDefaults()
        self.logging = LoggingDefaults()

        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        if max_concurrency := os.getenv("IMAGEMIN_MAX_CONCURRENCY"):
            value = int(max_concurrency)
            if value < 1:
                raise ValueError(
                    f"IMAGEMIN_MAX_CONCURRENCY 必须大于 0，当前值: {value}"
                )
            object.__setattr__(self.processing, "MAX_CONCURRENCY", value)

        if executor_type := os.getenv("IMAGEMIN_EXECUTOR"):
            object.__setattr__(self.processing, "EXECUTOR_TYPE", executor_type.lower())

        if log_level := os.getenv("IMAGEMIN_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("IMAGEMIN_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
