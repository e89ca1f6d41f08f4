"""并发批量图像优化库。

通过可配置的插件链批量优化图像，结果写入镜像目录树或标准输出。
"""

__version__ = "0.1.0"
__author__ = "crper"
__description__ = "并发批量图像优化工具，基于 Pillow 插件链"

# 核心功能导出
from .exceptions import (
    BatchFailedError,
    ConfigLoadError,
    ConfigurationError,
    ImageminError,
    MultipleOutputsError,
    UnknownPluginError,
)
from .models import ProcessingOptions, ReportLevel, RunResult, RunSummary
from .optimizer import ImageOptimizer, optimize
from .plugins import Transform, TransformChain, default_registry


__all__ = [
    "BatchFailedError",
    "ConfigLoadError",
    "ConfigurationError",
    "ImageOptimizer",
    "ImageminError",
    "MultipleOutputsError",
    "ProcessingOptions",
    "ReportLevel",
    "RunResult",
    "RunSummary",
    "Transform",
    "TransformChain",
    "UnknownPluginError",
    "default_registry",
    "get_version",
    "optimize",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
