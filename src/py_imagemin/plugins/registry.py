"""插件注册表模块。

把插件名称解析为 Transform，并加载导出 ``plugins`` 的配置模块。
解析在调度开始前只执行一次，任何错误都是致命的配置错误。
"""

import importlib.util
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from ..config import get_config
from ..exceptions import ConfigLoadError, InvalidChainError, UnknownPluginError
from ..models.options import ProcessingOptions
from ..utils.logging_helpers import get_logger
from .base import Transform, TransformChain
from .raster import (
    GifsicleTransform,
    JpegtranTransform,
    MozjpegTransform,
    OptipngTransform,
    PngquantTransform,
    WebpTransform,
)
from .svg import SvgoTransform


logger = get_logger()

TransformFactory = Callable[[], Transform]


class PluginRegistry:
    """插件名称到工厂函数的静态注册表"""

    def __init__(self, factories: dict[str, TransformFactory] | None = None):
        self._factories: dict[str, TransformFactory] = dict(factories or {})

    def register(self, name: str, factory: TransformFactory) -> None:
        """注册插件工厂，同名覆盖"""
        key = self._normalize(name)
        if not key:
            raise InvalidChainError("插件名称不能为空")
        self._factories[key] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._normalize(name) in self._factories

    def create(self, name: str) -> Transform:
        """创建单个插件

        Raises:
            UnknownPluginError: 名称未注册
        """
        factory = self._factories.get(self._normalize(name))
        if factory is None:
            raise UnknownPluginError(name)
        return factory()

    def resolve(self, names: Iterable[str] | None = None) -> TransformChain:
        """按名称构建插件链，None 表示默认插件集

        Raises:
            UnknownPluginError: 任意名称未注册
        """
        selected = list(names) if names is not None else list(
            get_config().processing.DEFAULT_PLUGINS
        )
        chain = TransformChain(self.create(name) for name in selected)
        logger.debug(f"插件链: {chain.names}")
        return chain

    @staticmethod
    def _normalize(name: str) -> str:
        # 兼容 "imagemin-optipng" 形式的完整包名
        key = name.strip().lower()
        return key.removeprefix("imagemin-")


def _builtin_factories() -> dict[str, TransformFactory]:
    return {
        "gifsicle": GifsicleTransform,
        "jpegtran": JpegtranTransform,
        "mozjpeg": MozjpegTransform,
        "optipng": OptipngTransform,
        "pngquant": PngquantTransform,
        "svgo": SvgoTransform,
        "webp": WebpTransform,
    }


# 全局插件注册表
default_registry = PluginRegistry(_builtin_factories())


def load_config_chain(
    config_path: str | Path,
    cwd: Path | None = None,
    registry: PluginRegistry | None = None,
) -> TransformChain:
    """从配置模块加载插件链

    配置模块需导出 ``plugins``：插件对象、``bytes -> bytes`` 函数或已注册的插件名称。

    Args:
        config_path: 配置模块路径
        cwd: 相对路径的基准目录
        registry: 解析插件名称使用的注册表

    Returns:
        TransformChain: 插件链

    Raises:
        ConfigLoadError: 模块无法加载或 plugins 不合法
    """
    registry = registry or default_registry
    path = Path(config_path).expanduser()
    if not path.is_absolute() and cwd is not None:
        path = cwd / path

    try:
        module = _import_module(path)
        plugins = getattr(module, "plugins", None)
        if plugins is None:
            raise InvalidChainError('config does not export "plugins"')
        if isinstance(plugins, (str, bytes)) or not isinstance(plugins, Sequence):
            raise InvalidChainError('"plugins" must be a list')
        if not plugins:
            raise InvalidChainError('"plugins" must not be empty')

        stages = [
            registry.create(entry) if isinstance(entry, str) else entry
            for entry in plugins
        ]
        chain = TransformChain(stages)
    except ConfigLoadError:
        raise
    except Exception as e:
        logger.debug(f"配置模块加载失败: {path} - {e}")
        raise ConfigLoadError(path, e) from e

    logger.debug(f"从配置模块加载插件链: {path} -> {chain.names}")
    return chain


def _import_module(path: Path):
    if not path.is_file():
        raise FileNotFoundError(f"No such file: {path}")

    module_name = f"_imagemin_config_{abs(hash(str(path.resolve())))}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"not a python module: {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def build_chain(
    options: ProcessingOptions, registry: PluginRegistry | None = None
) -> TransformChain:
    """按处理选项构建插件链

    配置模块优先于插件名称。
    """
    registry = registry or default_registry
    if options.config_path is not None:
        return load_config_chain(options.config_path, options.cwd, registry)
    return registry.resolve(options.plugins)
