"""插件包。

定义 Transform 能力接口、内置插件和插件注册表。
"""

from .base import FunctionTransform, Transform, TransformChain, as_transform
from .raster import (
    GifsicleTransform,
    JpegtranTransform,
    MozjpegTransform,
    OptipngTransform,
    PillowTransform,
    PngquantTransform,
    WebpTransform,
)
from .registry import (
    PluginRegistry,
    build_chain,
    default_registry,
    load_config_chain,
)
from .svg import SvgoTransform


__all__ = [
    "FunctionTransform",
    "GifsicleTransform",
    "JpegtranTransform",
    "MozjpegTransform",
    "OptipngTransform",
    "PillowTransform",
    "PluginRegistry",
    "PngquantTransform",
    "SvgoTransform",
    "Transform",
    "TransformChain",
    "WebpTransform",
    "as_transform",
    "build_chain",
    "default_registry",
    "load_config_chain",
]
