"""图像格式相关常量定义。

嗅探得到的格式名与扩展名之间的映射。
"""

from typing import Final


class ImageFormats:
    """格式名（Pillow 风格，大写）与扩展名的对应关系"""

    # 只定义必要的别名映射（用户友好的别名）
    ALIASES: Final[dict[str, str]] = {
        "JPG": "JPEG",
    }

    # 每种格式可接受的扩展名，第一个为首选
    EXTENSIONS: Final[dict[str, tuple[str, ...]]] = {
        "JPEG": (".jpg", ".jpeg", ".jpe", ".jfif"),
        "PNG": (".png",),
        "GIF": (".gif",),
        "WEBP": (".webp",),
        "SVG": (".svg",),
        "BMP": (".bmp",),
        "TIFF": (".tiff", ".tif"),
        "AVIF": (".avif",),
        "ICO": (".ico",),
    }

    # 已知但不需要修正扩展名的格式（Pillow 的 MPO 是多帧 JPEG）
    EQUIVALENTS: Final[dict[str, str]] = {
        "MPO": "JPEG",
    }

    @classmethod
    def normalize(cls, format_name: str) -> str:
        """标准化格式名称"""
        upper = format_name.upper()
        upper = cls.ALIASES.get(upper, upper)
        return cls.EQUIVALENTS.get(upper, upper)

    @classmethod
    def preferred_extension(cls, format_name: str) -> str | None:
        """格式的首选扩展名，未知格式返回 None"""
        extensions = cls.EXTENSIONS.get(cls.normalize(format_name))
        return extensions[0] if extensions else None

    @classmethod
    def accepts_extension(cls, format_name: str, suffix: str) -> bool:
        """扩展名是否与格式匹配；未知格式总是匹配"""
        extensions = cls.EXTENSIONS.get(cls.normalize(format_name))
        if extensions is None:
            return True
        return suffix.lower() in extensions


# SVG 嗅探时允许的前导内容
SVG_SNIFF_LIMIT: Final[int] = 4096
