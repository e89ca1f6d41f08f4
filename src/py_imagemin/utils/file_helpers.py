"""工具函数模块。

提供内容嗅探和文件读写相关的实用工具函数。
"""

import re
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from ..models.constants import SVG_SNIFF_LIMIT, ImageFormats
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()

_SVG_PATTERN = re.compile(rb"<svg[\s>]", re.IGNORECASE)


def sniff_format(data: bytes) -> str | None:
    """根据内容判断图像格式，不信任扩展名。

    Args:
        data: 图像字节

    Returns:
        str | None: 标准化的格式名（如 "PNG"、"WEBP"、"SVG"），无法识别时返回 None
    """
    if not data:
        return None

    try:
        with Image.open(BytesIO(data)) as img:
            if img.format:
                return ImageFormats.normalize(img.format)
    except (UnidentifiedImageError, DecompressionBombError, OSError, ValueError):
        pass

    if is_svg(data):
        return "SVG"

    logger.debug("无法识别的图像内容")
    return None


def is_svg(data: bytes) -> bool:
    """检查字节是否为 SVG 文档"""
    head = data[:SVG_SNIFF_LIMIT].lstrip()
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:].lstrip()
    if not head.startswith(b"<"):
        return False
    return _SVG_PATTERN.search(head) is not None


def read_source(path: Path) -> bytes:
    """读取源文件字节"""
    if not path.is_file():
        raise FileNotFoundError(MessageFormatter.file_not_found(path))
    return path.read_bytes()


def write_output(path: Path, data: bytes) -> Path:
    """写入字节，必要时创建中间目录"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path
