"""文件命名工具模块。

计算输出路径，并按嗅探到的内容格式修正扩展名。
"""

import os
from pathlib import Path

from ..models.constants import ImageFormats


class FileNamingStrategy:
    """文件命名策略类"""

    @staticmethod
    def correct_extension(filename: str, format_name: str | None) -> str:
        """按实际输出格式修正扩展名

        例如 PNG 输入经 webp 插件输出 WebP 内容时，``a.png`` 变为 ``a.webp``。
        无法识别的格式保持原扩展名。

        Args:
            filename: 原始文件名
            format_name: 嗅探到的输出格式

        Returns:
            str: 修正后的文件名
        """
        if not format_name:
            return filename

        path = Path(filename)
        if path.suffix and ImageFormats.accepts_extension(format_name, path.suffix):
            return filename

        preferred = ImageFormats.preferred_extension(format_name)
        if preferred is None:
            return filename
        return f"{path.stem if path.suffix else path.name}{preferred}"


class PathResolver:
    """输出路径解析器"""

    @staticmethod
    def resolve_destination(
        source_path: Path,
        out_dir: Path,
        cwd: Path,
        preserve_tree: bool = False,
        format_name: str | None = None,
    ) -> Path:
        """解析输出路径

        ``out_dir`` + （保持目录结构时）源文件所在目录相对 ``cwd`` 的路径 + 文件名。

        Args:
            source_path: 源文件路径
            out_dir: 输出根目录
            cwd: 工作目录
            preserve_tree: 是否保持目录结构
            format_name: 输出内容格式，用于修正扩展名

        Returns:
            Path: 输出路径
        """
        parent = Path()
        if preserve_tree:
            parent = Path(os.path.relpath(source_path.parent, cwd))

        filename = FileNamingStrategy.correct_extension(source_path.name, format_name)
        return out_dir / parent / filename
