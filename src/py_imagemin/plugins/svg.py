"""内置 SVG 压缩插件。"""

import re

from ..exceptions import TransformError
from ..utils.file_helpers import is_svg


_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_METADATA = re.compile(r"<metadata\b.*?</metadata>|<metadata\b[^>]*/>", re.DOTALL)
_BETWEEN_TAGS = re.compile(r">\s+<")
_ATTR_WHITESPACE = re.compile(r"[ \t\r\n]+")


class SvgoTransform:
    """SVG 文本压缩：去掉注释、metadata 元素和标签之间的空白"""

    name = "svgo"

    def apply(self, data: bytes) -> bytes:
        if not data or not is_svg(data):
            return data

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise TransformError(f"{self.name}: SVG 不是合法的 UTF-8: {e}", self.name) from e

        text = _COMMENT.sub("", text)
        text = _METADATA.sub("", text)
        text = _BETWEEN_TAGS.sub("><", text)
        text = _collapse_tag_whitespace(text)
        result = text.strip().encode("utf-8")

        return result if len(result) < len(data) else data

    def __repr__(self) -> str:
        return "SvgoTransform()"


def _collapse_tag_whitespace(text: str) -> str:
    """合并标签内部（属性之间）的连续空白，不改动文本节点"""
    parts = re.split(r"(<[^>]*>)", text)
    for index, part in enumerate(parts):
        if part.startswith("<") and not part.startswith("<![CDATA["):
            parts[index] = _ATTR_WHITESPACE.sub(" ", part).replace(" />", "/>")
    return "".join(parts)
