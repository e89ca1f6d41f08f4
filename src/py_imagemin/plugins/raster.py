"""基于 Pillow 的内置栅格图像插件。

每个插件只处理自己负责的格式，其他内容原样返回，因此混合插件链可以安全地作用于任意输入。
"""

from io import BytesIO
from typing import Any, ClassVar

from PIL import Image

from ..exceptions import handle_transform_errors
from ..utils.logging_helpers import get_logger


logger = get_logger()


class PillowTransform:
    """Pillow 插件基类

    子类声明 ``formats`` 并实现 ``_encode``。
    """

    name: ClassVar[str] = "pillow"
    formats: ClassVar[frozenset[str]] = frozenset()
    # 无损插件输出变大时回退到原始字节
    keep_smaller: ClassVar[bool] = False
    # 是否处理动画图像
    supports_animation: ClassVar[bool] = False

    def apply(self, data: bytes) -> bytes:
        if not data or not self._is_candidate(data):
            return data

        result = handle_transform_errors(self.name)(self._transcode)(data)
        if self.keep_smaller and len(result) >= len(data):
            logger.debug(f"{self.name}: 输出未变小，保留原始数据")
            return data
        return result

    def _transcode(self, data: bytes) -> bytes:
        with Image.open(BytesIO(data)) as img:
            if img.format not in self.formats:
                return data
            if getattr(img, "is_animated", False) and not self.supports_animation:
                logger.debug(f"{self.name}: 跳过动画图像")
                return data
            img.load()
            buffer = BytesIO()
            self._encode(img, buffer)
            return buffer.getvalue()

    def _is_candidate(self, data: bytes) -> bool:
        """快速检查字节头，避免对无关格式调用 Pillow"""
        return any(data.startswith(magic) for magic in _MAGIC.get(self.name, (b"",)))

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        raise NotImplementedError

    @staticmethod
    def _common_params(img: Image.Image) -> dict[str, Any]:
        """保留色彩配置文件"""
        params: dict[str, Any] = {}
        if icc_profile := img.info.get("icc_profile"):
            params["icc_profile"] = icc_profile
        return params

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JpegtranTransform(PillowTransform):
    """JPEG 无损优化：保留量化表，优化霍夫曼编码并输出渐进式"""

    name = "jpegtran"
    formats = frozenset({"JPEG", "MPO"})
    keep_smaller = True

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        params = self._common_params(img)
        if exif := img.info.get("exif"):
            params["exif"] = exif
        img.save(
            buffer,
            "JPEG",
            quality="keep",
            optimize=True,
            progressive=True,
            **params,
        )


class MozjpegTransform(PillowTransform):
    """JPEG 有损重编码"""

    name = "mozjpeg"
    formats = frozenset({"JPEG", "MPO"})
    quality = 75

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        if img.mode not in ("RGB", "L", "CMYK"):
            img = img.convert("RGB")
        img.save(
            buffer,
            "JPEG",
            quality=self.quality,
            optimize=True,
            progressive=True,
            **self._common_params(img),
        )


class OptipngTransform(PillowTransform):
    """PNG 无损优化"""

    name = "optipng"
    formats = frozenset({"PNG"})
    keep_smaller = True

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        img.save(
            buffer, "PNG", optimize=True, compress_level=9, **self._common_params(img)
        )


class PngquantTransform(PillowTransform):
    """PNG 调色板量化（有损）"""

    name = "pngquant"
    formats = frozenset({"PNG"})
    colors = 256

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        if img.mode != "P":
            has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
            img = img.convert("RGBA" if has_alpha else "RGB")
            method = (
                Image.Quantize.FASTOCTREE if has_alpha else Image.Quantize.MEDIANCUT
            )
            img = img.quantize(colors=self.colors, method=method)
        img.save(buffer, "PNG", optimize=True)


class GifsicleTransform(PillowTransform):
    """GIF 优化，保留全部帧"""

    name = "gifsicle"
    formats = frozenset({"GIF"})
    keep_smaller = True
    supports_animation = True

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        img.save(buffer, "GIF", save_all=True, optimize=True)


class WebpTransform(PillowTransform):
    """把 JPEG/PNG 转换为 WebP，带透明通道的图像使用无损编码"""

    name = "webp"
    formats = frozenset({"JPEG", "MPO", "PNG"})
    quality = 75

    def _encode(self, img: Image.Image, buffer: BytesIO) -> None:
        has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if has_alpha else "RGB")
        img.save(
            buffer,
            "WEBP",
            quality=self.quality,
            lossless=has_alpha,
            method=6,
            **self._common_params(img),
        )


# 各插件负责格式的文件头
_MAGIC: dict[str, tuple[bytes, ...]] = {
    "jpegtran": (b"\xff\xd8\xff",),
    "mozjpeg": (b"\xff\xd8\xff",),
    "optipng": (b"\x89PNG\r\n\x1a\n",),
    "pngquant": (b"\x89PNG\r\n\x1a\n",),
    "gifsicle": (b"GIF87a", b"GIF89a"),
    "webp": (b"\xff\xd8\xff", b"\x89PNG\r\n\x1a\n"),
}
