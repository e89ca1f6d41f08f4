"""测试配置文件。

提供测试所需的fixtures和配置。
"""

import threading
import time
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from py_imagemin.config import reset_config


PNG_MAGIC = b"\x89PNG\r\n\x1a\n"

SVG_SOURCE = b"""<?xml version="1.0" encoding="UTF-8"?>
<!-- generated by a drawing tool -->
<svg xmlns="http://www.w3.org/2000/svg"   width="100"   height="100">
    <metadata>
        <title>sample</title>
    </metadata>
    <rect   x="10"   y="10"   width="80"   height="80"   fill="red" />
    <circle cx="50" cy="50" r="20" fill="blue" />
</svg>
"""


def _draw_pattern(img: Image.Image) -> None:
    draw = ImageDraw.Draw(img)
    for i in range(20):
        x, y = (i * 13) % img.width, (i * 7) % img.height
        color = (i * 12 % 256, i * 5 % 256, 255 - i * 9 % 256)
        draw.rectangle([x, y, x + 20, y + 15], fill=color)


def make_png(size: tuple[int, int] = (120, 90), mode: str = "RGB") -> bytes:
    """未压缩的 PNG，任何优化都能让它变小"""
    img = Image.new(mode, size, color="white")
    _draw_pattern(img)
    buffer = BytesIO()
    img.save(buffer, "PNG", compress_level=0)
    return buffer.getvalue()


def make_jpeg(size: tuple[int, int] = (120, 90), quality: int = 95) -> bytes:
    img = Image.new("RGB", size, color="white")
    _draw_pattern(img)
    buffer = BytesIO()
    img.save(buffer, "JPEG", quality=quality)
    return buffer.getvalue()


def make_gif(frames: int = 3) -> bytes:
    images = [Image.new("RGB", (40, 40), color=(i * 80, 40, 0)) for i in range(frames)]
    buffer = BytesIO()
    images[0].save(buffer, "GIF", save_all=True, append_images=images[1:])
    return buffer.getvalue()


def corrupt_png() -> bytes:
    """PNG 文件头加上无效数据，会被 PNG 插件认领并失败"""
    return PNG_MAGIC + b"this is not a png body" * 4


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """隔离环境变量对全局配置的影响"""
    for name in (
        "IMAGEMIN_MAX_CONCURRENCY",
        "IMAGEMIN_EXECUTOR",
        "IMAGEMIN_LOG_LEVEL",
        "IMAGEMIN_ENABLE_FILE_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    monkeypatch.undo()
    reset_config()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """带有各种格式图片的工作目录

    workspace/
        photo.jpg
        plain.png
        anim.gif
        icon.svg
        notes.txt
        a/b/c.png
    """
    (tmp_path / "photo.jpg").write_bytes(make_jpeg())
    (tmp_path / "plain.png").write_bytes(make_png())
    (tmp_path / "anim.gif").write_bytes(make_gif())
    (tmp_path / "icon.svg").write_bytes(SVG_SOURCE)
    (tmp_path / "notes.txt").write_text("not an image", encoding="utf-8")

    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    (nested / "c.png").write_bytes(make_png((64, 64)))
    return tmp_path


@pytest.fixture
def broken_png(workspace: Path) -> Path:
    path = workspace / "broken.png"
    path.write_bytes(corrupt_png())
    return path


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


class InFlightCounter:
    """记录同时运行的调用数量的插件"""

    name = "counter"

    def __init__(self, delay: float = 0.02):
        self.delay = delay
        self.current = 0
        self.peak = 0
        self.calls = 0
        self._lock = threading.Lock()

    def apply(self, data: bytes) -> bytes:
        with self._lock:
            self.current += 1
            self.calls += 1
            self.peak = max(self.peak, self.current)
        try:
            time.sleep(self.delay)
            return data
        finally:
            with self._lock:
                self.current -= 1


@pytest.fixture
def counter() -> InFlightCounter:
    return InFlightCounter()
