#!/usr/bin/env python3
"""批量图像优化演示脚本。

展示 py_imagemin 库的核心功能，包括：
- 目录批量优化（保持目录结构）
- 单个图像写入字节流
- 自定义插件链
- 错误处理和 ignore_errors
"""

import shutil
import tempfile
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageDraw

from py_imagemin import (
    BatchFailedError,
    ImageOptimizer,
    ProcessingOptions,
    ReportLevel,
    optimize,
)
from py_imagemin.engine import StreamSink
from py_imagemin.plugins import FunctionTransform, PluginRegistry, default_registry
from py_imagemin.utils import MessageFormatter


def create_sample_tree(root: Path) -> None:
    """创建演示用的图片目录"""
    for relative, size in [("logo.png", (400, 300)), ("icons/home.png", (64, 64))]:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGB", size, color="white")
        draw = ImageDraw.Draw(img)
        for i in range(30):
            x, y = (i * 17) % size[0], (i * 11) % size[1]
            draw.rectangle([x, y, x + 30, y + 20], fill=(i * 8 % 256, 90, 200))
        img.save(path, "PNG", compress_level=0)

    photo = Image.new("RGB", (640, 480), color=(30, 120, 200))
    (root / "photos").mkdir(exist_ok=True)
    photo.save(root / "photos" / "sky.jpg", "JPEG", quality=98)

    (root / "broken.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"garbage" * 10)


def demo_batch(root: Path) -> None:
    """目录批量优化"""
    print("\n📁 批量优化（保持目录结构）")

    result = optimize(
        ["**/*.png", "**/*.jpg", "!broken.png"],
        cwd=root,
        out_dir="build",
        preserve_tree=True,
        report_level=ReportLevel.VERBOSE,
        sink=StreamSink(),
    )

    for outcome in result.successes:
        print(f"  ✅ {outcome.relative_path} -> {outcome.destination_path.relative_to(root)}")


def demo_single_output(root: Path) -> None:
    """单个图像写入字节流"""
    print("\n🔄 单一输出模式")

    output = BytesIO()
    result = optimize(["logo.png"], cwd=root, output=output)
    outcome = result.successes[0]
    print(
        f"  📊 {MessageFormatter.format_bytes(outcome.original_size)} -> "
        f"{MessageFormatter.format_bytes(len(output.getvalue()))} "
        f"({MessageFormatter.format_percent(outcome.percent)}%)"
    )


def demo_custom_chain(root: Path) -> None:
    """自定义插件注册表"""
    print("\n🧩 自定义插件链")

    registry = PluginRegistry()
    registry.register("webp", lambda: default_registry.create("webp"))
    registry.register("trace", lambda: FunctionTransform(_trace, "trace"))

    options = ProcessingOptions(cwd=root, out_dir=Path("webp"), plugins=["trace", "webp"])
    result = ImageOptimizer(options, registry=registry).run(["**/*.png", "!broken.png"])

    for outcome in result.successes:
        print(f"  🖼️  {outcome.relative_path}: {outcome.format_name} {outcome.destination_path.name}")


def _trace(data: bytes) -> bytes:
    print(f"  🔍 trace: {len(data)} 字节")
    return data


def demo_errors(root: Path) -> None:
    """错误处理"""
    print("\n⚠️  错误处理")

    inputs = ["logo.png", "broken.png"]
    try:
        optimize(inputs, cwd=root, out_dir="errors")
    except BatchFailedError as e:
        print(f"  ❌ 运行失败（{e.failure_count} 个文件）: {e.first_error}")

    result = optimize(inputs, cwd=root, out_dir="errors", ignore_errors=True)
    print(f"  ℹ️  {result.summary.get_summary()}")


def main():
    """主函数"""
    print("🖼️  批量图像优化演示")
    print("=" * 50)

    root = Path(tempfile.mkdtemp(prefix="imagemin-demo-"))
    try:
        create_sample_tree(root)
        demo_batch(root)
        demo_single_output(root)
        demo_custom_chain(root)
        demo_errors(root)

        print("\n✅ 所有演示完成！")
    finally:
        shutil.rmtree(root, ignore_errors=True)


if __name__ == "__main__":
    main()
