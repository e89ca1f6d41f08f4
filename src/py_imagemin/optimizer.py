"""批量图像优化器接口。

一次运行的完整流程：构建插件链 → 解析输入 → 路由预检查 → 并发处理 → 输出路由。
配置错误和路由错误在任何输入被读取之前抛出；单项错误只在全部输入处理完后才升级为运行失败。
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any, BinaryIO

from .engine.batch import BatchProcessor
from .engine.reporter import ReportSink
from .engine.resolver import resolve_inputs, stdin_item
from .engine.router import OutputRouter
from .exceptions import BatchFailedError
from .models import ProcessingOptions, RunResult, SourceItem
from .plugins.base import TransformChain
from .plugins.registry import PluginRegistry, build_chain, default_registry
from .utils.logging_helpers import get_logger


logger = get_logger()

InputSpec = Sequence[str | Path] | str | Path | bytes | bytearray


class ImageOptimizer:
    """批量图像优化器。

    持有一次运行所需的不可变选项、插件注册表、报告 sink 和单一输出流。
    """

    def __init__(
        self,
        options: ProcessingOptions | None = None,
        registry: PluginRegistry | None = None,
        sink: ReportSink | None = None,
        output: BinaryIO | None = None,
    ):
        """初始化优化器。

        Args:
            options: 处理选项，None 时使用默认值
            registry: 插件注册表
            sink: 报告事件接收端（stderr 一侧）
            output: 单一输出的字节流（stdout 一侧）
        """
        self.options = options or ProcessingOptions()
        self.registry = registry or default_registry
        self.sink = sink
        self.output = output
        self.router = OutputRouter(self.options)

    def build_chain(self) -> TransformChain:
        """解析插件链

        Raises:
            ConfigurationError: 未知插件或配置模块无法加载
        """
        return build_chain(self.options, self.registry)

    def collect_items(self, inputs: InputSpec) -> list[SourceItem]:
        """把输入说明转换为条目列表"""
        match inputs:
            case bytes() | bytearray():
                return [stdin_item(bytes(inputs))]
            case str() | Path():
                return resolve_inputs([inputs], self.options.cwd)
            case _:
                return resolve_inputs(inputs, self.options.cwd)

    def run(self, inputs: InputSpec) -> RunResult:
        """执行一次完整的优化运行。

        Args:
            inputs: 路径/glob 列表，或标准输入的字节

        Returns:
            RunResult: 汇总和全部单项结果

        Raises:
            ConfigurationError: 插件或配置错误（调度前）
            MultipleOutputsError: 没有输出目录却有多个输入（调度前）
            BatchFailedError: 存在失败且未设置 ignore_errors（全部处理完之后）

        Examples:
            >>> optimizer = ImageOptimizer(ProcessingOptions(out_dir=Path("build")))
            >>> result = optimizer.run(["images/*.png"])
            >>> print(result.summary.get_summary())
        """
        chain = self.build_chain()
        items = self.collect_items(inputs)
        self.router.check_dispatch(len(items))

        logger.debug(f"开始处理 {len(items)} 个输入，插件链: {chain.names}")
        processor = BatchProcessor(chain, self.options, sink=self.sink)
        result = processor.process(items)

        self.router.route(result.outcomes, self.output)

        if result.summary.failure_count and not self.options.ignore_errors:
            raise BatchFailedError(
                result.first_error or "image processing failed",
                result.summary.failure_count,
            )
        return result


def optimize(
    inputs: InputSpec,
    sink: ReportSink | None = None,
    output: BinaryIO | None = None,
    registry: PluginRegistry | None = None,
    **kwargs: Any,
) -> RunResult:
    """便捷的优化函数

    Args:
        inputs: 路径/glob 列表，或图像字节
        sink: 报告事件接收端
        output: 单一输出的字节流
        registry: 插件注册表
        **kwargs: ProcessingOptions 字段，包括：
            - cwd: 工作目录
            - out_dir: 输出目录
            - preserve_tree: 是否保持目录结构
            - plugins: 插件名称列表
            - config_path: 配置模块路径
            - max_concurrency: 最大并发数
            - ignore_errors: 是否忽略单项错误
            - report_level: 报告级别

    Returns:
        RunResult: 运行结果

    Examples:
        >>> result = optimize(["photos/**/*.jpg"], out_dir="build", preserve_tree=True)
        >>> print(f"成功: {result.summary.success_count}")
    """
    options = ProcessingOptions(**kwargs)
    optimizer = ImageOptimizer(options, registry=registry, sink=sink, output=output)
    return optimizer.run(inputs)
