"""批量处理器模块。

把输入条目交给并发执行器，并将结果按完成顺序逐个交给汇总器。
"""

from collections.abc import Callable, Sequence
from functools import partial

from ..models.options import ProcessingOptions
from ..models.outcome import ItemOutcome, RunResult, SourceItem
from ..plugins.base import TransformChain
from ..utils.logging_helpers import get_logger
from .concurrent_executor import ConcurrentExecutor
from .processor import process_item
from .reporter import ReportSink, ResultAggregator


logger = get_logger()

TaskFunction = Callable[[SourceItem, TransformChain, ProcessingOptions], ItemOutcome]


class BatchProcessor:
    """批量图像处理器

    在并发上限内处理全部输入；单项失败只记录在结果中，批量总会处理完所有输入。
    """

    def __init__(
        self,
        chain: TransformChain,
        options: ProcessingOptions,
        sink: ReportSink | None = None,
        task_function: TaskFunction = process_item,
    ):
        """初始化批量处理器

        Args:
            chain: 插件链，在所有任务之间只读共享
            options: 处理选项
            sink: 报告事件接收端
            task_function: 单项处理函数
        """
        self.chain = chain
        self.options = options
        self.sink = sink
        self.task_function = task_function
        self.concurrent_executor = ConcurrentExecutor(
            options.max_concurrency, options.executor_type
        )

    def process(self, items: Sequence[SourceItem]) -> RunResult:
        """处理全部输入

        Args:
            items: 有序的输入条目

        Returns:
            RunResult: 汇总和全部单项结果
        """
        aggregator = ResultAggregator(
            total=len(items),
            report_level=self.options.report_level,
            sink=self.sink,
        )

        task = partial(self.task_function, chain=self.chain, options=self.options)
        for outcome in self.concurrent_executor.execute_tasks(items, task):
            aggregator.record(outcome)

        summary = aggregator.finalize()
        if summary.total_count != len(items):
            # 执行器保证每个输入恰好一个结果
            raise RuntimeError(
                f"结果数量不一致: {summary.total_count} != {len(items)}"
            )

        return self._create_run_result(aggregator)

    def _create_run_result(self, aggregator: ResultAggregator) -> RunResult:
        """创建运行结果"""
        return RunResult(
            summary=aggregator.summary,
            outcomes=aggregator.outcomes,
            first_error=aggregator.first_error,
        )
