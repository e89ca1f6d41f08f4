"""批量优化处理引擎模块。

包含输入解析、单项处理、并发调度、结果汇总和输出路由。
"""

from .batch import BatchProcessor
from .concurrent_executor import ConcurrentExecutor
from .processor import process_item
from .reporter import (
    CollectingSink,
    NullSink,
    ReportSink,
    ResultAggregator,
    RichConsoleSink,
    StreamSink,
)
from .resolver import resolve_inputs, stdin_item
from .router import OutputRouter


__all__ = [
    "BatchProcessor",
    "CollectingSink",
    "ConcurrentExecutor",
    "NullSink",
    "OutputRouter",
    "ReportSink",
    "ResultAggregator",
    "RichConsoleSink",
    "StreamSink",
    "process_item",
    "resolve_inputs",
    "stdin_item",
]
