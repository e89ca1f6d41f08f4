"""数据模型包。

定义批量优化相关的数据结构和模型。
"""

from .constants import ImageFormats
from .options import ExecutorType, ProcessingOptions, ReportLevel
from .outcome import (
    ItemFailedEvent,
    ItemFailure,
    ItemOutcome,
    ItemSucceededEvent,
    ItemSuccess,
    ReportEvent,
    RunResult,
    RunSummary,
    SourceItem,
    SummaryEvent,
    percent_saved,
)


__all__ = [
    "ExecutorType",
    "ImageFormats",
    "ItemFailedEvent",
    "ItemFailure",
    "ItemOutcome",
    "ItemSucceededEvent",
    "ItemSuccess",
    "ProcessingOptions",
    "ReportEvent",
    "ReportLevel",
    "RunResult",
    "RunSummary",
    "SourceItem",
    "SummaryEvent",
    "percent_saved",
]
