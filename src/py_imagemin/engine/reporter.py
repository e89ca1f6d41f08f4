"""结果汇总与报告模块。

ResultAggregator 逐个接收单项结果，更新计数并按报告级别向 sink 输出事件。
"""

import sys
import threading
from typing import IO, Protocol

from rich.console import Console
from rich.text import Text

from ..models.options import ReportLevel
from ..models.outcome import (
    ItemFailedEvent,
    ItemFailure,
    ItemOutcome,
    ItemSucceededEvent,
    ItemSuccess,
    ReportEvent,
    RunSummary,
    SummaryEvent,
)
from ..utils.logging_helpers import get_logger


logger = get_logger()


class ReportSink(Protocol):
    """报告事件的接收端"""

    def emit(self, event: ReportEvent) -> None: ...


class NullSink:
    """丢弃所有事件"""

    def emit(self, event: ReportEvent) -> None:
        del event


class CollectingSink:
    """把事件保存在内存中"""

    def __init__(self) -> None:
        self.events: list[ReportEvent] = []
        self._lock = threading.Lock()

    def emit(self, event: ReportEvent) -> None:
        with self._lock:
            self.events.append(event)

    def messages(self) -> list[str]:
        with self._lock:
            return [event.get_message() for event in self.events]


class StreamSink:
    """把事件逐行写入文本流（默认 stderr）"""

    SYMBOLS = {
        "item_succeeded": "✔",
        "item_failed": "✖",
        "summary": "ℹ",
    }

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.stream = stream
        self._lock = threading.Lock()

    def emit(self, event: ReportEvent) -> None:
        stream = self.stream or sys.stderr
        line = f"{self.SYMBOLS[event.event]} {event.get_message()}\n"
        # 整行一次写入，避免并发输出交错
        with self._lock:
            stream.write(line)
            stream.flush()


class RichConsoleSink:
    """使用 rich 在 stderr 上输出带样式的事件"""

    STYLES = {
        "item_succeeded": ("✔", "green"),
        "item_failed": ("✖", "red"),
        "summary": ("ℹ", "blue"),
    }

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True, highlight=False)
        self._lock = threading.Lock()

    def emit(self, event: ReportEvent) -> None:
        symbol, style = self.STYLES[event.event]
        with self._lock:
            self.console.print(
                Text.assemble((symbol, style), " ", event.get_message()),
                soft_wrap=True,
            )


class ResultAggregator:
    """结果汇总器

    由运行持有，只在一个线程中被调用；计数器的更新仍然加锁，
    多线程直接投递结果时也能保持一致。
    """

    def __init__(
        self,
        total: int,
        report_level: ReportLevel = ReportLevel.SILENT,
        sink: ReportSink | None = None,
    ):
        self.total = total
        self.report_level = ReportLevel(report_level)
        self.sink = sink or NullSink()
        self.summary = RunSummary()
        self.first_error: str | None = None
        self.outcomes: list[ItemOutcome] = []
        self._seen: set[int] = set()
        self._finalized = False
        self._lock = threading.Lock()

    def record(self, outcome: ItemOutcome) -> None:
        """累计一个单项结果并按报告级别输出事件

        Raises:
            ValueError: 同一结果重复提交或汇总已结束
        """
        with self._lock:
            if self._finalized:
                raise ValueError("汇总已结束，不能再记录结果")
            if id(outcome) in self._seen:
                raise ValueError(f"结果重复提交: {outcome.relative_path}")
            # 保留引用，保证 id 在运行期间不被复用
            self._seen.add(id(outcome))
            self.outcomes.append(outcome)

            summary = self.summary
            if isinstance(outcome, ItemFailure):
                summary.failure_count += 1
                if self.first_error is None:
                    self.first_error = outcome.error_detail
                event: ReportEvent | None = self._failure_event(outcome)
            else:
                summary.success_count += 1
                summary.total_original_bytes += outcome.original_size
                summary.total_saved_bytes += outcome.saved
                event = self._success_event(outcome)

        if event is not None:
            self.sink.emit(event)

    def finalize(self) -> RunSummary:
        """结束汇总；verbose 级别输出最终汇总事件"""
        with self._lock:
            if self._finalized:
                raise ValueError("汇总已结束")
            self._finalized = True
            summary = self.summary.model_copy()

        logger.debug(
            f"汇总: 成功 {summary.success_count}, 失败 {summary.failure_count}"
        )
        if self.report_level.is_verbose:
            self.sink.emit(SummaryEvent(summary=summary))
        return summary

    @property
    def settled(self) -> int:
        return self.summary.total_count

    def _success_event(self, outcome: ItemSuccess) -> ItemSucceededEvent | None:
        if not self.report_level.is_verbose:
            return None
        return ItemSucceededEvent(
            relative_path=outcome.relative_path,
            position=self.summary.total_count,
            total=self.total,
            saved_bytes=outcome.saved,
            percent=outcome.percent,
        )

    def _failure_event(self, outcome: ItemFailure) -> ItemFailedEvent | None:
        if not self.report_level.reports_failures:
            return None
        return ItemFailedEvent(
            relative_path=outcome.relative_path,
            position=self.summary.total_count,
            total=self.total,
            error_detail=outcome.error_detail,
        )
