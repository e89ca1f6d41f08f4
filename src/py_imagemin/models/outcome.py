"""处理结果模型。

定义输入条目、单项结果、运行汇总和报告事件的数据结构。
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..utils.message_formatter import MessageFormatter


def percent_saved(original_size: int, saved: int) -> float:
    """节省百分比，原始大小为 0 时返回 0"""
    if original_size <= 0:
        return 0.0
    return (saved / original_size) * 100


class SourceItem(BaseModel):
    """一个待处理的输入：文件或内存中的字节"""

    model_config = ConfigDict(frozen=True)

    identifier: int | Path = Field(description="文件路径，或标准输入条目的序号")
    relative_path: str = Field(description="相对 cwd 的路径，用于报告")
    raw_bytes: bytes | None = Field(None, repr=False, description="内嵌字节（标准输入）")

    @property
    def source_path(self) -> Path | None:
        """文件系统路径；内存条目返回 None"""
        return self.identifier if isinstance(self.identifier, Path) else None

    @property
    def is_in_memory(self) -> bool:
        return self.raw_bytes is not None


class BaseOutcome(BaseModel):
    """单项结果基类"""

    relative_path: str = Field(description="相对路径")

    @property
    def success(self) -> bool:
        raise NotImplementedError


class ItemSuccess(BaseOutcome):
    """单项处理成功"""

    kind: Literal["success"] = "success"
    original_size: int = Field(ge=0, description="原始大小（字节）")
    optimized_size: int = Field(ge=0, description="优化后大小（字节）")
    destination_path: Path | None = Field(None, description="输出路径，None 为虚拟输出")
    format_name: str | None = Field(None, description="输出内容格式")
    data: bytes = Field(
        b"", repr=False, exclude=True, description="优化后的字节，仅虚拟输出时保留"
    )

    @property
    def success(self) -> bool:
        return True

    @property
    def saved(self) -> int:
        """节省的字节数，可能为负"""
        return self.original_size - self.optimized_size

    @property
    def percent(self) -> float:
        return percent_saved(self.original_size, self.saved)


class ItemFailure(BaseOutcome):
    """单项处理失败"""

    kind: Literal["failure"] = "failure"
    error_detail: str = Field(description="错误详情")
    error_type: str = Field("ItemError", description="错误类型名")

    @property
    def success(self) -> bool:
        return False


ItemOutcome = ItemSuccess | ItemFailure


class RunSummary(BaseModel):
    """运行汇总，随结果到达单调更新"""

    success_count: int = 0
    failure_count: int = 0
    total_original_bytes: int = 0
    total_saved_bytes: int = 0

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    @property
    def total_optimized_bytes(self) -> int:
        return self.total_original_bytes - self.total_saved_bytes

    @property
    def saved_percent(self) -> float:
        return percent_saved(self.total_original_bytes, self.total_saved_bytes)

    def get_summary(self) -> str:
        """汇总行"""
        return (
            f"Successfully compressed images: {self.success_count}. "
            f"Unsuccessfully compressed images: {self.failure_count}. "
            f"Total images: {self.total_count}. "
            f"Total images size: {MessageFormatter.format_bytes(self.total_original_bytes)}. "
            f"Total saved size: {MessageFormatter.format_bytes(self.total_saved_bytes)} "
            f"- {MessageFormatter.format_percent(self.saved_percent)}%."
        )


class RunResult(BaseModel):
    """一次运行的最终结果"""

    summary: RunSummary
    outcomes: list[ItemOutcome] = Field(default_factory=list, description="按完成顺序")
    first_error: str | None = Field(None, description="第一个失败的错误详情")

    @property
    def successes(self) -> list[ItemSuccess]:
        return [o for o in self.outcomes if isinstance(o, ItemSuccess)]

    @property
    def failures(self) -> list[ItemFailure]:
        return [o for o in self.outcomes if isinstance(o, ItemFailure)]


# ============================================================================
# 报告事件
# ============================================================================


class ItemSucceededEvent(BaseModel):
    """单项成功事件"""

    event: Literal["item_succeeded"] = "item_succeeded"
    relative_path: str
    position: int
    total: int
    saved_bytes: int
    percent: float

    def get_message(self) -> str:
        prefix = MessageFormatter.item_progress(
            self.relative_path, self.position, self.total
        )
        if self.saved_bytes > 0:
            return (
                f"{prefix} - saved {MessageFormatter.format_bytes(self.saved_bytes)} "
                f"- {MessageFormatter.format_percent(self.percent)}%"
            )
        return f"{prefix} - already optimized"


class ItemFailedEvent(BaseModel):
    """单项失败事件"""

    event: Literal["item_failed"] = "item_failed"
    relative_path: str
    position: int
    total: int
    error_detail: str

    def get_message(self) -> str:
        prefix = MessageFormatter.item_progress(
            self.relative_path, self.position, self.total
        )
        return f"{prefix}\nError: {self.error_detail}"


class SummaryEvent(BaseModel):
    """最终汇总事件"""

    event: Literal["summary"] = "summary"
    summary: RunSummary

    def get_message(self) -> str:
        return self.summary.get_summary()


ReportEvent = ItemSucceededEvent | ItemFailedEvent | SummaryEvent
