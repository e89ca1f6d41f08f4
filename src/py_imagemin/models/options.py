"""处理选项模型。

定义一次运行中不可变的处理参数。
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import get_config


class ReportLevel(str, Enum):
    """报告级别枚举"""

    SILENT = "silent"  # 不输出任何事件
    QUIET = "quiet"  # 只输出失败事件
    VERBOSE = "verbose"  # 输出所有事件和最终汇总

    @property
    def is_verbose(self) -> bool:
        return self is ReportLevel.VERBOSE

    @property
    def reports_failures(self) -> bool:
        """verbose 和 quiet 都会输出失败事件"""
        return self in (ReportLevel.VERBOSE, ReportLevel.QUIET)


class ExecutorType(str, Enum):
    """执行器类型枚举"""

    THREAD = "thread"
    PROCESS = "process"


def _default_concurrency() -> int:
    return get_config().processing.MAX_CONCURRENCY


def _default_executor() -> ExecutorType:
    return ExecutorType(get_config().processing.EXECUTOR_TYPE)


class ProcessingOptions(BaseModel):
    """运行期处理选项，构建后不可变"""

    model_config = ConfigDict(frozen=True)

    cwd: Path = Field(default_factory=Path.cwd, description="相对路径解析的基准目录")
    out_dir: Path | None = Field(None, description="输出根目录")
    preserve_tree: bool = Field(False, description="在输出目录中保持目录结构")
    max_concurrency: int = Field(
        default_factory=_default_concurrency, ge=1, description="最大并发数"
    )
    ignore_errors: bool = Field(False, description="单个文件失败不视为整体失败")
    report_level: ReportLevel = Field(ReportLevel.SILENT, description="报告级别")

    # 插件设置
    plugins: tuple[str, ...] | None = Field(None, description="插件名称，None 为默认插件")
    config_path: Path | None = Field(None, description="导出 plugins 的配置模块路径")

    executor_type: ExecutorType = Field(
        default_factory=_default_executor, description="执行器类型"
    )

    @field_validator("cwd")
    @classmethod
    def resolve_cwd(cls, v: Path) -> Path:
        return v.expanduser().resolve()

    @field_validator("out_dir")
    @classmethod
    def resolve_out_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("plugins", mode="before")
    @classmethod
    def normalize_plugins(cls, v: object) -> object:
        if isinstance(v, str):
            return (v,)
        if isinstance(v, list):
            return tuple(v)
        return v

    def resolve_out_dir_path(self) -> Path | None:
        """输出目录的绝对路径（相对路径基于 cwd）"""
        if self.out_dir is None:
            return None
        if self.out_dir.is_absolute():
            return self.out_dir
        return self.cwd / self.out_dir
