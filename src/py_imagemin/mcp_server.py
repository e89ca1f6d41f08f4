"""批量图像优化 MCP 服务器。

把同一个优化流程以 MCP 工具的形式提供。MCP 工具没有字节输出流，因此必须指定输出目录。
"""

import logging
from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .engine.reporter import CollectingSink
from .exceptions import ConfigurationError, ImageminError
from .models import ItemFailure, ProcessingOptions, ReportLevel, RunResult
from .optimizer import ImageOptimizer
from .plugins.registry import default_registry
from .utils.message_formatter import MessageFormatter


MCPOptimizeResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def configuration_error(message: str) -> dict[str, Any]:
        """插件或配置模块错误"""
        return MCPResponseBuilder.error(message=message, error_type="configuration")

    @staticmethod
    def run_result(result: RunResult, error: str | None = None) -> dict[str, Any]:
        """把运行结果转换为响应"""
        summary = result.summary
        return {
            "success": error is None,
            "error": error,
            "summary": {
                "success_count": summary.success_count,
                "failure_count": summary.failure_count,
                "total_count": summary.total_count,
                "total_original_bytes": summary.total_original_bytes,
                "total_optimized_bytes": summary.total_optimized_bytes,
                "total_saved_bytes": summary.total_saved_bytes,
                "saved_percent": round(summary.saved_percent, 2),
                "text": summary.get_summary(),
            },
            "results": [_format_outcome(outcome) for outcome in result.outcomes],
        }


def _format_outcome(outcome: Any) -> dict[str, Any]:
    """格式化单项结果"""
    if isinstance(outcome, ItemFailure):
        return {
            "path": outcome.relative_path,
            "success": False,
            "error": outcome.error_detail,
        }
    return {
        "path": outcome.relative_path,
        "success": True,
        "destination": str(outcome.destination_path) if outcome.destination_path else None,
        "original_size": outcome.original_size,
        "optimized_size": outcome.optimized_size,
        "saved_bytes": outcome.saved,
        "saved_percent": round(outcome.percent, 2),
        "format": outcome.format_name,
    }


logger = logging.getLogger(__name__)

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("批量图像优化服务")


@mcp.tool()
def optimize_images(
    inputs: list[str],
    out_dir: str,
    cwd: str | None = None,
    plugins: list[str] | None = None,
    config_path: str | None = None,
    preserve_tree: bool = False,
    max_concurrency: int | None = None,
    ignore_errors: bool = False,
) -> MCPOptimizeResponse:
    """批量优化图像并写入输出目录

    Args:
        inputs: 文件路径或 glob 模式，相对于 cwd
        out_dir: 输出目录
        cwd: 工作目录（默认服务器进程的工作目录）
        plugins: 插件名称，None 使用默认插件
        config_path: 导出 plugins 的配置模块
        preserve_tree: 是否在输出目录中保持目录结构
        max_concurrency: 最大并发数
        ignore_errors: 单项失败时是否仍视为成功

    Returns:
        dict: 汇总、每个文件的结果和错误信息
    """
    try:
        # 失败由响应体表达，优化器本身总是返回完整结果
        settings: dict[str, Any] = {
            "out_dir": Path(out_dir),
            "plugins": plugins,
            "config_path": Path(config_path) if config_path else None,
            "preserve_tree": preserve_tree,
            "ignore_errors": True,
            "report_level": ReportLevel.SILENT,
        }
        if cwd:
            settings["cwd"] = Path(cwd)
        if max_concurrency is not None:
            settings["max_concurrency"] = max_concurrency

        optimizer = ImageOptimizer(ProcessingOptions(**settings), sink=CollectingSink())
        result = optimizer.run(inputs)

        error = None
        if result.summary.failure_count and not ignore_errors:
            error = result.first_error
        return MCPResponseBuilder.run_result(result, error)

    except ConfigurationError as e:
        logger.error(MessageFormatter.operation_failed("加载插件", config_path or plugins, e))
        return MCPResponseBuilder.configuration_error(e.message)
    except ImageminError as e:
        return MCPResponseBuilder.error(e.message, "processing")
    except Exception as e:
        logger.error(MessageFormatter.operation_failed("批量优化", inputs, e))
        return MCPResponseBuilder.error(str(e), "processing")


@mcp.tool()
def list_plugins() -> dict[str, Any]:
    """列出可用插件和默认插件"""
    from .config import get_config

    return {
        "success": True,
        "plugins": default_registry.names(),
        "default": list(get_config().processing.DEFAULT_PLUGINS),
    }


def main() -> None:
    """启动 MCP 服务器"""
    logging.basicConfig(level=logging.INFO)
    logger.info("启动批量图像优化 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
