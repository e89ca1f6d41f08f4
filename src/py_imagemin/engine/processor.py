"""单项处理模块。

对一个输入执行完整的插件链：读取、转换、嗅探格式、计算输出路径、写入。
"""

from pathlib import Path

from ..config import get_config
from ..exceptions import (
    DestinationWriteError,
    ErrorHandler,
    SourceReadError,
)
from ..models.options import ProcessingOptions
from ..models.outcome import ItemOutcome, ItemSuccess, SourceItem
from ..plugins.base import TransformChain
from ..utils.file_helpers import read_source, sniff_format, write_output
from ..utils.logging_helpers import get_logger
from ..utils.naming_helpers import FileNamingStrategy, PathResolver


logger = get_logger()


def process_item(
    item: SourceItem, chain: TransformChain, options: ProcessingOptions
) -> ItemOutcome:
    """处理单个输入。

    统一的单项处理入口，适用于线程池和进程池。
    任何失败都被转换为 ItemFailure，不会重试，也不会抛出。

    Args:
        item: 输入条目
        chain: 插件链
        options: 处理选项

    Returns:
        ItemOutcome: 成功或失败结果
    """
    try:
        original = _read(item)
        optimized = chain.run(original)
        format_name = sniff_format(optimized)

        destination = _destination_for(item, options, format_name)
        if destination is not None:
            _write(destination, optimized)

        logger.debug(
            f"处理成功: {item.relative_path} {len(original)} -> {len(optimized)} 字节"
        )
        return ItemSuccess(
            relative_path=item.relative_path,
            original_size=len(original),
            optimized_size=len(optimized),
            destination_path=destination,
            format_name=format_name,
            # 已写入文件的结果不保留字节，只有单一输出需要
            data=optimized if destination is None else b"",
        )

    except Exception as e:
        return ErrorHandler.handle_item_error(e, item.relative_path)


def _read(item: SourceItem) -> bytes:
    """获取原始字节：内嵌字节或读取文件"""
    if item.raw_bytes is not None:
        return item.raw_bytes

    path = item.source_path
    if path is None:
        raise SourceReadError(f"条目没有可读取的来源: {item.identifier}")
    try:
        return read_source(path)
    except OSError as e:
        raise SourceReadError(f"cannot read {path}: {e}", path) from e


def _destination_for(
    item: SourceItem, options: ProcessingOptions, format_name: str | None
) -> Path | None:
    """计算输出路径；未配置输出目录时为虚拟输出"""
    out_dir = options.resolve_out_dir_path()
    if out_dir is None:
        return None

    path = item.source_path
    if path is None:
        # 标准输入条目：stdin + 输出格式的扩展名
        name = FileNamingStrategy.correct_extension(
            get_config().processing.STDIN_NAME, format_name
        )
        return out_dir / name

    return PathResolver.resolve_destination(
        source_path=path,
        out_dir=out_dir,
        cwd=options.cwd,
        preserve_tree=options.preserve_tree,
        format_name=format_name,
    )


def _write(destination: Path, data: bytes) -> None:
    try:
        write_output(destination, data)
    except OSError as e:
        raise DestinationWriteError(
            f"cannot write {destination}: {e}", destination
        ) from e
