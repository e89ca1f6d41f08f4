"""输入解析模块。

把路径、glob 模式或标准输入字节展开为有序的 SourceItem 列表。
"""

import glob
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from ..config import get_config
from ..models.outcome import SourceItem
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter


logger = get_logger()


def resolve_inputs(specifiers: Iterable[str | Path], cwd: Path) -> list[SourceItem]:
    """展开输入说明符

    - 已存在的文件按原样加入
    - 含通配符的模式在 cwd 下展开（支持 ``**``），只保留文件
    - 以 ``!`` 开头的模式用于排除
    - 去重并保持首次出现的顺序

    Args:
        specifiers: 路径或 glob 模式
        cwd: 相对路径的基准目录

    Returns:
        list[SourceItem]: 有序的输入条目
    """
    cwd = Path(cwd).resolve()
    includes: list[str] = []
    excludes: list[str] = []
    for spec in specifiers:
        text = str(spec)
        if text.startswith("!"):
            excludes.append(text[1:])
        elif text:
            includes.append(text)

    excluded = {path for pattern in excludes for path in _expand(pattern, cwd)}

    seen: set[Path] = set()
    items: list[SourceItem] = []
    for pattern in includes:
        matched = False
        for path in _expand(pattern, cwd):
            matched = True
            if path in excluded or path in seen:
                continue
            seen.add(path)
            items.append(
                SourceItem(identifier=path, relative_path=_relative_to(path, cwd))
            )
        if not matched:
            logger.debug(MessageFormatter.no_match(pattern, cwd))

    logger.debug(f"解析得到 {len(items)} 个输入文件")
    return items


def stdin_item(data: bytes) -> SourceItem:
    """标准输入模式下唯一的虚拟条目"""
    return SourceItem(
        identifier=0,
        relative_path=get_config().processing.STDIN_NAME,
        raw_bytes=data,
    )


def _expand(pattern: str, cwd: Path) -> Iterator[Path]:
    """展开单个模式为绝对文件路径"""
    expanded = os.path.expanduser(pattern)

    if not glob.has_magic(expanded):
        candidate = Path(expanded)
        if not candidate.is_absolute():
            candidate = cwd / candidate
        if candidate.is_file():
            yield candidate.resolve()
        return

    if os.path.isabs(expanded):
        matches = glob.glob(expanded, recursive=True)
        paths = (Path(match) for match in matches)
    else:
        matches = glob.glob(expanded, root_dir=cwd, recursive=True)
        paths = (cwd / match for match in matches)

    for path in sorted(paths):
        if path.is_file():
            yield path.resolve()


def _relative_to(path: Path, cwd: Path) -> str:
    """相对 cwd 的路径，用于报告"""
    try:
        return path.relative_to(cwd).as_posix()
    except ValueError:
        return Path(os.path.relpath(path, cwd)).as_posix()
