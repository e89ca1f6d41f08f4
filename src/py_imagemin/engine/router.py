"""输出路由模块。

未配置输出目录时，唯一的结果写入单一输出（标准输出）；多个结果是致命错误。
"""

from collections.abc import Sequence
from typing import BinaryIO

from ..exceptions import MultipleOutputsError
from ..models.options import ProcessingOptions
from ..models.outcome import ItemOutcome, ItemSuccess
from ..utils.logging_helpers import get_logger


logger = get_logger()


class OutputRouter:
    """决定结果写入文件还是单一输出"""

    def __init__(self, options: ProcessingOptions):
        self.options = options

    @property
    def writes_files(self) -> bool:
        return self.options.out_dir is not None

    def check_dispatch(self, item_count: int) -> None:
        """调度前检查：无输出目录时最多只能有一个输入

        Raises:
            MultipleOutputsError: 多个输入且没有输出目录
        """
        if not self.writes_files and item_count > 1:
            raise MultipleOutputsError(item_count)

    def route(self, outcomes: Sequence[ItemOutcome], output: BinaryIO | None) -> int:
        """批量完成后输出结果

        Args:
            outcomes: 全部单项结果
            output: 单一输出的字节流

        Returns:
            int: 写入单一输出的字节数

        Raises:
            MultipleOutputsError: 多个结果且没有输出目录
        """
        if self.writes_files:
            # 成功的结果在处理阶段已经写入文件
            return 0

        if not outcomes:
            logger.debug("没有需要输出的结果")
            return 0

        if len(outcomes) > 1:
            raise MultipleOutputsError(len(outcomes))

        outcome = outcomes[0]
        if not isinstance(outcome, ItemSuccess):
            return 0
        if output is None:
            logger.debug("未提供单一输出，跳过写入")
            return 0

        output.write(outcome.data)
        output.flush()
        return len(outcome.data)
