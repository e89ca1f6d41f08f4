"""并发执行器模块。

在固定大小的工作池中执行单项任务，按完成顺序逐个产出结果。
"""

from collections.abc import Callable, Iterator, Sequence
from concurrent.futures import (
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)

from ..exceptions import ErrorHandler
from ..models.options import ExecutorType
from ..models.outcome import ItemOutcome, SourceItem
from ..utils.logging_helpers import get_logger


logger = get_logger()


class ConcurrentExecutor:
    """通用并发执行器

    最多 ``max_workers`` 个任务同时运行；单个任务失败不会取消其他任务，
    所有输入都会被处理完，每个输入恰好产出一个结果。
    """

    def __init__(
        self,
        max_workers: int,
        executor_type: ExecutorType | str = ExecutorType.THREAD,
    ):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
            executor_type: 执行器类型 ('thread'/'process')
        """
        if max_workers < 1:
            raise ValueError(f"max_workers 必须大于 0，当前值: {max_workers}")
        self.max_workers = max_workers
        self.executor_type = ExecutorType(executor_type)

    def execute_tasks(
        self,
        items: Sequence[SourceItem],
        task_function: Callable[[SourceItem], ItemOutcome],
    ) -> Iterator[ItemOutcome]:
        """执行并发任务

        结果按完成顺序产出（不保证与提交顺序一致）。
        产出发生在调用方线程，调用方可以不加锁地累计结果。

        Args:
            items: 输入条目
            task_function: 单项任务函数

        Yields:
            ItemOutcome: 单项结果
        """
        if not items:
            return

        executor_class = self._choose_executor()
        workers = min(self.max_workers, len(items))
        logger.debug(
            f"使用{executor_class.__name__}: 任务数={len(items)}, 并发数={workers}"
        )

        with executor_class(max_workers=workers) as executor:
            future_to_item, rejected = self._submit_tasks(
                executor, items, task_function
            )
            yield from rejected
            yield from self._collect_results(future_to_item)

    def _submit_tasks(
        self,
        executor: Executor,
        items: Sequence[SourceItem],
        task_function: Callable[[SourceItem], ItemOutcome],
    ) -> tuple[dict[Future[ItemOutcome], SourceItem], list[ItemOutcome]]:
        """提交任务到执行器"""
        future_to_item: dict[Future[ItemOutcome], SourceItem] = {}
        rejected: list[ItemOutcome] = []

        for item in items:
            try:
                future = executor.submit(task_function, item)
                future_to_item[future] = item
            except Exception as e:
                rejected.append(
                    ErrorHandler.handle_with_context(
                        e, item.relative_path, "任务提交", log_level="debug"
                    )
                )

        return future_to_item, rejected

    def _collect_results(
        self, future_to_item: dict[Future[ItemOutcome], SourceItem]
    ) -> Iterator[ItemOutcome]:
        """按完成顺序收集任务结果"""
        for future in as_completed(future_to_item):
            item = future_to_item[future]

            try:
                result = future.result()
            except Exception as e:
                # 任务函数本身不抛异常；这里处理进程池序列化失败等情况
                yield ErrorHandler.handle_with_context(
                    e, item.relative_path, "并发任务处理", log_level="debug"
                )
                continue

            if result.success:
                logger.debug(f"处理成功: {item.relative_path}")
            else:
                logger.debug(
                    f"处理失败: {item.relative_path} - {getattr(result, 'error_detail', '')}"
                )
            yield result

    def _choose_executor(self) -> type[Executor]:
        """根据配置选择执行器类"""
        if self.executor_type == ExecutorType.PROCESS:
            return ProcessPoolExecutor
        return ThreadPoolExecutor
