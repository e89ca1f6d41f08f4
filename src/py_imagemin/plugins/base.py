"""插件基础定义。

Transform 是字节到字节的转换能力；TransformChain 是按顺序执行的不可变插件序列。
"""

from collections.abc import Callable, Iterable, Iterator
from typing import Protocol, runtime_checkable

from ..exceptions import InvalidChainError, TransformError
from ..utils.logging_helpers import get_logger


logger = get_logger()


@runtime_checkable
class Transform(Protocol):
    """插件能力接口"""

    name: str

    def apply(self, data: bytes) -> bytes: ...


class FunctionTransform:
    """把普通函数包装为 Transform"""

    def __init__(self, func: Callable[[bytes], bytes], name: str | None = None):
        if not callable(func):
            raise InvalidChainError(f"插件必须可调用: {func!r}")
        self.func = func
        self.name = name or getattr(func, "__name__", type(func).__name__)

    def apply(self, data: bytes) -> bytes:
        return self.func(data)

    def __repr__(self) -> str:
        return f"FunctionTransform({self.name!r})"


def as_transform(candidate: object) -> Transform:
    """把插件对象或函数标准化为 Transform"""
    if isinstance(candidate, Transform):
        return candidate
    if callable(candidate):
        return FunctionTransform(candidate)
    raise InvalidChainError(f"不是合法的插件: {candidate!r}")


class TransformChain:
    """有序插件链

    构建后不可修改，可在并发任务之间只读共享。
    """

    __slots__ = ("_stages",)

    def __init__(self, stages: Iterable[object]):
        object.__setattr__(self, "_stages", tuple(as_transform(s) for s in stages))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("TransformChain is immutable")

    def __getstate__(self) -> dict[str, tuple[Transform, ...]]:
        return {"stages": self._stages}

    def __setstate__(self, state: dict[str, tuple[Transform, ...]]) -> None:
        object.__setattr__(self, "_stages", state["stages"])

    @property
    def stages(self) -> tuple[Transform, ...]:
        return self._stages

    @property
    def names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Transform]:
        return iter(self._stages)

    def __repr__(self) -> str:
        return f"TransformChain({self.names!r})"

    def run(self, data: bytes) -> bytes:
        """依次执行所有插件，第 k 个的输出是第 k+1 个的输入

        任何一个插件失败都会中止剩余插件。

        Raises:
            TransformError: 插件失败或返回了非字节结果
        """
        for stage in self._stages:
            try:
                result = stage.apply(data)
            except TransformError:
                raise
            except Exception as e:
                raise TransformError(f"{stage.name}: {e}", stage.name) from e

            if not isinstance(result, (bytes, bytearray, memoryview)):
                raise TransformError(
                    f"{stage.name}: 插件返回了 {type(result).__name__}，期望 bytes",
                    stage.name,
                )
            data = bytes(result)
            logger.debug(f"插件 {stage.name} 完成: {len(data)} 字节")
        return data
