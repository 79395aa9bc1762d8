"""TNetString 配置对象."""

import sys
from dataclasses import dataclass

from .const import DEFAULT_MAX_DEPTH, FRAMES_PER_LEVEL
from .options import Option


def max_depth_limit() -> int:
    """当前解释器递归限制下可安全使用的最大嵌套深度.

    嵌套值按递归方式编解码, 超过该深度会在到达 `max_depth` 之前
    耗尽解释器栈. 调用 `sys.setrecursionlimit` 可以提高上限.
    """
    return sys.getrecursionlimit() // FRAMES_PER_LEVEL


@dataclass(frozen=True)
class Config:
    """TNetString 序列化/反序列化配置 (不可变).

    这是所有配置的统一容器, 在 API 入口层创建,
    然后传递给 Serializer/Deserializer/解析器内核.

    Attributes:
        flags: 选项标志 (IntFlag).
        max_depth: 允许的最大嵌套深度.
    """

    flags: Option = Option.NONE
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_params(
        cls,
        option: Option = Option.NONE,
        max_depth: int | None = None,
    ) -> "Config":
        """从参数构建配置对象.

        Args:
            option: Option 枚举.
            max_depth: 最大嵌套深度, None 表示使用默认值.
                显式给出的值不能超过 `max_depth_limit()`.

        Returns:
            Config: 配置对象.

        Raises:
            ValueError: 如果 max_depth 小于 1, 或超过当前递归限制所能支持的深度.
        """
        depth = DEFAULT_MAX_DEPTH if max_depth is None else max_depth
        if depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {depth}")
        if max_depth is not None and depth > max_depth_limit():
            raise ValueError(
                f"max_depth must be <= {max_depth_limit()} under recursion limit "
                f"{sys.getrecursionlimit()}, got {depth}"
            )

        return cls(flags=Option(option), max_depth=depth)

    @property
    def zero_copy(self) -> bool:
        """是否使用零复制模式."""
        return bool(self.flags & Option.ZERO_COPY)

    @property
    def allow_trailing(self) -> bool:
        """是否允许顶层解码后存在剩余数据."""
        return bool(self.flags & Option.ALLOW_TRAILING)


DEFAULT_CONFIG = Config()
