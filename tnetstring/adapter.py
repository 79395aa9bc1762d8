"""TNetString类型适配器.

提供类似于 Pydantic TypeAdapter 的接口,
用于处理泛型类型和基础类型的 TNetString 序列化/反序列化.
"""

from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from .api import dumps, loads
from .model import compile_type
from .options import Option

T = TypeVar("T")


class TNetTypeAdapter(Generic[T]):
    """TNetString 类型适配器.

    类型在构造时编译一次, 之后每次编解码都复用同一个编解码器.
    解码结果再经过 `pydantic.TypeAdapter` 校验.

    支持的类型:
        - `Struct` 子类 (声明式结构体)
        - `Variant` 子类及其联合 (枚举)
        - 基础类型 (`int`, `U8`, `str`, `bytes` 等)
        - 容器类型 (`list`, `dict`, `tuple` 等)

    Examples:
        >>> adapter = TNetTypeAdapter(list[int])
        >>> data = adapter.dump_tnet([1, 2, 3])
        >>> data
        b'12:1:1#1:2#1:3#]'
        >>> assert adapter.validate_tnet(data) == [1, 2, 3]
    """

    def __init__(self, type_: type[T] | Any):
        """初始化类型适配器.

        Args:
            type_: 目标类型 (如 Struct 子类, list[int], U8 等).

        Raises:
            TypeError: 类型不受支持.
        """
        self._type = type_
        self._codec = compile_type(type_)
        self._pydantic_adapter = TypeAdapter(type_)

    def validate_tnet(
        self,
        data: bytes | bytearray | memoryview | str,
        *,
        option: Option = Option.NONE,
    ) -> T:
        """验证并反序列化 TNetString 数据.

        Args:
            data: 输入数据.
            option: 解码选项. `ZERO_COPY` 会被忽略, 因为结果需要经过 Pydantic 校验.

        Returns:
            反序列化后的对象.

        Raises:
            DecodeError: 数据格式错误.
            ValidationError: 数据不符合目标类型.
        """
        value = loads(data, self._type, Option(option) & ~Option.ZERO_COPY)
        return self._pydantic_adapter.validate_python(value)

    def dump_tnet(self, obj: T, *, option: Option = Option.NONE) -> bytes:
        """序列化为 TNetString 数据."""
        return dumps(obj, self._type, option=Option(option))
