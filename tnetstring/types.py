"""TNetString整数宽度类型模块.

TNetString 的整数在线上没有宽度, 但类型化的编解码需要知道目标宽度,
以便在编码时检查范围, 在解码时选择对应的反序列化入口.

本模块用 `Annotated[int, IntSpec]` 的形式定义 `I8` ~ `I64`, `U8` ~ `U64`,
这些注解同时被 Pydantic 识别为范围约束.
"""

from dataclasses import dataclass
from typing import Annotated, Any

from pydantic_core import core_schema


@dataclass(frozen=True)
class IntSpec:
    """整数宽度描述.

    Attributes:
        name: 宽度名称 (如 `u8`, `i64`), 对应 Serializer/Deserializer 的方法后缀.
        bits: 位宽.
        signed: 是否有符号.
    """

    name: str
    bits: int
    signed: bool

    @property
    def min(self) -> int:
        """可表示的最小值."""
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max(self) -> int:
        """可表示的最大值."""
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        """检查值是否在范围内."""
        return self.min <= value <= self.max

    def __get_pydantic_core_schema__(self, source_type: Any, handler: Any) -> Any:
        return core_schema.int_schema(ge=self.min, le=self.max)


I8_SPEC = IntSpec("i8", 8, True)
I16_SPEC = IntSpec("i16", 16, True)
I32_SPEC = IntSpec("i32", 32, True)
I64_SPEC = IntSpec("i64", 64, True)
U8_SPEC = IntSpec("u8", 8, False)
U16_SPEC = IntSpec("u16", 16, False)
U32_SPEC = IntSpec("u32", 32, False)
U64_SPEC = IntSpec("u64", 64, False)

I8 = Annotated[int, I8_SPEC]
I16 = Annotated[int, I16_SPEC]
I32 = Annotated[int, I32_SPEC]
I64 = Annotated[int, I64_SPEC]
U8 = Annotated[int, U8_SPEC]
U16 = Annotated[int, U16_SPEC]
U32 = Annotated[int, U32_SPEC]
U64 = Annotated[int, U64_SPEC]
