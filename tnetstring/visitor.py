"""通用数据模型访问者接口.

反序列化器不知道具体的目标类型, 只知道调用方请求的"形状"
(布尔, 整数, 字符串, 序列, 映射, 枚举, 可选值 ...).
目标类型通过 `Visitor` 接收反序列化器产出的值, 并通过
`SeqAccess` / `MapAccess` / `EnumAccess` / `VariantAccess` 按需拉取子元素.

该模块只定义接口和错误辅助函数, 不依赖任何具体的线上格式.
"""

import abc
from typing import Any, Generic, Protocol, TypeVar

from .exceptions import DecodeError

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class _End:
    """序列/映射耗尽标记."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END: Any = _End()


def invalid_type(unexpected: str, expecting: str) -> DecodeError:
    """构造"类型不符"错误."""
    return DecodeError(f"invalid type: {unexpected}, expected {expecting}")


def invalid_value(unexpected: str, expecting: str) -> DecodeError:
    """构造"值无效"错误."""
    return DecodeError(f"invalid value: {unexpected}, expected {expecting}")


def invalid_length(length: int, expecting: str) -> DecodeError:
    """构造"长度不符"错误."""
    return DecodeError(f"invalid length {length}, expected {expecting}")


def missing_field(name: str) -> DecodeError:
    """构造"缺少字段"错误."""
    return DecodeError(f"missing field `{name}`")


def duplicate_field(name: str) -> DecodeError:
    """构造"重复字段"错误."""
    return DecodeError(f"duplicate field `{name}`")


def unknown_variant(name: str, expected: list[str]) -> DecodeError:
    """构造"未知枚举变体"错误."""
    names = ", ".join(f"`{n}`" for n in expected)
    return DecodeError(f"unknown variant `{name}`, expected one of {names}")


class DeserializeSeed(Protocol[T_co]):
    """能够从反序列化器中读取一个值的对象."""

    def deserialize(self, deserializer: Any) -> T_co: ...


class Visitor(Generic[T]):
    """访问者基类.

    子类只需覆盖目标类型能接受的 `visit_*` 方法,
    其余方法会抛出 `invalid type` 错误.
    """

    expecting: str = "a value"

    def visit_bool(self, value: bool) -> T:
        raise invalid_type(f"boolean `{str(value).lower()}`", self.expecting)

    def visit_i64(self, value: int) -> T:
        raise invalid_type(f"integer `{value}`", self.expecting)

    def visit_u64(self, value: int) -> T:
        raise invalid_type(f"integer `{value}`", self.expecting)

    def visit_f64(self, value: float) -> T:
        raise invalid_type(f"floating point `{value}`", self.expecting)

    def visit_str(self, value: str) -> T:
        raise invalid_type(f"string {value!r}", self.expecting)

    def visit_bytes(self, value: bytes | memoryview) -> T:
        raise invalid_type("byte array", self.expecting)

    def visit_none(self) -> T:
        raise invalid_type("Option value", self.expecting)

    def visit_some(self, deserializer: Any) -> T:
        raise invalid_type("Option value", self.expecting)

    def visit_unit(self) -> T:
        raise invalid_type("unit value", self.expecting)

    def visit_newtype_struct(self, deserializer: Any) -> T:
        raise invalid_type("newtype struct", self.expecting)

    def visit_seq(self, seq: "SeqAccess") -> T:
        raise invalid_type("sequence", self.expecting)

    def visit_map(self, mapping: "MapAccess") -> T:
        raise invalid_type("map", self.expecting)

    def visit_enum(self, data: "EnumAccess") -> T:
        raise invalid_type("enum", self.expecting)


class SeqAccess(abc.ABC):
    """序列元素的按需访问器."""

    @abc.abstractmethod
    def next_element(self, seed: DeserializeSeed[T]) -> T:
        """读取下一个元素, 序列耗尽时返回 `END`."""
        raise NotImplementedError


class MapAccess(abc.ABC):
    """映射键值对的按需访问器."""

    @abc.abstractmethod
    def next_key(self, seed: DeserializeSeed[T]) -> T:
        """读取下一个键, 映射耗尽时返回 `END`."""
        raise NotImplementedError

    @abc.abstractmethod
    def next_value(self, seed: DeserializeSeed[T]) -> T:
        """读取与上一个键对应的值."""
        raise NotImplementedError


class VariantAccess(abc.ABC):
    """枚举变体负载的访问器."""

    @abc.abstractmethod
    def unit_variant(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def newtype_variant(self, seed: DeserializeSeed[T]) -> T:
        raise NotImplementedError

    @abc.abstractmethod
    def tuple_variant(self, length: int, visitor: Visitor[T]) -> T:
        raise NotImplementedError

    @abc.abstractmethod
    def struct_variant(self, fields: list[str], visitor: Visitor[T]) -> T:
        raise NotImplementedError


class EnumAccess(abc.ABC):
    """枚举值的访问器."""

    @abc.abstractmethod
    def variant(self) -> tuple[str, VariantAccess]:
        """读取变体名称, 并返回用于读取负载的访问器."""
        raise NotImplementedError


class UnitOnlyVariantAccess(VariantAccess, EnumAccess):
    """只携带名称的枚举值 (单元变体) 的访问器.

    与格式无关: 任何以裸名称表示单元变体的反序列化器都可以复用.
    """

    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def variant(self) -> tuple[str, VariantAccess]:
        return self._name, self

    def unit_variant(self) -> None:
        return None

    def newtype_variant(self, seed: DeserializeSeed[T]) -> T:
        raise invalid_type("unit variant", "newtype variant")

    def tuple_variant(self, length: int, visitor: Visitor[T]) -> T:
        raise invalid_type("unit variant", "tuple variant")

    def struct_variant(self, fields: list[str], visitor: Visitor[T]) -> T:
        raise invalid_type("unit variant", "struct variant")


__all__ = [
    "END",
    "DeserializeSeed",
    "EnumAccess",
    "MapAccess",
    "SeqAccess",
    "UnitOnlyVariantAccess",
    "VariantAccess",
    "Visitor",
    "duplicate_field",
    "invalid_length",
    "invalid_type",
    "invalid_value",
    "missing_field",
    "unknown_variant",
]
