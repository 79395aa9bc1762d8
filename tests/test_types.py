"""TNetString 类型注解功能测试.

覆盖 tnetstring.types 与 tnetstring.model 模块:
1. 整数宽度 (IntSpec) 与 Pydantic 约束
2. 标准库类型注解 (Enum, Literal, NamedTuple, NewType)
3. 容器注解 (set, frozenset, 变长/定长 tuple, dict)
4. 编译缓存与不支持的注解
"""

import enum
from typing import Literal, NamedTuple, NewType

import pytest
from pydantic import TypeAdapter, ValidationError

from tnetstring import (
    I8,
    I32,
    U8,
    DecodeError,
    ErrorKind,
    TNetTypeError,
    TNetValueError,
    decode,
    dumps,
)
from tnetstring.model import IntCodec, compile_type
from tnetstring.types import I8_SPEC, U64_SPEC

# --- 辅助类型 ---


class Color(enum.Enum):
    """颜色枚举."""

    RED = 1
    GREEN = 2


class Pair(NamedTuple):
    """字符串对."""

    foo: str
    bar: str


UserId = NewType("UserId", int)


# --- 1. 整数宽度 ---


def test_int_spec_range() -> None:
    """IntSpec 应给出正确的取值范围."""
    assert (I8_SPEC.min, I8_SPEC.max) == (-128, 127)
    assert (U64_SPEC.min, U64_SPEC.max) == (0, 2**64 - 1)
    assert I8_SPEC.contains(-128)
    assert not I8_SPEC.contains(128)


def test_int_spec_pydantic_constraint() -> None:
    """宽度注解同时是 Pydantic 的范围约束."""
    adapter = TypeAdapter(U8)

    assert adapter.validate_python(255) == 255
    with pytest.raises(ValidationError):
        adapter.validate_python(256)


def test_width_annotation_compiles_to_int_codec() -> None:
    """宽度注解编译为对应宽度的 IntCodec."""
    codec = compile_type(I32)

    assert isinstance(codec, IntCodec)
    assert codec.spec.name == "i32"
    assert compile_type(int).spec.name == "i64"


def test_width_annotation_encode_range() -> None:
    """编码时检查目标宽度."""
    assert dumps(-128, I8) == b"4:-128#"

    with pytest.raises(TNetValueError):
        dumps(-129, I8)
    with pytest.raises(TNetTypeError):
        dumps("1", I8)


# --- 2. 标准库类型 ---


def test_enum_round_trip() -> None:
    """Enum 成员以名称编码为单元变体."""
    assert dumps(Color.RED) == b"3:RED,"
    assert dumps(Color.GREEN, Color) == b"5:GREEN,"
    assert decode(b"5:GREEN,", Color) is Color.GREEN


def test_enum_unknown_member() -> None:
    """未知的成员名称应报错."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"4:BLUE,", Color)

    assert str(exc_info.value) == (
        "unknown variant `BLUE`, expected one of `RED`, `GREEN`"
    )


def test_enum_dict_form() -> None:
    """Enum 成员以字典形式出现时应抛出 PARSING_UNIT_VARIANT."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"9:3:RED,0:~}", Color)

    assert exc_info.value.kind == ErrorKind.PARSING_UNIT_VARIANT


def test_literal() -> None:
    """Literal 按值的类型编码, 解码后检查取值."""
    target = Literal["a", "b"]

    assert dumps("a", target) == b"1:a,"
    assert decode(b"1:b,", target) == "b"

    with pytest.raises(TNetValueError):
        dumps("c", target)
    with pytest.raises(DecodeError) as exc_info:
        decode(b"1:c,", target)
    assert str(exc_info.value).startswith("invalid value: 'c'")


def test_named_tuple() -> None:
    """NamedTuple 编码为列表."""
    value = Pair("foo", "bar")

    assert dumps(value) == b"12:3:foo,3:bar,]"
    assert dumps(value, Pair) == b"12:3:foo,3:bar,]"

    decoded = decode(b"12:3:foo,3:bar,]", Pair)
    assert decoded == value
    assert isinstance(decoded, Pair)


def test_named_tuple_wrong_length() -> None:
    """NamedTuple 的元素个数必须一致."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"6:3:foo,]", Pair)

    assert str(exc_info.value) == "invalid length 1, expected tuple struct Pair"


def test_new_type() -> None:
    """NewType 的线上表示与底层类型相同."""
    assert dumps(UserId(42), UserId) == b"2:42#"
    assert decode(b"2:42#", UserId) == 42


# --- 3. 容器 ---


def test_set_and_frozenset() -> None:
    """set / frozenset 编码为列表."""
    assert dumps({1}, set[I32]) == b"4:1:1#]"
    assert decode(b"4:1:1#]", set[I32]) == {1}
    assert decode(b"8:1:1#1:1#]", frozenset[I32]) == frozenset({1})


def test_variadic_tuple() -> None:
    """tuple[X, ...] 是变长序列."""
    assert decode(b"8:1:1#1:2#]", tuple[int, ...]) == (1, 2)
    assert dumps((1, 2, 3), tuple[int, ...]) == b"12:1:1#1:2#1:3#]"


def test_empty_tuple() -> None:
    """tuple[()] 只接受空列表."""
    assert dumps((), tuple[()]) == b"0:]"
    assert decode(b"0:]", tuple[()]) == ()


def test_fixed_tuple_wrong_size() -> None:
    """定长元组编码时检查元素个数."""
    with pytest.raises(TNetValueError):
        dumps((1,), tuple[int, int])
    with pytest.raises(DecodeError) as exc_info:
        decode(b"4:1:1#]", tuple[int, int])
    assert str(exc_info.value) == "invalid length 1, expected a tuple of size 2"


def test_nested_containers() -> None:
    """容器可以任意嵌套."""
    target = dict[str, list[U8]]
    data = dumps({"a": [1, 2]}, target)

    assert data == b"15:1:a,8:1:1#1:2#]}"
    assert decode(data, target) == {"a": [1, 2]}


def test_container_error_location() -> None:
    """容器内部的错误应携带索引和键."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"18:1:a,10:1:1#3:300#]}", dict[str, list[U8]])

    assert exc_info.value.loc == ["a", 1]


# --- 4. 编译 ---


def test_compile_cache() -> None:
    """相同的注解只编译一次."""
    assert compile_type(list[int]) is compile_type(list[int])


@pytest.mark.parametrize("tp", [complex, int | str, list[int] | None | str])
def test_compile_unsupported(tp: object) -> None:
    """不支持的注解应抛出 TypeError."""
    with pytest.raises(TypeError):
        compile_type(tp)
