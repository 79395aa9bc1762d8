"""Struct 与 Variant 功能测试.

覆盖 tnetstring.struct 模块及其编解码:
1. 结构体字段与线上键 (Field(key=...))
2. 解码时跳过未知键, 缺少/重复字段
3. Pydantic 校验与零复制字节串
4. 自引用结构体
5. Variant 的四种形式与重命名
6. 元类的定义期检查
"""

from typing import Optional

import pytest
from pydantic import field_validator

from tnetstring import (
    I32,
    U32,
    DecodeError,
    ErrorKind,
    Field,
    Option,
    Struct,
    TNetTypeError,
    Variant,
    decode,
    dumps,
    loads,
)

# --- 辅助结构体 ---


class Test(Struct):
    """包含整数和字符串列表的结构体."""

    number: U32 = Field(key="int")
    seq: list[str]


class OptionHolder(Struct):
    """包含可选字段的结构体."""

    option: I32 | None


class WithDefault(Struct):
    """带默认值的结构体."""

    a: I32
    b: str = "x"
    tags: list[str] = Field(default_factory=list)


class Positive(Struct):
    """带 Pydantic 校验器的结构体."""

    a: I32

    @field_validator("a")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value


class Blob(Struct):
    """包含字节串字段的结构体."""

    data: bytes


class Node(Struct):
    """用于测试递归结构的链表节点."""

    val: I32
    next: Optional["Node"] = None


class Unit(Variant):
    pass


class Foo(Variant):
    pass


class Newtype(Variant, kind="newtype"):
    value: U32


class N(Variant, kind="newtype"):
    value: U32


class Tuple(Variant, kind="tuple"):
    a: U32
    b: U32


class StructVariant(Variant, rename="Struct"):
    a: U32


E = Unit | Foo | Newtype | N | Tuple | StructVariant


# --- 1. 结构体 ---


def test_struct_dump() -> None:
    """结构体按声明顺序输出线上键和值."""
    data = Test(number=1, seq=["a", "b"]).model_dump_tnet()

    assert data == b"27:3:int,1:1#3:seq,8:1:a,1:b,]}"


def test_struct_validate() -> None:
    """model_validate_tnet() 应能还原结构体."""
    obj = Test.model_validate_tnet(b"27:3:int,1:1#3:seq,8:1:a,1:b,]}")

    assert obj == Test(number=1, seq=["a", "b"])
    assert Test.__tnet_fields__ == {"number": "int", "seq": "seq"}


def test_struct_option_field() -> None:
    """可选字段: 0:~ 为 None."""
    assert loads(b"13:6:option,1:1#}", OptionHolder) == OptionHolder(option=1)
    assert loads(b"12:6:option,0:~}", OptionHolder) == OptionHolder(option=None)
    assert dumps(OptionHolder(option=None)) == b"12:6:option,0:~}"


def test_struct_field_order_independent() -> None:
    """解码时键的顺序不影响结果."""
    obj = decode(b"27:3:seq,8:1:a,1:b,]3:int,1:1#}", Test)

    assert obj.number == 1
    assert obj.seq == ["a", "b"]


# --- 2. 未知, 缺少与重复字段 ---


def test_struct_skips_unknown_keys() -> None:
    """未知的键会被跳过."""
    obj = decode(b"16:1:a,1:1#1:z,1:x,}", WithDefault)

    assert obj == WithDefault(a=1)
    assert obj.b == "x"
    assert obj.tags == []


def test_struct_missing_field() -> None:
    """缺少必填字段应抛出 missing field 错误."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"0:}", WithDefault)

    assert str(exc_info.value) == "missing field `a`"


def test_struct_duplicate_field() -> None:
    """重复的键应抛出 duplicate field 错误."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"16:1:a,1:1#1:a,1:2#}", WithDefault)

    assert str(exc_info.value) == "duplicate field `a`"


def test_struct_field_error_location() -> None:
    """字段解码错误应携带线上键作为位置."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"20:3:int,2:-1#3:seq,0:]}", Test)

    assert exc_info.value.kind == ErrorKind.PARSING_UNSIGNED
    assert exc_info.value.loc == ["int"]


def test_struct_wrong_frame() -> None:
    """结构体要求字典帧."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"0:]", Test)

    assert exc_info.value.kind == ErrorKind.PARSING_MAP


def test_struct_dump_wrong_instance() -> None:
    """按结构体编码其他类型的对象应抛出 TNetTypeError."""
    with pytest.raises(TNetTypeError):
        dumps(WithDefault(a=1), Test)


# --- 3. 校验与零复制 ---


def test_struct_pydantic_validation() -> None:
    """Pydantic 校验失败应转换为 DecodeError."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"9:1:a,2:-1#}", Positive)

    assert exc_info.value.kind == ErrorKind.MESSAGE
    assert "must be positive" in str(exc_info.value)


def test_struct_bytes_zero_copy() -> None:
    """零复制模式下结构体的字节串字段仍是 bytes."""
    data = Blob(data=b"xy").model_dump_tnet()
    assert data == b"12:4:data,2:xy,}"

    obj = Blob.model_validate_tnet(data, Option.ZERO_COPY)
    assert obj.data == b"xy"
    assert isinstance(obj.data, bytes)


# --- 4. 自引用 ---


def test_recursive_struct_round_trip() -> None:
    """自引用结构体应能往返."""
    node = Node(val=1, next=Node(val=2))
    data = node.model_dump_tnet()

    assert data == b"41:3:val,1:1#4:next,20:3:val,1:2#4:next,0:~}}"
    assert Node.model_validate_tnet(data) == node


# --- 5. Variant ---


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Unit(), b"4:Unit,"),
        (Foo(), b"3:Foo,"),
        (Newtype(value=1), b"14:7:Newtype,1:1#}"),
        (N(value=20), b"9:1:N,2:20#}"),
        (Tuple(a=1, b=2), b"19:5:Tuple,8:1:1#1:2#]}"),
        (StructVariant(a=1), b"20:6:Struct,8:1:a,1:1#}}"),
    ],
)
def test_variant_round_trip(value: Variant, expected: bytes) -> None:
    """各种形式的变体应按约定编码并能解码回来."""
    assert dumps(value, E) == expected
    assert decode(expected, E) == value


def test_variant_runtime_inference() -> None:
    """未指定目标类型时, 变体实例按单变体枚举编码."""
    assert dumps(Tuple(a=1, b=2)) == b"19:5:Tuple,8:1:1#1:2#]}"
    assert Tuple.model_validate_tnet(b"19:5:Tuple,8:1:1#1:2#]}") == Tuple(a=1, b=2)


def test_variant_kinds() -> None:
    """元类应记录变体形式与线上名称."""
    assert Unit.__tnet_kind__ == "unit"
    assert Newtype.__tnet_kind__ == "newtype"
    assert Tuple.__tnet_kind__ == "tuple"
    assert StructVariant.__tnet_kind__ == "struct"
    assert StructVariant.__tnet_variant__ == "Struct"


def test_variant_unknown_name() -> None:
    """未知的变体名称应抛出 unknown variant 错误."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"3:Bar,", E)

    assert str(exc_info.value).startswith("unknown variant `Bar`, expected one of")


def test_variant_wrong_frame() -> None:
    """枚举只接受字符串帧或字典帧."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"1:1#", E)

    assert exc_info.value.kind == ErrorKind.PARSING_ENUM


def test_variant_extra_pairs() -> None:
    """枚举字典中多于一个键值对时应抛出 PARSING_ENUM."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"17:1:N,2:20#1:x,1:1#}", E)

    assert exc_info.value.kind == ErrorKind.PARSING_ENUM


def test_unit_variant_as_dict() -> None:
    """以字典形式出现的单元变体应抛出 PARSING_UNIT_VARIANT."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"10:4:Unit,0:~}", E)

    assert exc_info.value.kind == ErrorKind.PARSING_UNIT_VARIANT


def test_newtype_variant_as_string() -> None:
    """以裸字符串出现的 newtype 变体应抛出 invalid type 错误."""
    with pytest.raises(DecodeError) as exc_info:
        decode(b"1:N,", E)

    assert "invalid type: unit variant" in str(exc_info.value)


def test_variant_not_in_union() -> None:
    """编码不属于联合的变体应抛出 TNetTypeError."""
    with pytest.raises(TNetTypeError):
        dumps(Foo(), Unit | N)


# --- 6. 元类检查 ---


def test_newtype_variant_field_count() -> None:
    """newtype 变体必须恰好有一个字段."""
    with pytest.raises(TypeError, match="exactly 1 field"):

        class Bad(Variant, kind="newtype"):
            a: int
            b: int


def test_unit_variant_with_fields() -> None:
    """单元变体不能有字段."""
    with pytest.raises(TypeError, match="unit variant"):

        class Bad(Variant, kind="unit"):
            a: int


def test_kind_only_for_variant() -> None:
    """kind 参数只能用于 Variant."""
    with pytest.raises(TypeError, match="only apply to Variant"):

        class Bad(Struct, kind="tuple"):
            a: int


def test_duplicate_wire_key() -> None:
    """重复的线上键应在定义时报错."""
    with pytest.raises(ValueError, match="Duplicate wire key"):

        class Bad(Struct):
            a: int
            b: int = Field(key="a")


def test_empty_wire_key() -> None:
    """线上键不能为空字符串."""
    with pytest.raises(ValueError, match="must not be empty"):
        Field(key="")
