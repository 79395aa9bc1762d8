"""TNetString 序列化器测试.

覆盖 tnetstring.ser 模块:
1. 标量输出格式 (bool, int, float, str, bytes, null)
2. 暂存栈上的列表, 字典与变体
3. 栈状态错误 (STACK_PROBLEM) 与嵌套深度
"""

import pytest

from tnetstring import EncodeError, ErrorKind, Serializer, TNetTypeError, TNetValueError
from tnetstring.config import Config
from tnetstring.ser import format_float

# --- 1. 标量 ---


def test_serialize_bool() -> None:
    """布尔值输出为固定字面量."""
    ser = Serializer()
    ser.serialize_bool(True)
    ser.serialize_bool(False)

    assert ser.finish() == b"4:true!5:false!"


@pytest.mark.parametrize(
    ("value", "expected"), [(-1, b"2:-1#"), (12340, b"5:12340#"), (0, b"1:0#")]
)
def test_serialize_int(value: int, expected: bytes) -> None:
    """整数按十进制文本输出."""
    ser = Serializer()
    ser.serialize_i64(value)

    assert ser.finish() == expected


def test_serialize_int_range() -> None:
    """超出宽度范围的整数应抛出 TNetValueError."""
    ser = Serializer()

    with pytest.raises(TNetValueError):
        ser.serialize_u8(256)
    with pytest.raises(TNetValueError):
        ser.serialize_u64(-1)
    with pytest.raises(TNetTypeError):
        ser.serialize_i32(True)

    ser.serialize_u64(2**64 - 1)
    assert ser.finish() == b"20:18446744073709551615#"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1.0, b"1:1^"),
        (-1.0, b"2:-1^"),
        (1.25, b"4:1.25^"),
        (123.4, b"5:123.4^"),
    ],
)
def test_serialize_float(value: float, expected: bytes) -> None:
    """浮点数使用最短表示, 整数值不带 .0."""
    ser = Serializer()
    ser.serialize_f64(value)

    assert ser.finish() == expected


def test_format_float() -> None:
    """format_float() 保留指数形式."""
    assert format_float(1e16) == "1e+16"
    assert format_float(0.1) == "0.1"


def test_serialize_str() -> None:
    """字符串按 UTF-8 字节长度输出."""
    ser = Serializer()
    ser.serialize_str("true")
    ser.serialize_str("3:foo,3:bar,")
    ser.serialize_str("é")

    assert ser.finish() == b"4:true,12:3:foo,3:bar,,2:\xc3\xa9,"


def test_serialize_str_surrogate() -> None:
    """无法编码为 UTF-8 的字符串应抛出 NON_UTF8_STR."""
    with pytest.raises(EncodeError) as exc_info:
        Serializer().serialize_str("\ud800")

    assert exc_info.value.kind == ErrorKind.NON_UTF8_STR


def test_serialize_bytes() -> None:
    """字节串必须是合法的 UTF-8."""
    ser = Serializer()
    ser.serialize_bytes(b"012345")
    assert ser.finish() == b"6:012345,"

    with pytest.raises(EncodeError) as exc_info:
        Serializer().serialize_bytes(b"\xff")
    assert exc_info.value.kind == ErrorKind.NON_UTF8_STR


def test_serialize_char() -> None:
    """字符只接受长度为 1 的字符串."""
    ser = Serializer()
    ser.serialize_char("a")
    assert ser.finish() == b"1:a,"

    with pytest.raises(TNetTypeError):
        Serializer().serialize_char("ab")


def test_serialize_null_and_unit() -> None:
    """None 与单元值都输出 0:~."""
    ser = Serializer()
    ser.serialize_none()
    ser.serialize_unit()
    ser.serialize_unit_struct("Empty")

    assert ser.finish() == b"0:~0:~0:~"


# --- 2. 复合值 ---


def test_serialize_seq() -> None:
    """列表负载在结束时被包装."""
    ser = Serializer()
    with ser.seq():
        ser.serialize_str("foo")
        ser.serialize_str("bar")

    assert ser.finish() == b"12:3:foo,3:bar,]"


def test_serialize_nested_seq() -> None:
    """嵌套列表逐层包装."""
    ser = Serializer()
    ser.begin_seq()
    ser.begin_tuple(2)
    ser.serialize_i32(10)
    ser.serialize_i32(10)
    ser.end_tuple()
    ser.end_seq()

    assert ser.finish() == b"14:10:2:10#2:10#]]"


def test_serialize_map() -> None:
    """字典的键和值交替写入."""
    ser = Serializer()
    with ser.mapping():
        ser.serialize_str("hello")
        ser.serialize_str("world")

    assert ser.finish() == b"16:5:hello,5:world,}"


def test_mapping_context_manager_exception() -> None:
    """mapping() 的 with 块内抛出异常时不包装."""
    ser = Serializer()

    with pytest.raises(RuntimeError):
        with ser.mapping():
            ser.serialize_str("k")
            raise RuntimeError("boom")

    assert ser.depth == 1


def test_serialize_struct() -> None:
    """结构体以字段名为键输出为字典."""
    ser = Serializer()
    ser.begin_struct("Test", 2)
    ser.serialize_str("int")
    ser.serialize_u32(1)
    ser.serialize_str("seq")
    with ser.seq():
        ser.serialize_str("a")
        ser.serialize_str("b")
    ser.end_struct()

    assert ser.finish() == b"27:3:int,1:1#3:seq,8:1:a,1:b,]}"


def test_serialize_unit_variant() -> None:
    """单元变体输出为名称字符串."""
    ser = Serializer()
    ser.serialize_unit_variant("E", 0, "Unit")

    assert ser.finish() == b"4:Unit,"


def test_serialize_newtype_variant() -> None:
    """newtype 变体输出为 {名称: 值}."""
    ser = Serializer()
    ser.begin_newtype_variant("Test", 0, "T")
    ser.serialize_str("foo")
    ser.end_newtype_variant()

    assert ser.finish() == b"10:1:T,3:foo,}"


def test_serialize_tuple_variant() -> None:
    """元组变体输出为 {名称: [...]}."""
    ser = Serializer()
    ser.begin_tuple_variant("E", 0, "T", 2)
    ser.serialize_str("foo")
    ser.serialize_str("bar")
    ser.end_tuple_variant()

    assert ser.finish() == b"20:1:T,12:3:foo,3:bar,]}"


def test_serialize_struct_variant() -> None:
    """结构体变体输出为 {名称: {...}}."""
    ser = Serializer()
    ser.begin_struct_variant("Test", 0, "A", 1)
    ser.serialize_str("b")
    ser.serialize_i32(10)
    ser.end_struct_variant()

    assert ser.finish() == b"16:1:A,9:1:b,2:10#}}"


def test_variant_inside_seq() -> None:
    """变体只包装自己的名称和负载, 不影响外层缓冲区."""
    ser = Serializer()
    with ser.seq():
        ser.serialize_i32(1)
        ser.begin_newtype_variant("E", 0, "N")
        ser.serialize_i32(20)
        ser.end_newtype_variant()

    assert ser.finish() == b"16:1:1#9:1:N,2:20#}]"


# --- 3. 栈状态 ---


def test_end_without_begin() -> None:
    """没有打开的复合值时结束应抛出 STACK_PROBLEM."""
    with pytest.raises(EncodeError) as exc_info:
        Serializer().end_seq()

    assert exc_info.value.kind == ErrorKind.STACK_PROBLEM


def test_finish_unbalanced() -> None:
    """仍有未结束的复合值时 finish() 应抛出 STACK_PROBLEM."""
    ser = Serializer()
    ser.begin_map()

    with pytest.raises(EncodeError) as exc_info:
        ser.finish()

    assert exc_info.value.kind == ErrorKind.STACK_PROBLEM


def test_context_manager_exception() -> None:
    """with 块内抛出异常时不包装."""
    ser = Serializer()

    with pytest.raises(RuntimeError):
        with ser.seq():
            ser.serialize_i32(1)
            raise RuntimeError("boom")

    assert ser.depth == 1


def test_serializer_depth_limit() -> None:
    """打开的复合值超过最大深度时应抛出 NESTING_TOO_DEEP."""
    ser = Serializer(Config(max_depth=2))
    ser.begin_seq()
    ser.begin_seq()

    with pytest.raises(EncodeError) as exc_info:
        ser.begin_seq()

    assert exc_info.value.kind == ErrorKind.NESTING_TOO_DEEP
