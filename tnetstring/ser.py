"""TNetString 通用序列化器.

`Serializer` 使用一个暂存缓冲区栈: 复合值开始时压入新缓冲区,
结束时弹出并以对应的类型标签包装后追加到下层缓冲区.
因为帧的长度前缀必须在负载之前写出, 负载只有完整之后才能被包装.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from .config import DEFAULT_CONFIG, Config
from .const import (
    DICT,
    FALSE_FRAME,
    FLOAT,
    INTEGER,
    LIST,
    NULL_FRAME,
    STRING,
    TRUE_FRAME,
)
from .exceptions import EncodeError, ErrorKind, TNetTypeError, TNetValueError
from .types import (
    I8_SPEC,
    I16_SPEC,
    I32_SPEC,
    I64_SPEC,
    U8_SPEC,
    U16_SPEC,
    U32_SPEC,
    U64_SPEC,
    IntSpec,
)


def format_float(value: float) -> str:
    """格式化浮点数.

    使用最短往返表示, 整数值去掉 `.0` 后缀 (`1.0` -> `1`).
    """
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


class Serializer:
    """TNetString 序列化器.

    Examples:
        >>> ser = Serializer()
        >>> with ser.seq():
        ...     ser.serialize_i32(10)
        ...     ser.serialize_i32(10)
        >>> ser.finish()
        bytearray(b'10:2:10#2:10#]')
    """

    __slots__ = ("_max_depth", "_stack")

    _stack: list[bytearray]
    _max_depth: int

    def __init__(self, config: Config = DEFAULT_CONFIG):
        self._stack = [bytearray()]
        self._max_depth = config.max_depth

    @property
    def depth(self) -> int:
        """当前打开的复合值层数."""
        return len(self._stack) - 1

    def _write_frame(self, content: bytes | bytearray | memoryview, tag: int) -> None:
        buf = self._stack[-1]
        buf += b"%d:" % len(content)
        buf += content
        buf.append(tag)

    def _push(self) -> None:
        if len(self._stack) > self._max_depth:
            raise EncodeError(
                f"Nesting depth exceeds {self._max_depth}", ErrorKind.NESTING_TOO_DEEP
            )
        self._stack.append(bytearray())

    def _pop_wrap(self, tag: int) -> None:
        if len(self._stack) < 2:
            raise EncodeError("No open compound value", ErrorKind.STACK_PROBLEM)
        content = self._stack.pop()
        self._write_frame(content, tag)

    # ------------------------------------------------------------------ #
    #                                标量                                 #
    # ------------------------------------------------------------------ #

    def serialize_bool(self, value: bool) -> None:
        self._stack[-1] += TRUE_FRAME if value else FALSE_FRAME

    def _serialize_int(self, value: int, spec: IntSpec) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TNetTypeError(
                f"Expected int for {spec.name}, got {type(value).__name__}"
            )
        if not spec.contains(value):
            raise TNetValueError(
                f"Integer {value} out of range for {spec.name} "
                f"[{spec.min}, {spec.max}]"
            )
        self._write_frame(b"%d" % value, INTEGER)

    def serialize_i8(self, value: int) -> None:
        self._serialize_int(value, I8_SPEC)

    def serialize_i16(self, value: int) -> None:
        self._serialize_int(value, I16_SPEC)

    def serialize_i32(self, value: int) -> None:
        self._serialize_int(value, I32_SPEC)

    def serialize_i64(self, value: int) -> None:
        self._serialize_int(value, I64_SPEC)

    def serialize_u8(self, value: int) -> None:
        self._serialize_int(value, U8_SPEC)

    def serialize_u16(self, value: int) -> None:
        self._serialize_int(value, U16_SPEC)

    def serialize_u32(self, value: int) -> None:
        self._serialize_int(value, U32_SPEC)

    def serialize_u64(self, value: int) -> None:
        self._serialize_int(value, U64_SPEC)

    def serialize_f32(self, value: float) -> None:
        self.serialize_f64(value)

    def serialize_f64(self, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TNetTypeError(f"Expected float, got {type(value).__name__}")
        self._write_frame(format_float(value).encode("ascii"), FLOAT)

    def serialize_char(self, value: str) -> None:
        if not isinstance(value, str) or len(value) != 1:
            raise TNetTypeError(f"Expected a single character, got {value!r}")
        self.serialize_str(value)

    def serialize_str(self, value: str) -> None:
        if not isinstance(value, str):
            raise TNetTypeError(f"Expected str, got {type(value).__name__}")
        try:
            raw = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError(str(e), ErrorKind.NON_UTF8_STR) from e
        self._write_frame(raw, STRING)

    def serialize_bytes(self, value: bytes | bytearray | memoryview) -> None:
        """写入字节串.

        Raises:
            EncodeError: 字节串不是合法的 UTF-8 (NON_UTF8_STR).
        """
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TNetTypeError(f"Expected bytes, got {type(value).__name__}")
        try:
            str(value, "utf-8")
        except UnicodeDecodeError as e:
            raise EncodeError(str(e), ErrorKind.NON_UTF8_STR) from e
        self._write_frame(value, STRING)

    def serialize_none(self) -> None:
        self._stack[-1] += NULL_FRAME

    def serialize_unit(self) -> None:
        self._stack[-1] += NULL_FRAME

    def serialize_unit_struct(self, name: str) -> None:
        self.serialize_unit()

    def serialize_unit_variant(self, name: str, index: int, variant: str) -> None:
        self.serialize_str(variant)

    # ------------------------------------------------------------------ #
    #                                复合值                               #
    # ------------------------------------------------------------------ #

    def begin_seq(self, length: int | None = None) -> None:
        self._push()

    def end_seq(self) -> None:
        self._pop_wrap(LIST)

    def begin_tuple(self, length: int) -> None:
        self.begin_seq(length)

    def end_tuple(self) -> None:
        self.end_seq()

    def begin_map(self, length: int | None = None) -> None:
        self._push()

    def end_map(self) -> None:
        self._pop_wrap(DICT)

    def begin_struct(self, name: str, length: int) -> None:
        self.begin_map(length)

    def end_struct(self) -> None:
        self.end_map()

    # 变体: `{名称帧 负载帧}`, 先压入外层缓冲区再写名称

    def begin_newtype_variant(self, name: str, index: int, variant: str) -> None:
        self._push()
        self.serialize_str(variant)

    def end_newtype_variant(self) -> None:
        self._pop_wrap(DICT)

    def begin_tuple_variant(
        self, name: str, index: int, variant: str, length: int
    ) -> None:
        self.begin_newtype_variant(name, index, variant)
        self.begin_seq(length)

    def end_tuple_variant(self) -> None:
        self.end_seq()
        self.end_newtype_variant()

    def begin_struct_variant(
        self, name: str, index: int, variant: str, length: int
    ) -> None:
        self.begin_newtype_variant(name, index, variant)
        self.begin_map(length)

    def end_struct_variant(self) -> None:
        self.end_map()
        self.end_newtype_variant()

    @contextmanager
    def seq(self) -> Iterator["Serializer"]:
        """在 `with` 块中写入一个列表; 块内抛出异常时不包装."""
        self.begin_seq()
        yield self
        self.end_seq()

    @contextmanager
    def mapping(self) -> Iterator["Serializer"]:
        """在 `with` 块中写入一个字典; 键和值交替写入."""
        self.begin_map()
        yield self
        self.end_map()

    def finish(self) -> bytearray:
        """返回最终输出.

        Raises:
            EncodeError: 仍有未结束的复合值 (STACK_PROBLEM).
        """
        if len(self._stack) != 1:
            raise EncodeError(
                f"{len(self._stack) - 1} compound values left open",
                ErrorKind.STACK_PROBLEM,
            )
        return self._stack[0]
