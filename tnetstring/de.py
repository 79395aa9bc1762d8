"""TNetString 类型化反序列化器.

`Deserializer` 持有一个在原始输入上滑动的游标 (memoryview 窗口),
按访问者请求的形状直接读取帧, 不构建中间值树.

帧读取逻辑在此处独立实现: 反序列化器需要在决定如何消费负载之前
先查看类型标签, 并且每次调用后游标必须恰好停在已消费帧之后.
"""

from typing import Any, TypeVar

from .config import DEFAULT_CONFIG, Config
from .const import (
    COLON,
    DICT,
    FALSE_FRAME,
    FLOAT,
    INTEGER,
    LIST,
    NULL,
    NULL_FRAME,
    STRING,
    TRUE_FRAME,
    BOOL,
)
from .exceptions import DecodeError, ErrorKind, PartialDataError
from .framing import ReadBuf, as_view
from .visitor import (
    END,
    DeserializeSeed,
    EnumAccess,
    MapAccess,
    SeqAccess,
    UnitOnlyVariantAccess,
    VariantAccess,
    Visitor,
)

T = TypeVar("T")

_MINUS = ord("-")


class Deserializer:
    """TNetString 的类型化反序列化器.

    每个 `deserialize_*` 方法对应一种目标形状, 接受一个 `Visitor`
    并返回访问者产出的值. 游标窗口为 `[_pos, _end)`,
    进入列表/字典时窗口收窄到该帧的负载.
    """

    __slots__ = ("_depth", "_end", "_max_depth", "_pos", "_view", "_zero_copy")

    _view: memoryview
    _pos: int
    _end: int
    _depth: int
    _max_depth: int
    _zero_copy: bool

    def __init__(self, data: ReadBuf, config: Config = DEFAULT_CONFIG):
        """初始化反序列化器.

        Args:
            data: 要读取的输入 (`str` 按 UTF-8 处理).
            config: 配置对象.
        """
        self._view = as_view(data)
        self._pos = 0
        self._end = len(self._view)
        self._depth = 0
        self._max_depth = config.max_depth
        self._zero_copy = config.zero_copy

    @property
    def data(self) -> memoryview:
        """完整的输入数据."""
        return self._view

    @property
    def position(self) -> int:
        """当前游标位置."""
        return self._pos

    @property
    def remaining(self) -> int:
        """当前窗口内剩余的字节数."""
        return self._end - self._pos

    def end(self) -> None:
        """确认输入已被完全消费.

        Raises:
            DecodeError: 仍有未使用的数据.
        """
        if self._pos < self._end:
            raise DecodeError(
                f"{self._end - self._pos} bytes left after the value",
                ErrorKind.UNUSED_PARSE_DATA,
            )

    # ------------------------------------------------------------------ #
    #                               帧读取                                #
    # ------------------------------------------------------------------ #

    def _peek_frame(self) -> tuple[int, int, int]:
        """查看下一个帧而不移动游标.

        Returns:
            tuple[int, int, int]: (负载起始, 负载结束, 类型标签).
        """
        view, pos, end = self._view, self._pos, self._end
        if pos >= end:
            raise PartialDataError("No frame left to read", ErrorKind.EOF)

        i = pos
        while i < end and 0x30 <= view[i] <= 0x39:
            i += 1
        if i >= end:
            raise PartialDataError("Frame length is truncated", ErrorKind.EOF)
        if i == pos or view[i] != COLON:
            raise DecodeError(
                f"Invalid length prefix at offset {pos}", ErrorKind.PARSING_LENGTH
            )

        start = i + 1
        stop = start + int(bytes(view[pos:i]))
        if stop >= end:
            raise PartialDataError(
                f"Frame at offset {pos} needs {stop + 1 - end} more bytes",
                ErrorKind.EOF,
            )
        return start, stop, view[stop]

    def _expect_frame(self, tag: int, kind: ErrorKind) -> tuple[int, int]:
        start, stop, actual = self._peek_frame()
        if actual != tag:
            raise DecodeError(
                f"Expected segment {chr(tag)!r}, found {chr(actual)!r}", kind
            )
        return start, stop

    def _starts_with(self, prefix: bytes) -> bool:
        stop = self._pos + len(prefix)
        return stop <= self._end and self._view[self._pos : stop] == prefix

    def _parse_unsigned(self) -> int:
        start, stop = self._expect_frame(INTEGER, ErrorKind.PARSING_UNSIGNED)
        if start == stop:
            raise DecodeError("Empty integer segment", ErrorKind.PARSING_UNSIGNED)

        value = 0
        for c in self._view[start:stop]:
            if not 0x30 <= c <= 0x39:
                raise DecodeError(
                    f"Invalid digit {chr(c)!r} in unsigned integer",
                    ErrorKind.PARSING_UNSIGNED,
                )
            value = value * 10 + (c - 0x30)

        self._pos = stop + 1
        return value

    def _parse_signed(self) -> int:
        start, stop = self._expect_frame(INTEGER, ErrorKind.UNABLE_TO_PARSE_INT)
        digits = self._view[start:stop]
        negative = len(digits) > 0 and digits[0] == _MINUS
        if negative:
            digits = digits[1:]
        if not len(digits):
            raise DecodeError("Empty integer segment", ErrorKind.UNABLE_TO_PARSE_INT)

        value = 0
        for c in digits:
            if not 0x30 <= c <= 0x39:
                raise DecodeError(
                    f"Invalid digit {chr(c)!r} in integer",
                    ErrorKind.UNABLE_TO_PARSE_INT,
                )
            value *= 10
            if negative:
                value -= c - 0x30
            else:
                value += c - 0x30

        self._pos = stop + 1
        return value

    def _parse_bytes(self) -> memoryview:
        start, stop = self._expect_frame(STRING, ErrorKind.PARSING_STRING)
        self._pos = stop + 1
        return self._view[start:stop]

    def _parse_string(self) -> str:
        raw = self._parse_bytes()
        try:
            return str(raw, "utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(str(e), ErrorKind.NON_UTF8_STR) from e

    def _enter(self) -> None:
        if self._depth >= self._max_depth:
            raise DecodeError(
                f"Nesting depth exceeds {self._max_depth}", ErrorKind.NESTING_TOO_DEEP
            )
        self._depth += 1

    def _visit_compound(
        self, tag: int, kind: ErrorKind, visit: Any, access: Any
    ) -> Any:
        """收窄游标到复合帧的负载, 访问完成后恢复到帧之后."""
        start, stop = self._expect_frame(tag, kind)
        self._enter()
        outer_end = self._end
        self._pos, self._end = start, stop
        try:
            value = visit(access)
            if self._pos != self._end:
                raise DecodeError(
                    f"{self._end - self._pos} bytes left in {chr(tag)!r} segment",
                    kind,
                )
        finally:
            self._depth -= 1
        self._pos, self._end = stop + 1, outer_end
        return value

    # ------------------------------------------------------------------ #
    #                               形状入口                              #
    # ------------------------------------------------------------------ #

    def deserialize_any(self, visitor: Visitor[T]) -> T:
        """根据下一个帧尾部的类型标签自描述地读取."""
        tag = self._peek_frame()[2]
        if tag == NULL:
            return self.deserialize_unit(visitor)
        if tag == BOOL:
            return self.deserialize_bool(visitor)
        if tag == STRING:
            return self.deserialize_str(visitor)
        if tag == FLOAT:
            return self.deserialize_f64(visitor)
        if tag == INTEGER:
            return self.deserialize_i64(visitor)
        if tag == LIST:
            return self.deserialize_seq(visitor)
        if tag == DICT:
            return self.deserialize_map(visitor)
        raise DecodeError(
            f"Unknown segment type {chr(tag)!r}", ErrorKind.UNKNOWN_SEGMENT_TYPE
        )

    def deserialize_bool(self, visitor: Visitor[T]) -> T:
        # 精确匹配字面量, 不按长度判断
        if self._starts_with(TRUE_FRAME):
            self._pos += len(TRUE_FRAME)
            return visitor.visit_bool(True)
        if self._starts_with(FALSE_FRAME):
            self._pos += len(FALSE_FRAME)
            return visitor.visit_bool(False)
        raise DecodeError(kind=ErrorKind.PARSING_BOOL)

    def deserialize_i8(self, visitor: Visitor[T]) -> T:
        return visitor.visit_i64(self._parse_signed())

    def deserialize_i16(self, visitor: Visitor[T]) -> T:
        return visitor.visit_i64(self._parse_signed())

    def deserialize_i32(self, visitor: Visitor[T]) -> T:
        return visitor.visit_i64(self._parse_signed())

    def deserialize_i64(self, visitor: Visitor[T]) -> T:
        return visitor.visit_i64(self._parse_signed())

    def deserialize_u8(self, visitor: Visitor[T]) -> T:
        return visitor.visit_u64(self._parse_unsigned())

    def deserialize_u16(self, visitor: Visitor[T]) -> T:
        return visitor.visit_u64(self._parse_unsigned())

    def deserialize_u32(self, visitor: Visitor[T]) -> T:
        return visitor.visit_u64(self._parse_unsigned())

    def deserialize_u64(self, visitor: Visitor[T]) -> T:
        return visitor.visit_u64(self._parse_unsigned())

    def deserialize_f32(self, visitor: Visitor[T]) -> T:
        raise DecodeError("f32 is not supported", ErrorKind.UNSUPPORTED_TYPE)

    def deserialize_f64(self, visitor: Visitor[T]) -> T:
        raise DecodeError("f64 is not supported", ErrorKind.UNSUPPORTED_TYPE)

    def deserialize_str(self, visitor: Visitor[T]) -> T:
        return visitor.visit_str(self._parse_string())

    def deserialize_string(self, visitor: Visitor[T]) -> T:
        return self.deserialize_str(visitor)

    def deserialize_identifier(self, visitor: Visitor[T]) -> T:
        return self.deserialize_str(visitor)

    def deserialize_bytes(self, visitor: Visitor[T]) -> T:
        raw = self._parse_bytes()
        return visitor.visit_bytes(raw if self._zero_copy else raw.tobytes())

    def deserialize_option(self, visitor: Visitor[T]) -> T:
        if self._starts_with(NULL_FRAME):
            self._pos += len(NULL_FRAME)
            return visitor.visit_none()
        return visitor.visit_some(self)

    def deserialize_unit(self, visitor: Visitor[T]) -> T:
        if self._starts_with(NULL_FRAME):
            self._pos += len(NULL_FRAME)
            return visitor.visit_unit()
        raise DecodeError(kind=ErrorKind.PARSING_UNIT)

    def deserialize_unit_struct(self, name: str, visitor: Visitor[T]) -> T:
        return self.deserialize_unit(visitor)

    def deserialize_newtype_struct(self, name: str, visitor: Visitor[T]) -> T:
        return visitor.visit_newtype_struct(self)

    def deserialize_seq(self, visitor: Visitor[T]) -> T:
        return self._visit_compound(
            LIST, ErrorKind.PARSING_SEQ, visitor.visit_seq, _FrameSeqAccess(self)
        )

    def deserialize_tuple(self, length: int, visitor: Visitor[T]) -> T:
        return self.deserialize_seq(visitor)

    def deserialize_tuple_struct(
        self, name: str, length: int, visitor: Visitor[T]
    ) -> T:
        return self.deserialize_seq(visitor)

    def deserialize_map(self, visitor: Visitor[T]) -> T:
        return self._visit_compound(
            DICT, ErrorKind.PARSING_MAP, visitor.visit_map, _FrameMapAccess(self)
        )

    def deserialize_struct(
        self, name: str, fields: list[str], visitor: Visitor[T]
    ) -> T:
        return self.deserialize_map(visitor)

    def deserialize_enum(
        self, name: str, variants: list[str], visitor: Visitor[T]
    ) -> T:
        """读取枚举值.

        两种编码:
            - 裸字符串帧: 内容为变体名称 (单元变体).
            - 只含一个键值对的字典帧: 键为变体名称, 值为变体负载.
        """
        tag = self._peek_frame()[2]
        if tag == STRING:
            return visitor.visit_enum(UnitOnlyVariantAccess(self._parse_string()))
        if tag == DICT:
            return self._visit_compound(
                DICT, ErrorKind.PARSING_ENUM, visitor.visit_enum, _FrameEnumAccess(self)
            )
        raise DecodeError(
            f"Expected a string or dict segment for enum {name}, found {chr(tag)!r}",
            ErrorKind.PARSING_ENUM,
        )

    def deserialize_ignored_any(self, visitor: Visitor[T]) -> T:
        """跳过一个完整的帧."""
        stop = self._peek_frame()[1]
        self._pos = stop + 1
        return visitor.visit_unit()


class _FrameSeqAccess(SeqAccess):
    """逐个读取序列负载中的帧."""

    __slots__ = ("_de", "_index")

    def __init__(self, de: Deserializer):
        self._de = de
        self._index = 0

    def next_element(self, seed: DeserializeSeed[T]) -> T:
        if self._de.remaining == 0:
            return END
        try:
            value = seed.deserialize(self._de)
        except DecodeError as e:
            e.loc.insert(0, self._index)
            raise
        self._index += 1
        return value


class _FrameMapAccess(MapAccess):
    """逐对读取字典负载中的键帧与值帧."""

    __slots__ = ("_de", "_key")

    def __init__(self, de: Deserializer):
        self._de = de
        self._key: Any = None

    def next_key(self, seed: DeserializeSeed[T]) -> T:
        if self._de.remaining == 0:
            return END
        key = seed.deserialize(self._de)
        self._key = key
        return key

    def next_value(self, seed: DeserializeSeed[T]) -> T:
        try:
            return seed.deserialize(self._de)
        except DecodeError as e:
            key = self._key
            e.loc.insert(0, key if isinstance(key, (str, int)) else repr(key))
            raise


class _FrameEnumAccess(EnumAccess, VariantAccess):
    """字典形式的枚举值: 恰好一个 (名称, 负载) 对."""

    __slots__ = ("_de", "_name")

    def __init__(self, de: Deserializer):
        self._de = de
        self._name = ""

    def variant(self) -> tuple[str, VariantAccess]:
        if self._de.remaining == 0:
            raise DecodeError("Empty enum segment", ErrorKind.PARSING_ENUM)
        self._name = self._de._parse_string()
        return self._name, self

    def unit_variant(self) -> None:
        # 单元变体只能通过裸字符串编码
        raise DecodeError(
            f"Unit variant {self._name!r} encoded as a dict",
            ErrorKind.PARSING_UNIT_VARIANT,
        )

    def newtype_variant(self, seed: DeserializeSeed[T]) -> T:
        return self._in_variant(seed.deserialize, self._de)

    def tuple_variant(self, length: int, visitor: Visitor[T]) -> T:
        return self._in_variant(self._de.deserialize_seq, visitor)

    def struct_variant(self, fields: list[str], visitor: Visitor[T]) -> T:
        return self._in_variant(self._de.deserialize_map, visitor)

    def _in_variant(self, func: Any, arg: Any) -> Any:
        try:
            return func(arg)
        except DecodeError as e:
            e.loc.insert(0, self._name)
            raise


def from_bytes(
    data: ReadBuf, seed: DeserializeSeed[T], config: Config = DEFAULT_CONFIG
) -> T:
    """使用 `seed` 从输入中读取恰好一个顶层值.

    Raises:
        DecodeError: 输入格式错误, 或值之后仍有未使用的数据.
    """
    de = Deserializer(data, config)
    value = seed.deserialize(de)
    if not config.allow_trailing:
        de.end()
    return value
