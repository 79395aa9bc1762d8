"""TNetString 无模式解析器.

将帧解析为原生 Python 值树:
`bool`, `str`, `int`, `float`, `None`, `list`, `dict[str, Any]`.
"""

import re
from typing import Any

from .config import DEFAULT_CONFIG, Config
from .const import BOOL, DICT, FLOAT, INTEGER, LIST, NULL, STRING
from .exceptions import DecodeError, ErrorKind
from .framing import ReadBuf, as_view, take_frame
from .log import get_hexdump, logger

_INT_RE = re.compile(rb"[+-]?[0-9]+")
# float() 会接受空白和下划线, 但协议不接受
_FLOAT_REJECT = frozenset(b" \t\n\r\x0b\x0c_")

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


def parse_int(payload: memoryview) -> int:
    """将负载解析为有符号 64 位十进制整数."""
    raw = bytes(payload)
    if not _INT_RE.fullmatch(raw):
        raise DecodeError(f"Invalid integer literal {raw!r}", ErrorKind.UNABLE_TO_PARSE_INT)
    value = int(raw)
    if not _I64_MIN <= value <= _I64_MAX:
        raise DecodeError(
            f"Integer out of range: {value}", ErrorKind.UNABLE_TO_PARSE_INT
        )
    return value


def parse_float(payload: memoryview) -> float:
    """将负载解析为十进制浮点数."""
    raw = bytes(payload)
    if not raw or _FLOAT_REJECT.intersection(raw):
        raise DecodeError(
            f"Invalid float literal {raw!r}", ErrorKind.UNABLE_TO_PARSE_FLOAT
        )
    try:
        return float(raw)
    except ValueError as e:
        raise DecodeError(
            f"Invalid float literal {raw!r}", ErrorKind.UNABLE_TO_PARSE_FLOAT
        ) from e


class ValueParser:
    """TNetString 数据的无模式解析器.

    根据类型标签递归地将帧解析为 Python 值.
    """

    __slots__ = ("_max_depth",)

    _max_depth: int

    def __init__(self, config: Config = DEFAULT_CONFIG):
        self._max_depth = config.max_depth

    def parse(self, data: ReadBuf) -> tuple[memoryview, Any]:
        """解析输入开头的一个帧.

        Args:
            data: 输入数据.

        Returns:
            tuple[memoryview, Any]: (剩余输入, 解析出的值).

        Raises:
            DecodeError: 数据格式错误.
            PartialDataError: 数据不完整.
        """
        view = as_view(data)
        logger.debug("[ValueParser] 开始解析 %d 字节", len(view))
        try:
            value, rest = self._parse(view, 0)
        except DecodeError as e:
            logger.debug("[ValueParser] 解析错误: %s", e)
            raise
        except Exception as e:
            logger.error("[ValueParser] 解析错误: %s\n%s", e, get_hexdump(view, 0))
            raise

        logger.debug("[ValueParser] 成功解析, 剩余 %d 字节", len(rest))
        return rest, value

    def _parse(self, view: memoryview, depth: int) -> tuple[Any, memoryview]:
        payload, tag, end = take_frame(view)
        rest = view[end:]

        if tag == BOOL:
            # 只比较长度, 不比较内容
            return len(payload) == 4, rest
        if tag == STRING:
            return bytes(payload).decode("utf-8", errors="replace"), rest
        if tag == INTEGER:
            return parse_int(payload), rest
        if tag == FLOAT:
            return parse_float(payload), rest
        if tag == NULL:
            if len(payload):
                raise DecodeError(kind=ErrorKind.NON_ZERO_LENGTH_NULL)
            return None, rest
        if tag == LIST:
            return self._parse_list(payload, depth), rest
        if tag == DICT:
            return self._parse_dict(payload, depth), rest

        raise DecodeError(
            f"Unknown segment type {chr(tag)!r}", ErrorKind.UNKNOWN_SEGMENT_TYPE
        )

    def _check_depth(self, depth: int) -> None:
        if depth >= self._max_depth:
            raise DecodeError(
                f"Nesting depth exceeds {self._max_depth}", ErrorKind.NESTING_TOO_DEEP
            )

    def _parse_list(self, payload: memoryview, depth: int) -> list[Any]:
        self._check_depth(depth)
        items: list[Any] = []
        while len(payload):
            try:
                item, payload = self._parse(payload, depth + 1)
            except DecodeError as e:
                e.loc.insert(0, len(items))
                raise
            items.append(item)
        return items

    def _parse_dict(self, payload: memoryview, depth: int) -> dict[str, Any]:
        self._check_depth(depth)
        result: dict[str, Any] = {}
        while len(payload):
            key, payload = self._parse(payload, depth + 1)
            if not isinstance(key, str):
                raise DecodeError(
                    f"Dict key must be a string, got {type(key).__name__}",
                    ErrorKind.FOUND_NON_STRING_KEY,
                )
            try:
                value, payload = self._parse(payload, depth + 1)
            except DecodeError as e:
                e.loc.insert(0, key)
                raise
            result[key] = value
        return result


def parse(data: ReadBuf, config: Config = DEFAULT_CONFIG) -> tuple[memoryview, Any]:
    """解析输入开头的一个帧, 返回 (剩余输入, 值)."""
    return ValueParser(config).parse(data)


def parse_value(
    data: ReadBuf, config: Config = DEFAULT_CONFIG
) -> tuple[memoryview, Any]:
    """`parse` 的别名."""
    return parse(data, config)


def parse_exact(data: ReadBuf, config: Config = DEFAULT_CONFIG) -> Any:
    """解析恰好一个帧.

    Raises:
        DecodeError: 帧之后仍有未使用的数据 (除非设置了 ALLOW_TRAILING).
    """
    rest, value = parse(data, config)
    if len(rest) and not config.allow_trailing:
        raise DecodeError(
            f"{len(rest)} bytes left after the value", ErrorKind.UNUSED_PARSE_DATA
        )
    return value
