"""TNetString特定的异常类.

该模块为TNetString库定义了错误类型枚举和异常层次结构.
"""

from enum import Enum


class ErrorKind(Enum):
    """错误种类.

    每个成员的值是该错误的默认描述信息.
    """

    MESSAGE = "custom message"
    UNKNOWN_SEGMENT_TYPE = "unknown segment type"
    UNABLE_TO_PARSE_INT = "unable to parse integer"
    UNABLE_TO_PARSE_FLOAT = "unable to parse float"
    NON_ZERO_LENGTH_NULL = "null segment with non zero length"
    UNABLE_TO_TAKE = "unable to take the declared number of bytes"
    EOF = "error eof"
    FOUND_NON_STRING_KEY = "found non string key in dict"
    LENGTH_NOT_FOUND = "length not found but required"
    STACK_PROBLEM = "stack problem"
    NON_UTF8_STR = "error parsing string that wasn't utf8"
    UNSUPPORTED_TYPE = "unsupported type"
    PARSING_LENGTH = "error parsing data length"
    UNUSED_PARSE_DATA = "unused parse data"
    PARSING_UNIT = "error parsing unit"
    PARSING_BOOL = "error parsing bool"
    PARSING_MAP = "error parsing map"
    PARSING_ENUM = "error parsing enum"
    PARSING_UNSIGNED = "error parsing unsigned"
    PARSING_STRING = "error parsing string"
    PARSING_SEQ = "error parsing sequence"
    PARSING_UNIT_VARIANT = "error parsing unit variant"
    NESTING_TOO_DEEP = "nesting too deep"


class TNetError(Exception):
    """所有 TNetString 异常的基类."""

    def __init__(
        self, msg: str | None = None, kind: ErrorKind = ErrorKind.MESSAGE
    ) -> None:
        """初始化异常.

        Args:
            msg: 错误描述信息, 缺省时使用 `kind` 的默认描述.
            kind: 错误种类.
        """
        super().__init__(msg if msg is not None else kind.value)
        self.kind = kind


class DecodeError(TNetError):
    """反序列化失败时抛出.

    Case:
        - 长度前缀无法解析.
        - 类型标签不符合预期.
        - 解码完成后仍有剩余数据.
    """

    def __init__(
        self,
        msg: str | None = None,
        kind: ErrorKind = ErrorKind.MESSAGE,
        loc: list[str | int] | None = None,
    ) -> None:
        """初始化解码错误.

        Args:
            msg: 错误描述信息.
            kind: 错误种类.
            loc: 错误发生的位置路径 (字段名或索引).
        """
        super().__init__(msg, kind)
        self.loc = loc or []

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.loc:
            # 格式化为 dotted path
            loc_str = ".".join(str(x) for x in self.loc)
            return f"{base_msg} (at {loc_str})"
        return base_msg


class PartialDataError(DecodeError):
    """输入数据不完整时抛出.

    声明的长度超过剩余输入时抛出, 表示需要更多数据才能完成解析.
    """

    def __init__(
        self,
        msg: str | None = None,
        kind: ErrorKind = ErrorKind.UNABLE_TO_TAKE,
        loc: list[str | int] | None = None,
    ) -> None:
        super().__init__(msg, kind, loc)


class EncodeError(TNetError):
    """序列化失败时抛出.

    Case:
        - 对象不匹配目标类型.
        - 字节串不是合法的 UTF-8.
        - 暂存栈状态异常.
    """

    pass


class TNetTypeError(EncodeError, TypeError):
    """类型不匹配时抛出."""

    pass


class TNetValueError(EncodeError, ValueError):
    """值无效时抛出 (如超出范围)."""

    pass
