"""TNetString API模块.

提供用于 TNetString 序列化和反序列化的高级接口
`dumps`, `loads`, `dump`, `load`, 以及文本形式的 `encode` / `decode`.
支持 Struct / Variant 对象, 带类型注解的容器以及普通 Python 值的编解码.
"""

from typing import IO, Any, TypeVar, overload

from .config import Config
from .de import Deserializer
from .exceptions import DecodeError, EncodeError
from .framing import ReadBuf
from .log import get_hexdump, logger
from .model import compile_type
from .options import Option
from .parser import parse, parse_exact
from .ser import Serializer

T = TypeVar("T")


def parse_value(
    data: ReadBuf,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> tuple[memoryview, Any]:
    """无模式地解析输入开头的一个帧.

    Args:
        data: 输入数据.
        option: 解码选项.
        max_depth: 最大嵌套深度, None 表示使用默认值.

    Returns:
        tuple[memoryview, Any]: (剩余输入, 解析出的值).

    Examples:
        >>> rest, value = parse_value(b"5:hello,4:true!")
        >>> value, bytes(rest)
        ('hello', b'4:true!')
    """
    return parse(data, Config.from_params(option, max_depth))


def _decode(data: ReadBuf, target: Any, config: Config) -> Any:
    codec = compile_type(target)
    de = Deserializer(data, config)
    logger.debug("[loads] 开始解码 %d 字节, 目标 %r", de.remaining, target)
    try:
        value = codec.deserialize(de)
        if not config.allow_trailing:
            de.end()
    except DecodeError as e:
        logger.debug(
            "[loads] 解码失败: %s\n%s", e, get_hexdump(de.data, de.position)
        )
        raise
    except Exception as e:
        logger.error(
            "[loads] 解码错误: %s\n%s", e, get_hexdump(de.data, de.position)
        )
        raise

    logger.debug("[loads] 成功解码, 消耗 %d 字节", de.position)
    return value


@overload
def loads(
    data: ReadBuf,
    target: None = None,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> Any: ...


@overload
def loads(
    data: ReadBuf,
    target: type[T],
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> T: ...


def loads(
    data: ReadBuf,
    target: Any = None,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> Any:
    """反序列化 TNetString 数据为 Python 对象.

    Args:
        data: 输入数据 (`bytes`, `bytearray`, `memoryview` 或 `str`).
        target: 目标类型.
            - `None` (默认): 无模式解析, 返回 `bool`, `str`, `int`, `float`,
              `None`, `list`, `dict` 组成的值树.
            - 类型注解 (如 `Struct` 子类, `list[U8]`, `A | B`): 按类型读取.
        option: 解码选项 (如 `Option.ZERO_COPY`).
        max_depth: 最大嵌套深度, None 表示使用默认值 (100).

    Returns:
        Any: 解码后的值.

    Raises:
        DecodeError: 数据格式错误, 或值之后仍有未使用的数据.
        PartialDataError: 数据不完整.

    Examples:
        >>> loads(b"12:6:option,0:~}")
        {'option': None}
        >>> loads(b"10:2:10#2:10#]", list[U8])
        [10, 10]
    """
    config = Config.from_params(option, max_depth)
    if target is None:
        return parse_exact(data, config)
    return _decode(data, target, config)


def decode(
    text: ReadBuf,
    target: type[T] | Any,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> T:
    """按目标类型解码恰好一个顶层帧.

    与 `loads` 相同, 但必须提供目标类型.
    """
    return _decode(text, target, Config.from_params(option, max_depth))


def dumps(
    obj: Any,
    target: Any = None,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> bytes:
    """序列化对象为 TNetString 字节数据.

    Args:
        obj: 要序列化的 Python 对象.
        target: 编码所用的类型注解. None 表示按运行时类型推断
            (`int` 按 i64 编码, `dict` 按字典编码, `Struct` 按其字段编码).
        option: 编码选项.
        max_depth: 最大嵌套深度, None 表示使用默认值.

    Returns:
        bytes: 序列化后的数据.

    Raises:
        EncodeError: 对象无法按目标类型编码.

    Examples:
        >>> dumps({"int": 10})
        b'11:3:int,2:10#}'
        >>> dumps([[10, 10]], list[list[U32]])
        b'14:10:2:10#2:10#]]'
    """
    config = Config.from_params(option, max_depth)
    codec = compile_type(Any if target is None else target)
    ser = Serializer(config)
    logger.debug("[dumps] 开始编码 %s", type(obj).__name__)
    try:
        codec.serialize(obj, ser)
        data = bytes(ser.finish())
    except EncodeError as e:
        logger.debug("[dumps] 编码失败: %s", e)
        raise
    except Exception as e:
        logger.error("[dumps] 编码错误: %s", e)
        raise

    logger.debug("[dumps] 成功编码 %d 字节", len(data))
    return data


def encode(
    obj: Any,
    target: Any = None,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> str:
    """序列化对象为 TNetString 文本.

    Examples:
        >>> encode(b"012345")
        '6:012345,'
    """
    return dumps(obj, target, option, max_depth=max_depth).decode("utf-8")


def dump(
    obj: Any,
    fp: IO[bytes],
    target: Any = None,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> None:
    """序列化对象并写入文件.

    Args:
        obj: 要序列化的对象.
        fp: 文件类对象, 必须实现 `write(bytes)` 方法.
        target: 编码所用的类型注解.
        option: 编码选项.
        max_depth: 最大嵌套深度.
    """
    fp.write(dumps(obj, target, option, max_depth=max_depth))


def load(
    fp: IO[bytes],
    target: Any = None,
    option: Option = Option.NONE,
    *,
    max_depth: int | None = None,
) -> Any:
    """从文件读取全部数据并反序列化.

    Args:
        fp: 文件类对象, 必须实现 `read()` 方法.
        target: 目标类型, None 表示无模式解析.
        option: 解码选项.
        max_depth: 最大嵌套深度.
    """
    return loads(fp.read(), target, option, max_depth=max_depth)
