"""TNetString 帧读取原语.

一个帧的形式为 `<长度>:<负载><类型标签>`, 其中长度是负载的精确字节数.
该模块只负责恢复帧边界, 不解释负载内容.
"""

from typing import NamedTuple

from .const import COLON
from .exceptions import DecodeError, ErrorKind, PartialDataError

ReadBuf = bytes | bytearray | memoryview | str


class Frame(NamedTuple):
    """一个完整的帧.

    Attributes:
        payload: 负载 (输入的零复制切片).
        tag: 紧跟负载的类型标签字节.
        end: 标签之后的下一个位置.
    """

    payload: memoryview
    tag: int
    end: int


def as_view(data: ReadBuf) -> memoryview:
    """将输入统一为只读的字节 memoryview.

    `str` 输入按 UTF-8 编码, 长度前缀始终以字节计.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    view = memoryview(data)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


def read_length(
    view: bytes | bytearray | memoryview, pos: int, end: int
) -> tuple[int, int]:
    """读取长度前缀.

    Args:
        view: 输入数据, 可以直接是可变的 `bytearray`.
        pos: 长度前缀的起始位置.
        end: 可读区域的结束位置 (不含).

    Returns:
        tuple[int, int]: (负载长度, 负载起始位置).

    Raises:
        DecodeError: 数字序列为空或没有以 `:` 结尾.
    """
    i = pos
    while i < end and 0x30 <= view[i] <= 0x39:
        i += 1

    if i == pos or i >= end or view[i] != COLON:
        raise DecodeError(
            f"Invalid length prefix at offset {pos}", ErrorKind.UNABLE_TO_PARSE_INT
        )

    return int(bytes(view[pos:i])), i + 1


def take_frame(data: ReadBuf, pos: int = 0, end: int | None = None) -> Frame:
    """从 `pos` 处读取一个完整的帧.

    Args:
        data: 输入数据.
        pos: 帧的起始位置.
        end: 可读区域的结束位置 (不含), 默认为输入末尾.

    Returns:
        Frame: 负载, 标签以及帧之后的位置.

    Raises:
        DecodeError: 长度前缀无法解析.
        PartialDataError: 声明的长度超过剩余输入.
    """
    view = as_view(data)
    if end is None:
        end = len(view)

    length, start = read_length(view, pos, end)
    stop = start + length
    if stop >= end:
        raise PartialDataError(
            f"Declared length {length} exceeds remaining {end - start} bytes"
        )

    return Frame(view[start:stop], view[stop], stop + 1)


def split_frame(data: ReadBuf) -> tuple[memoryview, int, memoryview]:
    """读取第一个帧并返回 (负载, 标签, 剩余输入)."""
    view = as_view(data)
    frame = take_frame(view)
    return frame.payload, frame.tag, view[frame.end :]
