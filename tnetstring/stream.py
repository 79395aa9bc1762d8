"""TNetString流式处理模块.

该模块提供在内存缓冲区上连续写入和读取多个帧的 Writer 和 Reader 类.
TNetString 帧自带长度前缀, 因此不需要额外的分隔符.
"""

from collections.abc import Generator
from typing import Any

from .api import dumps, loads
from .config import Config
from .exceptions import DecodeError
from .framing import read_length
from .options import Option


class FrameWriter:
    """TNetString流式写入器.

    允许增量序列化多个对象到同一个缓冲区.
    """

    def __init__(self, option: Option = Option.NONE, max_depth: int | None = None):
        """初始化流式写入器.

        Args:
            option: 编码选项.
            max_depth: 最大嵌套深度.
        """
        self._config = Config.from_params(option, max_depth)
        self._buffer = bytearray()

    def pack(self, obj: Any, target: Any = None) -> None:
        """序列化对象并追加到缓冲区."""
        data = dumps(
            obj, target, self._config.flags, max_depth=self._config.max_depth
        )
        self._buffer.extend(data)

    def write(self, obj: Any, target: Any = None) -> None:
        """`pack` 的别名."""
        self.pack(obj, target)

    def pack_bytes(self, data: bytes) -> None:
        """直接追加已编码的帧."""
        self._buffer.extend(data)

    def get_buffer(self) -> bytes:
        """获取缓冲区数据的副本."""
        return bytes(self._buffer)

    def clear(self) -> None:
        """清空缓冲区."""
        self._buffer.clear()


class FrameReader:
    """TNetString流式读取器.

    通过 `feed()` 输入数据, 迭代时产出所有完整的值;
    末尾不完整的帧保留在缓冲区中, 等待更多数据.

    Usage:
        >>> reader = FrameReader()
        >>> reader.feed(b"5:hello,2:1")
        >>> list(reader)
        ['hello']
        >>> reader.feed(b"0#")
        >>> list(reader)
        [10]
    """

    def __init__(
        self,
        target: Any = None,
        option: Option = Option.NONE,
        max_buffer_size: int = 10 * 1024 * 1024,  # 10MB
        max_depth: int | None = None,
    ):
        """初始化流式读取器.

        Args:
            target: 目标类型, None 表示无模式解析.
            option: 解码选项.
            max_buffer_size: 最大缓冲区大小 (防止内存耗尽).
            max_depth: 最大嵌套深度.
        """
        self._target = target
        self._config = Config.from_params(option, max_depth)
        self._buffer = bytearray()
        self._offset = 0
        self._max_buffer_size = max_buffer_size

    @property
    def pending(self) -> int:
        """缓冲区中尚未消费的字节数."""
        return len(self._buffer) - self._offset

    def feed(self, data: bytes | bytearray | memoryview) -> None:
        """输入数据到内部缓冲区.

        Raises:
            BufferError: 缓冲区超过最大大小.
        """
        if self.pending + len(data) > self._max_buffer_size:
            raise BufferError("FrameReader buffer exceeded max size")
        self._compact()
        self._buffer.extend(data)

    def feed_data(self, data: bytes | bytearray | memoryview) -> None:
        """`feed` 的别名."""
        self.feed(data)

    def _compact(self) -> None:
        """丢弃已消费的前缀."""
        if self._offset:
            del self._buffer[: self._offset]
            self._offset = 0

    def _frame_end(self) -> int | None:
        """返回下一个完整帧之后的位置, 帧尚不完整时返回 None."""
        buf, pos = self._buffer, self._offset
        try:
            length, start = read_length(buf, pos, len(buf))
        except DecodeError:
            if buf[pos:].isdigit():
                # 长度前缀尚未接收完整
                return None
            raise
        stop = start + length
        if stop >= len(buf):
            return None
        return stop + 1

    def __iter__(self) -> Generator[Any, None, None]:
        """从缓冲区解析所有完整的帧.

        每个帧只复制一次, 已消费的前缀在本轮迭代结束或下一次 `feed()` 时丢弃.

        Yields:
            解析出的值.

        Raises:
            DecodeError: 缓冲区中的数据格式错误.
        """
        option = self._config.flags & ~Option.ALLOW_TRAILING
        try:
            while self._offset < len(self._buffer):
                end = self._frame_end()
                if end is None:
                    break

                value = loads(
                    self._buffer[self._offset : end],
                    self._target,
                    option,
                    max_depth=self._config.max_depth,
                )
                self._offset = end
                yield value
        finally:
            self._compact()
