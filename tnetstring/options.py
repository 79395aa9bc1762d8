"""TNetString序列化和反序列化的配置选项.

该模块定义了用于控制 `dumps` 和 `loads` 函数行为的选项标志.
"""

from enum import IntFlag


class Option(IntFlag):
    """TNetString 配置选项标志.

    可以使用位运算组合多个选项:
        option = Option.ZERO_COPY | Option.ALLOW_TRAILING
    """

    # 默认行为
    NONE = 0x0000

    # 零复制模式: 字节串目标返回输入的 memoryview 切片而不是 bytes
    ZERO_COPY = 0x0010

    # 顶层解码完成后允许输入中剩余未使用的数据
    ALLOW_TRAILING = 0x0020
