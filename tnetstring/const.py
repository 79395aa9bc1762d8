"""TNetString协议常量.

该模块定义了TNetString协议中使用的类型标签和其他常量.
"""

# 类型标签 (位于负载之后的单个字节)
BOOL = ord("!")
STRING = ord(",")
INTEGER = ord("#")
FLOAT = ord("^")
NULL = ord("~")
LIST = ord("]")
DICT = ord("}")

# 长度前缀与负载之间的分隔符
COLON = ord(":")

# 固定形式的帧
TRUE_FRAME = b"4:true!"
FALSE_FRAME = b"5:false!"
NULL_FRAME = b"0:~"

# 默认最大嵌套深度
DEFAULT_MAX_DEPTH = 100

# 每层嵌套在编解码路径上占用的解释器栈帧数上界
FRAMES_PER_LEVEL = 10
