"""TNetString序列化库.

提供了 Struct / Variant 定义、序列化(dumps)和反序列化(loads)功能.
"""

from .adapter import TNetTypeAdapter
from .api import decode, dump, dumps, encode, load, loads, parse_value
from .config import Config
from .de import Deserializer
from .exceptions import (
    DecodeError,
    EncodeError,
    ErrorKind,
    PartialDataError,
    TNetError,
    TNetTypeError,
    TNetValueError,
)
from .options import Option
from .ser import Serializer
from .stream import FrameReader, FrameWriter
from .struct import Field, Struct, Variant
from .types import I8, I16, I32, I64, U8, U16, U32, U64, IntSpec

__version__ = "0.1.0"

__all__ = [
    "I8",
    "I16",
    "I32",
    "I64",
    "U8",
    "U16",
    "U32",
    "U64",
    "Config",
    "DecodeError",
    "Deserializer",
    "EncodeError",
    "ErrorKind",
    "Field",
    "FrameReader",
    "FrameWriter",
    "IntSpec",
    "Option",
    "PartialDataError",
    "Serializer",
    "Struct",
    "TNetError",
    "TNetTypeAdapter",
    "TNetTypeError",
    "TNetValueError",
    "Variant",
    "__version__",
    "decode",
    "dump",
    "dumps",
    "encode",
    "load",
    "loads",
    "parse_value",
]
