"""Python 类型注解到编解码器的编译.

`compile_type` 将类型注解 (如 `list[U8]`, `dict[str, int]`, `Struct` 子类,
`Variant` 子类的联合) 编译为 `Codec`. 编解码器通过 `Serializer` 写出,
通过 `Visitor` 驱动 `Deserializer` 读入, 因此两者都不需要了解目标类型.
"""

import abc
import enum
import types as stdlib_types
from collections.abc import Callable, Iterable
from typing import (
    Annotated,
    Any,
    Literal,
    NewType,
    Union,
    get_args,
    get_origin,
)

from pydantic import ValidationError

from .exceptions import DecodeError, TNetTypeError, TNetValueError
from .struct import Struct, Variant
from .types import I64_SPEC, IntSpec
from .visitor import (
    END,
    EnumAccess,
    MapAccess,
    SeqAccess,
    Visitor,
    duplicate_field,
    invalid_length,
    invalid_value,
    missing_field,
    unknown_variant,
)

# ---------------------------------------------------------------------- #
#                                  基类                                  #
# ---------------------------------------------------------------------- #


class Codec(abc.ABC):
    """单个类型的编解码器.

    实例同时满足 `DeserializeSeed` 协议, 可以直接传给
    `SeqAccess.next_element` 等方法.
    """

    expecting: str = "a value"

    @abc.abstractmethod
    def serialize(self, value: Any, ser: Any) -> None:
        """将 `value` 写入序列化器."""
        raise NotImplementedError

    @abc.abstractmethod
    def deserialize(self, de: Any) -> Any:
        """从反序列化器读取一个值."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.expecting})"


class _ValueVisitor(Visitor[Any]):
    """只接受一种标量的访问者."""

    def __init__(self, expecting: str):
        self.expecting = expecting


# ---------------------------------------------------------------------- #
#                                  标量                                  #
# ---------------------------------------------------------------------- #


class _BoolVisitor(_ValueVisitor):
    def visit_bool(self, value: bool) -> bool:
        return value


class BoolCodec(Codec):
    expecting = "a boolean"

    def __init__(self) -> None:
        self._visitor = _BoolVisitor(self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        if not isinstance(value, bool):
            raise TNetTypeError(f"Expected bool, got {type(value).__name__}")
        ser.serialize_bool(value)

    def deserialize(self, de: Any) -> bool:
        return de.deserialize_bool(self._visitor)


class _IntVisitor(_ValueVisitor):
    def __init__(self, spec: IntSpec):
        super().__init__(spec.name)
        self._spec = spec

    def _check(self, value: int) -> int:
        if not self._spec.contains(value):
            raise invalid_value(f"integer `{value}`", self.expecting)
        return value

    def visit_i64(self, value: int) -> int:
        return self._check(value)

    def visit_u64(self, value: int) -> int:
        return self._check(value)


class IntCodec(Codec):
    """固定宽度的整数编解码器."""

    def __init__(self, spec: IntSpec = I64_SPEC):
        self.spec = spec
        self.expecting = spec.name
        self._visitor = _IntVisitor(spec)

    def serialize(self, value: Any, ser: Any) -> None:
        getattr(ser, f"serialize_{self.spec.name}")(value)

    def deserialize(self, de: Any) -> int:
        return getattr(de, f"deserialize_{self.spec.name}")(self._visitor)


class _FloatVisitor(_ValueVisitor):
    def visit_f64(self, value: float) -> float:
        return value


class FloatCodec(Codec):
    expecting = "f64"

    def __init__(self) -> None:
        self._visitor = _FloatVisitor(self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        ser.serialize_f64(value)

    def deserialize(self, de: Any) -> float:
        return de.deserialize_f64(self._visitor)


class _StrVisitor(_ValueVisitor):
    def visit_str(self, value: str) -> str:
        return value


class StrCodec(Codec):
    expecting = "a string"

    def __init__(self) -> None:
        self._visitor = _StrVisitor(self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        ser.serialize_str(value)

    def deserialize(self, de: Any) -> str:
        return de.deserialize_string(self._visitor)


class _BytesVisitor(_ValueVisitor):
    def visit_bytes(self, value: bytes | memoryview) -> bytes | memoryview:
        return value


class BytesCodec(Codec):
    expecting = "a byte array"

    def __init__(self) -> None:
        self._visitor = _BytesVisitor(self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        ser.serialize_bytes(value)

    def deserialize(self, de: Any) -> bytes | memoryview:
        return de.deserialize_bytes(self._visitor)


class _UnitVisitor(_ValueVisitor):
    def visit_unit(self) -> None:
        return None


class UnitCodec(Codec):
    expecting = "unit"

    def __init__(self) -> None:
        self._visitor = _UnitVisitor(self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        if value is not None:
            raise TNetTypeError(f"Expected None, got {type(value).__name__}")
        ser.serialize_unit()

    def deserialize(self, de: Any) -> None:
        return de.deserialize_unit(self._visitor)


class IgnoredCodec(Codec):
    """跳过一个值, 用于结构体中的未知键."""

    expecting = "any value"

    def __init__(self) -> None:
        self._visitor = _UnitVisitor(self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        raise TNetTypeError("Ignored values cannot be serialized")

    def deserialize(self, de: Any) -> None:
        return de.deserialize_ignored_any(self._visitor)


_IGNORED = IgnoredCodec()
_STR = StrCodec()


# ---------------------------------------------------------------------- #
#                               包装类型                                  #
# ---------------------------------------------------------------------- #


class _OptionVisitor(_ValueVisitor):
    def __init__(self, inner: Codec):
        super().__init__("option")
        self._inner = inner

    def visit_none(self) -> None:
        return None

    def visit_some(self, deserializer: Any) -> Any:
        return self._inner.deserialize(deserializer)


class OptionalCodec(Codec):
    expecting = "option"

    def __init__(self, inner: Codec):
        self.inner = inner
        self._visitor = _OptionVisitor(inner)

    def serialize(self, value: Any, ser: Any) -> None:
        if value is None:
            ser.serialize_none()
        else:
            self.inner.serialize(value, ser)

    def deserialize(self, de: Any) -> Any:
        return de.deserialize_option(self._visitor)


class _NewtypeVisitor(_ValueVisitor):
    def __init__(self, name: str, inner: Codec):
        super().__init__(f"newtype struct {name}")
        self._inner = inner

    def visit_newtype_struct(self, deserializer: Any) -> Any:
        return self._inner.deserialize(deserializer)


class NewTypeCodec(Codec):
    """`typing.NewType` 的编解码器, 线上表示与底层类型相同."""

    def __init__(self, name: str, inner: Codec):
        self.name = name
        self.inner = inner
        self.expecting = f"newtype struct {name}"
        self._visitor = _NewtypeVisitor(name, inner)

    def serialize(self, value: Any, ser: Any) -> None:
        self.inner.serialize(value, ser)

    def deserialize(self, de: Any) -> Any:
        return de.deserialize_newtype_struct(self.name, self._visitor)


class LiteralCodec(Codec):
    """`Literal[...]` 的编解码器: 按值的类型编码, 解码后检查取值."""

    def __init__(self, values: tuple[Any, ...], inner: Codec):
        self.values = values
        self.inner = inner
        self.expecting = "one of " + ", ".join(repr(v) for v in values)

    def serialize(self, value: Any, ser: Any) -> None:
        if value not in self.values:
            raise TNetValueError(f"{value!r} is not {self.expecting}")
        self.inner.serialize(value, ser)

    def deserialize(self, de: Any) -> Any:
        value = self.inner.deserialize(de)
        if value not in self.values:
            raise invalid_value(repr(value), self.expecting)
        return value


# ---------------------------------------------------------------------- #
#                                 容器                                    #
# ---------------------------------------------------------------------- #


class _SeqVisitor(_ValueVisitor):
    def __init__(self, item: Codec, factory: Callable[[list[Any]], Any]):
        super().__init__("a sequence")
        self._item = item
        self._factory = factory

    def visit_seq(self, seq: SeqAccess) -> Any:
        items: list[Any] = []
        while True:
            item = seq.next_element(self._item)
            if item is END:
                break
            items.append(item)
        return self._factory(items)


class SeqCodec(Codec):
    """变长序列 (`list`, `set`, `frozenset`, `tuple[X, ...]`)."""

    expecting = "a sequence"

    def __init__(self, item: Codec, factory: Callable[[list[Any]], Any] = list):
        self.item = item
        self.factory = factory
        self._visitor = _SeqVisitor(item, factory)

    def serialize(self, value: Any, ser: Any) -> None:
        if isinstance(value, (str, bytes, bytearray, memoryview, dict)) or not (
            isinstance(value, Iterable)
        ):
            raise TNetTypeError(f"Expected a sequence, got {type(value).__name__}")
        ser.begin_seq()
        for item in value:
            self.item.serialize(item, ser)
        ser.end_seq()

    def deserialize(self, de: Any) -> Any:
        return de.deserialize_seq(self._visitor)


class _TupleVisitor(_ValueVisitor):
    def __init__(self, items: list[Codec], expecting: str):
        super().__init__(expecting)
        self._items = items

    def visit_seq(self, seq: SeqAccess) -> list[Any]:
        values = []
        for i, codec in enumerate(self._items):
            value = seq.next_element(codec)
            if value is END:
                raise invalid_length(i, self.expecting)
            values.append(value)
        if seq.next_element(_IGNORED) is not END:
            raise invalid_length(len(self._items) + 1, self.expecting)
        return values


class TupleCodec(Codec):
    """定长元组 `tuple[A, B, ...]`."""

    def __init__(self, items: list[Codec]):
        self.items = items
        self.expecting = f"a tuple of size {len(items)}"
        self._visitor = _TupleVisitor(items, self.expecting)

    def serialize(self, value: Any, ser: Any) -> None:
        if not isinstance(value, (tuple, list)):
            raise TNetTypeError(f"Expected a tuple, got {type(value).__name__}")
        if len(value) != len(self.items):
            raise TNetValueError(
                f"Expected {self.expecting}, got {len(value)} elements"
            )
        ser.begin_tuple(len(self.items))
        for codec, item in zip(self.items, value):
            codec.serialize(item, ser)
        ser.end_tuple()

    def deserialize(self, de: Any) -> tuple[Any, ...]:
        return tuple(de.deserialize_tuple(len(self.items), self._visitor))


class NamedTupleCodec(Codec):
    """`NamedTuple` 子类, 编码为元组结构体 (列表)."""

    def __init__(self, cls: type):
        self.cls = cls
        self.expecting = f"tuple struct {cls.__name__}"
        self._items: list[Codec] | None = None

    def _codecs(self) -> list[Codec]:
        if self._items is None:
            hints = getattr(self.cls, "__annotations__", {})
            self._items = [
                compile_type(hints.get(name, Any)) for name in self.cls._fields
            ]
        return self._items

    def serialize(self, value: Any, ser: Any) -> None:
        if not isinstance(value, self.cls):
            raise TNetTypeError(
                f"Expected {self.cls.__name__}, got {type(value).__name__}"
            )
        items = self._codecs()
        ser.begin_tuple(len(items))
        for codec, item in zip(items, value):
            codec.serialize(item, ser)
        ser.end_tuple()

    def deserialize(self, de: Any) -> Any:
        items = self._codecs()
        values = de.deserialize_tuple_struct(
            self.cls.__name__, len(items), _TupleVisitor(items, self.expecting)
        )
        return self.cls(*values)


class _MapVisitor(_ValueVisitor):
    def __init__(self, key: Codec, value: Codec):
        super().__init__("a map")
        self._key = key
        self._value = value

    def visit_map(self, mapping: MapAccess) -> dict[Any, Any]:
        result: dict[Any, Any] = {}
        while True:
            key = mapping.next_key(self._key)
            if key is END:
                break
            result[key] = mapping.next_value(self._value)
        return result


class MapCodec(Codec):
    expecting = "a map"

    def __init__(self, key: Codec, value: Codec):
        self.key = key
        self.value = value
        self._visitor = _MapVisitor(key, value)

    def serialize(self, value: Any, ser: Any) -> None:
        if not isinstance(value, dict):
            raise TNetTypeError(f"Expected dict, got {type(value).__name__}")
        ser.begin_map(len(value))
        for k, v in value.items():
            self.key.serialize(k, ser)
            self.value.serialize(v, ser)
        ser.end_map()

    def deserialize(self, de: Any) -> dict[Any, Any]:
        return de.deserialize_map(self._visitor)


# ---------------------------------------------------------------------- #
#                            结构体与枚举                                 #
# ---------------------------------------------------------------------- #


def _materialize(value: Any) -> Any:
    """将零复制的 memoryview 转为 bytes, 以便 Pydantic 校验."""
    if isinstance(value, memoryview):
        return value.tobytes()
    if isinstance(value, list):
        return [_materialize(v) for v in value]
    if isinstance(value, tuple) and not hasattr(value, "_fields"):
        return tuple(_materialize(v) for v in value)
    if isinstance(value, dict):
        return {k: _materialize(v) for k, v in value.items()}
    return value


def _build(cls: type[Struct], data: dict[str, Any]) -> Any:
    try:
        return cls.model_validate(_materialize(data))
    except ValidationError as e:
        raise DecodeError(f"invalid {cls.__name__}: {e}") from e


class StructFields:
    """结构体字段的编译结果 (属性名, 线上键, 编解码器), 按声明顺序."""

    def __init__(self, cls: type[Struct]):
        self.cls = cls
        self._fields: list[tuple[str, str, Codec]] | None = None

    @property
    def fields(self) -> list[tuple[str, str, Codec]]:
        # 延迟编译, 支持自引用结构体
        if self._fields is None:
            compiled = []
            for attr, key in self.cls.__tnet_fields__.items():
                info = self.cls.model_fields[attr]
                specs = [m for m in info.metadata if isinstance(m, IntSpec)]
                tp = Annotated[(info.annotation, *specs)] if specs else info.annotation
                compiled.append((attr, key, compile_type(tp)))
            self._fields = compiled
        return self._fields

    @property
    def keys(self) -> list[str]:
        return [key for _, key, _ in self.fields]

    def check_instance(self, value: Any) -> None:
        if not isinstance(value, self.cls):
            raise TNetTypeError(
                f"Expected {self.cls.__name__}, got {type(value).__name__}"
            )

    def serialize_entries(self, value: Any, ser: Any) -> None:
        for attr, key, codec in self.fields:
            ser.serialize_str(key)
            codec.serialize(getattr(value, attr), ser)

    def serialize_items(self, value: Any, ser: Any) -> None:
        for attr, _, codec in self.fields:
            codec.serialize(getattr(value, attr), ser)

    def from_items(self, values: list[Any]) -> Any:
        return _build(
            self.cls, {attr: v for (attr, _, _), v in zip(self.fields, values)}
        )


class _StructVisitor(_ValueVisitor):
    def __init__(self, spec: StructFields):
        super().__init__(f"struct {spec.cls.__name__}")
        self._spec = spec

    def visit_map(self, mapping: MapAccess) -> Any:
        by_key = {key: (attr, codec) for attr, key, codec in self._spec.fields}
        data: dict[str, Any] = {}
        while True:
            key = mapping.next_key(_STR)
            if key is END:
                break
            entry = by_key.get(key)
            if entry is None:
                mapping.next_value(_IGNORED)
                continue
            attr, codec = entry
            if attr in data:
                raise duplicate_field(key)
            data[attr] = mapping.next_value(codec)

        model_fields = self._spec.cls.model_fields
        for attr, key, _ in self._spec.fields:
            if attr not in data and model_fields[attr].is_required():
                raise missing_field(key)
        return _build(self._spec.cls, data)


class StructCodec(Codec):
    """`Struct` 子类, 编码为以线上键为键的字典."""

    def __init__(self, cls: type[Struct]):
        self.cls = cls
        self.expecting = f"struct {cls.__name__}"
        self._spec = StructFields(cls)
        self._visitor = _StructVisitor(self._spec)

    def serialize(self, value: Any, ser: Any) -> None:
        self._spec.check_instance(value)
        ser.begin_struct(self.cls.__name__, len(self._spec.fields))
        self._spec.serialize_entries(value, ser)
        ser.end_struct()

    def deserialize(self, de: Any) -> Any:
        return de.deserialize_struct(self.cls.__name__, self._spec.keys, self._visitor)


class _EnumVisitor(_ValueVisitor):
    def __init__(self, cls: type[enum.Enum]):
        super().__init__(f"enum {cls.__name__}")
        self._cls = cls

    def visit_enum(self, data: EnumAccess) -> enum.Enum:
        name, access = data.variant()
        member = self._cls.__members__.get(name)
        if member is None:
            raise unknown_variant(name, list(self._cls.__members__))
        access.unit_variant()
        return member


class EnumCodec(Codec):
    """`enum.Enum` 子类: 以成员名称表示的单元变体."""

    def __init__(self, cls: type[enum.Enum]):
        self.cls = cls
        self.expecting = f"enum {cls.__name__}"
        self._names = list(cls.__members__)
        self._visitor = _EnumVisitor(cls)

    def serialize(self, value: Any, ser: Any) -> None:
        if not isinstance(value, self.cls):
            raise TNetTypeError(
                f"Expected {self.cls.__name__}, got {type(value).__name__}"
            )
        ser.serialize_unit_variant(
            self.cls.__name__, self._names.index(value.name), value.name
        )

    def deserialize(self, de: Any) -> enum.Enum:
        return de.deserialize_enum(self.cls.__name__, self._names, self._visitor)


class _VariantVisitor(_ValueVisitor):
    def __init__(self, codec: "VariantCodec"):
        super().__init__(codec.expecting)
        self._codec = codec

    def visit_enum(self, data: EnumAccess) -> Any:
        name, access = data.variant()
        spec = self._codec.by_name.get(name)
        if spec is None:
            raise unknown_variant(name, list(self._codec.by_name))

        kind = spec.cls.__tnet_kind__
        if kind == "unit":
            access.unit_variant()
            return _build(spec.cls, {})
        if kind == "newtype":
            attr, _, codec = spec.fields[0]
            return _build(spec.cls, {attr: access.newtype_variant(codec)})
        if kind == "tuple":
            items = [codec for _, _, codec in spec.fields]
            visitor = _TupleVisitor(items, f"tuple variant {name}")
            return spec.from_items(access.tuple_variant(len(items), visitor))
        return access.struct_variant(spec.keys, _StructVisitor(spec))


class VariantCodec(Codec):
    """一组 `Variant` 子类构成的枚举.

    线上形式:
        - 单元变体: `<名称>,`
        - 其他变体: `{<名称>, <负载>}`
    """

    def __init__(self, classes: list[type[Variant]]):
        self.classes = classes
        self.name = "|".join(c.__name__ for c in classes)
        self.expecting = f"enum {self.name}"
        self.by_name: dict[str, StructFields] = {}
        for cls in classes:
            variant = cls.__tnet_variant__
            if variant in self.by_name:
                raise TypeError(f"Duplicate variant name {variant!r} in {self.name}")
            self.by_name[variant] = StructFields(cls)
        self._index = {spec.cls: i for i, spec in enumerate(self.by_name.values())}
        self._visitor = _VariantVisitor(self)

    def serialize(self, value: Any, ser: Any) -> None:
        index = self._index.get(type(value))
        if index is None:
            raise TNetTypeError(
                f"Expected one of {self.name}, got {type(value).__name__}"
            )
        cls = type(value)
        variant = cls.__tnet_variant__
        spec = self.by_name[variant]
        kind = cls.__tnet_kind__

        if kind == "unit":
            ser.serialize_unit_variant(self.name, index, variant)
        elif kind == "newtype":
            ser.begin_newtype_variant(self.name, index, variant)
            spec.serialize_items(value, ser)
            ser.end_newtype_variant()
        elif kind == "tuple":
            ser.begin_tuple_variant(self.name, index, variant, len(spec.fields))
            spec.serialize_items(value, ser)
            ser.end_tuple_variant()
        else:
            ser.begin_struct_variant(self.name, index, variant, len(spec.fields))
            spec.serialize_entries(value, ser)
            ser.end_struct_variant()

    def deserialize(self, de: Any) -> Any:
        return de.deserialize_enum(self.name, list(self.by_name), self._visitor)


# ---------------------------------------------------------------------- #
#                               自描述值                                  #
# ---------------------------------------------------------------------- #


class _AnyVisitor(Visitor[Any]):
    expecting = "any value"

    def visit_bool(self, value: bool) -> bool:
        return value

    def visit_i64(self, value: int) -> int:
        return value

    def visit_u64(self, value: int) -> int:
        return value

    def visit_f64(self, value: float) -> float:
        return value

    def visit_str(self, value: str) -> str:
        return value

    def visit_bytes(self, value: bytes | memoryview) -> bytes | memoryview:
        return value

    def visit_none(self) -> None:
        return None

    def visit_unit(self) -> None:
        return None

    def visit_seq(self, seq: SeqAccess) -> list[Any]:
        return _ANY_LIST._visitor.visit_seq(seq)

    def visit_map(self, mapping: MapAccess) -> dict[Any, Any]:
        return _ANY_DICT._visitor.visit_map(mapping)


class AnyCodec(Codec):
    """`Any` / `object`: 编码时按运行时类型推断, 解码时按类型标签读取."""

    expecting = "any value"

    def __init__(self) -> None:
        self._visitor = _AnyVisitor()

    def serialize(self, value: Any, ser: Any) -> None:
        codec_for_value(value).serialize(value, ser)

    def deserialize(self, de: Any) -> Any:
        return de.deserialize_any(self._visitor)


_ANY = AnyCodec()
_ANY_LIST = SeqCodec(_ANY)
_ANY_DICT = MapCodec(_ANY, _ANY)


def codec_for_value(value: Any) -> Codec:
    """根据运行时值推断编解码器.

    Raises:
        TNetTypeError: 值的类型无法编码.
    """
    if value is None:
        return compile_type(None)
    if isinstance(value, bool):
        return compile_type(bool)
    if isinstance(value, enum.Enum):
        return compile_type(type(value))
    if isinstance(value, int):
        return compile_type(int)
    if isinstance(value, float):
        return compile_type(float)
    if isinstance(value, str):
        return _STR
    if isinstance(value, (bytes, bytearray, memoryview)):
        return compile_type(bytes)
    if isinstance(value, Struct):
        return compile_type(type(value))
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return compile_type(type(value))
    if isinstance(value, (list, tuple, set, frozenset)):
        return _ANY_LIST
    if isinstance(value, dict):
        return _ANY_DICT
    raise TNetTypeError(f"Unsupported type: {type(value).__name__}")


# ---------------------------------------------------------------------- #
#                                 编译                                    #
# ---------------------------------------------------------------------- #

_SEQ_FACTORIES: dict[Any, Callable[[list[Any]], Any]] = {
    list: list,
    set: set,
    frozenset: frozenset,
}

_CACHE: dict[Any, Codec] = {}


def compile_type(tp: Any) -> Codec:
    """将类型注解编译为编解码器 (带缓存).

    Args:
        tp: 类型注解.

    Returns:
        Codec: 对应的编解码器.

    Raises:
        TypeError: 不支持的类型注解 (如非 `Variant` 的联合类型).
    """
    try:
        return _CACHE[tp]
    except KeyError:
        pass
    except TypeError:
        # 不可哈希的注解不缓存
        return _compile(tp)

    codec = _compile(tp)
    _CACHE[tp] = codec
    return codec


def _compile(tp: Any) -> Codec:
    if tp is Any or tp is object:
        return _ANY
    if tp is None or tp is type(None):
        return UnitCodec()

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is Annotated:
        for meta in tp.__metadata__:
            if isinstance(meta, IntSpec):
                return IntCodec(meta)
        return compile_type(args[0])

    if isinstance(tp, NewType):
        return NewTypeCodec(tp.__name__, compile_type(tp.__supertype__))

    if origin is Literal:
        kinds = {type(v) for v in args}
        inner = compile_type(kinds.pop()) if len(kinds) == 1 else _ANY
        return LiteralCodec(args, inner)

    if origin is Union or origin is stdlib_types.UnionType:
        return _compile_union(tp, args)

    if tp is bool:
        return BoolCodec()
    if tp is int:
        return IntCodec(I64_SPEC)
    if tp is float:
        return FloatCodec()
    if tp is str:
        return _STR
    if tp is bytes or tp is bytearray:
        return BytesCodec()

    if tp in _SEQ_FACTORIES or origin in _SEQ_FACTORIES:
        item = compile_type(args[0]) if args else _ANY
        return SeqCodec(item, _SEQ_FACTORIES[origin or tp])

    if tp is tuple or origin is tuple:
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            item = compile_type(args[0]) if args else _ANY
            return SeqCodec(item, tuple)
        if args == ((),):
            return TupleCodec([])
        return TupleCodec([compile_type(a) for a in args])

    if tp is dict or origin is dict:
        if args:
            return MapCodec(compile_type(args[0]), compile_type(args[1]))
        return _ANY_DICT

    if isinstance(tp, type):
        if issubclass(tp, Variant):
            return VariantCodec([tp])
        if issubclass(tp, Struct):
            return StructCodec(tp)
        if issubclass(tp, enum.Enum):
            return EnumCodec(tp)
        if issubclass(tp, tuple) and hasattr(tp, "_fields"):
            return NamedTupleCodec(tp)

    raise TypeError(f"Unsupported type: {tp!r}")


def _compile_union(tp: Any, args: tuple[Any, ...]) -> Codec:
    non_none = [a for a in args if a is not type(None)]
    optional = len(non_none) < len(args)

    if len(non_none) == 1:
        inner = compile_type(non_none[0])
    elif all(isinstance(a, type) and issubclass(a, Variant) for a in non_none):
        inner = VariantCodec(non_none)
    else:
        raise TypeError(f"Union type not supported: {tp!r}")

    return OptionalCodec(inner) if optional else inner
