"""TNetString 结构体定义模块."""

from typing import Any, ClassVar, Literal, TypeVar, cast

from pydantic import BaseModel, Field as PydanticField
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined
from typing_extensions import dataclass_transform

from .options import Option

S = TypeVar("S", bound="Struct")

VariantKind = Literal["unit", "newtype", "tuple", "struct"]

_KINDS = ("unit", "newtype", "tuple", "struct")


def Field(
    default: Any = PydanticUndefined,
    *,
    key: str | None = None,
    default_factory: Any | None = None,
) -> Any:
    """创建结构体字段配置.

    这是 Pydantic `Field` 的包装函数, 用于注入线上键名等元数据.
    未使用 `Field` 的字段以属性名作为线上键.

    Args:
        default: 字段的静态默认值.
            如果未提供此参数且未提供 `default_factory`, 则该字段为**必填**.
        key: 线上键名, 默认为属性名.
        default_factory: 用于生成默认值的无参可调用对象.
            对于可变类型 (如 `list`, `dict`), **必须**使用此参数而不是 `default`.

    Returns:
        Any: 包含元数据的 Pydantic FieldInfo 对象.

    Raises:
        ValueError: 如果 `key` 为空字符串.

    Examples:
        >>> from tnetstring import Struct, Field
        >>> class User(Struct):
        ...     uid: int
        ...     name: str = Field("Anonymous", key="n")
        ...     tags: list[str] = Field(default_factory=list)
    """
    if key is not None and not key:
        raise ValueError("Wire key must not be empty")

    kwargs: dict[str, Any] = {"json_schema_extra": {"tnet_key": key}}

    if default is not PydanticUndefined:
        kwargs["default"] = default

    if default_factory is not None:
        kwargs["default_factory"] = default_factory

    return cast(Any, PydanticField)(**kwargs)


def prepare_fields(fields: dict[str, FieldInfo]) -> dict[str, str]:
    """准备线上键映射.

    遍历 Pydantic 的 fields, 提取线上键名并检查重复.
    显式排除 (`exclude=True`) 的字段不参与编码.

    Returns:
        dict[str, str]: 属性名 -> 线上键, 保持声明顺序.
    """
    keys: dict[str, str] = {}
    seen: set[str] = set()
    for name, field in fields.items():
        if field.exclude is True:
            continue
        extra = field.json_schema_extra
        key = extra.get("tnet_key") if isinstance(extra, dict) else None
        wire_key = cast(str, key) if key is not None else name
        if wire_key in seen:
            raise ValueError(f"Duplicate wire key {wire_key!r} for field '{name}'")
        seen.add(wire_key)
        keys[name] = wire_key
    return keys


@dataclass_transform(kw_only_default=True, field_specifiers=(Field,))
class StructMeta(type(BaseModel)):
    """Struct 的元类, 用于收集字段与变体信息.

    类关键字参数:
        kind: 变体形式 (`unit`, `newtype`, `tuple`, `struct`), 仅对 `Variant` 有效.
        rename: 变体的线上名称, 默认为类名.
    """

    def __new__(  # noqa: D102
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        kind: VariantKind | None = None,
        rename: str | None = None,
        **kwargs: Any,
    ):
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if name in ("Struct", "Variant") and namespace.get("__module__") == __name__:
            return cls

        cls.__tnet_fields__ = prepare_fields(cls.model_fields)

        if kind is not None or rename is not None:
            if not issubclass(cls, Variant):
                raise TypeError(f"{name}: 'kind' and 'rename' only apply to Variant")

        if issubclass(cls, Variant):
            if kind is None:
                kind = "struct" if cls.__tnet_fields__ else "unit"
            if kind not in _KINDS:
                raise TypeError(f"{name}: invalid variant kind {kind!r}")
            count = len(cls.__tnet_fields__)
            if kind == "unit" and count:
                raise TypeError(f"{name}: unit variant cannot have fields")
            if kind == "newtype" and count != 1:
                raise TypeError(
                    f"{name}: newtype variant needs exactly 1 field, got {count}"
                )
            cls.__tnet_kind__ = kind
            cls.__tnet_variant__ = rename or name

        return cls


class Struct(BaseModel, metaclass=StructMeta):
    """TNetString 结构体基类.

    继承自 `pydantic.BaseModel`, 编码为以字段线上键为键的字典帧.

    核心特性:
        1. **声明式定义**: 使用 Python 类型注解定义字段类型.
        2. **键名映射**: 通过 `Field(key=...)` 指定线上键名.
        3. **数据验证**: 解码结果经过 Pydantic 校验.
        4. **序列化/反序列化**: 提供 `model_dump_tnet()` 和 `model_validate_tnet()`.

    Examples:
        >>> from tnetstring import Struct, U8
        >>> class Point(Struct):
        ...     x: U8
        ...     y: U8
        >>> Point(x=1, y=2).model_dump_tnet()
        b'16:1:x,1:1#1:y,1:2#}'
        >>> Point.model_validate_tnet(b'16:1:x,1:1#1:y,1:2#}')
        Point(x=1, y=2)

    Note:
        解码时未知的键会被跳过, 缺少必填字段会抛出 DecodeError.
    """

    __tnet_fields__: ClassVar[dict[str, str]] = {}

    def model_dump_tnet(self, option: Option = Option.NONE) -> bytes:
        """序列化为 TNetString 字节数据.

        Args:
            option: 编码选项.

        Returns:
            bytes: 序列化后的数据.
        """
        from .api import dumps

        return dumps(self, option=option)

    @classmethod
    def model_validate_tnet(
        cls: type[S],
        data: bytes | bytearray | memoryview | str,
        option: Option = Option.NONE,
    ) -> S:
        """从 TNetString 数据创建实例.

        Args:
            data: 输入数据.
            option: 解码选项.

        Returns:
            S: 结构体实例.

        Raises:
            DecodeError: 数据格式错误或不符合模型定义.
        """
        from .api import loads

        return loads(data, target=cls, option=option)


class Variant(Struct):
    """枚举变体基类.

    每个子类是一个变体, 多个子类的联合 (`A | B`) 构成一个枚举类型.
    变体形式由类关键字 `kind` 决定:

    - `unit`: 无字段, 编码为名称字符串 `4:Unit,`.
    - `newtype`: 恰好一个字段, 编码为 `{名称: 值}`.
    - `tuple`: 字段按声明顺序编码为列表 `{名称: [...]}`.
    - `struct`: 字段编码为字典 `{名称: {...}}`.

    Examples:
        >>> from tnetstring import Variant, dumps
        >>> class Quit(Variant):
        ...     pass
        >>> class Move(Variant, kind="tuple", rename="M"):
        ...     x: int
        ...     y: int
        >>> dumps(Move(x=1, y=2), Quit | Move)
        b'15:1:M,8:1:1#1:2#]}'
    """

    __tnet_kind__: ClassVar[str] = "unit"
    __tnet_variant__: ClassVar[str] = "Variant"
