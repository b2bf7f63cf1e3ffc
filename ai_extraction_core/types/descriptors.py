"""Type descriptors for structured output values.

A TypeDescriptor is an explicit, immutable description of the shape a decoded
JSON value is expected to have. Signatures translate their pydantic models into
descriptors once (see ``describe``), and the coercer dispatches on the variant
instead of inspecting Python annotations at coercion time.

Variants:
    PrimitiveDescriptor: string, integer, float, boolean, date, datetime
    ArrayDescriptor: homogeneous sequence
    MappingDescriptor: string-keyed mapping with typed values
    EnumDescriptor: closed set of tokens, optionally backed by an Enum class
    StructDescriptor: named record with ordered fields, built into a pydantic model
    UnionDescriptor: closed set of struct variants (tagged union)
    NilableDescriptor: value may be null
    AnyDescriptor: untyped pass-through
"""

import re
import types
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, StrEnum
from functools import cached_property
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic_core import PydanticUndefined

_DISCRIMINATOR_NOISE = re.compile(r"[_\-\s]")
_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


class PrimitiveKind(StrEnum):
    """Runtime kind of a primitive value."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"


class _Missing:
    """Sentinel type for absent defaults."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True, slots=True)
class PrimitiveDescriptor:
    kind: PrimitiveKind


@dataclass(frozen=True, slots=True)
class ArrayDescriptor:
    element: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class MappingDescriptor:
    key: "TypeDescriptor"
    value: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class EnumDescriptor:
    """Closed token set.

    ``values`` holds the serialized tokens in declaration order. When
    ``enum_class`` is given, coercion returns its members instead of raw tokens.
    """

    values: tuple[Any, ...]
    enum_class: type[Enum] | None = None

    def lookup(self, token: Any) -> Any:
        """Return the member (or token) for an exact serialized match, MISSING otherwise."""
        if self.enum_class is not None:
            for member in self.enum_class:
                if member.value == token:
                    return member
            return MISSING
        return token if token in self.values else MISSING


@dataclass(frozen=True, slots=True)
class NilableDescriptor:
    inner: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class AnyDescriptor:
    pass


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Declared struct member.

    A field without ``default`` and ``default_factory`` is required.
    """

    type: "TypeDescriptor"
    default: Any = MISSING
    default_factory: Callable[[], Any] | None = None

    @property
    def required(self) -> bool:
        return self.default is MISSING and self.default_factory is None

    @property
    def nilable(self) -> bool:
        return isinstance(self.type, NilableDescriptor | AnyDescriptor)

    def make_default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


@dataclass(frozen=True, slots=True)
class SiblingDiscriminator:
    """Preceding String/Enum field that names the variant of a union field."""

    key: str
    tokens: Mapping[str, "StructDescriptor"]


@dataclass(frozen=True, eq=False)
class StructDescriptor:
    """Named record type.

    ``fields`` maps wire keys (JSON object keys, i.e. pydantic aliases) to their
    specs, in declaration order. ``model`` is the pydantic class instances are
    constructed with; one with ``Any``-typed fields is generated when omitted.
    """

    name: str
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)
    model: type[BaseModel] | None = None

    def __post_init__(self) -> None:
        if self.model is None:
            object.__setattr__(self, "model", _build_model(self.name, self.fields))

    def __repr__(self) -> str:
        return f"StructDescriptor({self.name!r}, fields={list(self.fields)!r})"

    @classmethod
    def from_model(cls, model: type[BaseModel], _memo: dict[type, "StructDescriptor"] | None = None) -> "StructDescriptor":
        """Describe a pydantic model. Self-referential models resolve to the same descriptor."""
        memo = {} if _memo is None else _memo
        if model in memo:
            return memo[model]

        fields: dict[str, FieldSpec] = {}
        struct = cls(name=model.__name__, fields=fields, model=model)
        memo[model] = struct

        for name, info in model.model_fields.items():
            discriminator = info.discriminator if isinstance(info.discriminator, str) else None
            descriptor = describe(info.annotation, discriminator=discriminator, _memo=memo)
            default = MISSING if info.default is PydanticUndefined else info.default
            fields[info.alias or name] = FieldSpec(type=descriptor, default=default, default_factory=info.default_factory)  # type: ignore[arg-type]

        return struct

    @property
    def required_keys(self) -> tuple[str, ...]:
        return tuple(key for key, spec in self.fields.items() if spec.required)

    @cached_property
    def attributes(self) -> Mapping[str, str]:
        """Wire key -> model attribute name."""
        assert self.model is not None
        return types.MappingProxyType({(info.alias or name): name for name, info in self.model.model_fields.items()})

    def instantiate(self, values: Mapping[str, Any]) -> BaseModel:
        """Build an instance from already coerced values keyed by wire key."""
        assert self.model is not None
        return self.model.model_construct(**values)

    @cached_property
    def sibling_discriminators(self) -> Mapping[str, SiblingDiscriminator]:
        """Union fields whose immediately preceding field is a String or Enum discriminator."""
        result: dict[str, SiblingDiscriminator] = {}
        items = list(self.fields.items())
        for index in range(1, len(items)):
            key, spec = items[index]
            union = unwrap_union(spec.type)
            if union is None:
                continue
            prev_key, prev_spec = items[index - 1]
            prev_type = unwrap_nilable(prev_spec.type)
            if prev_type == PrimitiveDescriptor(PrimitiveKind.STRING):
                tokens = {normalize_token(snake_case(v.name)): v for v in union.variants}
            elif isinstance(prev_type, EnumDescriptor):
                tokens = _enum_tokens(prev_type, union)
            else:
                continue
            result[key] = SiblingDiscriminator(key=prev_key, tokens=tokens)
        return result


@dataclass(frozen=True, eq=False)
class UnionDescriptor:
    """Closed set of struct variants, tried in declaration order.

    ``discriminator`` optionally names a key inside the value whose token selects
    the variant (pydantic's ``Field(discriminator=...)``).
    """

    variants: tuple[StructDescriptor, ...]
    discriminator: str | None = None

    def __post_init__(self) -> None:
        unwrapped = []
        for variant in self.variants:
            inner = unwrap_nilable(variant)
            if not isinstance(inner, StructDescriptor):
                raise TypeError(f"Union variants must be structs, got {variant!r}")
            unwrapped.append(inner)
        object.__setattr__(self, "variants", tuple(unwrapped))

    def __repr__(self) -> str:
        return f"UnionDescriptor({[v.name for v in self.variants]!r})"

    @cached_property
    def registry(self) -> Mapping[str, StructDescriptor]:
        """Normalized variant name (declared and snake_case) -> variant."""
        registry: dict[str, StructDescriptor] = {}
        for variant in self.variants:
            registry.setdefault(normalize_token(variant.name), variant)
            registry.setdefault(normalize_token(snake_case(variant.name)), variant)
        return types.MappingProxyType(registry)

    @cached_property
    def tag_registry(self) -> Mapping[str, StructDescriptor]:
        """Normalized tag value of the explicit discriminator key -> variant."""
        registry: dict[str, StructDescriptor] = {}
        if self.discriminator is None:
            return types.MappingProxyType(registry)
        for variant in self.variants:
            spec = variant.fields.get(self.discriminator)
            if spec is None:
                continue
            tag_type = unwrap_nilable(spec.type)
            if isinstance(tag_type, EnumDescriptor):
                for token in tag_type.values:
                    registry.setdefault(normalize_token(token), variant)
            if isinstance(spec.default, str):
                registry.setdefault(normalize_token(spec.default), variant)
        return types.MappingProxyType(registry)

    def variant_for_instance(self, value: Any) -> StructDescriptor | None:
        for variant in self.variants:
            if variant.model is not None and isinstance(value, variant.model):
                return variant
        return None


TypeDescriptor = (
    PrimitiveDescriptor
    | ArrayDescriptor
    | MappingDescriptor
    | EnumDescriptor
    | StructDescriptor
    | UnionDescriptor
    | NilableDescriptor
    | AnyDescriptor
)
"""Union of all descriptor variants."""


def normalize_token(token: Any) -> str:
    """Case-insensitive discriminator token with underscores, dashes and spaces removed."""
    if isinstance(token, Enum):
        token = token.value
    return _DISCRIMINATOR_NOISE.sub("", str(token)).lower()


def snake_case(name: str) -> str:
    """SpawnSubtask -> spawn_subtask, HTTPRequest -> http_request."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.lower()


def unwrap_nilable(descriptor: Any) -> Any:
    while isinstance(descriptor, NilableDescriptor):
        descriptor = descriptor.inner
    return descriptor


def unwrap_union(descriptor: Any) -> UnionDescriptor | None:
    inner = unwrap_nilable(descriptor)
    return inner if isinstance(inner, UnionDescriptor) else None


def _enum_tokens(enum_type: EnumDescriptor, union: UnionDescriptor) -> dict[str, StructDescriptor]:
    tokens = {normalize_token(snake_case(v.name)): v for v in union.variants}
    by_name = {normalize_token(v.name): v for v in union.variants}
    if enum_type.enum_class is not None:
        for member in enum_type.enum_class:
            if (variant := by_name.get(normalize_token(member.name))) is not None:
                tokens[normalize_token(member.value)] = variant
    else:
        for token in enum_type.values:
            if (variant := by_name.get(normalize_token(token))) is not None:
                tokens[normalize_token(token)] = variant
    return tokens


def _safe_attribute(key: str) -> str:
    if _IDENTIFIER.match(key):
        return key
    cleaned = re.sub(r"\W", "_", key).strip("_") or "field"
    if cleaned[0].isdigit():
        cleaned = f"f_{cleaned}"
    return f"{cleaned}_"


def _build_model(name: str, fields: Mapping[str, FieldSpec]) -> type[BaseModel]:
    """Generate a pydantic model whose fields accept already coerced values."""
    definitions: dict[str, Any] = {}
    for key, spec in fields.items():
        attribute = _safe_attribute(key)
        alias = key if attribute != key else None
        if spec.default_factory is not None:
            info = Field(default_factory=spec.default_factory, alias=alias)
        elif spec.default is not MISSING:
            info = Field(default=spec.default, alias=alias)
        else:
            info = Field(alias=alias)
        definitions[attribute] = (Any, info)
    safe_name = name if _IDENTIFIER.match(name) else _safe_attribute(name)
    return create_model(safe_name, __config__=ConfigDict(populate_by_name=True), **definitions)


def _describe_union(members: Sequence[Any], discriminator: str | None, memo: dict[type, StructDescriptor]) -> TypeDescriptor:
    non_null = [m for m in members if m is not type(None)]
    nilable = len(non_null) < len(members)
    if len(non_null) == 1:
        inner = describe(non_null[0], discriminator=discriminator, _memo=memo)
    else:
        variants = []
        for member in non_null:
            if not (isinstance(member, type) and issubclass(member, BaseModel)):
                raise TypeError(f"Union members must be pydantic models, got {member!r}")
            variants.append(StructDescriptor.from_model(member, memo))
        inner = UnionDescriptor(variants=tuple(variants), discriminator=discriminator)
    return NilableDescriptor(inner) if nilable else inner


def describe(annotation: Any, *, discriminator: str | None = None, _memo: dict[type, StructDescriptor] | None = None) -> TypeDescriptor:  # noqa: PLR0911, PLR0912
    """Translate a Python type annotation into a TypeDescriptor.

    Supported: str, int, float, bool, date, datetime, Any, list/tuple/set of T,
    dict/Mapping of str to T, Enum subclasses, Literal, pydantic models, unions
    of pydantic models, Optional[T] and Annotated[...] (a pydantic
    ``Field(discriminator=...)`` marks the union's tag key).

    Raises:
        TypeError: If the annotation has no descriptor equivalent.
    """
    memo = {} if _memo is None else _memo

    if annotation is Any:
        return AnyDescriptor()

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        for meta in args[1:]:
            if isinstance(getattr(meta, "discriminator", None), str):
                discriminator = meta.discriminator
        return describe(args[0], discriminator=discriminator, _memo=memo)

    if origin is Union or origin is types.UnionType:
        return _describe_union(args, discriminator, memo)

    if origin is Literal:
        return EnumDescriptor(values=tuple(args))

    if origin in (list, tuple, set, frozenset, Sequence):
        element = args[0] if args else Any
        if origin is tuple and len(args) == 2 and args[1] is not Ellipsis:
            raise TypeError(f"Fixed-length tuples are not supported: {annotation!r}")
        return ArrayDescriptor(describe(element, _memo=memo))

    if origin in (dict, Mapping):
        key, value = args if args else (str, Any)
        return MappingDescriptor(describe(key, _memo=memo), describe(value, _memo=memo))

    if annotation in (list, tuple, set):
        return ArrayDescriptor(AnyDescriptor())
    if annotation is dict:
        return MappingDescriptor(PrimitiveDescriptor(PrimitiveKind.STRING), AnyDescriptor())

    if isinstance(annotation, type):
        if annotation is bool:
            return PrimitiveDescriptor(PrimitiveKind.BOOLEAN)
        if issubclass(annotation, Enum):
            return EnumDescriptor(values=tuple(member.value for member in annotation), enum_class=annotation)
        if annotation is str:
            return PrimitiveDescriptor(PrimitiveKind.STRING)
        if annotation is int:
            return PrimitiveDescriptor(PrimitiveKind.INTEGER)
        if annotation is float:
            return PrimitiveDescriptor(PrimitiveKind.FLOAT)
        if issubclass(annotation, datetime):
            return PrimitiveDescriptor(PrimitiveKind.DATETIME)
        if issubclass(annotation, date):
            return PrimitiveDescriptor(PrimitiveKind.DATE)
        if issubclass(annotation, BaseModel):
            return StructDescriptor.from_model(annotation, memo)

    raise TypeError(f"Cannot describe annotation {annotation!r}")
