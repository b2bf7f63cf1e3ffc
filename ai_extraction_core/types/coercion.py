"""Recursive coercion of decoded JSON into typed values.

@public

ValueCoercer walks a raw value alongside its TypeDescriptor and returns the
typed equivalent: primitives are parsed strictly, arrays and mappings are
coerced element-wise, enums are matched exactly, structs become pydantic model
instances and unions are routed through UnionDiscriminator.

Example:
    >>> from ai_extraction_core.types import coerce, describe
    >>> coerce("42", describe(int))
    42
    >>> coerce(None, describe(int | None)) is None
    True
"""

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from ai_extraction_core.exceptions import TypeCoercionError
from ai_extraction_core.logging import LoggerMixin

from .descriptors import (
    MISSING,
    AnyDescriptor,
    ArrayDescriptor,
    EnumDescriptor,
    MappingDescriptor,
    NilableDescriptor,
    PrimitiveDescriptor,
    PrimitiveKind,
    StructDescriptor,
    TypeDescriptor,
    UnionDescriptor,
)
from .discriminator import DiscriminatorContext, UnionDiscriminator

_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")
_FLOAT_TEXT = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_BOOLEAN_TEXT = {"true": True, "false": False}


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


class ValueCoercer(LoggerMixin):
    """Converts RawValues into CoercedValues.

    @public

    The coercer holds no per-call state and can be shared between concurrent
    operations. Coercing an already well-typed value returns an equal value.

    Raises:
        TypeCoercionError: On irreconcilable mismatches. Union values that match
            no variant are returned unchanged instead.
    """

    def __init__(self, discriminator: UnionDiscriminator | None = None):
        self.discriminator = discriminator or UnionDiscriminator()

    def coerce(self, value: Any, descriptor: TypeDescriptor, *, path: str = "") -> Any:
        """Coerce ``value`` against ``descriptor``.

        Args:
            value: Decoded JSON value (or an already typed value).
            descriptor: Expected shape.
            path: Location prefix used in error messages.
        """
        return self._coerce(value, descriptor, path, None)

    def _coerce(self, value: Any, descriptor: TypeDescriptor, path: str, context: DiscriminatorContext | None) -> Any:
        match descriptor:
            case NilableDescriptor(inner=inner):
                return None if value is None else self._coerce(value, inner, path, context)
            case AnyDescriptor():
                return value

        if value is None:
            raise TypeCoercionError("Null value for non-nilable type", descriptor=descriptor, value=value, path=path)

        match descriptor:
            case PrimitiveDescriptor():
                return self._coerce_primitive(value, descriptor, path)
            case ArrayDescriptor(element=element):
                if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple)):
                    raise TypeCoercionError("Expected an array", descriptor=descriptor, value=value, path=path)
                return [self._coerce(item, element, f"{path}[{index}]", None) for index, item in enumerate(value)]
            case MappingDescriptor(value=value_type):
                if not isinstance(value, Mapping):
                    raise TypeCoercionError("Expected an object", descriptor=descriptor, value=value, path=path)
                return {key: self._coerce(item, value_type, _join(path, str(key)), None) for key, item in value.items()}
            case EnumDescriptor():
                return self._coerce_enum(value, descriptor, path)
            case StructDescriptor():
                return self._coerce_struct(value, descriptor, path)
            case UnionDescriptor():
                return self._coerce_union(value, descriptor, path, context)

        raise TypeError(f"Unsupported descriptor {descriptor!r}")

    def _coerce_primitive(self, value: Any, descriptor: PrimitiveDescriptor, path: str) -> Any:  # noqa: PLR0911, PLR0912
        def fail(reason: str) -> TypeCoercionError:
            return TypeCoercionError(reason, descriptor=descriptor, value=value, path=path)

        match descriptor.kind:
            case PrimitiveKind.STRING:
                if isinstance(value, Enum):
                    return str(value.value)
                if isinstance(value, str):
                    return value
                if isinstance(value, bool):
                    return "true" if value else "false"
                if isinstance(value, (int, float)):
                    return str(value)
                if isinstance(value, (date, datetime)):
                    return value.isoformat()
                raise fail(f"Cannot convert {type(value).__name__} to string")

            case PrimitiveKind.INTEGER:
                if isinstance(value, bool):
                    raise fail("Boolean is not an integer")
                if isinstance(value, int):
                    return value
                if isinstance(value, float):
                    if math.isfinite(value) and value.is_integer():
                        return int(value)
                    raise fail(f"Float {value!r} is not integral")
                if isinstance(value, str):
                    text = value.strip()
                    if _INTEGER_TEXT.match(text):
                        return int(text)
                    if _FLOAT_TEXT.match(text):
                        number = Decimal(text)
                        if number == number.to_integral_value():
                            return int(number)
                        raise fail(f"String {value!r} is not integral")
                raise fail(f"Cannot convert {value!r} to integer")

            case PrimitiveKind.FLOAT:
                if isinstance(value, bool):
                    raise fail("Boolean is not a number")
                if isinstance(value, (int, float)):
                    try:
                        result = float(value)
                    except OverflowError:
                        raise fail("Number out of float range") from None
                elif isinstance(value, str) and _FLOAT_TEXT.match(value.strip()):
                    result = float(value.strip())
                else:
                    raise fail(f"Cannot convert {value!r} to float")
                if not math.isfinite(result):
                    raise fail("Non-finite float")
                return result

            case PrimitiveKind.BOOLEAN:
                if isinstance(value, bool):
                    return value
                if isinstance(value, str) and (token := value.strip().lower()) in _BOOLEAN_TEXT:
                    return _BOOLEAN_TEXT[token]
                raise fail(f"Cannot convert {value!r} to boolean")

            case PrimitiveKind.DATETIME:
                if isinstance(value, datetime):
                    return value
                if isinstance(value, str):
                    try:
                        return datetime.fromisoformat(value.strip())
                    except ValueError:
                        raise fail(f"Invalid ISO-8601 datetime {value!r}") from None
                raise fail(f"Cannot convert {value!r} to datetime")

            case PrimitiveKind.DATE:
                if isinstance(value, datetime):
                    return value.date()
                if isinstance(value, date):
                    return value
                if isinstance(value, str):
                    try:
                        return date.fromisoformat(value.strip())
                    except ValueError:
                        raise fail(f"Invalid ISO-8601 date {value!r}") from None
                raise fail(f"Cannot convert {value!r} to date")

        raise fail(f"Unknown primitive kind {descriptor.kind!r}")

    @staticmethod
    def _coerce_enum(value: Any, descriptor: EnumDescriptor, path: str) -> Any:
        if descriptor.enum_class is not None and isinstance(value, descriptor.enum_class):
            return value
        if isinstance(value, bool) or isinstance(value, (list, dict)):
            raise TypeCoercionError(f"Invalid enum token {value!r}", descriptor=descriptor, value=value, path=path)
        member = descriptor.lookup(value)
        if member is MISSING:
            raise TypeCoercionError(
                f"Unknown enum token {value!r}, expected one of {list(descriptor.values)}",
                descriptor=descriptor,
                value=value,
                path=path,
            )
        return member

    def _coerce_struct(self, value: Any, struct: StructDescriptor, path: str) -> Any:
        if not isinstance(value, Mapping):
            return value

        siblings = struct.sibling_discriminators
        values: dict[str, Any] = {}
        for key, spec in struct.fields.items():
            field_path = _join(path, key)
            if key not in value or (value[key] is None and not spec.nilable and not spec.required):
                if not spec.required:
                    values[key] = spec.make_default()
                elif spec.nilable:
                    values[key] = None
                else:
                    raise TypeCoercionError(
                        f"Missing required field '{key}' of {struct.name}",
                        descriptor=struct,
                        value=value,
                        path=field_path,
                    )
                continue

            context = None
            if (sibling := siblings.get(key)) is not None:
                context = DiscriminatorContext(sibling.key, value.get(sibling.key), sibling.tokens)
            values[key] = self._coerce(value[key], spec.type, field_path, context)

        # Undeclared keys, including routing tags such as _type, are not carried over.
        return struct.instantiate(values)

    def _coerce_union(self, value: Any, union: UnionDescriptor, path: str, context: DiscriminatorContext | None) -> Any:
        variant = self.discriminator.resolve(value, union, context)
        if variant is None:
            self.log_debug(f"No variant of {union!r} matched at '{path}', keeping raw value", path=path)
            return value
        try:
            return self._coerce_struct(value, variant, path)
        except TypeCoercionError as e:
            self.log_debug(f"Variant {variant.name} rejected value at '{path}': {e}", path=path, variant=variant.name)
            return value


_default_coercer = ValueCoercer()


def coerce(value: Any, descriptor: TypeDescriptor) -> Any:
    """Coerce with a shared default ValueCoercer.

    @public
    """
    return _default_coercer.coerce(value, descriptor)
