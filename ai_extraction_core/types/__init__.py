"""Type descriptors, union discrimination and value coercion.

@public
"""

from .coercion import ValueCoercer, coerce
from .descriptors import (
    MISSING,
    AnyDescriptor,
    ArrayDescriptor,
    EnumDescriptor,
    FieldSpec,
    MappingDescriptor,
    NilableDescriptor,
    PrimitiveDescriptor,
    PrimitiveKind,
    StructDescriptor,
    TypeDescriptor,
    UnionDescriptor,
    describe,
    normalize_token,
    snake_case,
)
from .discriminator import TYPE_TAG, DiscriminatorContext, UnionDiscriminator
from .json_schema import example_from_schema, to_gemini_schema, to_json_schema, to_strict_schema

__all__ = [
    "MISSING",
    "TYPE_TAG",
    "AnyDescriptor",
    "ArrayDescriptor",
    "DiscriminatorContext",
    "EnumDescriptor",
    "FieldSpec",
    "MappingDescriptor",
    "NilableDescriptor",
    "PrimitiveDescriptor",
    "PrimitiveKind",
    "StructDescriptor",
    "TypeDescriptor",
    "UnionDescriptor",
    "UnionDiscriminator",
    "ValueCoercer",
    "coerce",
    "describe",
    "example_from_schema",
    "normalize_token",
    "snake_case",
    "to_gemini_schema",
    "to_json_schema",
    "to_strict_schema",
]
