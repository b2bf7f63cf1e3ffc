"""Variant resolution for tagged unions.

UnionDiscriminator decides which struct variant of a union a raw value
represents. Signals are tried in order, first match wins:

    0. The value already is an instance of a variant model.
    1. A co-located explicit discriminator: the preceding sibling field of the
       enclosing struct, or the union's declared discriminator key inside the value.
    2. An embedded ``_type`` tag inside the value.
    3. Structural match: the first variant whose required keys are all present.

When nothing matches, ``resolve`` returns None and the caller keeps the raw value.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .descriptors import StructDescriptor, UnionDescriptor, normalize_token

TYPE_TAG = "_type"
"""Reserved key carrying an embedded variant name."""


@dataclass(frozen=True, slots=True)
class DiscriminatorContext:
    """Sibling discriminator observed in the enclosing object."""

    sibling_key: str
    sibling_value: Any
    sibling_tokens: Mapping[str, StructDescriptor] = field(default_factory=dict)


class UnionDiscriminator:
    """Stateless resolver; one instance may be shared across operations."""

    def resolve(self, value: Any, union: UnionDescriptor, context: DiscriminatorContext | None = None) -> StructDescriptor | None:
        if (variant := union.variant_for_instance(value)) is not None:
            return variant

        if context is not None and (variant := self._from_sibling(context, union)) is not None:
            return variant

        if not isinstance(value, Mapping):
            return None

        if union.discriminator is not None and union.discriminator in value:
            token = normalize_token(value[union.discriminator])
            variant = union.tag_registry.get(token) or union.registry.get(token)
            if variant is not None:
                return variant

        if TYPE_TAG in value and value[TYPE_TAG] is not None:
            if (variant := union.registry.get(normalize_token(value[TYPE_TAG]))) is not None:
                return variant

        return self._structural_match(value, union)

    @staticmethod
    def _from_sibling(context: DiscriminatorContext, union: UnionDescriptor) -> StructDescriptor | None:
        if context.sibling_value is None:
            return None
        token = normalize_token(context.sibling_value)
        return context.sibling_tokens.get(token) or union.registry.get(token)

    @staticmethod
    def _structural_match(value: Mapping[str, Any], union: UnionDescriptor) -> StructDescriptor | None:
        # Presence only; field types are not compared.
        for variant in union.variants:
            if all(key in value for key in variant.required_keys):
                return variant
        return None
