"""Typed prediction assembly.

@public

build_prediction turns the decoded JSON object produced by a strategy into a
``Prediction[T]`` whose ``parsed`` field is an instance of the signature's
output model. Union fields that could not be routed to a variant are reported
here as field-specific errors.
"""

from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ai_extraction_core.exceptions import PredictionInvalidError, TypeCoercionError
from ai_extraction_core.lm import TokenUsage
from ai_extraction_core.signature import Signature
from ai_extraction_core.types import (
    ArrayDescriptor,
    MappingDescriptor,
    NilableDescriptor,
    StructDescriptor,
    TypeDescriptor,
    UnionDescriptor,
    ValueCoercer,
)

T = TypeVar("T", bound=BaseModel)


class Prediction(BaseModel, Generic[T]):
    """Result of one structured extraction.

    @public

    Attributes:
        content: Raw response text (or the extracted JSON when the provider
                 returned no text, as with tool calls).
        parsed: Output model instance.
        inputs: Validated inputs the prediction was made for.
        strategy: Name of the strategy that produced the output.
        usage: Token usage of the successful call.
        model: Model that produced the output.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    parsed: T
    inputs: dict[str, Any] = Field(default_factory=dict)
    strategy: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = ""


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _find_degraded(value: Any, descriptor: TypeDescriptor, path: str) -> tuple[str, str] | None:  # noqa: PLR0911
    """Locate the first struct or union slot that does not hold a model instance."""
    match descriptor:
        case NilableDescriptor(inner=inner):
            return None if value is None else _find_degraded(value, inner, path)
        case ArrayDescriptor(element=element):
            for index, item in enumerate(value):
                if (found := _find_degraded(item, element, f"{path}[{index}]")) is not None:
                    return found
            return None
        case MappingDescriptor(value=value_type):
            for key, item in value.items():
                if (found := _find_degraded(item, value_type, _join(path, str(key)))) is not None:
                    return found
            return None
        case UnionDescriptor():
            variant = descriptor.variant_for_instance(value)
            if variant is None:
                names = ", ".join(v.name for v in descriptor.variants)
                return path, f"could not determine which of {names} the value represents"
            return _find_degraded(value, variant, path)
        case StructDescriptor():
            assert descriptor.model is not None
            if not isinstance(value, descriptor.model):
                return path, f"expected {descriptor.name}, got {type(value).__name__}"
            for key, spec in descriptor.fields.items():
                attribute = descriptor.attributes[key]
                if (found := _find_degraded(getattr(value, attribute, None), spec.type, _join(path, key))) is not None:
                    return found
            return None
    return None


def build_prediction(
    data: Any,
    signature: Signature,
    *,
    content: str = "",
    inputs: Mapping[str, Any] | None = None,
    strategy: str | None = None,
    usage: TokenUsage | None = None,
    model: str = "",
    coercer: ValueCoercer | None = None,
) -> Prediction[Any]:
    """Coerce a decoded JSON object into a Prediction for ``signature``.

    @public

    Raises:
        PredictionInvalidError: With ``stage="output"`` and the failing field
            when the object is not a mapping, a value cannot be coerced, or a
            struct/union slot is left unconverted.
    """
    if not isinstance(data, Mapping):
        raise PredictionInvalidError(
            f"Output for {signature.name} must be a JSON object, got {type(data).__name__}",
            stage="output",
            strategy=strategy,
        )

    coercer = coercer or ValueCoercer()
    try:
        parsed = coercer.coerce(data, signature.output_descriptor)
    except TypeCoercionError as e:
        raise PredictionInvalidError(
            f"Output for {signature.name} is invalid: {e}",
            stage="output",
            field=e.path or None,
            strategy=strategy,
        ) from e

    if (degraded := _find_degraded(parsed, signature.output_descriptor, "")) is not None:
        field, reason = degraded
        raise PredictionInvalidError(
            f"Output field '{field}' of {signature.name} is invalid: {reason}",
            stage="output",
            field=field,
            strategy=strategy,
        )

    return Prediction[signature.output_model](  # type: ignore[name-defined]
        content=content,
        parsed=parsed,
        inputs=dict(inputs or {}),
        strategy=strategy,
        usage=usage or TokenUsage(),
        model=model,
    )
