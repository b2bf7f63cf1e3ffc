"""Typed input/output contracts for one logical LLM call.

@public

A Signature pairs a pydantic output model (and optionally an input model) with
the TypeDescriptors derived from them. Descriptors and the output JSON Schema
are computed once at construction.

Example:
    >>> class Answer(BaseModel):
    ...     answer: str
    ...     confidence: float
    >>> signature = Signature(Answer, name="QA")
    >>> signature.output_fields
    ['answer', 'confidence']
"""

import copy
import re
from typing import Any

from pydantic import BaseModel, ValidationError

from ai_extraction_core.exceptions import PredictionInvalidError
from ai_extraction_core.types import StructDescriptor, to_json_schema


class Signature:
    """Input/output contract.

    @public

    Args:
        output_model: Pydantic model describing the structured output.
        input_model: Optional pydantic model used to validate inputs.
        name: Signature name; defaults to the output model's class name.
        instructions: Task description rendered into prompts; defaults to the
                      output model's docstring.
    """

    def __init__(
        self,
        output_model: type[BaseModel],
        input_model: type[BaseModel] | None = None,
        *,
        name: str | None = None,
        instructions: str = "",
    ):
        self.output_model = output_model
        self.input_model = input_model
        self.name = name or output_model.__name__
        self.instructions = instructions or (output_model.__doc__ or "").strip()
        self.output_descriptor = StructDescriptor.from_model(output_model)
        self.input_descriptor = StructDescriptor.from_model(input_model) if input_model else None
        self._output_schema = to_json_schema(self.output_descriptor)

    @property
    def output_fields(self) -> list[str]:
        return list(self.output_descriptor.fields)

    @property
    def input_fields(self) -> list[str]:
        return list(self.input_descriptor.fields) if self.input_descriptor else []

    @property
    def schema_name(self) -> str:
        """Identifier-safe lower-case name used for provider schema payloads."""
        return re.sub(r"[^a-zA-Z0-9_]", "_", self.name).lower()

    def output_json_schema(self) -> dict[str, Any]:
        """JSON Schema of the output struct. Returns a fresh copy on every call."""
        return copy.deepcopy(self._output_schema)

    def validate_input(self, **values: Any) -> dict[str, Any]:
        """Validate inputs against the input model.

        Returns:
            Validated inputs as a dictionary. Without an input model the values
            are returned unchanged.

        Raises:
            PredictionInvalidError: With ``stage="input"`` and the failing field.
        """
        if self.input_model is None:
            return dict(values)
        try:
            validated = self.input_model.model_validate(values)
        except ValidationError as e:
            errors = e.errors()
            field = ".".join(str(part) for part in errors[0]["loc"]) if errors else None
            raise PredictionInvalidError(
                f"Invalid input for {self.name}: {e.error_count()} validation error(s)",
                stage="input",
                field=field,
            ) from e
        return validated.model_dump(by_alias=True)

    def __repr__(self) -> str:
        return f"Signature({self.name!r}, inputs={self.input_fields!r}, outputs={self.output_fields!r})"
