"""Tests for JSON Schema derivation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ai_extraction_core.types import describe, example_from_schema, to_gemini_schema, to_json_schema, to_strict_schema
from tests.support.helpers import ActionPlan, Answer


class TreeNode(BaseModel):
    label: str
    children: list[TreeNode] = Field(default_factory=list)


class Tagged(BaseModel):
    type_: Literal["custom"] = Field(default="custom", alias="_type")
    value: int


class Wrapper(BaseModel):
    item: Tagged | Answer


class TestGenericSchema:
    def test_struct_schema(self):
        schema = to_json_schema(describe(Answer))
        assert schema["type"] == "object"
        assert schema["required"] == ["answer"]
        assert schema["properties"]["answer"] == {"type": "string"}
        assert schema["properties"]["confidence"] == {"type": "number"}
        assert schema["properties"]["tags"] == {"type": "array", "items": {"type": "string"}}
        assert schema["description"] == "Answer struct"

    def test_union_variants_carry_type_constant(self):
        schema = to_json_schema(describe(ActionPlan))
        variants = schema["properties"]["action_details"]["anyOf"]
        assert [v["properties"]["_type"]["const"] for v in variants] == ["SpawnSubtask", "Continue"]
        assert all(v["required"][0] == "_type" for v in variants)

    def test_declared_type_key_is_not_overridden(self):
        schema = to_json_schema(describe(Wrapper))
        tagged, answer = schema["properties"]["item"]["anyOf"]
        assert tagged["properties"]["_type"] == {"type": "string", "enum": ["custom"]}
        assert "_type" not in tagged["required"]
        assert answer["properties"]["_type"]["const"] == "Answer"

    def test_nilable_and_mapping(self):
        assert to_json_schema(describe(int | None)) == {"type": ["integer", "null"]}
        assert to_json_schema(describe(dict[str, float])) == {"type": "object", "additionalProperties": {"type": "number"}}

    def test_recursive_struct_uses_ref(self):
        schema = to_json_schema(describe(TreeNode))
        children = schema["properties"]["children"]
        assert children["type"] == "array"
        assert children["items"]["$ref"] == "#/definitions/TreeNode"


class TestStrictSchema:
    def test_all_properties_required_and_closed(self):
        strict = to_strict_schema(to_json_schema(describe(Answer)))
        assert strict["required"] == ["answer", "confidence", "tags"]
        assert strict["additionalProperties"] is False
        assert strict["properties"]["confidence"]["type"] == ["number", "null"]
        assert strict["properties"]["answer"]["type"] == "string"

    def test_nested_variants_are_strict(self):
        strict = to_strict_schema(to_json_schema(describe(ActionPlan)))
        for variant in strict["properties"]["action_details"]["anyOf"]:
            assert variant["additionalProperties"] is False
            assert set(variant["required"]) == set(variant["properties"])

    def test_source_schema_untouched(self):
        schema = to_json_schema(describe(Answer))
        to_strict_schema(schema)
        assert "additionalProperties" not in schema
        assert schema["required"] == ["answer"]


class TestGeminiSchema:
    def test_type_lists_become_nullable(self):
        gemini = to_gemini_schema(to_strict_schema(to_json_schema(describe(Answer))))
        assert gemini["properties"]["confidence"] == {"type": "number", "nullable": True}
        assert "additionalProperties" not in gemini

    def test_const_and_ref_dropped(self):
        gemini = to_gemini_schema(to_json_schema(describe(ActionPlan)))
        variant = gemini["properties"]["action_details"]["anyOf"][0]
        assert variant["properties"]["_type"] == {"type": "string"}
        recursive = to_gemini_schema(to_json_schema(describe(TreeNode)))
        assert recursive["properties"]["children"]["items"]["type"] == "object"


class TestExample:
    def test_example_follows_schema(self):
        example = example_from_schema(to_json_schema(describe(Answer)))
        assert example == {"answer": "example string", "confidence": 3.14, "tags": ["example string"]}

    def test_example_uses_type_constant(self):
        example = example_from_schema(to_json_schema(describe(ActionPlan)))
        assert example["action_details"]["_type"] == "SpawnSubtask"
