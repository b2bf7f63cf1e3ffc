"""JSON Schema derivation from type descriptors.

Schemas are generated for three consumers: the generic form embedded in
prompts and used by tool definitions, the OpenAI strict form for
``response_format`` and the Gemini ``response_json_schema`` subset.
"""

import copy
from typing import Any

from .descriptors import (
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
from .discriminator import TYPE_TAG

_PRIMITIVE_SCHEMAS: dict[PrimitiveKind, dict[str, Any]] = {
    PrimitiveKind.STRING: {"type": "string"},
    PrimitiveKind.INTEGER: {"type": "integer"},
    PrimitiveKind.FLOAT: {"type": "number"},
    PrimitiveKind.BOOLEAN: {"type": "boolean"},
    PrimitiveKind.DATE: {"type": "string", "format": "date"},
    PrimitiveKind.DATETIME: {"type": "string", "format": "date-time"},
}

_GEMINI_KEYWORDS = frozenset({"type", "properties", "required", "items", "enum", "anyOf", "description", "nullable", "format"})


def to_json_schema(descriptor: TypeDescriptor) -> dict[str, Any]:
    """Generic JSON Schema for ``descriptor``.

    Union variants carry a ``_type`` constant naming the variant so that models
    can tag their payloads. Recursive structs are emitted as ``$ref`` on re-entry.
    """
    return _schema(descriptor, visited=set(), tag=None)


def _schema(descriptor: TypeDescriptor, visited: set[int], tag: str | None) -> dict[str, Any]:  # noqa: PLR0911
    match descriptor:
        case PrimitiveDescriptor(kind=kind):
            return dict(_PRIMITIVE_SCHEMAS[kind])
        case AnyDescriptor():
            return {}
        case ArrayDescriptor(element=element):
            return {"type": "array", "items": _schema(element, visited, None)}
        case MappingDescriptor(value=value):
            return {"type": "object", "additionalProperties": _schema(value, visited, None)}
        case EnumDescriptor(values=values):
            if all(isinstance(v, str) for v in values):
                return {"type": "string", "enum": list(values)}
            return {"enum": list(values)}
        case NilableDescriptor(inner=inner):
            base = _schema(inner, visited, tag)
            if isinstance(base.get("type"), str):
                return {**base, "type": [base["type"], "null"]}
            return {"anyOf": [base, {"type": "null"}]}
        case UnionDescriptor(variants=variants):
            return {"anyOf": [_schema(variant, visited, variant.name) for variant in variants]}
        case StructDescriptor():
            return _struct_schema(descriptor, visited, tag)
    raise TypeError(f"Unsupported descriptor {descriptor!r}")


def _struct_schema(struct: StructDescriptor, visited: set[int], tag: str | None) -> dict[str, Any]:
    if id(struct) in visited:
        return {"$ref": f"#/definitions/{struct.name}", "description": f"Recursive reference to {struct.name}"}
    visited.add(id(struct))
    try:
        properties: dict[str, Any] = {}
        required: list[str] = []
        if tag is not None and TYPE_TAG not in struct.fields:
            properties[TYPE_TAG] = {"type": "string", "const": tag}
            required.append(TYPE_TAG)
        for key, spec in struct.fields.items():
            properties[key] = _schema(spec.type, visited, None)
            if spec.required:
                required.append(key)
        return {"type": "object", "properties": properties, "required": required, "description": f"{struct.name} struct"}
    finally:
        visited.discard(id(struct))


def to_strict_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """OpenAI strict-mode variant of a generic schema.

    Every object gets ``additionalProperties: false`` and lists all of its
    properties as required; properties that were optional become nullable.
    """
    result = copy.deepcopy(schema)
    _make_strict(result)
    return result


def _make_strict(node: Any) -> None:
    if isinstance(node, list):
        for item in node:
            _make_strict(item)
        return
    if not isinstance(node, dict):
        return

    if node.get("type") == "object" and "properties" in node:
        required = set(node.get("required", []))
        for key, prop in node["properties"].items():
            if key not in required:
                _make_nullable(prop)
        node["required"] = list(node["properties"])
        node["additionalProperties"] = False
    elif node.get("type") == "object" and isinstance(node.get("additionalProperties"), dict):
        _make_strict(node["additionalProperties"])

    if isinstance(node.get("properties"), dict):
        for prop in node["properties"].values():
            _make_strict(prop)
    for key in ("items", "anyOf", "oneOf", "allOf"):
        if key in node:
            _make_strict(node[key])


def _make_nullable(prop: dict[str, Any]) -> None:
    kind = prop.get("type")
    if isinstance(kind, str) and kind != "null":
        prop["type"] = [kind, "null"]
    elif isinstance(kind, list):
        if "null" not in kind:
            kind.append("null")
    elif "anyOf" in prop:
        if {"type": "null"} not in prop["anyOf"]:
            prop["anyOf"].append({"type": "null"})


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Reduce a generic schema to the subset Gemini's ``response_json_schema`` accepts.

    Type lists with ``null`` become ``nullable``; ``$ref``, ``const`` and
    ``additionalProperties`` are dropped.
    """
    if "$ref" in schema:
        return {"type": "object", "description": schema.get("description", "")}

    result: dict[str, Any] = {}
    for key, value in schema.items():
        if key not in _GEMINI_KEYWORDS:
            continue
        match key:
            case "type" if isinstance(value, list):
                non_null = [v for v in value if v != "null"]
                result["type"] = non_null[0] if non_null else "string"
                if len(non_null) < len(value):
                    result["nullable"] = True
            case "properties":
                result["properties"] = {name: to_gemini_schema(prop) for name, prop in value.items()}
            case "items":
                result["items"] = to_gemini_schema(value)
            case "anyOf":
                result["anyOf"] = [to_gemini_schema(option) for option in value]
            case _:
                result[key] = copy.deepcopy(value)
    if "properties" in result:
        result["required"] = [key for key in result.get("required", []) if key in result["properties"]]
    return result


def example_from_schema(schema: dict[str, Any]) -> Any:  # noqa: PLR0911
    """Illustrative value matching ``schema``, used in prompt instructions."""
    if "const" in schema:
        return schema["const"]
    if "enum" in schema and schema["enum"]:
        return schema["enum"][0]
    if "anyOf" in schema:
        options = [option for option in schema["anyOf"] if option.get("type") != "null"]
        return example_from_schema(options[0]) if options else None

    kind = schema.get("type")
    if isinstance(kind, list):
        non_null = [k for k in kind if k != "null"]
        kind = non_null[0] if non_null else "null"

    match kind:
        case "string":
            if schema.get("format") == "date":
                return "2024-01-01"
            if schema.get("format") == "date-time":
                return "2024-01-01T12:00:00Z"
            return "example string"
        case "integer":
            return 42
        case "number":
            return 3.14
        case "boolean":
            return True
        case "array":
            return [example_from_schema(schema.get("items", {"type": "string"}))]
        case "object":
            if "properties" in schema:
                return {name: example_from_schema(prop) for name, prop in schema["properties"].items()}
            return {"key": example_from_schema(schema.get("additionalProperties") or {"type": "string"})}
        case "null":
            return None
    return "example value"
