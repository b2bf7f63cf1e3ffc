"""Locating JSON documents inside free-form model text."""

import json

_OPENERS = {"{": "}", "[": "]"}


def is_valid_json(text: str) -> bool:
    try:
        json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return False
    return True


def json_fence(content: str) -> str | None:
    """Body of the last ```json fenced block."""
    if "```json" not in content:
        return None
    return content.split("```json")[-1].split("```")[0].strip()


def code_fence(content: str) -> str | None:
    """Body of the first generic fenced block, without a language tag line."""
    parts = content.split("```")
    if len(parts) < 3:
        return None
    block = parts[1]
    first_line, newline, rest = block.partition("\n")
    if newline and first_line.strip().isidentifier():
        block = rest
    return block.strip()


def output_values_block(content: str) -> str | None:
    """Fenced block following a ``## Output values`` header."""
    if "## Output values" not in content:
        return None
    tail = content.split("## Output values")[-1]
    return code_fence(tail)


def looks_like_json(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith(("{", "["))


def balanced_json(content: str) -> str | None:
    """First balanced JSON object or array embedded in prose that parses."""
    for start, char in enumerate(content):
        if char not in _OPENERS:
            continue
        end = _matching_close(content, start)
        if end is not None and is_valid_json(candidate := content[start : end + 1]):
            return candidate
    return None


def _matching_close(content: str, start: int) -> int | None:
    stack = [_OPENERS[content[start]]]
    in_string = False
    escaped = False
    for index in range(start + 1, len(content)):
        char = content[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in "}]":
            if char != stack.pop():
                return None
            if not stack:
                return index
    return None


def extract_json_text(content: str | None) -> str | None:
    """Permissive extraction: fences first, then the whole text, then embedded JSON.

    Only candidates that parse are returned.
    """
    if content is None:
        return None
    content = content.strip()

    fenced = json_fence(content) if "```json" in content else code_fence(content)
    if fenced is not None and is_valid_json(fenced):
        return fenced

    if is_valid_json(content):
        return content

    return balanced_json(content)
