"""
ClariValue - JSON Utilities
Copyright (c) 2025 Vijaykumar Singh
Licensed under the Apache License 2.0

JSON handling for analysis service responses. Language-model output is often
wrapped in a markdown code fence or surrounded by prose.
"""

import json
import re
from typing import Any

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def safe_json_dumps(obj: Any, **kwargs) -> str:
    """Encode to JSON keeping non-ASCII characters (company names, Finnish labels)"""
    return json.dumps(obj, ensure_ascii=False, **kwargs)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    match = _FENCE.match(text)
    return match.group(1) if match else text.strip()


def decode_model_json(text: Any) -> Any:
    """
    Decode JSON produced by a language model.

    Tries the fence-stripped text first, then the first balanced JSON object
    embedded in the text.

    Raises:
        ValueError: If no JSON value can be found
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        return extract_json_from_text(cleaned)


def extract_json_from_text(text: str) -> dict:
    """Find the first balanced ``{...}`` object in text and decode it."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = not in_string
            elif not in_string and char == "{":
                depth += 1
            elif not in_string and char == "}":
                depth -= 1
                if depth == 0:
                    try:
                        return json.loads(text[start : index + 1])
                    except json.JSONDecodeError:
                        break
        start = text.find("{", start + 1)

    raise ValueError("No valid JSON object found in text")
