"""
ClariValue - Infrastructure Utilities

JSON handling utilities for analysis service responses
"""

from clarivalue.infrastructure.utils.json_utils import (
    decode_model_json,
    extract_json_from_text,
    safe_json_dumps,
    strip_code_fences,
)

__all__ = [
    "decode_model_json",
    "extract_json_from_text",
    "safe_json_dumps",
    "strip_code_fences",
]
