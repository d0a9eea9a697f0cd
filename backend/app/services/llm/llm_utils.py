"""Shared LLM response utilities.

Consolidates response-text access and JSON extraction used by the content-type
classifier, the code analyzer and the recommendation generator.
"""

import json
import re
from typing import Any

from app.errors import ModelError


def response_text(response: Any) -> str:
    """Concatenate the text blocks of an Anthropic ``Message``.

    Raises:
        ModelError: If the response carries no text content.
    """
    parts = [
        block.text
        for block in getattr(response, "content", None) or []
        if isinstance(getattr(block, "text", None), str)
    ]
    if not parts:
        raise ModelError("Model response contained no text content")
    return "".join(parts)


def extract_json_from_response(text: str, *, expect_array: bool = False) -> Any:
    """Extract and parse JSON from an LLM response.

    LLMs frequently wrap JSON in markdown code fences (```json ... ```) or
    include preamble text.  This function tries, in order:

    1. Extract content inside ```json ... ``` fences.
    2. Find the first raw JSON object ``{...}`` or array ``[...]``.
    3. Parse the entire text as JSON (fallback).

    Args:
        text: Raw LLM response text.
        expect_array: When ``True``, prefer extracting a JSON array ``[...]``
            in step 2 rather than an object ``{...}``.

    Returns:
        Parsed Python object (dict or list).

    Raises:
        ModelError: If no valid JSON could be found.
    """
    try:
        fence_match = re.search(r"```json\s*(.*?)\s*```", text, re.DOTALL)
        if fence_match:
            return json.loads(fence_match.group(1))

        if expect_array:
            raw_match = re.search(r"\[.*]", text, re.DOTALL)
        else:
            raw_match = re.search(r"\{.*}", text, re.DOTALL)

        if raw_match:
            return json.loads(raw_match.group(0))

        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ModelError(f"Unparsable model output: {e}") from e
