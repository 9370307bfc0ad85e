"""Helpers for pulling structured JSON out of free-form model replies."""

import json
import re
from typing import Any


def extract_json_object(response_text: str) -> dict[str, Any]:
    """
    Extract a JSON object from a model response, handling markdown blocks.

    The model may return JSON in various formats:
    - Raw JSON object
    - JSON in markdown code block (```json ... ```)
    - JSON prefixed with a bare "json" tag or surrounded by prose

    Args:
        response_text: Raw response text from the model.

    Returns:
        Parsed JSON object.

    Raises:
        ValueError: If no JSON object can be parsed from the text.
    """
    if not isinstance(response_text, str):
        raise ValueError(f"expected text response, got {type(response_text).__name__}")

    text = response_text.strip()

    # Try to find JSON in markdown code block
    fence_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text, re.IGNORECASE)
    if fence_match:
        text = fence_match.group(1).strip()

    if text[:4].lower() == "json":
        text = text[4:].lstrip()

    # Outermost braces, tolerating prose before and after
    object_match = re.search(r"\{[\s\S]*\}", text)
    if not object_match:
        raise ValueError("no JSON object found in response")

    try:
        parsed = json.loads(object_match.group(0))
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON in response: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError("response JSON is not an object")
    return parsed
