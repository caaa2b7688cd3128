"""Helpers for parsing structured (JSON) responses of the text service."""

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from core.exceptions import LLMParseError

TModel = TypeVar("TModel", bound=BaseModel)

JSON_OBJECT_FORMAT: dict[str, Any] = {"type": "json_object"}


def extract_json(response: str) -> str:
    """Extract JSON from a response, handling markdown code blocks.

    Args:
        response: The raw response.

    Returns:
        The extracted JSON string.
    """
    response = response.strip()

    if "```json" in response:
        start = response.find("```json") + 7
        end = response.find("```", start)
        if end > start:
            return response[start:end].strip()

    if "```" in response:
        start = response.find("```") + 3
        end = response.find("```", start)
        if end > start:
            return response[start:end].strip()

    if "{" in response:
        start = response.find("{")
        depth = 0
        for i, char in enumerate(response[start:], start):
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return response[start : i + 1]

    return response


def parse_items(
    response: str,
    *,
    collection_key: str,
    item_key: str,
    model: type[TModel],
) -> list[TModel]:
    """Parse ``{collection_key: [{item_key: {...}}, ...]}`` into models.

    Items may also be given flat (``{collection_key: [{...}, ...]}``).
    Invalid items are dropped; order is preserved.

    Raises:
        LLMParseError: If the response is not JSON or the collection is missing.
    """
    if not response or not response.strip():
        raise LLMParseError("Empty response", raw_response=response)

    try:
        data = json.loads(extract_json(response))
    except json.JSONDecodeError as e:
        raise LLMParseError(f"Invalid JSON in response: {e}", raw_response=response) from e

    if not isinstance(data, dict) or not isinstance(data.get(collection_key), list):
        raise LLMParseError(f"Response has no '{collection_key}' list", raw_response=response)

    items: list[TModel] = []
    for raw in data[collection_key]:
        if isinstance(raw, dict) and isinstance(raw.get(item_key), dict):
            raw = raw[item_key]
        try:
            items.append(model.model_validate(raw))
        except ValidationError:
            continue
    return items
