# common/json_utils.py
# -*- coding: utf-8 -*-
"""
Helpers for reading, normalizing and serializing JSON documents.
"""

import json
from typing import Any, Dict, Optional, Tuple, Union


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def parse_json_object(
    content: Optional[Union[bytes, str]],
) -> Tuple[Dict[str, Any], bool]:
    """
    Parses raw content as a JSON object.

    Args:
        content: Raw bytes or text, or None when there is nothing to parse.

    Returns:
        A tuple of the parsed object and a flag that is True only when the
        content was a well-formed JSON object. Absent, blank, undecodable,
        malformed or non-object content yields ({}, False). The NaN and
        Infinity tokens Python would otherwise accept count as malformed.
    """
    if content is None:
        return {}, False
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            return {}, False
    if not content.strip():
        return {}, False
    try:
        value = json.loads(content, parse_constant=_reject_constant)
    except ValueError:
        return {}, False
    if not isinstance(value, dict):
        return {}, False
    return value, True


def canonical_json(value: Any) -> str:
    """Serializes a value with sorted keys and compact separators, for comparison only."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def pretty_json(value: Any) -> str:
    """Serializes a value with 2-space indentation, keeping key insertion order."""
    return (
        json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)
        + "\n"
    )
