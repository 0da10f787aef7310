"""Common parsing utilities for model responses."""

from __future__ import annotations

import json
import re
from typing import Any


def strip_code_fences(text: str) -> str:
    t = text.strip()
    # Remove triple-backtick fences if present.
    if t.startswith("```"):
        t = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", t)
        t = re.sub(r"\s*```$", "", t)
    return t.strip()


def parse_json_object_strict(text: str) -> dict[str, Any] | None:
    """
    Accept only a JSON object (possibly wrapped in a code fence).
    """
    t = strip_code_fences(text)
    try:
        obj = json.loads(t)
    except ValueError:
        return None
    if not isinstance(obj, dict):
        return None
    return obj


def find_embedded_json_object(text: str) -> dict[str, Any] | None:
    """Find the first decodable JSON object embedded in surrounding prose.

    Examples:
        >>> find_embedded_json_object('Sure! {"guess": "ocean"} Good luck.')
        {'guess': 'ocean'}
        >>> find_embedded_json_object("no braces here") is None
        True
    """
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            obj, _end = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(obj, dict):
            return obj
    return None


def extract_labeled_field(response: str, label: str) -> str | None:
    """Extract the value of a `LABEL: value` line.

    The value runs until the next `OTHER_LABEL:` line or the end of the text.
    Matching is case-insensitive; the label must start a line.
    """
    match = re.search(
        rf"^\s*\**{re.escape(label)}\**\s*:\s*(.+?)(?=^\s*\**[A-Z][A-Z_ ]{{1,20}}\**\s*:|\Z)",
        response,
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    )
    if match:
        content = match.group(1).strip()
        return content if content else None
    return None


def extract_tagged_field(response: str, tag: str) -> str | None:
    """Extract the content of an XML-style `<tag>...</tag>` block."""
    match = re.search(
        rf"<{re.escape(tag)}>\s*(.*?)\s*</{re.escape(tag)}>",
        response,
        re.IGNORECASE | re.DOTALL,
    )
    if match:
        content = match.group(1).strip()
        return content if content else None
    return None
