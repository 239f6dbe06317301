import html
import json
import re
from typing import Any, List, Optional

_ARRAY_SPLIT = re.compile(r"[\n,]")


def sanitize_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Trim and HTML-escape free text before it is stored.

    ``max_length`` bounds the escaped value, which is what lands in the
    column; `&` alone grows to five characters.
    """
    if value is None:
        return None
    escaped = html.escape(value.strip(), quote=False)
    if max_length is not None and len(escaped) > max_length:
        raise ValueError(f"must be at most {max_length} characters once special characters are escaped")
    return escaped


def parse_array(value: Any) -> List[str]:
    """Coerce list-like input into a list of clean strings.

    Accepts a list, a JSON-encoded list, or newline/comma separated text.
    Empty entries are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        if stripped.startswith("["):
            try:
                value = json.loads(stripped)
            except ValueError:
                value = _ARRAY_SPLIT.split(stripped)
        else:
            value = _ARRAY_SPLIT.split(stripped)
    if not isinstance(value, (list, tuple)):
        value = [value]
    items = []
    for item in value:
        if item is None:
            continue
        text = sanitize_text(str(item))
        if text:
            items.append(text)
    return items
