"""String cleaning helpers for bulk-imported disposition data.

Import payloads are often pasted from spreadsheets or other exports and carry
stray tabs, NUL bytes and similar control characters.  These helpers clean
the raw text before it is parsed and the individual values after.
"""

import re
from typing import Any

# C0 control characters except \n and \r; runs are dropped as a unit.
_CONTROL_CHARS = re.compile(r"[\x00-\x09\x0b\x0c\x0e-\x1f]+")


def sanitize_json_text(text: str) -> str:
    """Prepare raw JSON text for parsing.

    Tabs become single spaces, then every other control character except
    newline and carriage return is removed.

    Example:
        '[{"speciesName":\\t"Rat\\x00"}]' -> '[{"speciesName": "Rat"}]'
    """
    return _CONTROL_CHARS.sub("", text.replace("\t", " "))


def safe_int(val: Any, default: int | None = None) -> int | None:
    """Convert *val* to int, returning *default* when it can't be read.

    Accepts ints, integral floats and numeric strings (surrounding
    whitespace allowed).  Booleans are not numbers here.
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, int):
        return val
    if isinstance(val, float):
        return int(val) if val.is_integer() else default
    try:
        return int(str(val).strip())
    except (ValueError, TypeError):
        return default


def clean_import_item(item: dict[str, Any]) -> dict[str, Any]:
    """Trim string values and coerce ``count`` of one imported object.

    Keys are left as they are; non-string values pass through unchanged.
    A ``count`` that is not an integer is kept as-is so validation can
    reject it with a useful message.
    """
    cleaned = {
        key: value.strip() if isinstance(value, str) else value
        for key, value in item.items()
    }
    if "count" in cleaned:
        coerced = safe_int(cleaned["count"])
        if coerced is not None:
            cleaned["count"] = coerced
    return cleaned
