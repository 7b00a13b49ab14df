import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def collapse_whitespace(value: Optional[str], max_length: int = 255) -> Optional[str]:
    """Trim, collapse inner whitespace and cap the length of free-text input"""
    if value is None:
        return None
    return " ".join(value.split())[:max_length]
