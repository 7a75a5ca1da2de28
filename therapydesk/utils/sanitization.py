import html
import re
from typing import Optional

MAX_FILE_NAME_LENGTH = 100


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Already escaped text is unescaped first, so saving a value read back
    from the API does not escape it twice. Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    value = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", html.unescape(value))
    return html.escape(value, quote=True)


def safe_file_name(file_name: str) -> str:
    """Reduce a file name to characters that are safe inside an object key"""
    cleaned = "".join(c for c in file_name if c.isalnum() or c in "._-")
    return cleaned[-MAX_FILE_NAME_LENGTH:] or "file"
