import html
import re
from typing import Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters so user text can be embedded in
    email markup or reportlab paragraphs. Returns None if input is None.
    """
    if value is None:
        return None
    return html.escape(CONTROL_CHARS.sub("", str(value)), quote=True)


def text_to_html(value: Optional[str]) -> str:
    """Escape free text and keep its line breaks"""
    if not value:
        return ""
    return sanitize_string(value.strip()).replace("\r\n", "\n").replace("\n", "<br/>")
