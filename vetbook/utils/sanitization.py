import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters so free text (notes, names, concerns)
    can be interpolated into email markup.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)
