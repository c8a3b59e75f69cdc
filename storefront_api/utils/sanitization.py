import html
from typing import Any, Optional


def sanitize_string(value: Optional[Any]) -> Optional[str]:
    """
    Escape HTML special characters so caller-supplied values are safe to embed in email markup.
    Returns None if input is None; non-strings are converted with str() first.
    """
    if value is None:
        return None
    return html.escape(str(value), quote=True)


def format_currency(amount: float) -> str:
    """Format a dollar amount the way every email shows it, e.g. $1,250.00"""
    return f"${amount:,.2f}"
