"""Text normalization and number parsing for OCR'd receipt text."""

import math
import re
import unicodedata

_GROUPED_THOUSANDS = re.compile(r"^\d{1,3}(?:[.,]\d{3})+$")


def strip_accents(text: str) -> str:
    """Lowercase ``text`` and drop combining diacritics (``Guía`` -> ``guia``)."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def split_lines(text: str) -> list[str]:
    """Split on newlines, strip each line and drop the empty ones."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def parse_amount(token: str) -> float | None:
    """Parse a price token that may use ``.`` or ``,`` as separators.

    Rules, in order:

    * both separators present: the right-most one is the decimal point
      (``1,250.50`` and ``1.250,50`` are both 1250.5);
    * a single kind repeated: thousands grouping (``1.250.000``);
    * a single separator with one to three digits before it and exactly
      three after it: thousands grouping (``$1.250`` is 1250, not 1.25);
    * otherwise the separator is a decimal point (``1250,5`` is 1250.5).

    Returns:
        The parsed value, or ``None`` if the token holds no digits or
        is too long to be a finite number.
    """
    token = token.strip().rstrip(".,")
    if not token or not token[0].isdigit():
        return None

    has_dot = "." in token
    has_comma = "," in token
    if has_dot and has_comma:
        decimal = "." if token.rfind(".") > token.rfind(",") else ","
        grouping = "," if decimal == "." else "."
        normalized = token.replace(grouping, "").replace(decimal, ".")
    elif has_dot or has_comma:
        sep = "." if has_dot else ","
        if token.count(sep) > 1 or _GROUPED_THOUSANDS.match(token):
            normalized = token.replace(sep, "")
        else:
            normalized = token.replace(sep, ".")
    else:
        normalized = token

    try:
        value = float(normalized)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
