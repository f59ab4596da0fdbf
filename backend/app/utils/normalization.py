"""
Numeric cell normalization for spreadsheet ingestion.

Converts locale-formatted numeric cells into scaled decimals:
- Native numeric cells use their shortest round-trip text form (no float artifacts)
- Text cells are trimmed; empty text and a lone "-" mean "not reported"
- "%" signs are stripped
- When a comma is present it is the decimal separator and dots are thousands
  separators ("1.000,50" -> "1000.50"); otherwise dot-decimal is assumed
- Values are scaled to 4 fractional digits, rounding half-up
"""

import logging
from decimal import Decimal, InvalidOperation

from app.models.fund import scale_return

logger = logging.getLogger(__name__)

ABSENT_MARKERS = {"", "-"}


def numeric_to_text(value: int | float) -> str:
    """
    Render a native numeric cell as exact decimal text.
    
    repr() of a float is the shortest string that round-trips, so 86.4372 stays
    "86.4372" instead of Decimal(86.4372)'s binary expansion.
    
    Examples:
        >>> numeric_to_text(86.4372)
        '86.4372'
        >>> numeric_to_text(12)
        '12'
    """
    return repr(value)


def sanitize_number_string(value: str) -> str:
    """
    Strip percent signs and normalize decimal separators.
    
    Examples:
        >>> sanitize_number_string("1.000,50")
        '1000.50'
        >>> sanitize_number_string("75,71%")
        '75.71'
        >>> sanitize_number_string("12.5")
        '12.5'
    """
    clean = value.replace("%", "").strip()
    
    if "," in clean:
        # Dot is a thousands separator when a decimal comma is present
        clean = clean.replace(".", "").replace(",", ".")
    
    return clean


def normalize_numeric_cell(value: object) -> Decimal | None:
    """
    Normalize a raw spreadsheet cell into a 4-digit scaled decimal.
    
    Args:
        value: Cell value as delivered by the reader (None, int, float or str)
        
    Returns:
        Scaled Decimal, or None when the cell is empty, a placeholder,
        or not a number
    """
    if value is None:
        return None
    
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        text = numeric_to_text(value)
    else:
        raw = str(value).strip()
        if raw in ABSENT_MARKERS:
            return None
        text = sanitize_number_string(raw)
        if text in ABSENT_MARKERS:
            return None
    
    try:
        number = Decimal(text)
    except InvalidOperation:
        logger.warning(f"Non-numeric value encountered, setting to null: {value!r}")
        return None
    
    if not number.is_finite():
        logger.warning(f"Non-finite value encountered, setting to null: {value!r}")
        return None
    
    return scale_return(number)
