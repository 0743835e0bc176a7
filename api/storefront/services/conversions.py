# storefront/services/conversions.py
"""
Pure converters for spreadsheet / request cells.

Every converter documents what it returns when the value is absent
(None, NaN from pandas, or a blank string). Numeric converters reject
present-but-malformed values with ValidationFailure.
"""
from __future__ import annotations
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from storefront.errors import ValidationFailure

TRUE_TEXT = "TRUE"
THOUSANDS_RE = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


def is_blank(value: Any) -> bool:
    """None, NaN and whitespace-only strings are blank."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def clean_text(value: Any) -> Optional[str]:
    """Trimmed string, or None when blank."""
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # pandas reads "123" columns as 123.0
        value = int(value)
    return str(value).strip()


def parse_bool(value: Any) -> bool:
    """
    "TRUE"/"FALSE" in any case -> bool. Real booleans pass through.
    Anything else (missing, blank, "yes", 1) -> False.
    """
    if isinstance(value, bool):
        return value
    if is_blank(value):
        return False
    return str(value).strip().upper() == TRUE_TEXT


def split_tags(value: Any) -> List[str]:
    """Comma separated text -> trimmed non-empty items. Missing -> []."""
    if is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(p) for p in value if not is_blank(p)]
    else:
        parts = str(value).split(",")
    return [p.strip() for p in parts if p.strip()]


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Number or numeric text -> Decimal. Missing -> None (never 0).

    "1,499" and "1,499.00" are thousands grouping; a single comma with no
    dot is a decimal comma ("21,50"). Anything else that does not parse
    raises ValidationFailure.
    """
    if is_blank(value):
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if isinstance(value, str):
            if THOUSANDS_RE.match(text):
                text = text.replace(",", "")
            elif text.count(",") == 1 and "." not in text:
                text = text.replace(",", ".")
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            raise ValidationFailure(f"Not a number: {value!r}")
    if not result.is_finite():
        raise ValidationFailure(f"Not a finite number: {value!r}")
    return result


def to_int(value: Any) -> Optional[int]:
    """Whole number -> int. Missing -> None (never 0); fractions and garbage raise ValidationFailure."""
    dec = to_decimal(value)
    if dec is None:
        return None
    if dec != dec.to_integral_value():
        raise ValidationFailure(f"Not a whole number: {value!r}")
    return int(dec)
