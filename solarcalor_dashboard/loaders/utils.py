"""
Shared utilities for uploaded rows: numeric coercion, date normalisation,
blank detection.
"""

import logging
import math
from datetime import date, datetime
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

# pandas resolves these against the clock; cells holding them are not dates
_RELATIVE_DATE_WORDS = {"now", "today", "tomorrow", "yesterday"}


def has_value(val: Any) -> bool:
    """True when a cell carries something other than None, NaN or blank text."""
    if val is None:
        return False
    if isinstance(val, str):
        return bool(val.strip())
    if isinstance(val, float) and math.isnan(val):
        return False
    return True


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        val = val.strip()
        if not val:
            return None
        # Handle percentage strings like "78%"
        if val.endswith("%"):
            val = val[:-1]
    try:
        result = float(val)
    except (ValueError, TypeError):
        return None
    if math.isnan(result):
        return None
    return result


def to_num(val: Any) -> float:
    """Numeric value of a cell; blanks and unparseable text count as 0."""
    result = safe_float(val)
    if result is None or math.isinf(result):
        return 0.0
    return result


def parse_date(val: Any) -> pd.Timestamp | None:
    """Convert a date string, datetime or Excel serial number to pd.Timestamp.

    Excel serial numbers use the 1899-12-30 epoch. Returns None for blank
    or unparseable values.
    """
    if not has_value(val):
        return None
    # NaT is a datetime instance too
    if isinstance(val, (datetime, date)):
        return None if pd.isna(val) else pd.Timestamp(val)
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        try:
            return pd.Timestamp("1899-12-30") + pd.Timedelta(days=int(val))
        except (ValueError, OverflowError):
            logger.warning("Could not convert serial number %s to date", val)
            return None
    text = str(val).strip()
    if text.lower() in _RELATIVE_DATE_WORDS:
        logger.warning("Could not parse date value: %s", val)
        return None
    try:
        ts = pd.Timestamp(text)
    except (ValueError, TypeError, OverflowError):
        logger.warning("Could not parse date value: %s", val)
        return None
    if pd.isna(ts):
        return None
    return ts
