"""
Typed accessors for loosely-typed blueprint option metadata.

Admin-entered metadata arrives as arbitrary JSON values. Every reader here
returns ``None`` for anything it cannot interpret and never raises.
"""
import math
import re
from typing import Any, Mapping, Optional


_NON_NUMERIC = re.compile(r'[^0-9.\-]')
_LEADING_NUMBER = re.compile(r'\s*([+-]?(?:\d+\.?\d*|\.\d+))')
_CHANNEL_LABEL = re.compile(r'(\d+)\s*channel', re.IGNORECASE)
_MEGAPIXEL_LABEL = re.compile(r'(\d+(?:\.\d+)?)\s*mp', re.IGNORECASE)

TRUE_STRINGS = frozenset({'true', 'yes', '1'})
FALSE_STRINGS = frozenset({'false', 'no', '0'})


def parse_leading_float(text: str) -> Optional[float]:
    """Parse the leading decimal number of a string ("12.5abc" -> 12.5)."""
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _finite(value: int | float) -> Optional[float]:
    # JSON integers are unbounded; float() overflows past ~1e308
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def to_finite_float(value: Any) -> Optional[float]:
    """Coerce a number-like value to a finite float, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(value)
    if isinstance(value, str):
        if not value.strip():
            return None
        return parse_leading_float(value)
    return None


def read_numeric(meta: Optional[Mapping[str, Any]], key: str) -> Optional[float]:
    """
    Read a numeric metadata value.

    Numbers are returned as-is when finite. Strings are stripped of every
    character other than digits, '.' and '-' before parsing, so "₹1,499"
    reads as 1499.0.
    """
    if not isinstance(meta, Mapping):
        return None
    raw = meta.get(key)
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return _finite(raw)
    if isinstance(raw, str):
        normalized = _NON_NUMERIC.sub('', raw)
        if not normalized.strip():
            return None
        return parse_leading_float(normalized)
    return None


def read_boolean(meta: Optional[Mapping[str, Any]], key: str) -> Optional[bool]:
    """Read a boolean metadata value (yes/true/1 and no/false/0 strings accepted)."""
    if not isinstance(meta, Mapping):
        return None
    raw = meta.get(key)
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if not normalized:
            return None
        if normalized in TRUE_STRINGS:
            return True
        if normalized in FALSE_STRINGS:
            return False
        return None
    if isinstance(raw, (int, float)):
        if raw == 1:
            return True
        if raw == 0:
            return False
    return None


def parse_channel_capacity(label: Optional[str]) -> Optional[int]:
    """Extract "16" from labels such as "16 Channel NVR"."""
    if not label:
        return None
    match = _CHANNEL_LABEL.search(label)
    if not match:
        return None
    return int(match.group(1))


def parse_megapixels(label: Optional[str]) -> Optional[float]:
    """Extract 2.4 from labels such as "2.4 MP Dome"."""
    if not label:
        return None
    match = _MEGAPIXEL_LABEL.search(label)
    if not match:
        return None
    return float(match.group(1))
