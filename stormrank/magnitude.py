"""
Magnitude decoder
=================

Damage in the storm log is stored as two columns: a number and an
"exponent code" telling its order of magnitude.

    PROPDMG=25, PROPDMGEXP="K"  ->  25,000 US$

Codes:
- '0'..'8'  -> x10
- 'h' / 'H' -> x100
- 'k' / 'K' -> x1,000
- 'm' / 'M' -> x1,000,000
- 'b' / 'B' -> x1,000,000,000
- '+'       -> x1

Anything else ('', '-', '?', ...) is unrecognized and decodes to None.
None is never replaced by a dummy number: it stays None until a null-safe
sum treats it as 0.
"""

from __future__ import annotations
from typing import Dict, Optional

EXPONENT_MULTIPLIERS: Dict[str, int] = {
    **{str(d): 10 for d in range(9)},
    "h": 100,
    "k": 1_000,
    "m": 1_000_000,
    "b": 1_000_000_000,
    "+": 1,
}


def multiplier_for(code: Optional[str]) -> Optional[int]:
    """Return the multiplier for an exponent code, or None if unrecognized."""
    if code is None:
        return None
    return EXPONENT_MULTIPLIERS.get(str(code).strip().lower())


def decode_magnitude(value: Optional[float], code: Optional[str]) -> Optional[float]:
    """Scale `value` by the multiplier of `code`.

    Returns None for a missing/negative value or an unrecognized code.
    """
    if value is None or value < 0:
        return None
    mult = multiplier_for(code)
    if mult is None:
        return None
    return float(value) * mult


def total_loss(prop: Optional[float], crop: Optional[float]) -> Optional[float]:
    """Null-safe sum of property and crop damage (None only if both are None)."""
    if prop is None and crop is None:
        return None
    return (prop or 0.0) + (crop or 0.0)


def is_malformed(value: Optional[float], code: Optional[str]) -> bool:
    """True when a non-zero amount carries a code we cannot decode.

    A zero with a blank code is how the log says "no damage", so it is not
    counted as an anomaly even though it decodes to None.
    """
    if value is None or value == 0:
        return False
    return multiplier_for(code) is None or value < 0
