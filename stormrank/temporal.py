"""
Temporal normalizer
===================

The log stores the begin date and the begin time in separate columns, plus a
timezone *abbreviation* typed in by hand:

    BGN_DATE="4/18/1950 0:00:00"  BGN_TIME="0130"  TIME_ZONE="CST"

This module combines date + time into one local timestamp and attaches a
zone identifier resolved from a fixed abbreviation table.

Notes:
- Some abbreviations are legacy or look like typos (CSt, ESY, SCT, ...).
  They are kept in the table as they appear in the log.
- Unknown abbreviations fall back to UTC.
- Malformed dates/times give None; the record itself is kept.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Dict, Optional, Tuple
import re

import pandas as pd

UTC_FALLBACK = "UTC"

TIMEZONE_TABLE: Dict[str, str] = {
    # continental US
    "EST": "America/New_York",
    "EDT": "America/New_York",
    "ESt": "America/New_York",
    "ESY": "America/New_York",
    "CST": "America/Chicago",
    "CDT": "America/Chicago",
    "CSt": "America/Chicago",
    "CSC": "America/Chicago",
    "SCT": "America/Chicago",
    "MST": "America/Denver",
    "MDT": "America/Denver",
    "PST": "America/Los_Angeles",
    "PDT": "America/Los_Angeles",
    # Alaska / Hawaii
    "AKS": "America/Anchorage",
    "AKST": "America/Anchorage",
    "AKDT": "America/Anchorage",
    "HST": "Pacific/Honolulu",
    # Atlantic (Puerto Rico, Virgin Islands)
    "AST": "America/Puerto_Rico",
    "ADT": "America/Puerto_Rico",
    # Pacific territories
    "GST": "Pacific/Guam",
    "SST": "Pacific/Pago_Pago",
    # explicit UTC codes
    "GMT": "UTC",
    "UTC": "UTC",
    "UNK": "UTC",
}

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%d-%b-%y")

_HHMM_RE = re.compile(r"^\d{1,4}$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?$")


def resolve_timezone(code: Optional[str]) -> Tuple[str, bool]:
    """Map an abbreviation to a zone identifier.

    Returns (zone, resolved). Exact match first, then upper-cased, then UTC.
    """
    c = (code or "").strip()
    if c in TIMEZONE_TABLE:
        return TIMEZONE_TABLE[c], True
    if c.upper() in TIMEZONE_TABLE:
        return TIMEZONE_TABLE[c.upper()], True
    return UTC_FALLBACK, False


def _parse_date(date_str: str) -> Optional[datetime]:
    # "4/18/1950 0:00:00" -> "4/18/1950"
    parts = (date_str or "").strip().split()
    if not parts:
        return None
    for fmt in DATE_FORMATS:
        try:
            day = datetime.strptime(parts[0], fmt)
        except ValueError:
            continue
        # %y puts 00-68 in the 2000s; the log has no future dates
        if "%y" in fmt and day.year > date.today().year:
            day = day.replace(year=day.year - 100)
        return day
    return None


def _parse_time(time_str: str) -> Optional[Tuple[int, int, int]]:
    """Parse HHMM, HH:MM, HH:MM:SS or HH:MM:SS AM/PM into (h, m, s)."""
    t = (time_str or "").strip()
    if not t:
        return None
    if _HHMM_RE.match(t):
        t = t.zfill(4)
        h, m, s = int(t[:2]), int(t[2:]), 0
    else:
        match = _CLOCK_RE.match(t)
        if not match:
            return None
        h, m = int(match.group(1)), int(match.group(2))
        s = int(match.group(3) or 0)
        ampm = match.group(4)
        if ampm:
            if not 1 <= h <= 12:
                return None
            h = h % 12 + (12 if ampm.lower() == "pm" else 0)
    if h > 23 or m > 59 or s > 59:
        return None
    return h, m, s


def parse_local_datetime(date_str: str, time_str: str) -> Optional[datetime]:
    """Combine a date-only string and a time string into a naive datetime."""
    day = _parse_date(date_str)
    clock = _parse_time(time_str)
    if day is None or clock is None:
        return None
    h, m, s = clock
    return day.replace(hour=h, minute=m, second=s)


def localize(dt: Optional[datetime], zone: str) -> Optional[pd.Timestamp]:
    """Attach `zone` to a naive datetime.

    Times in the fall-back overlap take the daylight-saving reading; times
    in the spring-forward gap are shifted to the first valid instant.
    """
    if dt is None:
        return None
    ts = pd.Timestamp(dt).tz_localize(zone, ambiguous=True, nonexistent="shift_forward")
    if pd.isna(ts):
        return None
    return ts


def normalize_timestamp(date_str: str, time_str: str, tz_code: str) -> Tuple[Optional[pd.Timestamp], str, bool]:
    """Return (local timestamp or None, zone identifier, tz_resolved)."""
    zone, resolved = resolve_timezone(tz_code)
    return localize(parse_local_datetime(date_str, time_str), zone), zone, resolved
