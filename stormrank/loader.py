"""
Dataset loader (CSV -> RawRecord list)
======================================

Reads the storm-event log (delimited text, optionally compressed: .bz2,
.gz, .zip, ...) and converts each row into a `RawRecord`.

Key ideas:
- Every cell is read as text, so exponent codes such as "0" or "+" are not
  mangled by type inference.
- We try several column names because exports differ (BGN_DATE vs
  BEGIN_DATE, EVTYPE vs EVENT_TYPE, ...).
- A missing column or an empty/corrupt file rejects the whole input
  (`LoaderError`); a bad *cell* only turns that field into None.
"""

from __future__ import annotations
from typing import Dict, IO, List, Optional, Tuple, Union
import logging
import math
import re
import zipfile

import pandas as pd

from .models import RawRecord

logger = logging.getLogger(__name__)

# field name -> accepted column names
COLUMNS: Dict[str, Tuple[str, ...]] = {
    "record_id": ("REFNUM", "EVENT_ID", "record_id"),
    "begin_date": ("BGN_DATE", "BEGIN_DATE"),
    "begin_time": ("BGN_TIME", "BEGIN_TIME"),
    "time_zone": ("TIME_ZONE", "CZ_TIMEZONE", "TIMEZONE"),
    "event_type": ("EVTYPE", "EVENT_TYPE"),
    "prop_dmg": ("PROPDMG",),
    "prop_dmg_exp": ("PROPDMGEXP",),
    "crop_dmg": ("CROPDMG",),
    "crop_dmg_exp": ("CROPDMGEXP",),
    "injuries": ("INJURIES",),
    "fatalities": ("FATALITIES",),
}


class LoaderError(ValueError):
    """The input cannot be used at all (missing column, empty or corrupt file)."""


def _to_int(x) -> Optional[int]:
    """Convert a cell to int, returning None if missing/invalid."""
    if pd.isna(x) or str(x).strip() == "": return None
    try: return int(float(x))
    except (TypeError, ValueError, OverflowError): return None

def _to_float(x) -> Optional[float]:
    """Convert a cell to float, returning None if missing/invalid."""
    if pd.isna(x) or str(x).strip() == "": return None
    try: v = float(x)
    except (TypeError, ValueError): return None
    return v if math.isfinite(v) else None

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise LoaderError(f"Missing required column. Tried={names}. Available={cols}")


def records_from_frame(df: pd.DataFrame) -> List[RawRecord]:
    """Convert an already-loaded table into RawRecords."""
    df = df.rename(columns={c: str(c).strip() for c in df.columns})
    cols = {field: _col(df, *names) for field, names in COLUMNS.items()}
    if df.empty:
        raise LoaderError("Input has no data rows")
    order = list(COLUMNS)

    records: List[RawRecord] = []
    for values in df[[cols[f] for f in order]].itertuples(index=False, name=None):
        row = dict(zip(order, values))
        records.append(RawRecord(
            record_id=_to_str(row["record_id"]),
            begin_date=_to_str(row["begin_date"]),
            begin_time=_to_str(row["begin_time"]),
            time_zone=_to_str(row["time_zone"]),
            event_type=_to_str(row["event_type"]),
            prop_dmg=_to_float(row["prop_dmg"]),
            prop_dmg_exp=_to_str(row["prop_dmg_exp"]),
            crop_dmg=_to_float(row["crop_dmg"]),
            crop_dmg_exp=_to_str(row["crop_dmg_exp"]),
            injuries=_to_int(row["injuries"]),
            fatalities=_to_int(row["fatalities"]),
        ))
    return records


def load_storm_csv(source: Union[str, IO], compression: Optional[str] = "infer") -> List[RawRecord]:
    """Load the storm-event log from a path or file object.

    Raises:
        LoaderError: missing file, unreadable/corrupt stream, empty input or
        missing required column.
    """
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, compression=compression)
    except pd.errors.EmptyDataError as e:
        raise LoaderError("Input stream is empty") from e
    except FileNotFoundError as e:
        raise LoaderError(f"Input file not found: {source}") from e
    except (pd.errors.ParserError, UnicodeDecodeError, zipfile.BadZipFile, OSError, EOFError) as e:
        raise LoaderError(f"Could not read input: {e}") from e

    records = records_from_frame(df)
    logger.info("Loaded %d records from %s", len(records), getattr(source, "name", source))
    return records
