"""
Data model
==========

Each row of the storm-event log becomes a `RawRecord`. Every later stage
derives a *new* collection from the previous one:

    RawRecord -> NormalizedRecord -> LabelAggregate -> CategoryAggregate

All records are immutable (`frozen=True`) so that:
- raw rows stay the source of truth, and
- stages never edit each other's output, they only build new lists.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import pandas as pd

from .taxonomy import Category


@dataclass(frozen=True)
class RawRecord:
    """One reported event, exactly as loaded (strings kept raw)."""
    record_id: str
    begin_date: str
    begin_time: str
    time_zone: str
    event_type: str
    prop_dmg: Optional[float]
    prop_dmg_exp: str
    crop_dmg: Optional[float]
    crop_dmg_exp: str
    injuries: Optional[int]
    fatalities: Optional[int]


@dataclass(frozen=True)
class NormalizedRecord:
    """A decoded record: local timestamp, lower-cased label, damage in US$."""
    record_id: str
    timestamp: Optional[pd.Timestamp]
    time_zone: str
    label: str
    prop_damage: Optional[float]
    crop_damage: Optional[float]
    # never negative; None only when both parts are None
    total_damage: Optional[float]
    injuries: int
    fatalities: int
    year: Optional[int]
    anomalies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LabelAggregate:
    """Totals for one distinct raw label plus its ordinal percentile ranks.

    Ranks are in (0, 1]. `category` stays None until the taxonomy stage
    produces a classified copy.
    """
    label: str
    count: int
    damage: float
    injuries: int
    fatalities: int
    count_rank: float
    damage_rank: float
    injury_rank: float
    fatality_rank: float
    category: Optional[Category] = None


@dataclass(frozen=True)
class CategoryAggregate:
    """Totals for one canonical category (final output row)."""
    category: Category
    count: int
    damage: float
    injuries: int
    fatalities: int
    labels: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.category.value


@dataclass(frozen=True)
class YearlyTotal:
    year: int
    category: Category
    count: int
    damage: float
    injuries: int
    fatalities: int
