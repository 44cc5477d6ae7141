"""Relevance filter: keep records that hurt someone or cost something."""

from __future__ import annotations
from typing import Iterable, List

from .models import NormalizedRecord


def is_relevant(record: NormalizedRecord) -> bool:
    """True if the record has injuries, fatalities or damage (None counts as 0)."""
    return record.injuries > 0 or record.fatalities > 0 or (record.total_damage or 0.0) > 0


def filter_relevant(records: Iterable[NormalizedRecord]) -> List[NormalizedRecord]:
    return [r for r in records if is_relevant(r)]
