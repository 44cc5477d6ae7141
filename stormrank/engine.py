"""
Result table
============

`ImpactTable` is the read side of a pipeline run. It is what the charting
and report code consume:

- sort the category rows by any metric (merge sort or quick sort)
- top-k rows by a metric (heap)
- the top-ranked category, e.g. for "Floods caused the most damage"
- export to CSV / JSON, or hand a pandas DataFrame to a plotting library
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union
import csv
import heapq
import json

import pandas as pd

from .aggregate import top_category as _top_category
from .dsa import merge_sort, quick_sort
from .models import CategoryAggregate, LabelAggregate
from .pipeline import PipelineResult

Row = Union[CategoryAggregate, LabelAggregate]

CATEGORY_COLUMNS = ["category", "count", "damage", "injuries", "fatalities"]
LABEL_COLUMNS = ["label", "category", "count", "damage", "injuries", "fatalities",
                 "count_rank", "damage_rank", "injury_rank", "fatality_rank"]


@dataclass
class ImpactTable:
    """Category (default) or label view over a `PipelineResult`."""
    result: PipelineResult
    level: str = "category"

    def __post_init__(self) -> None:
        if self.level not in ("category", "label"):
            raise ValueError("level must be 'category' or 'label'")

    @property
    def rows(self) -> List[Row]:
        return list(self.result.categories) if self.level == "category" else list(self.result.retained)

    # ---------------- Ordering ----------------
    def sort(self, field: str = "damage", algo: str = "merge", reverse: bool = True) -> List[Row]:
        key = _field_key(field)
        if algo == "merge":
            return merge_sort(self.rows, key=key, reverse=reverse)
        if algo == "quick":
            return quick_sort(self.rows, key=key, reverse=reverse)
        raise ValueError("algo must be 'merge' or 'quick'")

    def topk(self, k: int, field: str = "damage") -> List[Row]:
        key = _field_key(field)
        heap: List[tuple] = []
        rows = self.rows
        for i, row in enumerate(rows):
            v = key(row)
            if len(heap) < k:
                heapq.heappush(heap, (v, -i))
            elif v > heap[0][0]:
                heapq.heapreplace(heap, (v, -i))
        heap.sort(reverse=True)
        # entries are (value, -position) so earlier rows win ties
        return [rows[-neg] for _, neg in heap]

    def top_category(self, field: str = "damage") -> Optional[CategoryAggregate]:
        """Highest-ranked category by `field` (None if the table is empty)."""
        return _top_category(self.result.categories, by=_metric_name(field))

    # ---------------- Output ----------------
    def _records(self) -> List[Dict[str, object]]:
        if self.level == "category":
            return [
                {"category": r.name, "count": r.count, "damage": r.damage,
                 "injuries": r.injuries, "fatalities": r.fatalities}
                for r in self.result.categories
            ]
        return [
            {"label": r.label, "category": r.category.value if r.category else None,
             "count": r.count, "damage": r.damage, "injuries": r.injuries,
             "fatalities": r.fatalities, "count_rank": r.count_rank,
             "damage_rank": r.damage_rank, "injury_rank": r.injury_rank,
             "fatality_rank": r.fatality_rank}
            for r in self.result.retained
        ]

    def to_frame(self) -> pd.DataFrame:
        columns = CATEGORY_COLUMNS if self.level == "category" else LABEL_COLUMNS
        return pd.DataFrame(self._records(), columns=columns)

    def export_csv(self, path: str) -> None:
        columns = CATEGORY_COLUMNS if self.level == "category" else LABEL_COLUMNS
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=columns)
            w.writeheader()
            w.writerows(self._records())

    def export_json(self, path: str) -> None:
        """Export the table to a JSON list of objects (field names preserved)."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._records(), f, ensure_ascii=False, indent=2)


# ---------------- Helpers ----------------
FIELD_ALIASES = {
    "damage": "damage", "damages": "damage", "total_damage": "damage",
    "injuries": "injuries", "injury": "injuries",
    "fatalities": "fatalities", "deaths": "fatalities",
    "count": "count", "events": "count",
}


def _metric_name(field: str) -> str:
    f = field.lower().strip()
    if f not in FIELD_ALIASES:
        raise ValueError("field must be: damage, injuries, fatalities, count")
    return FIELD_ALIASES[f]


def _field_key(field: str) -> Callable[[Row], object]:
    metric = _metric_name(field)
    return lambda r: getattr(r, metric)
