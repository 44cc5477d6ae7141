"""
Aggregation stages
==================

Frequency aggregator (per raw label):
1) `summarize_labels`   records -> {label: LabelTotals}        (map)
2) `merge_label_totals` many partial dicts -> one dict          (reduce)
3) `rank_labels`        totals -> LabelAggregate rows with four
                        ordinal percentile ranks over *distinct labels*
4) `frequent_labels`    keep count_rank >= threshold (top ~20% by default)

Category aggregator (per canonical category):
- `aggregate_categories` re-sums classified label rows per category
- `sort_categories` orders them descending by one metric

`LabelTotals.combine` is associative and commutative, so partial totals from
any partition of the records merge to the same result.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .dsa import merge_sort, ordinal_ranks
from .models import CategoryAggregate, LabelAggregate, NormalizedRecord, YearlyTotal
from .taxonomy import DEFAULT_MAPPING, Category, CategoryMapping

METRICS = ("count", "damage", "injuries", "fatalities")


@dataclass(frozen=True)
class LabelTotals:
    """Partial sums for one group key."""
    count: int = 0
    damage: float = 0.0
    injuries: int = 0
    fatalities: int = 0

    @classmethod
    def of(cls, record: NormalizedRecord) -> "LabelTotals":
        return cls(1, record.total_damage or 0.0, record.injuries, record.fatalities)

    def combine(self, other: "LabelTotals") -> "LabelTotals":
        return LabelTotals(
            self.count + other.count,
            self.damage + other.damage,
            self.injuries + other.injuries,
            self.fatalities + other.fatalities,
        )


def _add(acc: Dict, key, totals: LabelTotals) -> None:
    prev = acc.get(key)
    acc[key] = totals if prev is None else prev.combine(totals)


# ---------------- Frequency aggregator ----------------

def summarize_labels(records: Iterable[NormalizedRecord]) -> Dict[str, LabelTotals]:
    """Group records by lower-cased label and sum their metrics (null = 0)."""
    out: Dict[str, LabelTotals] = {}
    for r in records:
        _add(out, r.label, LabelTotals.of(r))
    return out


def merge_label_totals(parts: Iterable[Dict[str, LabelTotals]]) -> Dict[str, LabelTotals]:
    out: Dict[str, LabelTotals] = {}
    for part in parts:
        for label, totals in part.items():
            _add(out, label, totals)
    return out


def rank_labels(totals: Dict[str, LabelTotals]) -> List[LabelAggregate]:
    """Build one LabelAggregate per label with ordinal percentile ranks.

    Rows come back sorted by label. Ties on a metric are broken by label
    text (ascending), so the ranking never depends on input order.
    """
    labels = sorted(totals)
    rows = [totals[lb] for lb in labels]
    count_r = ordinal_ranks([t.count for t in rows], labels)
    damage_r = ordinal_ranks([t.damage for t in rows], labels)
    injury_r = ordinal_ranks([t.injuries for t in rows], labels)
    fatality_r = ordinal_ranks([t.fatalities for t in rows], labels)
    return [
        LabelAggregate(
            label=lb,
            count=t.count,
            damage=t.damage,
            injuries=t.injuries,
            fatalities=t.fatalities,
            count_rank=count_r[i],
            damage_rank=damage_r[i],
            injury_rank=injury_r[i],
            fatality_rank=fatality_r[i],
        )
        for i, (lb, t) in enumerate(zip(labels, rows))
    ]


def frequent_labels(aggregates: Iterable[LabelAggregate], threshold: float = 0.80) -> List[LabelAggregate]:
    """Keep labels whose count-based percentile rank is >= threshold."""
    return [a for a in aggregates if a.count_rank >= threshold]


def coverage(retained: Sequence[LabelAggregate], full: Sequence[LabelAggregate]) -> Dict[str, float]:
    """Share of each total held by the retained labels.

    A metric whose full total is 0 reports 1.0 (nothing was lost).
    """
    out: Dict[str, float] = {}
    for metric in METRICS:
        whole = sum(getattr(a, metric) for a in full)
        kept = sum(getattr(a, metric) for a in retained)
        out[metric] = kept / whole if whole else 1.0
    return out


# ---------------- Category aggregator ----------------

def _metric_key(by: str):
    if by not in METRICS:
        raise ValueError(f"Unknown metric {by!r}; expected one of {', '.join(METRICS)}")
    return lambda row: getattr(row, by)


def sort_categories(rows: Sequence[CategoryAggregate], by: str = "damage") -> List[CategoryAggregate]:
    """Order category rows descending by `by`; ties go by category name."""
    key = _metric_key(by)
    by_name = merge_sort(list(rows), key=lambda r: r.name)
    return merge_sort(by_name, key=key, reverse=True)


def aggregate_categories(classified: Iterable[LabelAggregate], by: str = "damage") -> List[CategoryAggregate]:
    """Re-sum classified label rows per category."""
    totals: Dict[Category, LabelTotals] = {}
    labels: Dict[Category, List[str]] = {}
    for a in classified:
        if a.category is None:
            raise ValueError(f"Label {a.label!r} has not been classified")
        _add(totals, a.category, LabelTotals(a.count, a.damage, a.injuries, a.fatalities))
        labels.setdefault(a.category, []).append(a.label)

    rows = [
        CategoryAggregate(
            category=c,
            count=t.count,
            damage=t.damage,
            injuries=t.injuries,
            fatalities=t.fatalities,
            labels=tuple(sorted(labels[c])),
        )
        for c, t in totals.items()
    ]
    return sort_categories(rows, by=by)


# ---------------- Yearly totals ----------------

def summarize_years(records: Iterable[NormalizedRecord], mapping: CategoryMapping = DEFAULT_MAPPING) -> Dict[Tuple[int, Category], LabelTotals]:
    """Group records with a known year by (year, category)."""
    out: Dict[Tuple[int, Category], LabelTotals] = {}
    cache: Dict[str, Category] = {}
    for r in records:
        if r.year is None:
            continue
        cat = cache.get(r.label)
        if cat is None:
            cat = cache[r.label] = mapping.classify(r.label)
        _add(out, (r.year, cat), LabelTotals.of(r))
    return out


def merge_year_totals(parts: Iterable[Dict[Tuple[int, Category], LabelTotals]]) -> Dict[Tuple[int, Category], LabelTotals]:
    out: Dict[Tuple[int, Category], LabelTotals] = {}
    for part in parts:
        for key, totals in part.items():
            _add(out, key, totals)
    return out


def yearly_rows(totals: Dict[Tuple[int, Category], LabelTotals], mapping: CategoryMapping = DEFAULT_MAPPING) -> List[YearlyTotal]:
    """Flatten (year, category) totals, sorted by year then category priority."""
    order = {c: i for i, c in enumerate(mapping.categories())}
    keys = sorted(totals, key=lambda k: (k[0], order.get(k[1], len(order))))
    return [
        YearlyTotal(year=y, category=c, count=totals[(y, c)].count, damage=totals[(y, c)].damage,
                    injuries=totals[(y, c)].injuries, fatalities=totals[(y, c)].fatalities)
        for y, c in keys
    ]


def yearly_totals(records: Iterable[NormalizedRecord], mapping: CategoryMapping = DEFAULT_MAPPING) -> List[YearlyTotal]:
    return yearly_rows(summarize_years(records, mapping), mapping)


def top_category(rows: Sequence[CategoryAggregate], by: str = "damage") -> Optional[CategoryAggregate]:
    ordered = sort_categories(rows, by=by)
    return ordered[0] if ordered else None
