"""
Pipeline (stages 2-7)
=====================

    RawRecord list
      -> normalize_record      timestamp + zone, label, decoded damage
      -> filter_relevant       injuries / fatalities / damage > 0
      -> summarize_labels      per-label partial totals            (map)
      -> merge_label_totals    sum partials by label               (reduce)
      -> rank_labels           ordinal percentile ranks
      -> frequent_labels       keep count_rank >= threshold
      -> classify_labels       canonical category per label
      -> aggregate_categories  per-category totals

Stages up to the map step are per-record and stateless, so with
`workers > 1` they run on chunks in worker processes and only the small
partial dictionaries come back to be merged.
"""

from __future__ import annotations
from collections import Counter
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from .aggregate import (LabelTotals, aggregate_categories, coverage, frequent_labels,
                        merge_label_totals, merge_year_totals, rank_labels,
                        summarize_labels, summarize_years, yearly_rows)
from .config import PipelineConfig
from .magnitude import decode_magnitude, is_malformed, total_loss
from .models import CategoryAggregate, LabelAggregate, NormalizedRecord, RawRecord, YearlyTotal
from .relevance import filter_relevant
from .taxonomy import Category, CategoryMapping, classify_labels
from .temporal import normalize_timestamp

logger = logging.getLogger(__name__)


def normalize_record(raw: RawRecord) -> NormalizedRecord:
    """Decode one raw record. Bad fields become None and are tagged."""
    anomalies: List[str] = []

    ts, zone, tz_ok = normalize_timestamp(raw.begin_date, raw.begin_time, raw.time_zone)
    if ts is None:
        anomalies.append("timestamp")
    if not tz_ok:
        anomalies.append("time_zone")

    prop = decode_magnitude(raw.prop_dmg, raw.prop_dmg_exp)
    crop = decode_magnitude(raw.crop_dmg, raw.crop_dmg_exp)
    if is_malformed(raw.prop_dmg, raw.prop_dmg_exp):
        anomalies.append("prop_exp")
    if is_malformed(raw.crop_dmg, raw.crop_dmg_exp):
        anomalies.append("crop_exp")

    return NormalizedRecord(
        record_id=raw.record_id,
        timestamp=ts,
        time_zone=zone,
        label=raw.event_type.strip().lower(),
        prop_damage=prop,
        crop_damage=crop,
        total_damage=total_loss(prop, crop),
        injuries=max(raw.injuries or 0, 0),
        fatalities=max(raw.fatalities or 0, 0),
        year=ts.year if ts is not None else None,
        anomalies=tuple(anomalies),
    )


def normalize_records(raws: Sequence[RawRecord]) -> List[NormalizedRecord]:
    return [normalize_record(r) for r in raws]


@dataclass(frozen=True)
class ChunkSummary:
    """What one partition of raw records contributes to the final result."""
    records: int
    relevant: int
    labels: Dict[str, LabelTotals]
    years: Dict[Tuple[int, Category], LabelTotals]
    anomalies: Counter


def summarize_chunk(raws: Sequence[RawRecord], mapping: CategoryMapping) -> ChunkSummary:
    """Run the per-record stages on one chunk and reduce it to partial totals."""
    normalized = normalize_records(raws)
    anomalies: Counter = Counter()
    for r in normalized:
        anomalies.update(r.anomalies)
    relevant = filter_relevant(normalized)
    return ChunkSummary(
        records=len(normalized),
        relevant=len(relevant),
        labels=summarize_labels(relevant),
        years=summarize_years(relevant, mapping),
        anomalies=anomalies,
    )


def _chunks(raws: Sequence[RawRecord], size: int) -> List[Sequence[RawRecord]]:
    return [raws[i:i + size] for i in range(0, len(raws), size)]


def _summarize_parallel(raws: Sequence[RawRecord], config: PipelineConfig) -> List[ChunkSummary]:
    parts = _chunks(raws, config.chunk_size)
    done: List[Tuple[int, ChunkSummary]] = []
    with ProcessPoolExecutor(max_workers=config.workers) as executor:
        futures = {executor.submit(summarize_chunk, part, config.mapping): i for i, part in enumerate(parts)}
        for future in as_completed(futures):
            summary = future.result()
            logger.debug("Chunk %d/%d done: %d records", futures[future] + 1, len(parts), summary.records)
            done.append((futures[future], summary))
    # merge in chunk order so float sums match the serial run
    return [summary for _, summary in sorted(done, key=lambda pair: pair[0])]


@dataclass(frozen=True)
class PipelineResult:
    """Everything the run produced; `categories` is the main output table."""
    categories: List[CategoryAggregate]
    retained: List[LabelAggregate]
    labels: List[LabelAggregate]
    yearly: List[YearlyTotal]
    anomalies: Dict[str, int]
    records: int
    relevant: int
    coverage: Dict[str, float] = field(default_factory=dict)


def run_pipeline(raws: Sequence[RawRecord], config: Optional[PipelineConfig] = None) -> PipelineResult:
    """Run stages 2-7 over loaded records and return the aggregated tables."""
    config = config or PipelineConfig()
    raws = list(raws)

    if config.workers > 1 and len(raws) > config.chunk_size:
        summaries = _summarize_parallel(raws, config)
    else:
        summaries = [summarize_chunk(raws, config.mapping)]

    n_records = sum(s.records for s in summaries)
    n_relevant = sum(s.relevant for s in summaries)
    anomalies: Counter = Counter()
    for s in summaries:
        anomalies.update(s.anomalies)
    if anomalies:
        logger.warning("Field-decode anomalies: %s",
                       ", ".join(f"{k}={v}" for k, v in sorted(anomalies.items())))

    labels = rank_labels(merge_label_totals(s.labels for s in summaries))
    retained = classify_labels(frequent_labels(labels, config.frequency_threshold), config.mapping)
    cov = coverage(retained, labels)
    categories = aggregate_categories(retained)
    yearly = yearly_rows(merge_year_totals(s.years for s in summaries), config.mapping)

    logger.info("%d records, %d relevant, %d distinct labels, %d retained",
                n_records, n_relevant, len(labels), len(retained))
    logger.info("Retained share: damage=%.3f injuries=%.3f fatalities=%.3f",
                cov["damage"], cov["injuries"], cov["fatalities"])

    return PipelineResult(
        categories=categories,
        retained=retained,
        labels=labels,
        yearly=yearly,
        anomalies=dict(anomalies),
        records=n_records,
        relevant=n_relevant,
        coverage=cov,
    )
