"""
stormrank Command Line Interface (CLI)
======================================

Run the whole pipeline on a storm-event file and print the category table:

    python -m stormrank.cli --csv "repdata_StormData.csv.bz2"
    python -m stormrank.cli --csv data.csv --sort fatalities --labels
    python -m stormrank.cli --csv data.csv --export categories.json --report out.docx

The CLI never modifies the input file. It loads it once, runs the stages in
memory and writes only the outputs you ask for.
"""

from __future__ import annotations
import argparse
import logging
import os
from typing import List, Optional, Sequence

from .config import PipelineConfig
from .engine import ImpactTable
from .loader import LoaderError, load_storm_csv
from .pipeline import run_pipeline


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="stormrank", description="Rank storm event categories by impact.")
    ap.add_argument("--csv", required=True, help="Path to the storm-event CSV (may be .bz2/.gz/.zip)")
    ap.add_argument("--threshold", type=float, default=0.80,
                    help="Keep labels whose count percentile rank is >= this (default 0.80)")
    ap.add_argument("--workers", type=int, default=1, help="Worker processes for large inputs")
    ap.add_argument("--sort", default="damage", choices=["damage", "injuries", "fatalities", "count"])
    ap.add_argument("--labels", action="store_true", help="Also print the retained label table")
    ap.add_argument("--years", action="store_true", help="Also print per-year category totals")
    ap.add_argument("--export", help="Write the category table to .csv or .json")
    ap.add_argument("--report", help="Write a DOCX report (needs python-docx and matplotlib)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the CLI.

    1) Load dataset
    2) Run the pipeline
    3) Print / export the results
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = PipelineConfig(frequency_threshold=args.threshold, workers=args.workers)
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    print("Loading dataset...")
    try:
        records = load_storm_csv(args.csv)
    except LoaderError as e:
        print(f"Error: {e}")
        return 1

    result = run_pipeline(records, config)
    table = ImpactTable(result)
    print(f"Loaded {result.records} records, {result.relevant} with impact, "
          f"{len(result.retained)}/{len(result.labels)} labels retained.")

    print(f"\nEvent categories by {args.sort}:")
    _print_categories(table.sort(args.sort))

    if args.labels:
        print(f"\nRetained labels by {args.sort}:")
        _print_labels(ImpactTable(result, level="label").sort(args.sort))

    if args.years:
        print("\nYearly totals:")
        for y in result.yearly:
            print(f"{y.year} | {y.category.value:<13} | events={y.count} damage={y.damage:,.0f} "
                  f"injuries={y.injuries} fatalities={y.fatalities}")

    if args.export:
        ext = os.path.splitext(args.export)[1].lower()
        if ext == ".json":
            table.export_json(args.export)
        else:
            table.export_csv(args.export)
        print(f"Exported categories to {args.export}")

    if args.report:
        from .report import DatasetCitation, ReportConfig, generate_docx_report
        cfg = ReportConfig(citation=DatasetCitation(file_name=os.path.basename(args.csv)))
        generate_docx_report(table, args.report, config=cfg)
        print(f"Report written to {args.report}")

    return 0


def _print_categories(rows: List) -> None:
    for r in rows:
        print(f"{r.name:<13} | events={r.count} damage={r.damage:,.0f} "
              f"injuries={r.injuries} fatalities={r.fatalities}")

def _print_labels(rows: List) -> None:
    for r in rows:
        print(f"{r.label} -> {r.category.value} | events={r.count} damage={r.damage:,.0f} "
              f"injuries={r.injuries} fatalities={r.fatalities} count_rank={r.count_rank:.3f}")

if __name__ == "__main__":
    raise SystemExit(main())
