from __future__ import annotations

"""
stormrank report generator
--------------------------
Turns the category table of a pipeline run into bar charts (matplotlib) and
a short DOCX summary (python-docx).

Design goals:
- Keep the pipeline usable when report dependencies are missing (lazy imports).
- Only *consume* the aggregated tables; no ranking logic lives here.
- The headline sentence uses the top-ranked category by damage.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import os
import tempfile

from .engine import ImpactTable


# -----------------------------
# Configuration / citation types
# -----------------------------

@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "NOAA Storm Events Database"
    institutional_author: str = "NOAA National Centers for Environmental Information"
    website: str = "https://www.ncei.noaa.gov/stormevents/"
    file_name: Optional[str] = None


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Storm Impact Report"
    subtitle: str = "Event categories ranked by economic and human impact"
    citation: DatasetCitation = field(default_factory=DatasetCitation)

    # How many categories to show in bar charts / tables
    top_n: int = 10


# -----------------------------
# Narrative helpers
# -----------------------------

def format_usd(amount: float) -> str:
    """Human readable money: 1.2 billion, 35.0 million, 12,500."""
    for scale, word in ((1e9, "billion"), (1e6, "million")):
        if abs(amount) >= scale:
            return f"${amount / scale:,.1f} {word}"
    return f"${amount:,.0f}"


def headline(table: ImpactTable) -> str:
    """One-sentence summary naming the most damaging and the deadliest category."""
    top = table.top_category("damage")
    if top is None:
        return "No relevant events were found."
    text = f"{top.name} caused the greatest economic damage ({format_usd(top.damage)})."
    deadliest = table.top_category("fatalities")
    if deadliest is not None and deadliest.fatalities > 0:
        text += f" {deadliest.name} caused the most fatalities ({deadliest.fatalities:,})."
    return text


# -----------------------------
# Main entry point used by CLI
# -----------------------------

def generate_docx_report(
    table: ImpactTable,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
) -> str:
    """Write a DOCX report with one bar chart per metric."""
    config = config or ReportConfig()

    # Lazy imports: only required when a report is requested.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install with: python -m pip install matplotlib"
        ) from e

    result = table.result
    if not result.categories:
        raise ValueError("No categories to report on (no relevant events).")

    # -----------------------------
    # 1) Charts: one bar chart per metric
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="stormrank_report_")
    chart_paths: List[Tuple[str, str]] = []

    for metric, ylabel in (("damage", "Damage (US$)"), ("injuries", "Injuries"), ("fatalities", "Fatalities")):
        rows = table.sort(metric)[:config.top_n]
        title = f"Top {len(rows)} event categories by {metric}"
        plt.figure()
        plt.bar([r.name for r in rows], [getattr(r, metric) for r in rows])
        plt.xticks(rotation=45, ha="right")
        plt.title(title)
        plt.ylabel(ylabel)
        path = os.path.join(tmpdir, f"bar_{metric}.png")
        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()
        chart_paths.append((title, path))

    # -----------------------------
    # 2) Build DOCX report
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Records loaded", f"{result.records:,}")
    _kv("Records with impact", f"{result.relevant:,}")
    _kv("Distinct event labels", f"{len(result.labels):,}")
    _kv("Labels retained", f"{len(result.retained):,}")
    if result.coverage:
        _kv("Share of damage retained", f"{result.coverage['damage']:.1%}")

    doc.add_heading("Summary", level=1)
    doc.add_paragraph(headline(table))

    doc.add_heading("Impact by event category", level=1)
    t = doc.add_table(rows=1, cols=4)
    h = t.rows[0].cells
    h[0].text = "Category"
    h[1].text = "Damage (US$)"
    h[2].text = "Injuries"
    h[3].text = "Fatalities"
    for r in table.sort("damage"):
        cells = t.add_row().cells
        cells[0].text = r.name
        cells[1].text = f"{r.damage:,.0f}"
        cells[2].text = f"{r.injuries:,}"
        cells[3].text = f"{r.fatalities:,}"

    doc.add_heading("Visualizations", level=1)
    for title, path in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(6.5))

    doc.add_heading("Dataset citation", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    doc.add_paragraph(f"{cit.institutional_author}. {cit.database_name}. {cit.website}.")

    from . import __version__
    doc.add_paragraph(f"stormrank version: {__version__}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
