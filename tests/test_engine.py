import csv
import json

import pytest

from stormrank.config import PipelineConfig
from stormrank.engine import ImpactTable
from stormrank.pipeline import run_pipeline
from stormrank.taxonomy import Category


@pytest.fixture
def table(make_raw):
    records = [
        make_raw(label="tornado", dmg=3, exp="M", injuries=50, fatalities=5, record_id="1"),
        make_raw(label="excessive heat", dmg=1, exp="K", injuries=10, fatalities=40, record_id="2"),
        make_raw(label="flash flood", dmg=9, exp="M", injuries=1, fatalities=5, record_id="3"),
        make_raw(label="dust devil", dmg=2, exp="K", record_id="4"),
    ]
    return ImpactTable(run_pipeline(records, PipelineConfig(frequency_threshold=0.0)))


def _names(rows):
    return [r.name for r in rows]


def test_sort_each_metric(table):
    assert _names(table.sort("damage")) == ["Floods", "Tornadoes", "Other", "Heat"]
    assert _names(table.sort("injuries"))[0] == "Tornadoes"
    assert _names(table.sort("fatalities"))[0] == "Heat"
    assert _names(table.sort("damage", algo="quick")) == ["Floods", "Tornadoes", "Other", "Heat"]
    assert _names(table.sort("damage", reverse=False))[0] == "Heat"


def test_sort_rejects_unknown(table):
    with pytest.raises(ValueError):
        table.sort("magnitude")
    with pytest.raises(ValueError):
        table.sort("damage", algo="bubble")


def test_topk(table):
    assert _names(table.topk(2, "damage")) == ["Floods", "Tornadoes"]
    assert len(table.topk(10, "count")) == 4


def test_top_category(table):
    top = table.top_category("damage")
    assert top.category == Category.FLOODS and top.damage == 9_000_000.0
    assert table.top_category("fatalities").category == Category.HEAT


def test_top_category_ties_go_by_name(make_raw):
    records = [
        make_raw(label="tornado", dmg=99, exp="K", fatalities=5, record_id="1"),
        make_raw(label="flash flood", dmg=10, exp="K", fatalities=5, record_id="2"),
    ]
    table = ImpactTable(run_pipeline(records, PipelineConfig(frequency_threshold=0.0)))
    assert _names(table.sort("damage")) == ["Tornadoes", "Floods"]
    assert table.top_category("fatalities").name == "Floods"
    assert table.top_category("deaths").name == "Floods"


def test_label_level(table):
    labels = ImpactTable(table.result, level="label")
    assert labels.sort("damage")[0].label == "flash flood"
    frame = labels.to_frame()
    assert list(frame.columns)[:2] == ["label", "category"]
    with pytest.raises(ValueError):
        ImpactTable(table.result, level="state")


def test_to_frame(table):
    frame = table.to_frame()
    assert list(frame.columns) == ["category", "count", "damage", "injuries", "fatalities"]
    assert len(frame) == 4
    assert frame.sort_values("damage", ascending=False).iloc[0]["category"] == "Floods"


def test_export_csv_and_json(table, tmp_path):
    csv_path = tmp_path / "out.csv"
    table.export_csv(str(csv_path))
    with open(csv_path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["category"] == "Floods"
    assert float(rows[0]["damage"]) == 9_000_000.0

    json_path = tmp_path / "out.json"
    table.export_json(str(json_path))
    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert {p["category"] for p in payload} == {"Floods", "Tornadoes", "Heat", "Other"}
