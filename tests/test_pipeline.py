import pytest

from stormrank.config import PipelineConfig
from stormrank.pipeline import _summarize_parallel, normalize_record, run_pipeline, summarize_chunk
from stormrank.taxonomy import DEFAULT_MAPPING, Category


def test_normalize_record(make_raw):
    rec = normalize_record(make_raw(label="  TSTM Wind ", dmg=10, exp="K", crop=2, crop_exp="h",
                                    date="4/18/1950 0:00:00", time="0130", tz="CST"))
    assert rec.label == "tstm wind"
    assert rec.prop_damage == 10_000.0
    assert rec.crop_damage == 200.0
    assert rec.total_damage == 10_200.0
    assert rec.time_zone == "America/Chicago"
    assert rec.year == 1950
    assert rec.anomalies == ()


def test_normalize_record_tags_anomalies(make_raw):
    rec = normalize_record(make_raw(dmg=5, exp="-", crop=3, crop_exp="?", date="??", tz="XYZ",
                                    injuries=None, fatalities=None))
    assert rec.total_damage is None
    assert rec.timestamp is None and rec.year is None
    assert rec.time_zone == "UTC"
    assert set(rec.anomalies) == {"timestamp", "time_zone", "prop_exp", "crop_exp"}
    assert (rec.injuries, rec.fatalities) == (0, 0)


def test_end_to_end_scenario(scenario_records):
    result = run_pipeline(scenario_records, PipelineConfig(frequency_threshold=0.0))
    by_cat = {c.category: c for c in result.categories}
    assert set(by_cat) == {Category.FLOODS, Category.STORMS_RAINS}

    floods = by_cat[Category.FLOODS]
    assert floods.damage == 1_005_000_000.0
    assert (floods.injuries, floods.fatalities) == (2, 1)

    storms = by_cat[Category.STORMS_RAINS]
    assert storms.damage == 10_000.0
    assert (storms.injuries, storms.fatalities) == (0, 0)

    assert result.categories[0].category == Category.FLOODS
    assert result.records == 3 and result.relevant == 3
    assert {r.label: r.category for r in result.retained} == {
        "tstm wind": Category.STORMS_RAINS,
        "river flood": Category.FLOODS,
        "flash flooding": Category.FLOODS,
    }


def test_default_threshold_drops_the_tail(long_tail_records):
    result = run_pipeline(long_tail_records)
    assert len(result.labels) == 25
    assert len(result.retained) == 6
    assert all(v >= 0.95 for k, v in result.coverage.items() if k != "count")
    assert {c.category for c in result.categories} == {
        Category.TORNADOES, Category.FLOODS, Category.STORMS_RAINS, Category.HAIL,
        Category.HEAT, Category.LIGHTNING,
    }


def test_malformed_code_scenario(make_raw):
    records = [
        make_raw(label="hail", dmg=50, exp="", injuries=1, record_id="1"),
        make_raw(label="hail", dmg=50, exp="", record_id="2"),
    ]
    result = run_pipeline(records, PipelineConfig(frequency_threshold=0.0))
    assert result.relevant == 1
    assert result.anomalies["prop_exp"] == 2
    hail = result.categories[0]
    assert (hail.category, hail.damage, hail.injuries, hail.count) == (Category.HAIL, 0.0, 1, 1)


def test_empty_input_produces_empty_tables():
    result = run_pipeline([])
    assert result.categories == [] and result.labels == [] and result.records == 0


def test_parallel_matches_serial(long_tail_records):
    serial = run_pipeline(long_tail_records)
    parallel = run_pipeline(long_tail_records, PipelineConfig(workers=2, chunk_size=7))
    assert parallel.labels == serial.labels
    assert parallel.categories == serial.categories
    assert parallel.yearly == serial.yearly
    assert parallel.anomalies == serial.anomalies
    assert (parallel.records, parallel.relevant) == (serial.records, serial.relevant)


def test_parallel_summaries_keep_chunk_order(make_raw):
    records = [make_raw(dmg=0.1 * (i + 1), exp="K", record_id=str(i)) for i in range(7)]
    summaries = _summarize_parallel(records, PipelineConfig(workers=3, chunk_size=3))
    assert [s.records for s in summaries] == [3, 3, 1]
    parallel = run_pipeline(records, PipelineConfig(workers=3, chunk_size=3, frequency_threshold=0.0))
    again = run_pipeline(records, PipelineConfig(workers=3, chunk_size=3, frequency_threshold=0.0))
    serial = run_pipeline(records, PipelineConfig(frequency_threshold=0.0))
    assert parallel.labels == again.labels
    assert parallel.labels[0].damage == pytest.approx(serial.labels[0].damage)


def test_label_keeps_inner_whitespace(make_raw):
    rec = normalize_record(make_raw(label="  TSTM   Wind ", injuries=1))
    assert rec.label == "tstm   wind"
    assert DEFAULT_MAPPING.classify(rec.label) == Category.STORMS_RAINS


def test_fall_back_hour_keeps_its_year(make_raw):
    rec = normalize_record(make_raw(injuries=1, date="11/6/2011", time="0130", tz="CST"))
    assert rec.year == 2011
    assert "timestamp" not in rec.anomalies


def test_chunk_summary_counts(make_raw):
    summary = summarize_chunk([make_raw(injuries=1), make_raw(), make_raw(dmg=3, exp="?")], DEFAULT_MAPPING)
    assert (summary.records, summary.relevant) == (3, 1)
    assert summary.anomalies["prop_exp"] == 1


@pytest.mark.parametrize("kwargs", [
    {"frequency_threshold": 1.5},
    {"frequency_threshold": -0.1},
    {"workers": 0},
    {"chunk_size": 0},
])
def test_invalid_config(kwargs):
    with pytest.raises(ValueError):
        PipelineConfig(**kwargs)
