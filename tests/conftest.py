import pytest

from stormrank.models import RawRecord


def raw(label="tstm wind", dmg=0.0, exp="", crop=0.0, crop_exp="", injuries=0, fatalities=0,
        date="4/18/1950 0:00:00", time="0130", tz="CST", record_id="1"):
    """Build a RawRecord with sensible defaults."""
    return RawRecord(
        record_id=record_id,
        begin_date=date,
        begin_time=time,
        time_zone=tz,
        event_type=label,
        prop_dmg=dmg,
        prop_dmg_exp=exp,
        crop_dmg=crop,
        crop_dmg_exp=crop_exp,
        injuries=injuries,
        fatalities=fatalities,
    )


@pytest.fixture
def make_raw():
    return raw


@pytest.fixture
def scenario_records():
    return [
        raw(label="tstm wind", dmg=10, exp="K", record_id="1"),
        raw(label="river flood", dmg=5, exp="M", injuries=2, fatalities=1, record_id="2"),
        raw(label="flash flooding", dmg=1, exp="B", record_id="3"),
    ]


@pytest.fixture
def long_tail_records():
    """6 frequent, costly labels and 19 one-off labels with almost no impact."""
    out = []
    rid = 0
    heavy = ["tornado", "flash flood", "tstm wind", "hail", "excessive heat", "lightning"]
    for n, label in enumerate(heavy):
        for _ in range(10 + n):
            rid += 1
            out.append(raw(label=label, dmg=5, exp="M", injuries=3, fatalities=1, record_id=str(rid)))
    for n in range(19):
        rid += 1
        out.append(raw(label=f"odd label {n:02d}", dmg=1, exp="+", record_id=str(rid)))
    return out
