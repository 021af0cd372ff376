# tests/test_cli.py

import json

import pytest
from loguru import logger

import calrecur
from calrecur.cli import main


@pytest.fixture(autouse=True)
def _quiet_logger():
    yield
    logger.remove()
    logger.disable("calrecur")


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def fair(tmp_path):
    return _write(tmp_path, "fair.json", {
        "name": "Spring Fair",
        "startDate": {"year": 2020, "month": 2, "day": 15},
        "repeat": "yearly",
    })


@pytest.fixture
def weekly(tmp_path):
    return _write(tmp_path, "weekly.json", {
        "name": "Market",
        "startDate": {"year": 2024, "month": 0, "day": 1},
        "repeat": "weekly",
    })


def test_calendars_lists_registered_names(capsys):
    assert main(["calendars"]) == 0
    names = capsys.readouterr().out.split()
    assert "gregorian" in names
    assert "harptos" in names


def test_calendar_info(capsys):
    assert main(["calendars", "--info", "gregorian"]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["id"]["name"] == "gregorian"
    assert len(info["months"]) == 12


def test_occurs_exit_codes(capsys, fair):
    assert main(["occurs", fair, "2024-03-15"]) == 0
    assert capsys.readouterr().out.strip() == "yes"
    assert main(["occurs", fair, "2024-03-16"]) == 1
    assert capsys.readouterr().out.strip() == "no"


def test_list_prints_dates(capsys, weekly):
    assert main(["list", weekly, "2024-01-01", "2024-01-31"]) == 0
    out = capsys.readouterr().out.split()
    assert out == ["2024-01-01", "2024-01-08", "2024-01-15", "2024-01-22", "2024-01-29"]


def test_list_json_and_max(capsys, weekly):
    assert main(["list", weekly, "2024-01-01", "2024-12-31", "--max", "2", "--json"]) == 0
    dates = json.loads(capsys.readouterr().out)
    assert dates == [{"year": 2024, "month": 0, "day": 1}, {"year": 2024, "month": 0, "day": 8}]


def test_list_with_calendar_file(capsys, tmp_path):
    cal = _write(tmp_path, "mini.json", {
        "name": "mini",
        "months": [{"name": "A", "days": 10}, {"name": "B", "days": 10}],
        "weekdays": ["X", "Y", "Z"],
    })
    ev = _write(tmp_path, "ev.json", {
        "startDate": {"year": 1, "month": 0, "day": 1},
        "repeat": "daily",
        "repeatInterval": 3,
    })
    assert main(["list", ev, "1-01-01", "1-02-10", "--calendar-file", cal]) == 0
    assert capsys.readouterr().out.split() == [
        "1-01-01", "1-01-04", "1-01-07", "1-01-10", "1-02-03", "1-02-06", "1-02-09",
    ]


def test_describe(capsys, weekly):
    assert main(["describe", weekly]) == 0
    assert capsys.readouterr().out.strip() == "Every week"


def test_describe_linked_uses_event_map(capsys, tmp_path, fair):
    events = _write(tmp_path, "events.json", {
        "fair": {"name": "Spring Fair", "startDate": {"year": 2020, "month": 2, "day": 15}, "repeat": "yearly"},
    })
    cleanup = _write(tmp_path, "cleanup.json", {
        "startDate": {"year": 2020, "month": 2, "day": 15},
        "linkedEvent": {"noteId": "fair", "offset": 1},
    })
    assert main(["describe", cleanup, "--events", events]) == 0
    assert capsys.readouterr().out.strip() == "1 day after Spring Fair"
    assert main(["occurs", cleanup, "2023-03-16", "--events", events]) == 0


def test_computed_per_year(capsys, tmp_path):
    ev = _write(tmp_path, "c.json", {
        "startDate": {"year": 2020, "month": 0, "day": 1},
        "repeat": "computed",
        "computedConfig": {
            "chain": [{"type": "anchor", "value": "springEquinox"}],
            "yearOverrides": {"2025": {"month": 3, "day": 1}},
        },
    })
    assert main(["computed", ev, "2024", "--years", "2"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("2024: 2024-03-")
    assert lines[1] == "2025: 2025-04-01"


def test_computed_without_config(capsys, weekly):
    assert main(["computed", weekly, "2024"]) == 2
    assert "computedConfig" in capsys.readouterr().err


def test_random_json(capsys, tmp_path):
    ev = _write(tmp_path, "r.json", {
        "startDate": {"year": 2024, "month": 0, "day": 1},
        "repeat": "random",
        "randomConfig": {"seed": 11, "probability": 100, "checkInterval": "monthly"},
    })
    assert main(["random", ev, "2024", "--json"]) == 0
    dates = json.loads(capsys.readouterr().out)
    assert [d["month"] for d in dates] == list(range(12))
    assert all(d["day"] == 1 for d in dates)


@pytest.mark.parametrize(
    "argv",
    [
        ["describe", "does-not-exist.json"],
        ["calendars", "--info", "no-such-calendar"],
    ],
)
def test_errors_exit_2(capsys, argv):
    assert main(argv) == 2
    assert capsys.readouterr().err.startswith("calrecur: error:")


def test_unknown_calendar_name(capsys, weekly):
    assert main(["occurs", weekly, "2024-01-01", "--calendar", "nowhere"]) == 2
    assert "nowhere" in capsys.readouterr().err


def test_malformed_record(capsys, tmp_path):
    ev = _write(tmp_path, "bad.json", {"startDate": {"year": 2024, "month": 0, "day": 1}, "repeat": "hourly"})
    assert main(["describe", ev]) == 2


def test_bad_date_argument(weekly):
    with pytest.raises(SystemExit):
        main(["occurs", weekly, "March 3rd"])


# ---------------------------------------------------------
# Library surface
# ---------------------------------------------------------
def test_api_resolves_calendar_names():
    spec = calrecur.spec_from_dict({"startDate": {"year": 2024, "month": 0, "day": 1}, "repeat": "weekly"})
    assert calrecur.is_occurring(spec, calrecur.CalDate(2024, 0, 8), calendar="gregorian")
    with pytest.raises(calrecur.UnknownCalendarError):
        calrecur.is_occurring(spec, calrecur.CalDate(2024, 0, 8), calendar="nowhere")


def test_api_register_calendar(tidy):
    calrecur.register_calendar("tidy-test", tidy, overwrite=True)
    assert "tidy-test" in calrecur.list_calendars()
    assert calrecur.get_calendar("tidy-test") is tidy
    with pytest.raises(KeyError):
        calrecur.register_calendar("tidy-test", tidy)


def test_api_checks_record_dates_on_named_calendar():
    leap_day = {"startDate": {"year": 2024, "month": 1, "day": 29}}
    assert calrecur.spec_from_dict(leap_day, calendar="gregorian").start_date == calrecur.CalDate(2024, 1, 29)
    with pytest.raises(calrecur.RecordFormatError):
        calrecur.spec_from_dict({"startDate": {"year": 2023, "month": 1, "day": 29}}, calendar="gregorian")


def test_impossible_start_date_exits_2(capsys, tmp_path):
    ev = _write(tmp_path, "feb30.json", {"startDate": {"year": 2024, "month": 1, "day": 30}, "repeat": "yearly"})
    assert main(["describe", ev]) == 2
    assert "startDate" in capsys.readouterr().err
