"""Row views, CSV export and optional pandas frames."""

from __future__ import annotations

import csv

import pytest

from ivroute import tables
from ivroute.constants import StatLine
from ivroute.errors import DependencyError
from ivroute.nature import analyze_tracker
from ivroute.tables import (
    DAMAGE_COLUMNS,
    IV_RANGE_COLUMNS,
    build_dataframe,
    damage_rows,
    export_csv,
    iv_range_rows,
    write_csv,
)
from ivroute.tracker import Tracker


def _rows(**tracker_options: object) -> list[dict[str, object]]:
    tracker = Tracker(
        name="Zigzagoon",
        base_stats=(StatLine.filled(40),),
        recorded_stats={0: {10: {"attack": 15}, 20: {"attack": 25}}},
        **tracker_options,  # type: ignore[arg-type]
    )
    analysis = analyze_tracker(tracker)
    return iv_range_rows(analysis.ranges, analysis.nature)


def test_iv_range_rows() -> None:
    rows = {row["Stat"]: row for row in _rows()}
    assert list(rows) == ["HP", "Attack", "Defense", "Sp. Attack", "Sp. Defense", "Speed"]
    assert rows["Attack"] == {
        "Stat": "Attack",
        "Negative": "x",
        "Neutral": "20–24",
        "Positive": "10–14",
        "Combined": "10–24",
        "Nature": "",
    }
    assert rows["HP"]["Combined"] == "0+"


def test_nature_markers() -> None:
    rows = {row["Stat"]: row["Nature"] for row in _rows(static_nature="jolly")}
    assert rows["Speed"] == "+"
    assert rows["Sp. Attack"] == "-"
    assert rows["Attack"] == ""


def test_write_csv_creates_parent_directories(tmp_path) -> None:
    target = write_csv(_rows(), tmp_path / "exports" / "ranges.csv", IV_RANGE_COLUMNS)
    with target.open(newline="", encoding="utf-8") as handle:
        reader = list(csv.DictReader(handle))
    assert reader[1]["Neutral"] == "20–24"
    assert list(reader[0]) == list(IV_RANGE_COLUMNS)


def test_build_dataframe_requires_pandas(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tables, "pd", None)
    with pytest.raises(DependencyError, match="pandas is required"):
        build_dataframe(_rows())


def test_build_dataframe() -> None:
    pytest.importorskip("pandas")
    frame = build_dataframe(_rows(), IV_RANGE_COLUMNS)
    assert list(frame.columns) == list(IV_RANGE_COLUMNS)
    assert len(frame) == 6


def test_damage_rows() -> None:
    rows = damage_rows([("0–9", "20–21", "8"), ("10–31", "22–24", "9")])
    assert rows[0] == {"IVs": "0–9", "Stat": "20–21", "Outcome": "8"}
    assert [row["Outcome"] for row in rows] == ["8", "9"]


def test_export_csv_without_pandas(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(tables, "pd", None)
    rows = damage_rows([("0–31", "20–24", "16 / 16")])
    target = export_csv(rows, tmp_path / "damage.csv", DAMAGE_COLUMNS)
    with target.open(newline="", encoding="utf-8") as handle:
        assert list(csv.DictReader(handle)) == [{"IVs": "0–31", "Stat": "20–24", "Outcome": "16 / 16"}]


def test_export_csv_with_pandas(tmp_path) -> None:
    pytest.importorskip("pandas")
    target = export_csv(_rows(), tmp_path / "nested" / "ranges.csv", IV_RANGE_COLUMNS)
    with target.open(newline="", encoding="utf-8") as handle:
        reader = list(csv.DictReader(handle))
    assert list(reader[0]) == list(IV_RANGE_COLUMNS)
    assert reader[1]["Combined"] == "10–24"
