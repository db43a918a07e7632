# tests/test_reporting.py
from __future__ import annotations

from pathlib import Path

import pytest

from wwtpsim.core.history import HistoryStore
from wwtpsim.core.output import RunArtifacts, history_rows, write_output_contract
from wwtpsim.core.pipeline import Pipeline
from wwtpsim.core.types import UnitKind, WaterSample
from wwtpsim.reporting.report_md import render_report_md
from wwtpsim.reporting.summary_metrics import bod_band, extract_summary_metrics, overall_removal, removal_fraction, unit_rows


@pytest.mark.parametrize(
    "bod,band",
    [(250.0, "very high"), (200.0, "high"), (150.0, "high"), (75.0, "moderate"), (20.0, "low"), (10.0, "clean"), (0.0, "clean")],
)
def test_bod_band_thresholds(bod: float, band: str) -> None:
    assert bod_band(bod) == band


def test_removal_fraction() -> None:
    assert removal_fraction(200.0, 50.0) == pytest.approx(0.75)
    assert removal_fraction(100.0, 146.0) == pytest.approx(-0.46)
    assert removal_fraction(0.0, 0.7) is None


def test_summary_metrics_for_simple_train() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.FILTRATION)
    pl.step(0.016)
    m = extract_summary_metrics(pl)

    assert m.ticks == 1
    assert m.n_units == 1
    assert m.effluent_bod == 300.0
    assert m.bod_band == "very high"
    assert m.removal["tss"] == pytest.approx(0.8)
    assert m.removal["bod"] == 0.0
    assert m.removal["residual_chlorine"] is None


def test_overall_removal_covers_every_parameter() -> None:
    assert len(overall_removal(WaterSample(), WaterSample())) == 20


def test_report_sections() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.AERATION_TANK)
    pl.step(0.016)
    md = render_report_md({"name": "demo"}, pl)

    assert md.startswith("# Treatment Plant Report: demo")
    for heading in ("## Summary", "## Train", "## Water quality", "## Units"):
        assert heading in md
    assert "Inlet -> Aeration Tank -> Outlet" in md
    assert "(low)" in md


def test_report_empty_train() -> None:
    md = render_report_md({}, Pipeline())
    assert "# Treatment Plant Report: scenario" in md
    assert "(no treatment units)" in md


def test_history_rows_align_parameters() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.PUMP)
    h = HistoryStore(capacity=5)
    pl.step(0.016)
    h.record(pl)
    rows = history_rows(h)
    assert len(rows) == 3
    assert rows[0]["sample"] == 0
    assert rows[-1]["bod"] == 300.0


def test_write_output_contract_without_history(tmp_path: Path) -> None:
    artifacts = RunArtifacts(
        normalized_config={"scenario": {"name": "empty"}},
        summary={"ticks": 0},
        report_md="# empty",
        history_rows=[],
    )
    out_dir = write_output_contract(tmp_path, "empty", artifacts)

    assert (out_dir / "config.yaml").read_text(encoding="utf-8").startswith("scenario:")
    assert (out_dir / "report.md").read_text(encoding="utf-8") == "# empty\n"
    assert (out_dir / "history.csv").read_text(encoding="utf-8") == ""
    assert not (out_dir / "plots").exists()


def test_unit_rows_carry_unit_snapshot() -> None:
    pl = Pipeline()
    h = pl.insert(UnitKind.PRIMARY_SEDIMENTATION)
    pl.step(0.016)
    (row,) = unit_rows(pl)

    assert row["handle"] == h
    assert row["kind"] == "primary_sedimentation"
    assert row["index"] == 1
    assert row["inlet"]["bod"] == 300.0
    assert row["outlet"]["bod"] == pytest.approx(195.0)
    assert row["bod_removal"] == pytest.approx(0.35)
    assert row["config"]["hrt_h"] == 10.0
    assert row["config"]["removal_overrides"] == {}


def test_history_rows_for_one_unit_follow_that_unit() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.FILTRATION)
    h = HistoryStore(capacity=5)
    for _ in range(3):
        pl.step(0.016)
        h.record(pl)

    rows = history_rows(h, pl.sink.handle)
    assert len(rows) == 3
    assert [r["sample"] for r in rows] == [0, 1, 2]
    assert rows[-1]["tss"] == pytest.approx(pl.effluent["tss"])
    assert history_rows(h, handle=10_000) == []
