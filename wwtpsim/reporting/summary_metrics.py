# wwtpsim/reporting/summary_metrics.py
"""
Summary metric extraction for reports.

Everything here reads a Pipeline (or plain samples) and returns
JSON-friendly numbers; nothing mutates simulation state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from wwtpsim.core.pipeline import Pipeline
from wwtpsim.core.types import Parameter, WaterSample


# (lower bound exclusive, band) from dirtiest to cleanest
BOD_BANDS: Tuple[Tuple[float, str], ...] = (
    (200.0, "very high"),
    (100.0, "high"),
    (50.0, "moderate"),
    (10.0, "low"),
)


@dataclass(frozen=True)
class SummaryMetrics:
    ticks: int
    elapsed_s: float
    n_units: int

    effluent_bod: float
    bod_band: str

    removal: Dict[str, Optional[float]]


def bod_band(bod: float) -> str:
    for threshold, band in BOD_BANDS:
        if bod > threshold:
            return band
    return "clean"


def removal_fraction(v_in: float, v_out: float) -> Optional[float]:
    """(in - out) / in, negative when the value rose. None for a zero inlet."""
    if v_in == 0.0:
        return None
    return (v_in - v_out) / v_in


def overall_removal(influent: WaterSample, effluent: WaterSample) -> Dict[str, Optional[float]]:
    return {p.value: removal_fraction(influent[p], effluent[p]) for p in Parameter}


def unit_rows(pipeline: Pipeline) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for i, u in enumerate(pipeline.treatment_units, start=1):
        row = u.snapshot()
        row["index"] = i
        row["bod_removal"] = u.removal(Parameter.BOD)
        rows.append(row)
    return rows


def extract_summary_metrics(pipeline: Pipeline) -> SummaryMetrics:
    influent = pipeline.source.outlet
    effluent = pipeline.effluent
    return SummaryMetrics(
        ticks=pipeline.ticks,
        elapsed_s=pipeline.elapsed,
        n_units=len(pipeline.treatment_units),
        effluent_bod=effluent[Parameter.BOD],
        bod_band=bod_band(effluent[Parameter.BOD]),
        removal=overall_removal(influent, effluent),
    )
