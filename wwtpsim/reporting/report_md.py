# wwtpsim/reporting/report_md.py
"""
Render a usable report.md for one run (no plots).

Sections:
- Summary: ticks, simulated time, effluent BOD band
- Train: units in chain order
- Water quality: influent vs effluent with overall removal
- Per-unit BOD
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from wwtpsim.core.pipeline import Pipeline
from wwtpsim.core.types import Parameter
from wwtpsim.reporting.summary_metrics import extract_summary_metrics, unit_rows


def _fmt_opt(x: Optional[float], digits: int = 6) -> str:
    if x is None:
        return "n/a"
    return f"{x:.{digits}g}"


def _fmt_pct(x: Optional[float]) -> str:
    if x is None:
        return "n/a"
    return f"{100.0 * x:.1f}%"


def render_report_md(scenario: Mapping[str, Any], pipeline: Pipeline) -> str:
    m = extract_summary_metrics(pipeline)
    scenario_name = str(scenario.get("name") or "scenario")
    influent = pipeline.source.outlet
    effluent = pipeline.effluent

    lines: list[str] = []
    lines.append(f"# Treatment Plant Report: {scenario_name}")
    lines.append("")
    lines.append("## Summary")
    lines.append(f"- **ticks:** {m.ticks}")
    lines.append(f"- **simulated time (s):** {_fmt_opt(m.elapsed_s)}")
    lines.append(f"- **treatment units:** {m.n_units}")
    lines.append(f"- **effluent BOD (mg/L):** {_fmt_opt(m.effluent_bod)} ({m.bod_band})")
    lines.append("")

    lines.append("## Train")
    lines.append(" -> ".join(pipeline.names()))
    lines.append("")

    lines.append("## Water quality")
    lines.append("| Parameter | Influent | Effluent | Removal |")
    lines.append("|---|---:|---:|---:|")
    for p in Parameter:
        lines.append(
            f"| {p.label} | {_fmt_opt(influent[p])} | {_fmt_opt(effluent[p])} | {_fmt_pct(m.removal[p.value])} |"
        )
    lines.append("")

    lines.append("## Units")
    rows = unit_rows(pipeline)
    if rows:
        lines.append("| # | Unit | Outlet BOD | BOD removal |")
        lines.append("|---:|---|---:|---:|")
        for r in rows:
            lines.append(
                f"| {r['index']} | {r['name']} | {_fmt_opt(r['outlet'][Parameter.BOD.value])} | {_fmt_pct(r['bod_removal'])} |"
            )
    else:
        lines.append("- (no treatment units)")
    lines.append("")

    return "\n".join(lines)

