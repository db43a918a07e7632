# wwtpsim/core/output.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from wwtpsim.core.config import canonical_yaml_dump
from wwtpsim.core.history import HistoryStore
from wwtpsim.core.logging_utils import get_logger
from wwtpsim.core.types import Parameter

logger = get_logger(__name__)


@dataclass
class RunArtifacts:
    normalized_config: Dict[str, Any]
    summary: Dict[str, Any]
    report_md: str
    history_rows: List[Dict[str, Any]]  # list-of-dicts is simple + deterministic


def history_rows(history: HistoryStore, handle: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    One row per retained history sample, one column per parameter.

    With a handle the rows come from that unit's own series (the CLI passes
    the Sink, so history.csv is the effluent over time). Without one they
    come from the global series, which interleaves every unit per record.
    """
    if handle is None:
        series = {p: history.series(p) for p in Parameter}
    else:
        series = {p: history.unit_series(handle, p) for p in Parameter}
    n = min(len(s) for s in series.values())
    rows: List[Dict[str, Any]] = []
    for i in range(n):
        row: Dict[str, Any] = {"sample": i}
        for p, s in series.items():
            row[p.value] = s[i]
        rows.append(row)
    return rows


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _write_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        path.write_text("", encoding="utf-8")
        return
    # "sample" first, then parameters in their declared order
    cols = list(rows[0].keys())
    lines = [",".join(cols)]
    for r in rows:
        parts = []
        for c in cols:
            v = r.get(c, "")
            if v is None:
                s = ""
            elif isinstance(v, float):
                s = f"{v:.10g}"
            else:
                s = str(v)
            if any(ch in s for ch in [",", '"', "\n"]):
                s = '"' + s.replace('"', '""') + '"'
            parts.append(s)
        lines.append(",".join(parts))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def write_output_contract(outputs_root: Path, scenario_name: str, artifacts: RunArtifacts) -> Path:
    """
    Always writes:
      outputs/<scenario_name>/
        config.yaml
        summary.json
        report.md
        history.csv
    and, when there is history to draw, plots/history.png.
    Returns the scenario output directory.
    """
    out_dir = outputs_root / scenario_name
    out_dir.mkdir(parents=True, exist_ok=True)

    _write_text(out_dir / "config.yaml", canonical_yaml_dump(artifacts.normalized_config))
    _write_json(out_dir / "summary.json", artifacts.summary)
    _write_text(out_dir / "report.md", artifacts.report_md if artifacts.report_md.endswith("\n") else artifacts.report_md + "\n")
    _write_csv(out_dir / "history.csv", artifacts.history_rows)

    if artifacts.history_rows:
        from wwtpsim.visualization.history_plots import plot_history_outputs_dir

        try:
            plot_history_outputs_dir(out_dir)
        except (OSError, ValueError, KeyError) as e:
            # plots are optional; the text artifacts above are the contract
            logger.warning("skipping history plot for %s: %s", scenario_name, e)

    logger.info("wrote outputs to %s", out_dir)
    return out_dir
