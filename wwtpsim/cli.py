# wwtpsim/cli.py
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from wwtpsim.core.config import build_simulator, load_yaml, normalize_config, validate_config
from wwtpsim.core.errors import ConfigError
from wwtpsim.core.logging_utils import configure_logging, get_logger
from wwtpsim.core.output import RunArtifacts, history_rows, write_output_contract
from wwtpsim.reporting.report_md import render_report_md
from wwtpsim.reporting.summary_metrics import extract_summary_metrics, unit_rows
from wwtpsim.treatment.catalog import get_spec, treatment_kinds

logger = get_logger(__name__)


def run_scenario(normalized_cfg: Dict[str, Any]) -> RunArtifacts:
    """
    Build the train described by a validated config, run it for run.ticks
    ticks of run.dt_seconds * run.speed, and collect the artifacts.
    """
    scenario = normalized_cfg["scenario"]
    run = normalized_cfg["run"]

    sim = build_simulator(normalized_cfg)
    ticks = int(run["ticks"])
    dt = float(run["dt_seconds"]) * sim.speed

    logger.info("running '%s': %d units, %d ticks", scenario["name"], len(sim.pipeline.treatment_units), ticks)
    sim.run(ticks, dt=dt)

    pipeline = sim.pipeline
    m = extract_summary_metrics(pipeline)
    rows = history_rows(sim.history, pipeline.sink.handle)

    summary: Dict[str, Any] = {
        "scenario": {"name": scenario["name"]},
        "ticks": m.ticks,
        "elapsed_s": float(m.elapsed_s),
        "speed": float(sim.speed),
        "train": pipeline.names(),
        "influent": pipeline.source.outlet.to_dict(),
        "effluent": pipeline.effluent.to_dict(),
        "removal": m.removal,
        "effluent_bod_band": m.bod_band,
        "units": unit_rows(pipeline),
        "history": {
            "path": "history.csv",
            "capacity": sim.history.capacity,
            "n_rows": len(rows),
            "records": sim.history.records,
        },
    }

    return RunArtifacts(
        normalized_config=normalized_cfg,
        summary=summary,
        report_md=render_report_md(scenario, pipeline),
        history_rows=rows,
    )


def _unit_listing() -> List[str]:
    lines: List[str] = []
    for kind in treatment_kinds():
        spec = get_spec(kind)
        lines.append(f"{kind.value:<26} {spec.display_name:<28} [{spec.family.value}] {spec.description}")
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="wwtpsim", description="Wastewater treatment train simulator")
    ap.add_argument("yaml_path", type=str, nargs="?")

    ap.add_argument("--out", type=str, default=None, help="Output root directory (preferred)")
    ap.add_argument("--outputs-root", type=str, default=None, help="Output root directory (alias)")

    ap.add_argument("--ticks", type=int, default=None)
    ap.add_argument("--dt", type=float, default=None, help="Seconds per tick at speed 1.0")
    ap.add_argument("--speed", type=float, default=None)
    ap.add_argument("--preset", type=str, default=None)
    ap.add_argument("--log-level", type=str.upper, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    ap.add_argument("--list-units", action="store_true", help="Print the unit catalogue and exit")

    args = ap.parse_args(argv)
    configure_logging(args.log_level)

    if args.list_units:
        print("\n".join(_unit_listing()))
        return 0
    if not args.yaml_path:
        ap.error("yaml_path is required unless --list-units is given")

    outputs_root = args.out or args.outputs_root or "outputs"
    ypath = Path(args.yaml_path)

    try:
        raw = load_yaml(ypath)
        normalized = normalize_config(raw, source_path=ypath)

        # Apply CLI overrides into normalized config
        if args.ticks is not None:
            normalized["run"]["ticks"] = int(args.ticks)
        if args.dt is not None:
            normalized["run"]["dt_seconds"] = float(args.dt)
        if args.speed is not None:
            normalized["run"]["speed"] = float(args.speed)
        if args.preset is not None:
            normalized["train"]["preset"] = args.preset

        validate_config(normalized)

        scenario_name = normalized["scenario"]["name"]
        artifacts = run_scenario(normalized)

        write_output_contract(Path(outputs_root), scenario_name, artifacts)
        return 0

    except ConfigError as e:
        print(str(e))
        return 2
