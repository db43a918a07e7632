# wwtpsim/core/config.py
from __future__ import annotations

import difflib
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from wwtpsim.core.errors import ConfigError, InvalidParameter, InvalidUnitKind
from wwtpsim.core.history import DEFAULT_CAPACITY, HistoryStore
from wwtpsim.core.pipeline import Pipeline
from wwtpsim.core.simulator import MAX_SPEED, MIN_SPEED, SIMULATION_TIME_STEP, Simulator
from wwtpsim.core.types import Parameter, WaterSample
from wwtpsim.treatment.catalog import get_spec, resolve_kind, suggest_kind
from wwtpsim.treatment.presets import PRESETS, list_presets


CANONICAL_TOP_LEVEL_KEYS = ("scenario", "run", "history", "influent", "train")
UNIT_CONFIG_KEYS = ("volume_m3", "flow_rate_m3d", "hrt_h", "srt_d", "temperature_c")
UNIT_KEYS = ("kind", "name", "overrides") + UNIT_CONFIG_KEYS


def _as_dict(obj: Any, path: str) -> Dict[str, Any]:
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ConfigError(path, f"expected a mapping/object, got {type(obj).__name__}")
    return obj


def _as_list(obj: Any, path: str) -> List[Any]:
    if obj is None:
        return []
    if not isinstance(obj, list):
        raise ConfigError(path, f"expected a list, got {type(obj).__name__}")
    return obj


def _require_str(d: Mapping[str, Any], key: str, path: str) -> str:
    v = d.get(key)
    if not isinstance(v, str) or not v.strip():
        raise ConfigError(f"{path}.{key}", "expected a non-empty string")
    return v.strip()


def _is_num(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(float(v))


def _require_num(d: Mapping[str, Any], key: str, path: str) -> float:
    v = d.get(key)
    if not _is_num(v):
        raise ConfigError(f"{path}.{key}", f"expected a number, got {type(v).__name__}")
    return float(v)


def _suggest_key(bad_key: str, allowed: Tuple[str, ...]) -> Optional[str]:
    close = difflib.get_close_matches(bad_key, allowed, n=1, cutoff=0.7)
    return close[0] if close else None


def _parse_parameter(key: Any, path: str) -> Parameter:
    try:
        return Parameter.parse(key)
    except InvalidParameter:
        suggestion = _suggest_key(str(key).lower(), tuple(p.value for p in Parameter))
        hint = f"did you mean '{suggestion}'?" if suggestion else f"known parameters: {[p.value for p in Parameter]}"
        raise ConfigError(f"{path}.{key}", f"unknown water parameter '{key}'", hint) from None


def load_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError("yaml", f"failed to read YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("yaml", f"top-level YAML must be a mapping/object, got {type(raw).__name__}")
    return raw


def canonical_yaml_dump(data: Mapping[str, Any]) -> str:
    """
    Stable dump: sorted keys + deterministic formatting.
    """
    return yaml.safe_dump(
        data,
        sort_keys=True,
        default_flow_style=False,
        allow_unicode=True,
        width=120,
    )


def normalize_config(raw: Mapping[str, Any], *, source_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Accepts "messy but acceptable" YAML and returns a canonical dict:
      - scenario/run/history/influent/train
      - defaults filled
      - derived fields computed (scenario.name, scenario.output_dir)
    """
    raw = _as_dict(raw, "yaml")

    # --- Gather legacy shortcuts ---
    scenario_name = raw.get("scenario_name") or raw.get("name")

    scenario = dict(_as_dict(raw.get("scenario"), "scenario"))
    run = dict(_as_dict(raw.get("run"), "run"))
    history = dict(_as_dict(raw.get("history"), "history"))
    influent = dict(_as_dict(raw.get("influent"), "influent"))
    train = dict(_as_dict(raw.get("train"), "train"))

    # allow flat shapes like top-level "ticks", "preset", "units"
    for key in ("ticks", "dt_seconds", "speed"):
        if key in raw and key not in run:
            run[key] = raw[key]
    if "capacity" in raw and "capacity" not in history:
        history["capacity"] = raw["capacity"]
    if "preset" in raw and "preset" not in train:
        train["preset"] = raw["preset"]
    if "units" in raw and "units" not in train:
        train["units"] = raw["units"]

    if "name" not in scenario and scenario_name:
        scenario["name"] = scenario_name

    # derive scenario.name from filename if missing
    if "name" not in scenario:
        scenario["name"] = source_path.stem if source_path is not None else "scenario"

    # defaults
    run.setdefault("ticks", 100)
    run.setdefault("dt_seconds", SIMULATION_TIME_STEP)
    run.setdefault("speed", 1.0)
    history.setdefault("capacity", DEFAULT_CAPACITY)
    train.setdefault("units", [])

    # a bare kind string is shorthand for {kind: ...}
    units = train.get("units")
    if isinstance(units, list):
        train["units"] = [{"kind": u} if isinstance(u, str) else u for u in units]

    # derived output dir (relative, so tests can redirect with cwd)
    scenario["output_dir"] = f"outputs/{scenario['name']}"

    normalized: Dict[str, Any] = {
        "scenario": scenario,
        "run": run,
        "history": history,
        "influent": influent,
        "train": train,
    }

    # keep unknown top-level keys so validate_config can point at them
    for k, v in raw.items():
        if k in CANONICAL_TOP_LEVEL_KEYS or k in ("scenario_name", "name", "ticks", "dt_seconds", "speed", "capacity", "preset", "units"):
            continue
        normalized[k] = v

    return normalized


def _validate_unit(u: Any, path: str) -> None:
    u = _as_dict(u, path)

    for k in u.keys():
        if k not in UNIT_KEYS:
            suggestion = _suggest_key(str(k), UNIT_KEYS)
            hint = f"did you mean '{suggestion}'?" if suggestion else None
            raise ConfigError(f"{path}.{k}", f"unknown unit key '{k}'", hint)

    kind_txt = _require_str(u, "kind", path)
    try:
        kind = resolve_kind(kind_txt)
    except InvalidUnitKind:
        suggestion = suggest_kind(kind_txt)
        hint = f"did you mean '{suggestion}'?" if suggestion else "run with --list-units to see available kinds"
        raise ConfigError(f"{path}.kind", f"unknown unit kind '{kind_txt}'", hint) from None
    if kind.is_endpoint:
        raise ConfigError(f"{path}.kind", f"'{kind.value}' is a chain endpoint and is always present")

    if "name" in u:
        _require_str(u, "name", path)

    for k in UNIT_CONFIG_KEYS:
        if k not in u:
            continue
        v = _require_num(u, k, path)
        if k != "temperature_c" and v < 0:
            raise ConfigError(f"{path}.{k}", f"must be >= 0 (got {v})")

    overrides = _as_dict(u.get("overrides"), f"{path}.overrides")
    for p, eff in overrides.items():
        _parse_parameter(p, f"{path}.overrides")
        if not _is_num(eff) or not (-1.0 <= float(eff) <= 1.0):
            raise ConfigError(
                f"{path}.overrides.{p}",
                f"removal efficiency must be a number within [-1, 1] (got {eff!r})",
                hint="negative values model an increase of the parameter",
            )


def validate_config(cfg: Mapping[str, Any]) -> None:
    """
    Friendly validation of a normalized config.
    """
    cfg = _as_dict(cfg, "cfg")

    for k in cfg.keys():
        if k not in CANONICAL_TOP_LEVEL_KEYS:
            suggestion = _suggest_key(k, CANONICAL_TOP_LEVEL_KEYS)
            hint = f"did you mean '{suggestion}'?" if suggestion else None
            raise ConfigError(k, f"unknown top-level key '{k}'", hint)

    scenario = _as_dict(cfg.get("scenario"), "scenario")
    run = _as_dict(cfg.get("run"), "run")
    history = _as_dict(cfg.get("history"), "history")
    influent = _as_dict(cfg.get("influent"), "influent")
    train = _as_dict(cfg.get("train"), "train")

    # Required
    _require_str(scenario, "name", "scenario")

    ticks = run.get("ticks")
    if isinstance(ticks, bool) or not isinstance(ticks, int) or ticks < 0:
        raise ConfigError("run.ticks", f"must be a non-negative integer (got {ticks!r})")

    dt = run.get("dt_seconds")
    if not _is_num(dt) or float(dt) <= 0:
        raise ConfigError("run.dt_seconds", f"must be a positive number (got {dt!r})")

    speed = run.get("speed")
    if not _is_num(speed) or not (MIN_SPEED <= float(speed) <= MAX_SPEED):
        raise ConfigError("run.speed", f"must be a number within [{MIN_SPEED}, {MAX_SPEED}] (got {speed!r})")

    cap = history.get("capacity")
    if isinstance(cap, bool) or not isinstance(cap, int) or cap <= 0:
        raise ConfigError("history.capacity", f"must be a positive integer (got {cap!r})")

    for p, v in influent.items():
        param = _parse_parameter(p, "influent")
        if not _is_num(v):
            raise ConfigError(f"influent.{p}", f"expected a number, got {type(v).__name__}")
        if float(v) < 0 and param is not Parameter.TEMP:
            raise ConfigError(f"influent.{p}", f"must be >= 0 (got {v})")

    preset = train.get("preset")
    if preset is not None and preset not in PRESETS:
        suggestion = _suggest_key(str(preset), tuple(list_presets()))
        hint = f"did you mean '{suggestion}'?" if suggestion else f"available presets: {list_presets()}"
        raise ConfigError("train.preset", f"unknown preset '{preset}'", hint)

    for i, u in enumerate(_as_list(train.get("units"), "train.units")):
        _validate_unit(u, f"train.units[{i}]")


def build_simulator(cfg: Mapping[str, Any]) -> Simulator:
    """
    Turn a validated config into a ready-to-run Simulator: influent set,
    preset (if any) loaded, then the listed units appended in order.
    """
    run = cfg.get("run", {}) or {}
    history = cfg.get("history", {}) or {}
    train = cfg.get("train", {}) or {}

    influent = WaterSample.from_mapping(cfg.get("influent", {}) or {})
    sim = Simulator(
        pipeline=Pipeline(influent=influent),
        history=HistoryStore(capacity=int(history.get("capacity", DEFAULT_CAPACITY))),
        speed=float(run.get("speed", 1.0)),
    )

    if train.get("preset"):
        sim.load_preset(str(train["preset"]))

    for u in train.get("units", []) or []:
        kind = resolve_kind(u["kind"])
        unit_cfg = get_spec(kind).make_config(
            **{k: float(u[k]) for k in UNIT_CONFIG_KEYS if k in u},
            removal_overrides={Parameter.parse(p): float(e) for p, e in (u.get("overrides") or {}).items()},
        )
        sim.pipeline.insert(kind, config=unit_cfg, name=u.get("name"))

    return sim
