# wwtpsim/visualization/history_plots.py
"""
Trend plot of the recorded effluent history.

Reads outputs/<scenario>/history.csv and writes
outputs/<scenario>/plots/history.png.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402


DEFAULT_COLUMNS = ("bod", "cod", "tss", "nh4")


def _read_history_csv(path: Path) -> Tuple[List[str], List[Dict[str, str]]]:
    if not path.exists():
        raise FileNotFoundError(f"history.csv not found: {path}")

    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"history.csv has no header: {path}")
        rows = [row for row in reader]
        return list(reader.fieldnames), rows


def _to_float_list(rows: List[Dict[str, str]], key: str) -> List[float]:
    out: List[float] = []
    for i, r in enumerate(rows):
        v = r.get(key, "")
        try:
            out.append(float(v))
        except ValueError as e:
            raise ValueError(f"could not parse float at row {i} column '{key}': {v!r}") from e
    return out


def plot_history(
    history_csv: Path,
    out_png: Path,
    *,
    columns: Sequence[str] = DEFAULT_COLUMNS,
    title: str | None = None,
) -> Path:
    header, rows = _read_history_csv(history_csv)
    if not rows:
        raise ValueError(f"history.csv has no rows: {history_csv}")

    missing = [c for c in columns if c not in header]
    if missing:
        raise KeyError(f"missing columns {missing}; available: {header}")

    x = list(range(len(rows)))

    plt.figure()
    for c in columns:
        plt.plot(x, _to_float_list(rows, c), label=c)
    plt.xlabel("sample")
    plt.ylabel("mg/L")
    plt.legend()
    plt.title(title or "Parameter history")
    plt.tight_layout()

    out_png.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_png, dpi=150)
    plt.close()

    return out_png


def plot_history_outputs_dir(outputs_dir: Path) -> Path:
    """
    outputs/<scenario>/history.csv -> outputs/<scenario>/plots/history.png
    """
    return plot_history(
        outputs_dir / "history.csv",
        outputs_dir / "plots" / "history.png",
        title=f"Effluent history: {outputs_dir.name}",
    )
