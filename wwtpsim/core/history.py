# wwtpsim/core/history.py
"""
Bounded time series of recent parameter values, for trend plots.

Two views are kept:
  - global: one series per Parameter, fed by every unit in the chain on every
    record() call (trend of a parameter across the whole plant)
  - per unit: one series per (unit handle, Parameter) (per-stage diagnostics)

Both evict oldest-first once `capacity` is reached.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Deque, Dict, Optional, Tuple

from wwtpsim.core.types import Parameter, WaterSample

if TYPE_CHECKING:
    from wwtpsim.core.pipeline import Pipeline


DEFAULT_CAPACITY = 100


class HistoryStore:
    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._series: Dict[Parameter, Deque[float]] = {p: deque(maxlen=capacity) for p in Parameter}
        self._unit_series: Dict[int, Dict[Parameter, Deque[float]]] = {}
        self.records = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, param: Parameter, value: float) -> None:
        self._series[Parameter.parse(param)].append(float(value))

    def record(self, pipeline: "Pipeline") -> None:
        """
        Append the latest state of every unit, in chain order.

        Units contribute their outlet; the Sink, which is never simulated,
        contributes its inlet (the plant effluent).
        """
        units = pipeline.units
        live = set()
        for i, unit in enumerate(units):
            sample: WaterSample = unit.inlet if i == len(units) - 1 else unit.outlet
            per_unit = self._unit_series.get(unit.handle)
            if per_unit is None:
                per_unit = {p: deque(maxlen=self._capacity) for p in Parameter}
                self._unit_series[unit.handle] = per_unit
            for p, v in sample.items():
                self._series[p].append(v)
                per_unit[p].append(v)
            live.add(unit.handle)

        for h in [h for h in self._unit_series if h not in live]:
            del self._unit_series[h]
        self.records += 1

    def series(self, param: Parameter) -> Tuple[float, ...]:
        """Snapshot, most recent last, never longer than capacity."""
        return tuple(self._series[Parameter.parse(param)])

    def unit_series(self, handle: int, param: Parameter) -> Tuple[float, ...]:
        per_unit = self._unit_series.get(handle)
        if per_unit is None:
            return ()
        return tuple(per_unit[Parameter.parse(param)])

    def latest(self, param: Parameter) -> Optional[float]:
        s = self._series[Parameter.parse(param)]
        return s[-1] if s else None

    def clear(self) -> None:
        for s in self._series.values():
            s.clear()
        self._unit_series.clear()
        self.records = 0
