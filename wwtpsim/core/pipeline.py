# wwtpsim/core/pipeline.py
"""
Linear treatment train: Source -> unit_1 -> ... -> unit_n -> Sink.

The Pipeline owns every ProcessUnit in an arena keyed by a stable integer
handle, plus the ordered list of handles that defines execution order.
External holders (history, a UI) keep handles, never unit references they
expect to stay valid; a removed unit's handle raises StaleHandle.

Tick contract (step):
  pass 1: every unit strictly between Source and Sink runs its transfer
          function on its current inlet
  pass 2: outlet of unit i-1 is copied into the inlet of unit i, i = 1..n-1

Because inlets are only refreshed in pass 2, each unit sees the state its
predecessor had at the end of the previous tick; nothing cascades within
one tick.

Not thread-safe: callers serialize step() and topology changes.
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from wwtpsim.core.errors import InvalidIndex, InvalidUnitKind, StaleHandle
from wwtpsim.core.logging_utils import get_logger
from wwtpsim.core.types import Parameter, UnitConfig, UnitKind, WaterSample
from wwtpsim.core.unit import ProcessUnit
from wwtpsim.treatment.catalog import resolve_kind

logger = get_logger(__name__)

Connection = Tuple[int, int]


class Pipeline:
    def __init__(self, influent: Optional[WaterSample] = None) -> None:
        self._handles = itertools.count()
        self._arena: Dict[int, ProcessUnit] = {}
        self._order: List[int] = []
        self._connections: List[Connection] = []

        self.revision = 0
        self.ticks = 0
        self.elapsed = 0.0

        source = self._new_unit(UnitKind.SOURCE)
        sink = self._new_unit(UnitKind.SINK)
        if influent is not None:
            source.outlet = influent.copy()
        sink.inlet = source.outlet.copy()
        self._order = [source.handle, sink.handle]
        self._rebuild_connections()

    # ----------------------------
    # Read access
    # ----------------------------

    @property
    def source(self) -> ProcessUnit:
        return self._arena[self._order[0]]

    @property
    def sink(self) -> ProcessUnit:
        return self._arena[self._order[-1]]

    @property
    def sink_index(self) -> int:
        return len(self._order) - 1

    @property
    def units(self) -> List[ProcessUnit]:
        """All units in chain order, Source first and Sink last."""
        return [self._arena[h] for h in self._order]

    @property
    def treatment_units(self) -> List[ProcessUnit]:
        return [self._arena[h] for h in self._order[1:-1]]

    @property
    def effluent(self) -> WaterSample:
        return self.sink.inlet.copy()

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[ProcessUnit]:
        return iter(self.units)

    def __getitem__(self, index: int) -> ProcessUnit:
        return self._arena[self._order[index]]

    def handles(self) -> List[int]:
        return list(self._order)

    def get(self, handle: int) -> ProcessUnit:
        unit = self._arena.get(handle)
        if unit is None:
            raise StaleHandle(handle)
        return unit

    def index_of(self, handle: int) -> int:
        if handle not in self._arena:
            raise StaleHandle(handle)
        return self._order.index(handle)

    def names(self) -> List[str]:
        return [u.name for u in self.units]

    def connections(self) -> List[Connection]:
        """Ordered (from_handle, to_handle) pairs, rebuilt on every topology change."""
        return list(self._connections)

    # ----------------------------
    # Write access
    # ----------------------------

    def set_influent(self, sample: Union[WaterSample, Mapping[Any, float]]) -> None:
        """
        Overwrite the Source outlet (raw influent). Accepts a full sample or a
        partial {parameter: value} mapping applied over the current influent.
        """
        if isinstance(sample, WaterSample):
            self.source.outlet = sample.copy()
            return
        current = self.source.outlet.copy()
        for k, v in sample.items():
            current.set(Parameter.parse(k), float(v))
        self.source.outlet = current

    # ----------------------------
    # Simulation
    # ----------------------------

    def step(self, dt: float) -> None:
        """
        Advance one tick. Source keeps whatever influent was last set; the Sink
        is never simulated, it only receives.
        """
        dt = float(dt)
        if dt < 0:
            raise ValueError(f"dt must be >= 0, got {dt}")

        for h in self._order[1:-1]:
            self._arena[h].simulate(dt)

        for i in range(1, len(self._order)):
            prev = self._arena[self._order[i - 1]]
            self._arena[self._order[i]].inlet = prev.outlet.copy()

        self.ticks += 1
        self.elapsed += dt
        logger.debug("tick %d (dt=%.4g) through %d units", self.ticks, dt, len(self._order) - 2)

    # ----------------------------
    # Topology
    # ----------------------------

    def insert(
        self,
        kind: Union[UnitKind, str],
        config: Optional[UnitConfig] = None,
        at_index: Optional[int] = None,
        name: Optional[str] = None,
    ) -> int:
        """
        Create a unit and place it between Source and Sink.

        at_index defaults to the Sink's position (append to the train). An
        explicit index must satisfy 1 <= at_index <= sink_index; the new unit
        ends up at that index. Returns the new unit's handle.
        """
        kind = resolve_kind(kind)
        if kind.is_endpoint:
            raise InvalidUnitKind(f"'{kind.value}' is a chain endpoint and cannot be inserted")

        hi = self.sink_index
        if at_index is None:
            at_index = hi
        elif isinstance(at_index, bool) or not isinstance(at_index, int) or not (1 <= at_index <= hi):
            raise InvalidIndex(at_index, (1, hi), "insert")

        unit = self._new_unit(kind, config=config, name=name)
        prev = self._arena[self._order[at_index - 1]]
        unit.inlet = prev.outlet.copy()
        unit.outlet = unit.inlet.copy()

        self._order.insert(at_index, unit.handle)
        self._topology_changed()
        logger.info("inserted %s (handle %d) at index %d", unit.name, unit.handle, at_index)
        return unit.handle

    def remove(self, index: int) -> ProcessUnit:
        """
        Remove the treatment unit at `index` and close the gap.
        Source (0) and Sink (last) cannot be removed.
        """
        hi = self.sink_index - 1
        if isinstance(index, bool) or not isinstance(index, int) or not (1 <= index <= hi):
            raise InvalidIndex(index, (1, hi) if hi >= 1 else None, "remove")

        handle = self._order.pop(index)
        unit = self._arena.pop(handle)
        self._topology_changed()
        logger.info("removed %s (handle %d) from index %d", unit.name, handle, index)
        return unit

    def remove_handle(self, handle: int) -> ProcessUnit:
        return self.remove(self.index_of(handle))

    def reset(self) -> None:
        """Drop every treatment unit, keeping Source and Sink."""
        dropped = self._order[1:-1]
        for h in dropped:
            del self._arena[h]
        self._order = [self._order[0], self._order[-1]]
        self._topology_changed()
        logger.info("reset pipeline (%d units removed)", len(dropped))

    # ----------------------------
    # Internals
    # ----------------------------

    def _new_unit(self, kind: UnitKind, config: Optional[UnitConfig] = None, name: Optional[str] = None) -> ProcessUnit:
        unit = ProcessUnit.create(next(self._handles), kind, config=config, name=name)
        self._arena[unit.handle] = unit
        return unit

    def _rebuild_connections(self) -> None:
        self._connections = [(self._order[i], self._order[i + 1]) for i in range(len(self._order) - 1)]

    def _topology_changed(self) -> None:
        self._rebuild_connections()
        self.revision += 1
