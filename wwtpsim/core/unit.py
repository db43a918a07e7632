# wwtpsim/core/unit.py
"""
ProcessUnit: a transfer function plus its configuration and last state.

inlet  - written only by Pipeline propagation (copy of the predecessor's outlet)
outlet - written only by simulate() (or, for the Source, by the influent override)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from wwtpsim.core.types import Parameter, UnitConfig, UnitKind, WaterSample, to_jsonable
from wwtpsim.treatment.catalog import get_spec
from wwtpsim.treatment.transfer import apply_transfer


@dataclass
class ProcessUnit:
    handle: int
    kind: UnitKind
    name: str
    description: str
    config: UnitConfig = field(default_factory=UnitConfig)
    inlet: WaterSample = field(default_factory=WaterSample)
    outlet: WaterSample = field(default_factory=WaterSample)

    @classmethod
    def create(
        cls,
        handle: int,
        kind: UnitKind,
        config: Optional[UnitConfig] = None,
        name: Optional[str] = None,
    ) -> "ProcessUnit":
        spec = get_spec(kind)
        return cls(
            handle=handle,
            kind=kind,
            name=name or spec.display_name,
            description=spec.description,
            config=config.copy() if config is not None else spec.make_config(),
        )

    def simulate(self, dt: float) -> WaterSample:
        """
        Run this unit's transfer function on its current inlet.

        dt is accepted for the tick contract; unit formulas are steady-state
        and do not depend on it.
        """
        self.outlet = apply_transfer(self.kind, self.inlet, self.config)
        return self.outlet

    def removal(self, param: Parameter) -> Optional[float]:
        """
        Fraction of `param` removed between inlet and outlet (negative when it
        increased). None when the inlet value is zero.
        """
        v_in = self.inlet[param]
        if v_in == 0.0:
            return None
        return (v_in - self.outlet[param]) / v_in

    def snapshot(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "kind": self.kind.value,
            "name": self.name,
            "config": to_jsonable(self.config),
            "inlet": self.inlet.to_dict(),
            "outlet": self.outlet.to_dict(),
        }
