# wwtpsim/treatment/presets.py
"""
Named reference trains a host can instantiate in one call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Tuple

from wwtpsim.core.types import UnitKind

if TYPE_CHECKING:
    from wwtpsim.core.pipeline import Pipeline


PRESETS: Dict[str, Tuple[UnitKind, ...]] = {
    # Conventional secondary treatment with nitrification, chlorination and polishing.
    "default": (
        UnitKind.PRIMARY_CLARIFIER,
        UnitKind.PRIMARY_SEDIMENTATION,
        UnitKind.AERATION_TANK,
        UnitKind.ACTIVE_SLUDGE,
        UnitKind.NITRIFICATION,
        UnitKind.SECONDARY_CLARIFIER,
        UnitKind.CHLORINE_DISINFECTION,
        UnitKind.FILTRATION,
    ),
}


def list_presets() -> List[str]:
    return sorted(PRESETS.keys())


def get_preset(name: str) -> Tuple[UnitKind, ...]:
    if name not in PRESETS:
        available = ", ".join(list_presets()) or "(none)"
        raise KeyError(f"Unknown preset '{name}'. Available presets: {available}")
    return PRESETS[name]


def load_preset(pipeline: "Pipeline", name: str = "default") -> List[int]:
    """
    Replace the treatment train with the named preset. Returns the new handles
    in chain order.
    """
    kinds = get_preset(name)
    pipeline.reset()
    return [pipeline.insert(kind) for kind in kinds]
