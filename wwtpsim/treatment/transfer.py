# wwtpsim/treatment/transfer.py
"""
Transfer functions: inlet sample + unit config -> outlet sample.

Every function here is pure and deterministic: it copies the inlet, writes
the outlet, and keeps no state between calls. Functions are registered per
UnitKind in wwtpsim.core.registry; apply_transfer() is the single entry
point the pipeline uses.

Families:

  Physical separation / simple chemical removal
    out[p] = in[p] * (1 - eff_p)

  First-order biological kinetics (HRT in hours, T = inlet water temperature)
    f          = 1.035 ** (T - 20)
    removed_p  = in[p] * (1 - exp(-k_p * HRT * f))
    NO3       += 0.9 * NH4_removed
    DO        -= (BOD_removed + COD_removed + 4.57 * NH4_removed) * 1.5   (>= 0)

  Disinfection
    pathogens *= (1 - kill)

Removal-efficiency overrides from UnitConfig are applied last and replace
the built-in result for the overridden parameter only.
"""

from __future__ import annotations

import math
from typing import Dict, Mapping, Tuple

from wwtpsim.core.registry import TransferFn, get_transfer, register_transfer
from wwtpsim.core.types import Parameter, UnitConfig, UnitKind, WaterSample, non_negative

P = Parameter


# ----------------------------
# Kinetic constants
# ----------------------------

ARRHENIUS_THETA = 1.035
REFERENCE_TEMP_C = 20.0
NITRATE_YIELD = 0.9             # mg NO3 formed per mg NH4 removed
O2_PER_NH4 = 4.57               # mg O2 per mg NH4 nitrified
O2_DEMAND_FACTOR = 1.5

CHLORINE_RESIDUAL_MG_L = 0.7
CHLORIDE_BYPRODUCT_FACTOR = 1.46
PRECIPITATE_TSS_PER_P = 2.0
NITRIFICATION_ALKALINITY_MG_L = 0.5
ELECTROCOAG_PH_RISE = 0.5
ELECTROCOAG_EC_RISE = 200.0


def temperature_factor(temp_c: float) -> float:
    """Arrhenius-style rate correction anchored at 20 C."""
    return ARRHENIUS_THETA ** (float(temp_c) - REFERENCE_TEMP_C)


def first_order_removed(value: float, k: float, hrt_h: float, temp_factor: float) -> float:
    return value * (1.0 - math.exp(-k * hrt_h * temp_factor))


# ----------------------------
# Tables
# ----------------------------

# Fixed-fraction removals; a unit in this table has no other effect.
SEPARATION_TABLE: Dict[UnitKind, Dict[Parameter, float]] = {
    UnitKind.PRIMARY_SEDIMENTATION: {P.TSS: 0.60, P.BOD: 0.35, P.TURBIDITY: 0.50, P.PATHOGENS: 0.60},
    UnitKind.PRIMARY_CLARIFIER: {P.TSS: 0.70, P.OIL: 0.90, P.TURBIDITY: 0.20},
    UnitKind.SECONDARY_CLARIFIER: {P.TSS: 0.85, P.TURBIDITY: 0.30},
    UnitKind.FILTRATION: {P.TSS: 0.80, P.TURBIDITY: 0.70},
    UnitKind.OIL_SEPARATOR: {P.OIL: 0.90, P.TURBIDITY: 0.10},
    UnitKind.SLUDGE_DIGESTER: {P.TSS: 0.55},
    UnitKind.DRYING_BED: {P.TSS: 0.95},
    UnitKind.WATER_SOFTENER: {P.HARDNESS: 0.90},
    UnitKind.ACTIVATED_CARBON: {P.COD: 0.30},
    UnitKind.ANAEROBIC_FILTER: {P.COD: 0.65},
    UnitKind.MEMBRANE_FILTRATION_UNIT: {P.TSS: 0.99, P.PATHOGENS: 0.9999},
    UnitKind.MEMBRANE_FILTRATION: {P.COD: 0.20, P.TSS: 0.45, P.PATHOGENS: 0.9999},
    UnitKind.UV_DISINFECTION: {P.PATHOGENS: 0.999},
    UnitKind.OZONE_DISINFECTION: {P.PATHOGENS: 0.999, P.COD: 0.90, P.TSS: 0.90},
    UnitKind.COAGULATION_FLOCCULATION: {P.COD: 0.40, P.TSS: 0.60},
    UnitKind.CHEMICAL_OXIDATION: {P.COD: 0.70, P.TURBIDITY: 0.20},
    UnitKind.METALS_REMOVAL: {P.METALS: 0.85},
    UnitKind.REVERSE_OSMOSIS: {P.SALINITY: 0.95, P.EC: 0.95},
}

# First-order rate constants (1/h) per targeted parameter.
KINETIC_RATES: Dict[UnitKind, Dict[Parameter, float]] = {
    UnitKind.AERATION_TANK: {P.BOD: 0.2, P.NH4: 0.1},
    UnitKind.ACTIVE_SLUDGE: {P.BOD: 0.2, P.NH4: 0.1},
    UnitKind.NITRIFICATION: {P.NH4: 0.1},
    UnitKind.BIOFILTER: {P.BOD: 0.2, P.COD: 0.1, P.NH4: 0.05},
    UnitKind.ANAEROBIC_AEROBIC_FILTER: {P.BOD: 0.2, P.COD: 0.1, P.NH4: 0.05},
    UnitKind.MEMBRANE_BIOREACTOR: {P.BOD: 0.1, P.COD: 0.05, P.NH4: 0.03},
}

CHLORINE_KILL = 0.99999
ACTIVE_SLUDGE_COD_REMOVAL = 0.79
PHOSPHORUS_REMOVAL = 0.75
ELECTROCOAG_REMOVAL: Dict[Parameter, float] = {P.METALS: 0.80, P.TSS: 0.60}


# ----------------------------
# Family helpers
# ----------------------------

def _remove_fractions(out: WaterSample, inlet: WaterSample, table: Mapping[Parameter, float]) -> None:
    for p, eff in table.items():
        out[p] = inlet[p] * (1.0 - eff)


def _separation(table: Mapping[Parameter, float]) -> TransferFn:
    frozen = dict(table)

    def transfer(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
        out = inlet.copy()
        _remove_fractions(out, inlet, frozen)
        return out

    return transfer


def first_order_kinetics(
    inlet: WaterSample,
    cfg: UnitConfig,
    rates: Mapping[Parameter, float],
) -> Tuple[WaterSample, Dict[Parameter, float]]:
    """
    Apply first-order removal for each targeted parameter, nitrate formation
    and the stoichiometric oxygen demand.

    Returns (outlet, removed) where removed maps each targeted parameter to
    the amount taken out.
    """
    tf = temperature_factor(inlet[P.TEMP])
    out = inlet.copy()

    removed: Dict[Parameter, float] = {}
    for p, k in rates.items():
        amount = first_order_removed(inlet[p], k, cfg.hrt_h, tf)
        removed[p] = amount
        out[p] = inlet[p] - amount

    nh4_removed = removed.get(P.NH4, 0.0)
    out[P.NO3] = inlet[P.NO3] + nh4_removed * NITRATE_YIELD

    o2_demand = (removed.get(P.BOD, 0.0) + removed.get(P.COD, 0.0) + nh4_removed * O2_PER_NH4) * O2_DEMAND_FACTOR
    out[P.DO] = non_negative(inlet[P.DO] - o2_demand)
    return out, removed


def _kinetic(rates: Mapping[Parameter, float]) -> TransferFn:
    frozen = dict(rates)

    def transfer(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
        out, _ = first_order_kinetics(inlet, cfg, frozen)
        return out

    return transfer


def pass_through(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    return inlet.copy()


# ----------------------------
# Registration
# ----------------------------

for _kind in (UnitKind.SOURCE, UnitKind.SINK, UnitKind.PUMP, UnitKind.FLOW_METER):
    register_transfer(_kind)(pass_through)

for _kind, _table in SEPARATION_TABLE.items():
    register_transfer(_kind)(_separation(_table))

for _kind in (UnitKind.AERATION_TANK, UnitKind.BIOFILTER, UnitKind.ANAEROBIC_AEROBIC_FILTER, UnitKind.MEMBRANE_BIOREACTOR):
    register_transfer(_kind)(_kinetic(KINETIC_RATES[_kind]))


@register_transfer(UnitKind.ACTIVE_SLUDGE)
def active_sludge(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    # COD drops by a fixed fraction (settled with the sludge), outside the O2 balance.
    out, _ = first_order_kinetics(inlet, cfg, KINETIC_RATES[UnitKind.ACTIVE_SLUDGE])
    out[P.COD] = inlet[P.COD] * (1.0 - ACTIVE_SLUDGE_COD_REMOVAL)
    return out


@register_transfer(UnitKind.NITRIFICATION)
def nitrification(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    out, _ = first_order_kinetics(inlet, cfg, KINETIC_RATES[UnitKind.NITRIFICATION])
    out[P.ALKALINITY] = non_negative(inlet[P.ALKALINITY] - NITRIFICATION_ALKALINITY_MG_L)
    return out


@register_transfer(UnitKind.CHLORINE_DISINFECTION)
def chlorine_disinfection(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    out = inlet.copy()
    out[P.PATHOGENS] = inlet[P.PATHOGENS] * (1.0 - CHLORINE_KILL)
    out[P.RESIDUAL_CHLORINE] = CHLORINE_RESIDUAL_MG_L
    out[P.CHLORIDES] = inlet[P.CHLORIDES] * CHLORIDE_BYPRODUCT_FACTOR
    return out


@register_transfer(UnitKind.PHOSPHORUS_REMOVAL)
def phosphorus_removal(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    out = inlet.copy()
    p_removed = inlet[P.P] * PHOSPHORUS_REMOVAL
    out[P.P] = inlet[P.P] - p_removed
    out[P.TSS] = inlet[P.TSS] + p_removed * PRECIPITATE_TSS_PER_P
    return out


@register_transfer(UnitKind.ELECTROCOAGULATION)
def electrocoagulation(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    out = inlet.copy()
    _remove_fractions(out, inlet, ELECTROCOAG_REMOVAL)
    out[P.PH] = inlet[P.PH] + ELECTROCOAG_PH_RISE
    out[P.EC] = inlet[P.EC] + ELECTROCOAG_EC_RISE
    return out


@register_transfer(UnitKind.HEAT_EXCHANGER)
def heat_exchanger(inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    out = inlet.copy()
    out[P.TEMP] = cfg.temperature_c
    return out


# ----------------------------
# Entry point
# ----------------------------

def apply_overrides(out: WaterSample, inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    for p, eff in cfg.removal_overrides.items():
        out[p] = non_negative(inlet[p] * (1.0 - eff))
    return out


def apply_transfer(kind: UnitKind, inlet: WaterSample, cfg: UnitConfig) -> WaterSample:
    """
    Compute the outlet of a unit of the given kind. The inlet is not modified.
    """
    out = get_transfer(kind)(inlet, cfg)
    if cfg.removal_overrides:
        apply_overrides(out, inlet, cfg)
    return out
