# wwtpsim/treatment/catalog.py
"""
Unit catalogue: what each UnitKind is called, what it does, and which
formula family it belongs to.

The formulas themselves live in transfer.py; this module only holds the
descriptive data a host needs to list, name and configure units.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from wwtpsim.core.errors import InvalidUnitKind
from wwtpsim.core.types import Parameter, UnitConfig, UnitKind


class Family(str, Enum):
    ENDPOINT = "endpoint"
    PASS_THROUGH = "pass_through"
    SEPARATION = "separation"
    KINETIC = "kinetic"
    DISINFECTION = "disinfection"
    CHEMICAL = "chemical"
    DESALINATION = "desalination"
    THERMAL = "thermal"


@dataclass(frozen=True)
class UnitSpec:
    """
    removes:
      Parameters this unit can only lower (never raise) with its built-in formula.

    config_defaults:
      UnitConfig field values that differ from the generic defaults for this kind.
    """
    kind: UnitKind
    display_name: str
    description: str
    family: Family
    removes: FrozenSet[Parameter] = frozenset()
    config_defaults: Mapping[str, float] = field(default_factory=dict)
    aliases: tuple = ()

    def make_config(self, **overrides: Any) -> UnitConfig:
        kwargs: Dict[str, Any] = dict(self.config_defaults)
        kwargs.update(overrides)
        return UnitConfig(**kwargs)


P = Parameter
_KINETIC_REMOVES = frozenset({P.BOD, P.COD, P.NH4, P.DO})


def _spec(kind: UnitKind, name: str, desc: str, family: Family, removes=(), aliases=(), **defaults: float) -> UnitSpec:
    return UnitSpec(
        kind=kind,
        display_name=name,
        description=desc,
        family=family,
        removes=frozenset(removes),
        config_defaults=dict(defaults),
        aliases=tuple(aliases),
    )


CATALOG: Dict[UnitKind, UnitSpec] = {
    s.kind: s
    for s in (
        _spec(UnitKind.SOURCE, "Inlet", "Entry point of wastewater into the system.", Family.ENDPOINT,
              aliases=("source",)),
        _spec(UnitKind.SINK, "Outlet", "Exit point of treated water from the system.", Family.ENDPOINT,
              aliases=("sink",)),
        _spec(UnitKind.PRIMARY_SEDIMENTATION, "Primary Sedimentation Tank",
              "Removes settleable solids and reduces BOD through sedimentation.", Family.SEPARATION,
              removes=(P.TSS, P.BOD, P.TURBIDITY, P.PATHOGENS)),
        _spec(UnitKind.PRIMARY_CLARIFIER, "Primary Clarifier",
              "Removes settleable solids and oil & grease from wastewater.", Family.SEPARATION,
              removes=(P.TSS, P.OIL, P.TURBIDITY)),
        _spec(UnitKind.AERATION_TANK, "Aeration Tank",
              "Promotes microbial degradation of organic matter under aerobic conditions.", Family.KINETIC,
              removes=(P.BOD, P.NH4, P.DO)),
        _spec(UnitKind.SECONDARY_CLARIFIER, "Secondary Clarifier",
              "Settles out microbial biomass from the aeration tank.", Family.SEPARATION,
              removes=(P.TSS, P.TURBIDITY)),
        _spec(UnitKind.CHLORINE_DISINFECTION, "Chlorine Disinfection Unit",
              "Uses chlorine to disinfect water, killing remaining pathogens.", Family.DISINFECTION,
              removes=(P.PATHOGENS,), aliases=("chlorination",)),
        _spec(UnitKind.UV_DISINFECTION, "UV Disinfection",
              "Utilizes UV radiation to inactivate pathogens without chemical additives.", Family.DISINFECTION,
              removes=(P.PATHOGENS,)),
        _spec(UnitKind.ANAEROBIC_FILTER, "Anaerobic Filter",
              "Employs anaerobic bacteria to degrade organic pollutants.", Family.SEPARATION,
              removes=(P.COD,)),
        _spec(UnitKind.SLUDGE_DIGESTER, "Sludge Digester",
              "Reduces sludge volume and stabilizes organic content anaerobically.", Family.SEPARATION,
              removes=(P.TSS,)),
        _spec(UnitKind.OIL_SEPARATOR, "Oil and Grease Separator",
              "Separates oils and greases from water by flotation mechanisms.", Family.SEPARATION,
              removes=(P.OIL, P.TURBIDITY)),
        _spec(UnitKind.PHOSPHORUS_REMOVAL, "Phosphorus Removal Unit",
              "Eliminates phosphorus via chemical precipitation methods.", Family.CHEMICAL,
              removes=(P.P,)),
        _spec(UnitKind.DRYING_BED, "Drying Bed",
              "Allows for dewatering of sludge through evaporation and drainage.", Family.SEPARATION,
              removes=(P.TSS,)),
        _spec(UnitKind.PUMP, "Pump",
              "Boosts water pressure to facilitate flow through the treatment processes.", Family.PASS_THROUGH),
        _spec(UnitKind.FLOW_METER, "Flow Meter",
              "Monitors the flow rate of water for system control and optimization.", Family.PASS_THROUGH),
        _spec(UnitKind.WATER_SOFTENER, "Water Softener",
              "Reduces water hardness by exchanging calcium and magnesium ions for sodium ions.", Family.SEPARATION,
              removes=(P.HARDNESS,)),
        _spec(UnitKind.ACTIVATED_CARBON, "Activated Carbon Filter",
              "Adsorbs organic pollutants, enhancing taste and odor quality.", Family.SEPARATION,
              removes=(P.COD,)),
        _spec(UnitKind.HEAT_EXCHANGER, "Heat Exchanger",
              "Regulates water temperature for optimal treatment conditions.", Family.THERMAL,
              temperature_c=25.0),
        _spec(UnitKind.METALS_REMOVAL, "Metals Removal Unit",
              "Eliminates heavy metals to prevent toxicity in the environment.", Family.CHEMICAL,
              removes=(P.METALS,)),
        _spec(UnitKind.MEMBRANE_FILTRATION_UNIT, "Membrane Filtration Unit",
              "Uses microfiltration or ultrafiltration membranes for fine particle removal.", Family.SEPARATION,
              removes=(P.PATHOGENS, P.TSS)),
        _spec(UnitKind.REVERSE_OSMOSIS, "Reverse Osmosis Unit",
              "Employs semi-permeable membranes to desalinate and purify water.", Family.DESALINATION,
              removes=(P.SALINITY, P.EC), aliases=("RO",)),
        _spec(UnitKind.COAGULATION_FLOCCULATION, "Coagulation and Flocculation",
              "Destabilizes particles for subsequent removal of COD and TSS.", Family.CHEMICAL,
              removes=(P.COD, P.TSS)),
        _spec(UnitKind.MEMBRANE_FILTRATION, "Membrane Filtration",
              "Removes particles, pathogens, and COD through ultrafiltration membranes.", Family.SEPARATION,
              removes=(P.COD, P.TSS, P.PATHOGENS)),
        _spec(UnitKind.CHEMICAL_OXIDATION, "Chemical Oxidation",
              "Applies strong oxidants to degrade organic pollutants and color.", Family.CHEMICAL,
              removes=(P.COD, P.TURBIDITY)),
        _spec(UnitKind.ACTIVE_SLUDGE, "Active Sludge Process",
              "Biological treatment to remove BOD, COD, and TSS through aeration and sedimentation.", Family.KINETIC,
              removes=(P.BOD, P.COD, P.NH4, P.DO), aliases=("Activated Sludge",)),
        _spec(UnitKind.NITRIFICATION, "Nitrification Tank",
              "Biological process to convert ammonium to nitrate through nitrification.", Family.KINETIC,
              removes=(P.NH4, P.DO, P.ALKALINITY), aliases=("Nitrification Unit",)),
        _spec(UnitKind.BIOFILTER, "Biofilter",
              "Biological treatment system to remove BOD, COD, and NH4+ from wastewater.", Family.KINETIC,
              removes=_KINETIC_REMOVES, aliases=("Biofilter Unit", "Realistic Biofilter")),
        _spec(UnitKind.FILTRATION, "Filtration",
              "Removes suspended solids and turbidity from wastewater.", Family.SEPARATION,
              removes=(P.TSS, P.TURBIDITY)),
        _spec(UnitKind.MEMBRANE_BIOREACTOR, "Membrane Bioreactor",
              "Membrane bioreactor, bacteria and protozoa remove contaminants.", Family.KINETIC,
              removes=_KINETIC_REMOVES, aliases=("MBR",)),
        _spec(UnitKind.OZONE_DISINFECTION, "Ozone Disinfection",
              "Removes pathogens and oxidizes contaminants using ozone.", Family.DISINFECTION,
              removes=(P.PATHOGENS, P.COD, P.TSS), aliases=("Ozonation Unit",)),
        _spec(UnitKind.ANAEROBIC_AEROBIC_FILTER, "Anaerobic-Aerobic Filter",
              "Biological treatment system to remove BOD, COD, and NH4+ from wastewater.", Family.KINETIC,
              removes=_KINETIC_REMOVES, aliases=("Anaerobic-Aerobic Treatment",)),
        _spec(UnitKind.ELECTROCOAGULATION, "Electrocoagulation Unit",
              "Removes metals and suspended solids, changes EC and pH of wastewater.", Family.CHEMICAL,
              removes=(P.METALS, P.TSS)),
    )
}


def get_spec(kind: UnitKind) -> UnitSpec:
    return CATALOG[kind]


def treatment_kinds() -> List[UnitKind]:
    """Kinds that may be inserted between Source and Sink, in catalogue order."""
    return [k for k in CATALOG if not k.is_endpoint]


def _norm(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


_LOOKUP: Dict[str, UnitKind] = {}
for _s in CATALOG.values():
    for _name in (_s.kind.value, _s.kind.name, _s.display_name, *_s.aliases):
        _LOOKUP[_norm(_name)] = _s.kind


def suggest_kind(text: str) -> Optional[str]:
    close = difflib.get_close_matches(_norm(text), list(_LOOKUP.keys()), n=1, cutoff=0.6)
    return _LOOKUP[close[0]].value if close else None


def resolve_kind(value: Any) -> UnitKind:
    """
    Resolve a UnitKind from a member, its value ("aeration_tank"), its name,
    its display name ("Aeration Tank") or a known alias ("MBR").
    Matching ignores case, spaces, hyphens and underscores.
    """
    if isinstance(value, UnitKind):
        return value
    if isinstance(value, str):
        kind = _LOOKUP.get(_norm(value))
        if kind is not None:
            return kind
        suggestion = suggest_kind(value)
        hint = f" (did you mean '{suggestion}'?)" if suggestion else ""
        raise InvalidUnitKind(f"unknown unit kind '{value}'{hint}")
    raise InvalidUnitKind(f"unknown unit kind {value!r}")
