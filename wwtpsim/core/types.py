# wwtpsim/core/types.py
"""
Shared value types for wwtpsim.

Keep this file small and stable: unit formulas and presets can evolve, but
these types are what every other layer (pipeline, history, reporting, any
host UI) reads and writes.

Design goals:
- Closed water-quality parameter set (never extended at runtime)
- WaterSample is a value type: copied between units, never shared
- UnitConfig holds the per-unit knobs a host is allowed to edit
- JSON-friendly conversions for reports
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, is_dataclass
from enum import Enum
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Mapping, Optional

from wwtpsim.core.errors import InvalidParameter


# ----------------------------
# Enums
# ----------------------------

class Parameter(str, Enum):
    """Water-quality measures tracked for every sample."""
    BOD = "bod"                      # Biochemical oxygen demand
    COD = "cod"                      # Chemical oxygen demand
    TSS = "tss"                      # Total suspended solids
    NH4 = "nh4"                      # Ammonium
    NO3 = "no3"                      # Nitrate
    PH = "ph"
    P = "p"                          # Total phosphorus
    OIL = "oil"                      # Oils and greases
    DO = "do"                        # Dissolved oxygen
    TEMP = "temp"
    PATHOGENS = "pathogens"
    SALINITY = "salinity"
    TURBIDITY = "turbidity"
    EC = "ec"                        # Electrical conductivity
    ALKALINITY = "alkalinity"
    RESIDUAL_CHLORINE = "residual_chlorine"
    HARDNESS = "hardness"
    SULFATES = "sulfates"
    CHLORIDES = "chlorides"
    METALS = "metals"                # Heavy metals

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, key: Any) -> "Parameter":
        """
        Resolve a Parameter from a member, its value ("bod"), its name ("BOD")
        or its label ("BOD (mg/L)"). Case-insensitive.
        """
        if isinstance(key, Parameter):
            return key
        if isinstance(key, str):
            k = key.strip().lower()
            for p in cls:
                if k in (p.value, p.name.lower(), p.label.lower()):
                    return p
        raise InvalidParameter(key)


class UnitKind(str, Enum):
    """
    Variant tag of a process unit; selects its transfer function.

    SOURCE and SINK are the permanent chain endpoints; every other member
    is a treatment unit that may be inserted between them.
    """
    SOURCE = "source"
    SINK = "sink"

    PRIMARY_SEDIMENTATION = "primary_sedimentation"
    PRIMARY_CLARIFIER = "primary_clarifier"
    AERATION_TANK = "aeration_tank"
    SECONDARY_CLARIFIER = "secondary_clarifier"
    CHLORINE_DISINFECTION = "chlorine_disinfection"
    UV_DISINFECTION = "uv_disinfection"
    ANAEROBIC_FILTER = "anaerobic_filter"
    SLUDGE_DIGESTER = "sludge_digester"
    OIL_SEPARATOR = "oil_separator"
    PHOSPHORUS_REMOVAL = "phosphorus_removal"
    DRYING_BED = "drying_bed"
    PUMP = "pump"
    FLOW_METER = "flow_meter"
    WATER_SOFTENER = "water_softener"
    ACTIVATED_CARBON = "activated_carbon"
    HEAT_EXCHANGER = "heat_exchanger"
    METALS_REMOVAL = "metals_removal"
    MEMBRANE_FILTRATION_UNIT = "membrane_filtration_unit"
    REVERSE_OSMOSIS = "reverse_osmosis"
    COAGULATION_FLOCCULATION = "coagulation_flocculation"
    MEMBRANE_FILTRATION = "membrane_filtration"
    CHEMICAL_OXIDATION = "chemical_oxidation"
    ACTIVE_SLUDGE = "active_sludge"
    NITRIFICATION = "nitrification"
    BIOFILTER = "biofilter"
    FILTRATION = "filtration"
    MEMBRANE_BIOREACTOR = "membrane_bioreactor"
    OZONE_DISINFECTION = "ozone_disinfection"
    ANAEROBIC_AEROBIC_FILTER = "anaerobic_aerobic_filter"
    ELECTROCOAGULATION = "electrocoagulation"

    @property
    def is_endpoint(self) -> bool:
        return self in (UnitKind.SOURCE, UnitKind.SINK)


_LABELS: Dict[Parameter, str] = {
    Parameter.BOD: "BOD (mg/L)",
    Parameter.COD: "COD (mg/L)",
    Parameter.TSS: "TSS (mg/L)",
    Parameter.NH4: "NH4+ (mg/L)",
    Parameter.NO3: "NO3- (mg/L)",
    Parameter.PH: "pH",
    Parameter.P: "Total Phosphorus (mg/L)",
    Parameter.OIL: "Oils and Greases (mg/L)",
    Parameter.DO: "Dissolved Oxygen (mg/L)",
    Parameter.TEMP: "Temperature (C)",
    Parameter.PATHOGENS: "Pathogens (CFU/mL)",
    Parameter.SALINITY: "Salinity (ppt)",
    Parameter.TURBIDITY: "Turbidity (NTU)",
    Parameter.EC: "Electrical Conductivity (uS/cm)",
    Parameter.ALKALINITY: "Alkalinity (mg CaCO3/L)",
    Parameter.RESIDUAL_CHLORINE: "Residual Chlorine (mg/L)",
    Parameter.HARDNESS: "Total Hardness (mg CaCO3/L)",
    Parameter.SULFATES: "Sulfates (mg/L)",
    Parameter.CHLORIDES: "Chlorides (mg/L)",
    Parameter.METALS: "Heavy Metals (mg/L)",
}


# Raw influent baseline (typical medium-strength municipal sewage).
DEFAULT_INFLUENT: Dict[Parameter, float] = {
    Parameter.BOD: 300.0,
    Parameter.COD: 600.0,
    Parameter.TSS: 200.0,
    Parameter.NH4: 50.0,
    Parameter.NO3: 5.0,
    Parameter.PH: 6.5,
    Parameter.P: 10.0,
    Parameter.OIL: 30.0,
    Parameter.DO: 2.0,
    Parameter.TEMP: 20.0,
    Parameter.PATHOGENS: 1e6,
    Parameter.SALINITY: 0.5,
    Parameter.TURBIDITY: 50.0,
    Parameter.EC: 1500.0,
    Parameter.ALKALINITY: 200.0,
    Parameter.RESIDUAL_CHLORINE: 0.0,
    Parameter.HARDNESS: 250.0,
    Parameter.SULFATES: 80.0,
    Parameter.CHLORIDES: 100.0,
    Parameter.METALS: 5.0,
}


# ----------------------------
# Water sample
# ----------------------------

class WaterSample:
    """
    One value per Parameter, always complete.

    Samples are values: units exchange copies, so writing into one unit's
    sample never leaks into another's.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[Parameter, float]] = None) -> None:
        self._values: Dict[Parameter, float] = dict(DEFAULT_INFLUENT)
        if values:
            for k, v in values.items():
                self._values[Parameter.parse(k)] = float(v)

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any]) -> "WaterSample":
        """Baseline sample with the given (possibly partial) overrides applied."""
        return cls({Parameter.parse(k): float(v) for k, v in data.items()})

    def get(self, param: Parameter) -> float:
        if not isinstance(param, Parameter):
            raise InvalidParameter(param)
        return self._values[param]

    def set(self, param: Parameter, value: float) -> None:
        if not isinstance(param, Parameter):
            raise InvalidParameter(param)
        self._values[param] = float(value)

    def __getitem__(self, param: Parameter) -> float:
        return self.get(param)

    def __setitem__(self, param: Parameter, value: float) -> None:
        self.set(param, value)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(Parameter)

    def __len__(self) -> int:
        return len(self._values)

    def items(self) -> Iterator[tuple]:
        for p in Parameter:
            yield p, self._values[p]

    def copy(self) -> "WaterSample":
        out = WaterSample.__new__(WaterSample)
        out._values = dict(self._values)
        return out

    def to_dict(self) -> Dict[str, float]:
        return {p.value: self._values[p] for p in Parameter}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WaterSample):
            return NotImplemented
        return self._values == other._values

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        body = ", ".join(f"{p.value}={self._values[p]:.6g}" for p in Parameter)
        return f"WaterSample({body})"


# ----------------------------
# Unit configuration
# ----------------------------

_NON_NEGATIVE_KNOBS = ("volume_m3", "flow_rate_m3d", "hrt_h", "srt_d")


def _check_knob(name: str, value: Any) -> float:
    v = float(value)
    if not math.isfinite(v):
        raise ValueError(f"{name} must be finite, got {v}")
    if name in _NON_NEGATIVE_KNOBS and v < 0:
        raise ValueError(f"{name} must be a finite number >= 0, got {v}")
    return v


class RemovalOverrides(MutableMapping):
    """Parameter -> removal efficiency in [-1, 1], checked on every write."""

    def __init__(self, data: Optional[Mapping[Any, float]] = None) -> None:
        self._data: Dict[Parameter, float] = {}
        if data:
            for k, v in dict(data).items():
                self[k] = v

    def __getitem__(self, key: Any) -> float:
        return self._data[Parameter.parse(key)]

    def __setitem__(self, key: Any, value: float) -> None:
        param = Parameter.parse(key)
        eff = float(value)
        if not (-1.0 <= eff <= 1.0):
            raise ValueError(f"removal efficiency for {param.value} must be within [-1, 1], got {eff}")
        self._data[param] = eff

    def __delitem__(self, key: Any) -> None:
        del self._data[Parameter.parse(key)]

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"RemovalOverrides({ {p.value: v for p, v in self._data.items()} })"


@dataclass
class UnitConfig:
    """
    Per-unit operating knobs. Every assignment is checked, so a host editing
    a live unit's config gets the same ValueError as the constructor.

    removal_overrides:
      Parameter -> removal efficiency in [-1, 1] that replaces the unit's
      built-in result for that parameter. Negative values increase the
      parameter. Parameters without an entry use the built-in formula.
    """
    volume_m3: float = 1000.0
    flow_rate_m3d: float = 100.0
    hrt_h: float = 10.0
    srt_d: float = 20.0
    temperature_c: float = 20.0
    removal_overrides: RemovalOverrides = field(default_factory=RemovalOverrides)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _NON_NEGATIVE_KNOBS or name == "temperature_c":
            value = _check_knob(name, value)
        elif name == "removal_overrides":
            value = RemovalOverrides(value)
        object.__setattr__(self, name, value)

    def set_override(self, param: Parameter, efficiency: float) -> None:
        self.removal_overrides[param] = efficiency

    def clear_override(self, param: Parameter) -> None:
        self.removal_overrides.pop(Parameter.parse(param), None)

    def copy(self) -> "UnitConfig":
        return UnitConfig(
            volume_m3=self.volume_m3,
            flow_rate_m3d=self.flow_rate_m3d,
            hrt_h=self.hrt_h,
            srt_d=self.srt_d,
            temperature_c=self.temperature_c,
            removal_overrides=self.removal_overrides,
        )



# ----------------------------
# JSON helpers
# ----------------------------

def to_jsonable(obj: Any) -> Any:
    """
    Convert common Python objects (dataclasses, enums, samples, tuples) into
    JSON-serializable forms. Safe to call on nested structures.
    """
    if obj is None:
        return None

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, WaterSample):
        return obj.to_dict()

    if is_dataclass(obj) and not isinstance(obj, type):
        return to_jsonable(asdict(obj))

    if isinstance(obj, Mapping):
        return {to_jsonable(k) if isinstance(k, Enum) else str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]

    if isinstance(obj, (str, int, float, bool)):
        return obj

    return str(obj)


# ----------------------------
# Numeric helpers
# ----------------------------

def non_negative(x: float) -> float:
    """Physical quantities cannot go below zero; consumption terms clamp here."""
    return x if x > 0.0 else 0.0
