# tests/test_transfer_functions.py
from __future__ import annotations

import math
import random

import pytest

from wwtpsim.core.types import Parameter as P
from wwtpsim.core.types import DEFAULT_INFLUENT, UnitConfig, UnitKind, WaterSample
from wwtpsim.treatment import apply_transfer
from wwtpsim.treatment.catalog import CATALOG, treatment_kinds
from wwtpsim.treatment.transfer import (
    CHLORINE_RESIDUAL_MG_L,
    SEPARATION_TABLE,
    first_order_kinetics,
    temperature_factor,
)


def _out(kind: UnitKind, inlet: WaterSample | None = None, **cfg) -> WaterSample:
    return apply_transfer(kind, inlet or WaterSample(), UnitConfig(**cfg))


def test_temperature_factor_anchored_at_20c() -> None:
    assert temperature_factor(20.0) == 1.0
    assert temperature_factor(30.0) == pytest.approx(1.035 ** 10)
    assert temperature_factor(10.0) < 1.0


def test_aeration_tank_bod_at_reference_temperature() -> None:
    out = _out(UnitKind.AERATION_TANK, hrt_h=10.0)
    assert out[P.BOD] == pytest.approx(300.0 * math.exp(-0.2 * 10))
    assert out[P.BOD] == pytest.approx(40.6, abs=0.01)


def test_aeration_tank_nitrate_and_do() -> None:
    inlet = WaterSample()
    out = _out(UnitKind.AERATION_TANK, inlet, hrt_h=10.0)

    nh4_removed = inlet[P.NH4] - out[P.NH4]
    assert nh4_removed == pytest.approx(50.0 * (1.0 - math.exp(-1.0)))
    assert out[P.NO3] == pytest.approx(inlet[P.NO3] + 0.9 * nh4_removed)
    # demand far exceeds the 2 mg/L available
    assert out[P.DO] == 0.0


def test_kinetics_use_inlet_water_temperature() -> None:
    cold = WaterSample.from_mapping({"temp": 10.0})
    warm = WaterSample.from_mapping({"temp": 30.0})
    out_cold = _out(UnitKind.AERATION_TANK, cold, hrt_h=5.0)
    out_warm = _out(UnitKind.AERATION_TANK, warm, hrt_h=5.0)

    assert out_warm[P.BOD] < out_cold[P.BOD]
    tf = temperature_factor(30.0)
    assert out_warm[P.BOD] == pytest.approx(300.0 * math.exp(-0.2 * 5.0 * tf))


def test_do_not_clamped_when_demand_is_small() -> None:
    inlet = WaterSample.from_mapping({"bod": 1.0, "cod": 0.0, "nh4": 0.0, "do": 8.0})
    out, removed = first_order_kinetics(inlet, UnitConfig(hrt_h=1.0), {P.BOD: 0.2})
    assert removed[P.BOD] == pytest.approx(1.0 - math.exp(-0.2))
    assert out[P.DO] == pytest.approx(8.0 - removed[P.BOD] * 1.5)
    assert out[P.DO] > 0.0


@pytest.mark.parametrize("do_start", [0.0, 0.5])
@pytest.mark.parametrize(
    "kind",
    [k for k in treatment_kinds() if "do" in {p.value for p in CATALOG[k].removes}],
)
def test_do_never_negative_for_kinetic_units(kind: UnitKind, do_start: float) -> None:
    heavy = WaterSample.from_mapping({"bod": 5000.0, "cod": 9000.0, "nh4": 400.0, "do": do_start})
    out = _out(kind, heavy, hrt_h=24.0)
    assert out[P.DO] == 0.0


def test_zero_hrt_removes_nothing() -> None:
    inlet = WaterSample()
    out = _out(UnitKind.BIOFILTER, inlet, hrt_h=0.0)
    for p in (P.BOD, P.COD, P.NH4, P.NO3, P.DO):
        assert out[p] == inlet[p]


def test_active_sludge_cod_fixed_fraction() -> None:
    out = _out(UnitKind.ACTIVE_SLUDGE)
    assert out[P.COD] == pytest.approx(600.0 * 0.21)


def test_nitrification_only_targets_ammonium() -> None:
    inlet = WaterSample()
    out = _out(UnitKind.NITRIFICATION, inlet, hrt_h=10.0)
    assert out[P.BOD] == inlet[P.BOD]
    assert out[P.NH4] == pytest.approx(50.0 * math.exp(-1.0))
    assert out[P.ALKALINITY] == pytest.approx(199.5)


def test_nitrification_alkalinity_clamped() -> None:
    out = _out(UnitKind.NITRIFICATION, WaterSample.from_mapping({"alkalinity": 0.2}))
    assert out[P.ALKALINITY] == 0.0


def test_chlorine_disinfection_scenario() -> None:
    inlet = WaterSample.from_mapping({"pathogens": 1e6})
    out = _out(UnitKind.CHLORINE_DISINFECTION, inlet)
    assert out[P.PATHOGENS] == pytest.approx(10.0)
    assert out[P.RESIDUAL_CHLORINE] == CHLORINE_RESIDUAL_MG_L == 0.7
    assert out[P.CHLORIDES] == pytest.approx(inlet[P.CHLORIDES] * 1.46)


@pytest.mark.parametrize(
    "kind,kill",
    [
        (UnitKind.UV_DISINFECTION, 0.999),
        (UnitKind.OZONE_DISINFECTION, 0.999),
        (UnitKind.MEMBRANE_FILTRATION_UNIT, 0.9999),
    ],
)
def test_disinfection_kill_fractions(kind: UnitKind, kill: float) -> None:
    out = _out(kind)
    assert out[P.PATHOGENS] == pytest.approx(1e6 * (1.0 - kill))


def test_phosphorus_removal_forms_precipitate() -> None:
    out = _out(UnitKind.PHOSPHORUS_REMOVAL)
    assert out[P.P] == pytest.approx(2.5)
    assert out[P.TSS] == pytest.approx(200.0 + 2.0 * 7.5)


def test_electrocoagulation_raises_ph_and_ec() -> None:
    out = _out(UnitKind.ELECTROCOAGULATION)
    assert out[P.METALS] == pytest.approx(5.0 * 0.2)
    assert out[P.TSS] == pytest.approx(200.0 * 0.4)
    assert out[P.PH] == pytest.approx(7.0)
    assert out[P.EC] == pytest.approx(1700.0)


def test_reverse_osmosis_desalinates() -> None:
    out = _out(UnitKind.REVERSE_OSMOSIS)
    assert out[P.SALINITY] == pytest.approx(0.5 * 0.05)
    assert out[P.EC] == pytest.approx(1500.0 * 0.05)


def test_heat_exchanger_sets_operating_temperature() -> None:
    out = _out(UnitKind.HEAT_EXCHANGER, temperature_c=35.0)
    assert out[P.TEMP] == 35.0


@pytest.mark.parametrize("kind", [UnitKind.PUMP, UnitKind.FLOW_METER, UnitKind.SOURCE, UnitKind.SINK])
def test_pass_through_units(kind: UnitKind) -> None:
    inlet = WaterSample.from_mapping({"bod": 123.0})
    assert _out(kind, inlet) == inlet


@pytest.mark.parametrize("kind", sorted(SEPARATION_TABLE, key=lambda k: k.value))
def test_separation_only_touches_targeted_parameters(kind: UnitKind) -> None:
    inlet = WaterSample()
    out = _out(kind, inlet)
    for p in P:
        eff = SEPARATION_TABLE[kind].get(p)
        if eff is None:
            assert out[p] == inlet[p]
        else:
            assert out[p] == pytest.approx(inlet[p] * (1.0 - eff))


@pytest.mark.parametrize("kind", treatment_kinds())
def test_removed_parameters_never_increase(kind: UnitKind) -> None:
    inlet = WaterSample()
    out = _out(kind, inlet)
    for p in CATALOG[kind].removes:
        assert out[p] < inlet[p], f"{kind.value} should lower {p.value}"


@pytest.mark.parametrize("kind", treatment_kinds())
def test_concentrations_stay_non_negative(kind: UnitKind) -> None:
    out = _out(kind)
    for p, v in out.items():
        assert v >= 0.0, f"{kind.value} produced negative {p.value}"


@pytest.mark.parametrize("kind", treatment_kinds())
def test_removed_parameters_never_increase_for_varied_inlets(kind: UnitKind) -> None:
    rng = random.Random(1234)
    for _ in range(50):
        values = {p: rng.uniform(0.0, 2.0 * v) for p, v in DEFAULT_INFLUENT.items()}
        values[P.TEMP] = rng.uniform(5.0, 35.0)
        inlet = WaterSample.from_mapping(values)
        out = _out(kind, inlet)
        for p in CATALOG[kind].removes:
            assert out[p] <= inlet[p], f"{kind.value} raised {p.value} for {inlet!r}"
        for p, v in out.items():
            assert v >= 0.0, f"{kind.value} produced negative {p.value} for {inlet!r}"


def test_override_replaces_builtin_result_for_that_parameter_only() -> None:
    inlet = WaterSample()
    plain = _out(UnitKind.PRIMARY_SEDIMENTATION, inlet)
    over = _out(UnitKind.PRIMARY_SEDIMENTATION, inlet, removal_overrides={P.TSS: 0.1})

    assert over[P.TSS] == pytest.approx(200.0 * 0.9)
    assert over[P.BOD] == plain[P.BOD]


def test_negative_override_increases_parameter() -> None:
    out = _out(UnitKind.PUMP, removal_overrides={P.NO3: -0.5})
    assert out[P.NO3] == pytest.approx(5.0 * 1.5)


def test_override_applies_to_non_targeted_parameter() -> None:
    out = _out(UnitKind.FILTRATION, removal_overrides={"metals": 1.0})
    assert out[P.METALS] == 0.0
