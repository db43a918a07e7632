# tests/test_pipeline.py
from __future__ import annotations

import math

import pytest

from wwtpsim.core.errors import InvalidIndex, InvalidUnitKind, StaleHandle
from wwtpsim.core.pipeline import Pipeline
from wwtpsim.core.types import Parameter as P
from wwtpsim.core.types import UnitConfig, UnitKind, WaterSample
from wwtpsim.treatment import apply_transfer


def test_new_pipeline_has_only_endpoints() -> None:
    pl = Pipeline()
    assert len(pl) == 2
    assert pl.names() == ["Inlet", "Outlet"]
    assert pl.sink_index == 1
    assert pl.treatment_units == []
    assert pl.connections() == [(pl.source.handle, pl.sink.handle)]


def test_step_on_empty_train_passes_influent_through() -> None:
    influent = WaterSample.from_mapping({"bod": 111.0})
    pl = Pipeline(influent=influent)
    pl.step(0.016)
    assert pl.effluent == influent
    assert pl.ticks == 1
    assert pl.elapsed == pytest.approx(0.016)


def test_single_aeration_tank_scenario() -> None:
    pl = Pipeline()
    h = pl.insert(UnitKind.AERATION_TANK, config=UnitConfig(hrt_h=10.0, temperature_c=20.0))
    pl.step(0.016)

    unit = pl.get(h)
    assert unit.outlet[P.BOD] == pytest.approx(300.0 * math.exp(-2.0))
    assert pl.effluent[P.BOD] == pytest.approx(40.6, abs=0.01)


def test_no_same_tick_cascading() -> None:
    pl = Pipeline()
    a = pl.insert(UnitKind.PRIMARY_SEDIMENTATION)
    b = pl.insert(UnitKind.AERATION_TANK)
    c = pl.insert(UnitKind.FILTRATION)

    a_out_before = pl.get(a).outlet.copy()
    pl.step(0.016)

    expected_b = apply_transfer(UnitKind.AERATION_TANK, a_out_before, pl.get(b).config)
    assert pl.get(b).outlet == expected_b
    # c saw b's pre-step outlet, which was a copy of the raw influent
    assert pl.get(c).outlet[P.BOD] == pytest.approx(300.0)


def test_chain_converges_after_n_ticks() -> None:
    pl = Pipeline()
    kinds = [UnitKind.PRIMARY_SEDIMENTATION, UnitKind.AERATION_TANK, UnitKind.SECONDARY_CLARIFIER]
    for k in kinds:
        pl.insert(k)

    for _ in range(len(kinds)):
        pl.step(0.016)

    expected = pl.source.outlet
    for u in pl.treatment_units:
        expected = apply_transfer(u.kind, expected, u.config)
    assert pl.effluent == expected

    settled = pl.effluent
    pl.step(0.016)
    assert pl.effluent == settled


def test_pass_through_train_is_identity() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.PUMP)
    pl.insert(UnitKind.FLOW_METER)
    for _ in range(3):
        pl.step(0.016)
    assert pl.effluent == pl.source.outlet


def test_insert_positions_and_defaults() -> None:
    pl = Pipeline()
    first = pl.insert(UnitKind.FILTRATION)
    head = pl.insert("Primary Clarifier", at_index=1)
    tail = pl.insert(UnitKind.PUMP, at_index=pl.sink_index)

    assert pl.handles() == [pl.source.handle, head, first, tail, pl.sink.handle]
    assert pl.names() == ["Inlet", "Primary Clarifier", "Filtration", "Pump", "Outlet"]
    assert pl.index_of(first) == 2
    assert pl.revision == 3


def test_new_unit_starts_from_predecessor_outlet() -> None:
    pl = Pipeline(influent=WaterSample.from_mapping({"tss": 42.0}))
    h = pl.insert(UnitKind.DRYING_BED)
    unit = pl.get(h)
    assert unit.inlet[P.TSS] == 42.0
    assert unit.outlet == unit.inlet
    assert unit.inlet is not pl.source.outlet


@pytest.mark.parametrize("bad", [0, -1, 3, True, "1"])
def test_insert_out_of_range(bad) -> None:
    pl = Pipeline()
    pl.insert(UnitKind.PUMP)
    with pytest.raises(InvalidIndex) as ei:
        pl.insert(UnitKind.PUMP, at_index=bad)
    assert ei.value.valid_range == (1, 2)
    assert len(pl) == 3


@pytest.mark.parametrize("kind", [UnitKind.SOURCE, UnitKind.SINK, "not a unit"])
def test_insert_rejects_endpoints_and_unknown_kinds(kind) -> None:
    pl = Pipeline()
    with pytest.raises(InvalidUnitKind):
        pl.insert(kind)
    assert len(pl) == 2


def test_remove_endpoints_is_invalid() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.PUMP)
    for bad in (0, pl.sink_index, 99):
        with pytest.raises(InvalidIndex):
            pl.remove(bad)
    assert len(pl) == 3


def test_remove_on_empty_train() -> None:
    pl = Pipeline()
    with pytest.raises(InvalidIndex) as ei:
        pl.remove(1)
    assert ei.value.valid_range is None
    assert "empty" in str(ei.value)


def test_insert_then_remove_restores_names() -> None:
    pl = Pipeline()
    pl.insert(UnitKind.AERATION_TANK)
    pl.insert(UnitKind.FILTRATION)
    before = pl.names()

    pl.insert(UnitKind.UV_DISINFECTION, at_index=2)
    removed = pl.remove(2)

    assert removed.kind is UnitKind.UV_DISINFECTION
    assert pl.names() == before


def test_remove_relinks_chain_and_stales_handle() -> None:
    pl = Pipeline()
    a = pl.insert(UnitKind.PUMP)
    b = pl.insert(UnitKind.FILTRATION)
    c = pl.insert(UnitKind.FLOW_METER)

    pl.remove_handle(b)

    assert pl.connections() == [(pl.source.handle, a), (a, c), (c, pl.sink.handle)]
    with pytest.raises(StaleHandle):
        pl.get(b)
    with pytest.raises(StaleHandle):
        pl.index_of(b)


def test_handles_are_never_reused() -> None:
    pl = Pipeline()
    a = pl.insert(UnitKind.PUMP)
    pl.remove(1)
    b = pl.insert(UnitKind.PUMP)
    assert a != b


def test_reset_keeps_endpoints() -> None:
    pl = Pipeline()
    src, sink = pl.source.handle, pl.sink.handle
    pl.insert(UnitKind.PUMP)
    pl.insert(UnitKind.FILTRATION)
    pl.reset()
    assert pl.handles() == [src, sink]


def test_set_influent_partial_mapping() -> None:
    pl = Pipeline()
    pl.set_influent({"bod": 50.0, P.NH4: 10.0})
    assert pl.source.outlet[P.BOD] == 50.0
    assert pl.source.outlet[P.NH4] == 10.0
    assert pl.source.outlet[P.COD] == 600.0

    pl.step(0.016)
    assert pl.effluent[P.BOD] == 50.0


def test_source_keeps_influent_across_steps() -> None:
    influent = WaterSample.from_mapping({"bod": 77.0})
    pl = Pipeline(influent=influent)
    pl.insert(UnitKind.AERATION_TANK)
    for _ in range(5):
        pl.step(0.016)
    assert pl.source.outlet == influent


def test_negative_dt_rejected() -> None:
    pl = Pipeline()
    with pytest.raises(ValueError):
        pl.step(-0.1)
    assert pl.ticks == 0


def test_insert_copies_config() -> None:
    cfg = UnitConfig(hrt_h=3.0)
    pl = Pipeline()
    h = pl.insert(UnitKind.AERATION_TANK, config=cfg)
    cfg.hrt_h = 99.0
    assert pl.get(h).config.hrt_h == 3.0
