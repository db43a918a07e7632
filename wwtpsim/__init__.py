# wwtpsim/__init__.py
from wwtpsim.core.errors import ConfigError, InvalidIndex, InvalidParameter, InvalidUnitKind, SimulationError, StaleHandle
from wwtpsim.core.history import HistoryStore
from wwtpsim.core.pipeline import Pipeline
from wwtpsim.core.simulator import Simulator
from wwtpsim.core.types import Parameter, UnitConfig, UnitKind, WaterSample

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "HistoryStore",
    "InvalidIndex",
    "InvalidParameter",
    "InvalidUnitKind",
    "Parameter",
    "Pipeline",
    "SimulationError",
    "Simulator",
    "StaleHandle",
    "UnitConfig",
    "UnitKind",
    "WaterSample",
]
