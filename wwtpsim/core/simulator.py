# wwtpsim/core/simulator.py
"""
Run control around a Pipeline and its HistoryStore.

The host's frame/timer loop calls advance(elapsed_seconds) at whatever
cadence it likes; while running, each call is one tick of
dt = elapsed * speed followed by a history record. Batch callers (the CLI,
tests) use run(ticks) instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from wwtpsim.core.history import HistoryStore
from wwtpsim.core.logging_utils import get_logger
from wwtpsim.core.pipeline import Pipeline
from wwtpsim.treatment.presets import load_preset

logger = get_logger(__name__)

SIMULATION_TIME_STEP = 0.016  # seconds per tick at speed 1.0
MIN_SPEED = 0.1
MAX_SPEED = 5.0


def _check_speed(speed: float) -> float:
    s = float(speed)
    if not (MIN_SPEED <= s <= MAX_SPEED):
        raise ValueError(f"speed must be within [{MIN_SPEED}, {MAX_SPEED}], got {s}")
    return s


@dataclass
class Simulator:
    pipeline: Pipeline = field(default_factory=Pipeline)
    history: HistoryStore = field(default_factory=HistoryStore)
    speed: float = 1.0
    running: bool = False

    def __post_init__(self) -> None:
        self.speed = _check_speed(self.speed)

    def start(self) -> None:
        self.running = True
        logger.info("simulation started (speed x%.2f)", self.speed)

    def stop(self) -> None:
        self.running = False
        logger.info("simulation stopped after %d ticks", self.pipeline.ticks)

    def set_speed(self, speed: float) -> None:
        self.speed = _check_speed(speed)

    def tick(self, dt: float = SIMULATION_TIME_STEP) -> None:
        self.pipeline.step(dt)
        self.history.record(self.pipeline)

    def advance(self, elapsed_s: float) -> bool:
        """
        One real-time frame. Returns True if a tick ran (i.e. while running).
        """
        if not self.running:
            return False
        self.tick(float(elapsed_s) * self.speed)
        return True

    def run(self, ticks: int, dt: Optional[float] = None) -> None:
        """Step `ticks` times regardless of the running flag."""
        if isinstance(ticks, bool) or not isinstance(ticks, int) or ticks < 0:
            raise ValueError(f"ticks must be a non-negative integer, got {ticks!r}")
        step_dt = SIMULATION_TIME_STEP * self.speed if dt is None else float(dt)
        for _ in range(ticks):
            self.tick(step_dt)
        logger.debug("ran %d ticks (dt=%.4g)", ticks, step_dt)

    def reset(self) -> None:
        self.pipeline.reset()
        self.history.clear()

    def load_preset(self, name: str = "default") -> None:
        load_preset(self.pipeline, name)
        self.history.clear()
