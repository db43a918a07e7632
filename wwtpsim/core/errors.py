# wwtpsim/core/errors.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Tuple


@dataclass
class ConfigError(Exception):
    path: str
    message: str
    hint: Optional[str] = None

    def __str__(self) -> str:
        out = [f"Config error at {self.path}:", f"  {self.message}"]
        if self.hint:
            out.append("hint:")
            out.append(f"  {self.hint}")
        return "\n".join(out)


class SimulationError(Exception):
    """Base class for errors raised by the simulation engine."""


class InvalidIndex(SimulationError, IndexError):
    """
    Topology mutation outside the treatment train.

    valid_range is the inclusive (lo, hi) range accepted by the operation,
    or None when no index is currently valid (e.g. remove on an empty train).
    """

    def __init__(self, index: Any, valid_range: Optional[Tuple[int, int]], operation: str) -> None:
        self.index = index
        self.valid_range = valid_range
        self.operation = operation
        if valid_range is None:
            msg = f"{operation}: index {index!r} is invalid, the treatment train is empty"
        else:
            lo, hi = valid_range
            msg = f"{operation}: index {index!r} outside valid range [{lo}, {hi}]"
        super().__init__(msg)

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidParameter(SimulationError, KeyError):
    """Key that is not a member of the closed Parameter enumeration."""

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"unknown water parameter: {key!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidUnitKind(SimulationError, ValueError):
    """Unknown unit kind, or a kind that cannot be placed in the treatment train."""


class StaleHandle(SimulationError, KeyError):
    """Handle of a unit that is no longer part of the pipeline."""

    def __init__(self, handle: Any) -> None:
        self.handle = handle
        super().__init__(f"unit handle {handle!r} is not in the pipeline (removed?)")

    def __str__(self) -> str:
        return str(self.args[0])
