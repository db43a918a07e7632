# wwtpsim/core/registry.py
"""
Transfer-function registry for wwtpsim.

This module maps a UnitKind to the pure function that turns a unit's inlet
sample into its outlet sample.

Example usage:

    from wwtpsim.core.registry import get_transfer

    fn = get_transfer(UnitKind.AERATION_TANK)
    outlet = fn(inlet, config)

Formula modules should call:

    @register_transfer(UnitKind.AERATION_TANK)
    def aeration_tank(inlet, cfg): ...

at import time (wwtpsim/treatment/__init__.py imports them).
"""

from __future__ import annotations

from typing import Callable, Dict, List

from wwtpsim.core.errors import InvalidUnitKind
from wwtpsim.core.types import UnitConfig, UnitKind, WaterSample


# Type alias for transfer signature
TransferFn = Callable[[WaterSample, UnitConfig], WaterSample]


# Internal storage
_TRANSFERS: Dict[UnitKind, TransferFn] = {}


# ----------------------------
# Public API
# ----------------------------

def register_transfer(kind: UnitKind) -> Callable[[TransferFn], TransferFn]:
    """
    Decorator registering the transfer function for a unit kind.

    Each kind has exactly one function; registering twice is an error.
    """
    if not isinstance(kind, UnitKind):
        raise TypeError("register_transfer expects a UnitKind")

    def deco(fn: TransferFn) -> TransferFn:
        if not callable(fn):
            raise TypeError("Transfer function must be callable")
        if kind in _TRANSFERS:
            raise RuntimeError(f"Transfer for '{kind.value}' already registered")
        _TRANSFERS[kind] = fn
        return fn

    return deco


def get_transfer(kind: UnitKind) -> TransferFn:
    """
    Retrieve a registered transfer function.

    Raises InvalidUnitKind if the kind has no registered formula.
    """
    if kind not in _TRANSFERS:
        available = ", ".join(sorted(k.value for k in _TRANSFERS)) or "(none)"
        raise InvalidUnitKind(f"No transfer function for '{kind}'. Registered kinds: {available}")
    return _TRANSFERS[kind]


def registered_kinds() -> List[UnitKind]:
    """
    Return registered kinds in enumeration order.
    """
    return [k for k in UnitKind if k in _TRANSFERS]
