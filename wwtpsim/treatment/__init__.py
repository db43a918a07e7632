from wwtpsim.treatment import transfer  # noqa: F401  (registers transfer functions)
from wwtpsim.treatment.catalog import CATALOG, Family, UnitSpec, get_spec, resolve_kind, treatment_kinds
from wwtpsim.treatment.transfer import apply_transfer

__all__ = [
    "CATALOG",
    "Family",
    "UnitSpec",
    "apply_transfer",
    "get_spec",
    "resolve_kind",
    "treatment_kinds",
]
