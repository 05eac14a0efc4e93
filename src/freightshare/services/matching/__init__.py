"""Load matching pipeline."""

from .assembler import LoadGroupAssembler
from .compatibility import CompatibilityFilter, compatible_industries, revenue_bracket_score
from .corridor import CORRIDOR_BUFFER_METERS, GeoCorridorQuery
from .engine import LoadMatchingEngine, validate_request

__all__ = [
    "CompatibilityFilter",
    "compatible_industries",
    "revenue_bracket_score",
    "GeoCorridorQuery",
    "CORRIDOR_BUFFER_METERS",
    "LoadGroupAssembler",
    "LoadMatchingEngine",
    "validate_request",
]
