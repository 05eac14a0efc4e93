"""Business rules deciding which candidates may share a truck."""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Sequence

from ...models.domain import Industry, ShipmentRecord

logger = logging.getLogger(__name__)

# 44,000 lbs
VEHICLE_CAPACITY_KG = 20_000
MAX_BRACKET_SCORE = 5
MIN_BRACKET_SCORE = 3

INDUSTRY_COMPATIBILITY: Dict[Industry, FrozenSet[Industry]] = {
    Industry.FOOD: frozenset({Industry.FOOD, Industry.CONSUMER_GOODS}),
    Industry.HAZARDOUS: frozenset({Industry.HAZARDOUS}),
    Industry.CONSUMER_GOODS: frozenset({Industry.CONSUMER_GOODS, Industry.FOOD, Industry.ELECTRONICS}),
    Industry.ELECTRONICS: frozenset({Industry.ELECTRONICS, Industry.CONSUMER_GOODS}),
    Industry.AUTOMOTIVE: frozenset({Industry.AUTOMOTIVE, Industry.INDUSTRIAL}),
    Industry.INDUSTRIAL: frozenset({Industry.INDUSTRIAL, Industry.AUTOMOTIVE, Industry.RAW_MATERIALS}),
    Industry.RAW_MATERIALS: frozenset({Industry.RAW_MATERIALS, Industry.INDUSTRIAL}),
}


def compatible_industries(industry: str) -> FrozenSet[str]:
    """Industries allowed on the same truck; unknown industries only pair with themselves."""

    try:
        key = Industry(industry)
    except ValueError:
        return frozenset({industry})
    return frozenset(item.value for item in INDUSTRY_COMPATIBILITY[key])


def revenue_bracket_score(candidate_bracket: int, request_bracket: int) -> int:
    return MAX_BRACKET_SCORE - abs(candidate_bracket - request_bracket)


class CompatibilityFilter:
    """Narrows corridor candidates by industry, pairwise capacity and bracket affinity."""

    def __init__(
        self,
        capacity_kg: float = VEHICLE_CAPACITY_KG,
        min_bracket_score: int = MIN_BRACKET_SCORE,
    ) -> None:
        self.capacity_kg = capacity_kg
        self.min_bracket_score = min_bracket_score

    def filter(
        self,
        candidates: Sequence[ShipmentRecord],
        industry_type: str,
        new_weight: float,
        revenue_bracket: int,
    ) -> List[ShipmentRecord]:
        allowed = compatible_industries(industry_type)
        kept: list[ShipmentRecord] = []
        for candidate in candidates:
            if candidate.industry not in allowed:
                logger.debug(f"Rejected {candidate.id}: industry {candidate.industry} incompatible with {industry_type}")
                continue
            # Checked against the new request only, not the running group total.
            if candidate.weight + new_weight > self.capacity_kg:
                logger.debug(f"Rejected {candidate.id}: {candidate.weight + new_weight} kg exceeds capacity")
                continue
            if revenue_bracket_score(candidate.revenue_bracket, revenue_bracket) < self.min_bracket_score:
                logger.debug(f"Rejected {candidate.id}: revenue bracket {candidate.revenue_bracket} too far from {revenue_bracket}")
                continue
            kept.append(candidate)
        return kept
