"""Shared transport cost calculation and allocation among participants.

Base cost follows standard line-haul rates: $1.50 per mile plus $0.10 per kg.
The allocation weights each participant 70% by share of the load weight and
30% by a revenue-bracket factor, so smaller companies get a discount and the
largest pay a premium.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from ...errors import InvalidShipment
from ...models.domain import CostSplit, Participant

METERS_PER_MILE = 1609
RATE_PER_MILE = 1.50
RATE_PER_KG = 0.10
DEFAULT_DISTANCE_MILES = 500
NON_SHARED_PREMIUM = 1.25

WEIGHT_SHARE = 0.7
BRACKET_SHARE = 0.3
DEFAULT_BRACKET_FACTOR = 1.0
REVENUE_BRACKET_FACTORS: Dict[int, float] = {
    1: 0.85,
    2: 0.90,
    3: 1.00,
    4: 1.10,
    5: 1.20,
}

CENTS = Decimal("0.01")


def round_half_up(value: float, places: Decimal = CENTS) -> float:
    return float(Decimal(str(value)).quantize(places, rounding=ROUND_HALF_UP))


def bracket_factor(revenue_bracket: int) -> float:
    return REVENUE_BRACKET_FACTORS.get(revenue_bracket, DEFAULT_BRACKET_FACTOR)


class CostAllocator:
    def base_cost(self, distance_meters: Optional[float], total_weight_kg: float) -> float:
        """Undiscounted cost; unknown distance falls back to 500 miles."""

        if distance_meters is None:
            distance_miles = DEFAULT_DISTANCE_MILES
        else:
            distance_miles = distance_meters / METERS_PER_MILE
        return distance_miles * RATE_PER_MILE + total_weight_kg * RATE_PER_KG

    def allocate(
        self,
        participants: Sequence[Participant],
        total_cost: float,
        total_weight: float,
    ) -> List[CostSplit]:
        if not participants:
            return []
        if total_weight <= 0:
            raise InvalidShipment(f"Total weight must be positive to allocate costs, got {total_weight}.")

        factors = [
            WEIGHT_SHARE * (participant.weight / total_weight)
            + BRACKET_SHARE * bracket_factor(participant.revenue_bracket)
            for participant in participants
        ]
        factor_sum = sum(factors)
        return [
            CostSplit(
                shipment_id=participant.shipment_id,
                company_id=participant.company_id,
                cost=round_half_up(total_cost * (factor / factor_sum)),
            )
            for participant, factor in zip(participants, factors)
        ]

    def individual_cost(self, weight_kg: float, distance_meters: Optional[float]) -> float:
        """What the shipment would cost moving alone, without economies of scale."""

        return self.base_cost(distance_meters, weight_kg) * NON_SHARED_PREMIUM

    def savings(self, individual_cost: float, shared_cost: float) -> Tuple[float, str]:
        """Return ``(savings, percentage)`` with the percentage as two-decimal text."""

        savings = individual_cost - shared_cost
        if individual_cost == 0:
            return savings, "0.00"
        percentage = Decimal(str(savings)) / Decimal(str(individual_cost)) * 100
        return savings, str(percentage.quantize(CENTS, rounding=ROUND_HALF_UP))
