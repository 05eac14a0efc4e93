"""Load group assembly from filtered candidates and the new request."""

from __future__ import annotations

import secrets
import time
from typing import List, Sequence

from ...errors import InvalidShipment
from ...models.domain import NEW_REQUEST_ID, LoadGroup, Participant, ShipmentRecord, ShipmentRequest


def _new_group_id() -> str:
    return f"group-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


class LoadGroupAssembler:
    """Combines matched shipments and the not-yet-persisted request into one group."""

    def participants(self, candidates: Sequence[ShipmentRecord], request: ShipmentRequest) -> List[Participant]:
        if request.weight <= 0:
            raise InvalidShipment(f"Request weight must be positive, got {request.weight}.")
        members = []
        for candidate in candidates:
            members.append(
                Participant(
                    shipment_id=candidate.id,
                    company_id=candidate.company_id,
                    weight=candidate.weight,
                    revenue_bracket=candidate.revenue_bracket,
                )
            )
        members.append(
            Participant(
                shipment_id=NEW_REQUEST_ID,
                company_id=request.company_id,
                weight=request.weight,
                revenue_bracket=request.revenue_bracket,
            )
        )
        return members

    def assemble(self, candidates: Sequence[ShipmentRecord], request: ShipmentRequest) -> LoadGroup:
        members = self.participants(candidates, request)
        companies: list[str] = []
        for member in members:
            if member.company_id not in companies:
                companies.append(member.company_id)
        return LoadGroup(
            id=_new_group_id(),
            shipment_ids=[member.shipment_id for member in members if member.shipment_id != NEW_REQUEST_ID],
            companies=companies,
            total_weight=sum(member.weight for member in members),
            route_geometry=None,
            distance_meters=request.distance_meters,
        )
