"""Domain models for shipments, load groups and cost splits."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

NEW_REQUEST_ID = "new-request"


class Industry(str, Enum):
    FOOD = "food"
    HAZARDOUS = "hazardous"
    CONSUMER_GOODS = "consumer_goods"
    ELECTRONICS = "electronics"
    AUTOMOTIVE = "automotive"
    INDUSTRIAL = "industrial"
    RAW_MATERIALS = "raw_materials"


class ShipmentStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"


@dataclass(slots=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(slots=True)
class ShipmentRequest:
    """Inbound ask from a company looking for a shared truck."""

    origin: GeoPoint
    destination: GeoPoint
    weight: float
    company_id: str
    industry_type: str
    revenue_bracket: int
    distance_meters: Optional[float] = None


@dataclass(slots=True)
class ShipmentRecord:
    """Persisted shipment as returned by the storage collaborator."""

    id: str
    weight: float
    company_id: str
    industry: str
    revenue_bracket: int
    status: str = ShipmentStatus.PENDING.value
    origin: Optional[GeoPoint] = None
    destination: Optional[GeoPoint] = None


@dataclass(slots=True)
class Participant:
    shipment_id: str
    company_id: str
    weight: float
    revenue_bracket: int


@dataclass(slots=True)
class LoadGroup:
    """Shipments proposed to share one truck.

    ``shipment_ids`` never contains the new-request placeholder, while
    ``total_weight`` includes the new request's weight.
    """

    id: str
    shipment_ids: List[str]
    companies: List[str]
    total_weight: float
    route_geometry: Optional[str] = None
    distance_meters: Optional[float] = None


@dataclass(slots=True)
class CostSplit:
    shipment_id: str
    company_id: str
    cost: float


@dataclass(slots=True)
class MatchResult:
    matches: List[ShipmentRecord]
    load_group: LoadGroup
    cost_split: List[CostSplit]


@dataclass(slots=True)
class PersistedGroup:
    id: str
    shipment_ids: List[str]
    total_weight: float
    total_cost: float
    company_ids: List[str] = field(default_factory=list)
    distance_meters: Optional[float] = None
    route_geometry: Optional[str] = None


@dataclass(slots=True)
class PersistedCostSplit:
    shipment_id: str
    company_id: str
    cost: float
    group_id: str


@dataclass(slots=True)
class CostBreakdown:
    """Savings report for one shipment inside a persisted group."""

    shipment_id: str
    total_group_cost: float
    company_cost: float
    individual_cost: float
    savings: float
    savings_percentage: str
    breakdown: List[CostSplit] = field(default_factory=list)
