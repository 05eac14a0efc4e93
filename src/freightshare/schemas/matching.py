"""Load matching API schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import CostSplit, GeoPoint, LoadGroup, ShipmentRequest


class GeoPointModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class ShipmentRequestModel(BaseModel):
    origin: GeoPointModel
    destination: GeoPointModel
    weight: float = Field(..., gt=0, description="Shipment weight in kg")
    company_id: str = Field(..., alias="companyId", min_length=1)
    industry_type: str = Field(..., alias="industryType", min_length=1)
    revenue_bracket: int = Field(..., alias="revenueBracket", ge=1, le=5)
    distance_meters: Optional[float] = Field(None, alias="distanceMeters", ge=0)

    model_config = ConfigDict(populate_by_name=True)

    def to_domain(self) -> ShipmentRequest:
        return ShipmentRequest(
            origin=self.origin.to_domain(),
            destination=self.destination.to_domain(),
            weight=self.weight,
            company_id=self.company_id,
            industry_type=self.industry_type,
            revenue_bracket=self.revenue_bracket,
            distance_meters=self.distance_meters,
        )


class ShipmentModel(BaseModel):
    id: str
    weight: float
    company_id: str = Field(..., alias="companyId")
    industry: str
    revenue_bracket: int = Field(..., alias="revenueBracket")
    status: str
    origin: Optional[GeoPointModel] = None
    destination: Optional[GeoPointModel] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class LoadGroupModel(BaseModel):
    id: str
    shipment_ids: List[str] = Field(..., alias="shipmentIds")
    companies: List[str]
    total_weight: float = Field(..., alias="totalWeight")
    route_geometry: Optional[str] = Field(None, alias="routeGeometry")
    distance_meters: Optional[float] = Field(None, alias="distanceMeters")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    def to_domain(self) -> LoadGroup:
        return LoadGroup(
            id=self.id,
            shipment_ids=list(self.shipment_ids),
            companies=list(self.companies),
            total_weight=self.total_weight,
            route_geometry=self.route_geometry,
            distance_meters=self.distance_meters,
        )


class CostSplitModel(BaseModel):
    shipment_id: str = Field(..., alias="shipmentId")
    company_id: str = Field(..., alias="companyId")
    cost: float

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    def to_domain(self) -> CostSplit:
        return CostSplit(shipment_id=self.shipment_id, company_id=self.company_id, cost=self.cost)


class MatchResultModel(BaseModel):
    matches: List[ShipmentModel]
    load_group: LoadGroupModel = Field(..., alias="loadGroup")
    cost_split: List[CostSplitModel] = Field(..., alias="costSplit")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class SaveLoadGroupRequest(BaseModel):
    load_group: LoadGroupModel = Field(..., alias="loadGroup")
    cost_split: List[CostSplitModel] = Field(..., alias="costSplit")
    new_shipment_id: Optional[str] = Field(
        None,
        alias="newShipmentId",
        description="Persisted id of the requesting shipment, replacing the 'new-request' placeholder.",
    )
    origin: Optional[GeoPointModel] = None
    destination: Optional[GeoPointModel] = None

    model_config = ConfigDict(populate_by_name=True)


class SaveLoadGroupResponse(BaseModel):
    group_id: str = Field(..., alias="groupId")

    model_config = ConfigDict(populate_by_name=True)


class CostBreakdownModel(BaseModel):
    shipment_id: str = Field(..., alias="shipmentId")
    total_group_cost: float = Field(..., alias="totalGroupCost")
    company_cost: float = Field(..., alias="companyCost")
    individual_cost: float = Field(..., alias="individualCost")
    savings: float
    savings_percentage: str = Field(..., alias="savingsPercentage")
    breakdown: List[CostSplitModel]

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)
