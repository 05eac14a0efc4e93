"""Load matching endpoints."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ...errors import InvalidShipment, MatchingFailed, ShipmentNotFound, StorageUnavailable
from ...schemas.matching import (
    CostBreakdownModel,
    MatchResultModel,
    SaveLoadGroupRequest,
    SaveLoadGroupResponse,
    ShipmentRequestModel,
)
from ...services.factory import build_engine
from ...services.matching.engine import LoadMatchingEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["matching"])


@lru_cache()
def get_engine() -> LoadMatchingEngine:
    return build_engine()


def shutdown_engine() -> None:
    """Release the cached engine's event bus, flushing pending messages."""
    if get_engine.cache_info().currsize == 0:
        return
    get_engine().publisher.close()
    get_engine.cache_clear()


@router.post("/matches", response_model=MatchResultModel, status_code=status.HTTP_200_OK)
def find_matches(
    payload: ShipmentRequestModel,
    engine: LoadMatchingEngine = Depends(get_engine),
) -> MatchResultModel:
    try:
        result = engine.find_matching_loads(payload.to_domain())
    except InvalidShipment as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except MatchingFailed as exc:
        logger.exception(f"Load matching failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Load matching is temporarily unavailable.",
        ) from exc
    return MatchResultModel.model_validate(result)


@router.post("/load-groups", response_model=SaveLoadGroupResponse, status_code=status.HTTP_201_CREATED)
def save_load_group(
    payload: SaveLoadGroupRequest,
    engine: LoadMatchingEngine = Depends(get_engine),
) -> SaveLoadGroupResponse:
    try:
        group_id = engine.save_matched_load_group(
            payload.load_group.to_domain(),
            [split.to_domain() for split in payload.cost_split],
            new_shipment_id=payload.new_shipment_id,
            origin=payload.origin.to_domain() if payload.origin else None,
            destination=payload.destination.to_domain() if payload.destination else None,
        )
    except InvalidShipment as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        logger.exception(f"Saving load group {payload.load_group.id} failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is temporarily unavailable.",
        ) from exc
    return SaveLoadGroupResponse(group_id=group_id)


@router.get("/shipments/{shipment_id}/cost-breakdown", response_model=CostBreakdownModel)
def get_cost_breakdown(
    shipment_id: str = Path(..., description="Persisted shipment identifier"),
    engine: LoadMatchingEngine = Depends(get_engine),
) -> CostBreakdownModel:
    try:
        breakdown = engine.get_cost_breakdown(shipment_id)
    except ShipmentNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StorageUnavailable as exc:
        logger.exception(f"Cost breakdown for {shipment_id} failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is temporarily unavailable.",
        ) from exc
    return CostBreakdownModel.model_validate(breakdown)
