"""
Blueprint API - FastAPI router for blueprint price maintenance.
"""
import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict

from .state import state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blueprint", tags=["blueprint"])


# Pydantic models for API
class PriceUpdate(BaseModel):
    """One option / component / system price update."""
    model_config = ConfigDict(extra="ignore")

    target: Literal['option', 'component', 'system']
    id: str
    unitPrice: Optional[Any] = None
    basePrice: Optional[Any] = None
    baseFee: Optional[Any] = None
    salePrice: Optional[Any] = None
    defaultQuantity: Optional[Any] = None
    pricingFormula: Optional[Any] = None
    label: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class UpdateRequest(BaseModel):
    """Request model for a batch of price updates."""
    updates: list[PriceUpdate]


class AppliedResponse(BaseModel):
    target: str
    id: str
    fields: list[str]


class UpdateResponse(BaseModel):
    """Response model for applied updates."""
    success: bool
    applied: list[AppliedResponse]
    warnings: list[str]
    fallback_notes: int


# Endpoints

@router.get("")
async def get_blueprint():
    """Current blueprint summary with its resolved fallback notes."""
    summary = state.blueprint_service.get_summary()
    if summary is None:
        raise HTTPException(status_code=404, detail="Blueprint not found")
    return {
        "success": True,
        "data": {
            "summary": summary,
            "stats": state.blueprint_service.get_stats(),
            "notes": list(state.catalog.notes),
        },
    }


@router.patch("", response_model=UpdateResponse)
async def update_blueprint(request: UpdateRequest):
    """Apply price updates, persist the blueprint and reload the engine."""
    # Only fields present in the request body are applied,
    # including those explicitly set to None (null).
    updates = [update.model_dump(exclude_unset=True) for update in request.updates]

    validation = state.blueprint_service.validate_updates(updates)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    try:
        applied = state.blueprint_service.apply_updates(updates)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    fallback_notes = state.reload()
    return UpdateResponse(
        success=True,
        applied=[AppliedResponse(target=a.target, id=a.id, fields=a.fields) for a in applied],
        warnings=validation.warnings,
        fallback_notes=fallback_notes,
    )


@router.post("/reload")
async def reload_blueprint():
    """Force a re-read of the blueprint file."""
    try:
        fallback_notes = state.reload()
    except Exception as e:
        logger.exception("Blueprint reload failed")
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "success": True,
        "blueprint_loaded": state.blueprint is not None,
        "fallback_notes": fallback_notes,
    }
