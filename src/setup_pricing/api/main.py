import logging
from dataclasses import replace
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from setup_pricing import __version__
from setup_pricing.config.settings import get_settings
from setup_pricing.data.catalog_export import catalog_to_frame
from setup_pricing.engine.models import SYSTEMS, ConfiguratorState
from setup_pricing.engine.price_rules import format_discount_percent, format_inr
from setup_pricing.engine.recommendation import (
    apply_recommendations,
    cable_option_states,
    capacity_option_states,
    recommended_power_capacity,
    recommended_recorder_capacity,
)
from setup_pricing.engine.session import clamp_camera_count, default_state
from setup_pricing.api.blueprint_api import router as blueprint_router
from setup_pricing.api.state import engine, state

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Setup Pricing API",
    description="Quote API for custom CCTV setups",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include blueprint maintenance API
app.include_router(blueprint_router)


class SelectionsRequest(BaseModel):
    recorder_id: Optional[str] = None
    power_id: Optional[str] = None
    cable_id: Optional[str] = None
    resolution: Optional[str] = None
    dual_light: Optional[bool] = None


class QuoteRequest(BaseModel):
    system: str = 'analog'
    camera_count: Any = 4
    analog: Optional[SelectionsRequest] = None
    ip: Optional[SelectionsRequest] = None
    hdd_id: Optional[str] = None
    monitor_included: bool = False
    installation_included: bool = True


def _apply_selections(selections, requested: Optional[SelectionsRequest]):
    if requested is None:
        return selections
    if requested.recorder_id:
        selections = selections.with_recorder(requested.recorder_id)
    if requested.power_id:
        selections = selections.with_power(requested.power_id)
    if requested.cable_id:
        selections = replace(selections, cable_id=requested.cable_id)
    if requested.resolution in selections.RESOLUTIONS:
        selections = replace(selections, resolution=requested.resolution)
    if requested.dual_light is not None:
        selections = replace(selections, dual_light=requested.dual_light)
    return selections


def build_state(req: QuoteRequest) -> ConfiguratorState:
    """Configurator state for a quote request, starting from the defaults."""
    catalog = engine.catalog
    base = default_state(catalog, engine.rules)
    requested = replace(
        base,
        system=req.system,
        camera_count=clamp_camera_count(req.camera_count, base.camera_count, engine.rules),
        analog=_apply_selections(base.analog, req.analog),
        ip=_apply_selections(base.ip, req.ip),
        hdd_id=req.hdd_id or base.hdd_id,
        monitor_included=req.monitor_included,
        installation_included=req.installation_included,
    )
    return apply_recommendations(catalog, requested, engine.rules)


@app.get("/")
async def root():
    return {"status": "online", "message": "Setup Pricing API Active"}


@app.post("/quote")
async def calculate_quote(req: QuoteRequest):
    if req.system not in SYSTEMS:
        raise HTTPException(status_code=400, detail=f"Unknown system '{req.system}'")
    try:
        configurator_state = build_state(req)
        totals = engine.calculate(configurator_state)
        overall = totals.overall
        return {
            "state": jsonable_encoder(configurator_state),
            "totals": jsonable_encoder(totals),
            "display": {
                "mrp": format_inr(overall.mrp),
                "sale": format_inr(overall.sale),
                "discount": format_inr(overall.discount_amount),
                "discount_percent": format_discount_percent(overall.discount_percent),
            },
        }
    except Exception as e:
        logger.exception("Quote calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/catalog")
async def get_catalog(system: Optional[str] = None, search: Optional[str] = None):
    try:
        df = catalog_to_frame(engine.catalog)
        if system:
            df = df[df['System'].isin([system, 'shared'])]
        if search:
            mask = (
                df['ID'].str.contains(search, case=False, na=False) |
                df['Label'].str.contains(search, case=False, na=False)
            )
            df = df[mask]

        # Basic JSON cleaning
        df = df.astype(object).where(df.notna(), None)
        return {
            "entries": df.to_dict(orient="records"),
            "notes": list(engine.catalog.notes),
        }
    except Exception as e:
        logger.exception("Catalog listing failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/catalog/{system}/options")
async def get_options(system: str, camera_count: Optional[str] = None):
    if system not in SYSTEMS:
        raise HTTPException(status_code=404, detail=f"Unknown system '{system}'")

    rules = engine.rules
    count = clamp_camera_count(camera_count, rules.default_cameras, rules)
    pricing = engine.catalog.system_pricing(system)
    recorder_capacity = recommended_recorder_capacity(system, count, rules)
    power_capacity = recommended_power_capacity(system, count, rules)

    return {
        "system": system,
        "camera_count": count,
        "recommended": {"recorder": recorder_capacity, "power": power_capacity},
        "recorder": jsonable_encoder(capacity_option_states(pricing.recorder, recorder_capacity, count)),
        "power": jsonable_encoder(capacity_option_states(pricing.power, power_capacity, count)),
        "cable": jsonable_encoder(cable_option_states(pricing.cable, count, rules)),
        "camera": {key: jsonable_encoder(matrix) for key, matrix in pricing.camera.items()},
    }


@app.get("/system/status")
async def get_status():
    settings = get_settings()
    has_report = settings.build_report.exists()
    return {
        "engine_active": True,
        "blueprint_loaded": state.blueprint is not None,
        "blueprint_path": str(settings.blueprint_path),
        "fallback_notes": list(engine.catalog.notes),
        "catalog_last_build": settings.build_report.stat().st_mtime if has_report else None,
    }
