"""FastAPI routes exposing the bridge's HTTP surface."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_registry
from api.jambonz_routes import router as jambonz_router
from api.schemas import HealthResponse
from bridge.registry import SessionRegistry

router = APIRouter()
router.include_router(jambonz_router)


@router.get("/health", response_model=HealthResponse)
async def health(registry: SessionRegistry = Depends(get_registry)) -> HealthResponse:
    return HealthResponse(conversations=len(registry))
