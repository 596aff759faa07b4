"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from topocheck.config import Settings, get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)):
    return HealthResponse(status="healthy", version=settings.app_version)
