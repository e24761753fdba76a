"""
Health check API endpoints.

Routes: GET /health, GET /health/db

Dependencies: menechat.boundary
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from menechat.api.deps import get_chat_store


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/db", response_model=HealthResponse)
async def health_check_db(store=Depends(get_chat_store)) -> HealthResponse:
    """
    Database health check.

    Raises:
        HTTPException(503): Store unreachable
    """
    if not await store.ping():
        raise HTTPException(status_code=503, detail="Database connection failed")
    return HealthResponse(status="healthy", message="Database connection OK")
