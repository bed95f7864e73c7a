"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...data.registry import RegistryStore
from ..deps import registry_store

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/registry", status_code=status.HTTP_200_OK)
def health_registry(store: RegistryStore = Depends(registry_store)) -> dict:
    """Report how much route data is currently loaded."""
    registry = store.snapshot
    return {
        "status": "ok" if registry.routes else "empty",
        "routes": len(registry.routes),
        "stops": len(registry.stops),
    }
