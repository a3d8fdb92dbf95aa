"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from roadtrip.api.deps import get_catalog
from roadtrip.config import get_settings
from roadtrip.planning.catalog import CityCatalog

router = APIRouter()


@router.get("/health")
async def health(catalog: Annotated[CityCatalog, Depends(get_catalog)]) -> dict[str, str]:
    """Liveness plus provider wiring.

    Returns:
        200 OK always (application is running)
    """
    return {
        "status": "ok",
        "providers": get_settings().provider_mode,
        "catalog": "cached" if catalog.is_cached else "cold",
    }
