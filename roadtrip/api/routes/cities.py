"""City lookup endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from roadtrip.api.deps import get_catalog
from roadtrip.models.trip import City
from roadtrip.planning.catalog import CityCatalog
from roadtrip.planning.errors import CatalogUnavailable

router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("/search", response_model=list[City])
async def search_cities(
    catalog: Annotated[CityCatalog, Depends(get_catalog)],
    q: Annotated[str, Query(min_length=1, description="Name or country fragment")],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> list[City]:
    """Dataset cities matching q, exact name matches first."""
    try:
        return await catalog.search(q, limit=limit)
    except CatalogUnavailable as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
