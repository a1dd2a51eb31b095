"""Block and contractor analytics endpoints.

This module exposes statistical rollups for a single block or contractor
and the endpoint that (re)associates every station with the block that
contains it. Unknown block or contractor ids answer 404.

Example:
    Link stations to blocks, then read a block's statistics:
        >>> client.post("/api/analytics/associate-stations-blocks")
        >>> # Returns: {"message": "Stations are now linked to blocks"}
        >>> client.get("/api/analytics/block/100").json()["counts"]
        >>> # Returns: {"stations": 3, "samples": 7, ...}
"""

import dataclasses
from typing import Any

import fastapi

from seabed.api import map_filter as api_map_filter
from seabed.db import database
from seabed.services import association, map_filter

router = fastapi.APIRouter(prefix="/api/analytics", tags=["analytics"])


def _get_association_service(
    repo: database.SeabedRepositoryProtocol = fastapi.Depends(  # noqa: B008
        api_map_filter._get_repo
    ),
) -> association.AssociationService:
    return association.AssociationService(repo)


@router.get("/block/{block_id}")
async def get_block_analytics(
    block_id: int,
    service: map_filter.MapFilterService = fastapi.Depends(  # noqa: B008
        api_map_filter._get_service
    ),
) -> dict[str, Any]:
    """Summarise the measurements taken inside a block.

    Args:
        block_id: Block to analyse.
        service: Map filter service (injected via FastAPI Depends).

    Returns:
        Dictionary with ``block``, ``counts``, ``environmental_parameters``,
        ``resource_metrics``, ``sample_types`` and ``recent_stations``.
        A block without stations has zero counts and empty lists.

    Raises:
        HTTPException: If the block is not found (404 status code).
    """
    result = service.get_block_analytics(block_id)
    if result is None:
        raise fastapi.HTTPException(status_code=404, detail="Block not found")
    return dataclasses.asdict(result)


@router.get("/contractor/{contractor_id}/summary")
async def get_contractor_summary(
    contractor_id: int,
    service: map_filter.MapFilterService = fastapi.Depends(  # noqa: B008
        api_map_filter._get_service
    ),
) -> dict[str, Any]:
    """Count a contractor's areas, blocks, cruises, stations and samples.

    Raises:
        HTTPException: If the contractor is not found (404 status code).
    """
    result = service.get_contractor_summary(contractor_id)
    if result is None:
        raise fastapi.HTTPException(status_code=404, detail="Contractor not found")
    return dataclasses.asdict(result)


@router.post("/associate-stations-blocks")
def associate_stations_blocks(
    service: association.AssociationService = fastapi.Depends(  # noqa: B008
        _get_association_service
    ),
) -> dict[str, str]:
    """Recompute which block every station lies in and save the result.

    Runs synchronously; on large datasets this can take a while.

    Raises:
        HTTPException: If reading or saving failed (400 status code).
    """
    if not service.associate_all_stations():
        raise fastapi.HTTPException(
            status_code=400,
            detail="Failed to link stations to blocks",
        )
    return {"message": "Stations are now linked to blocks"}
