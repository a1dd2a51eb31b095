"""Map filter read endpoints.

This module exposes the cached reads behind the map UI: reference lookups
for the filter dropdowns, contractor/area/block lists, per-entity detail
lists, the nested map tree and area boundary bundles. All query parameters
are optional and additive; an omitted parameter places no constraint.

Example:
    Fetch the full tree, then only one contractor's part of it:
        >>> response = client.get("/api/map-filter/map-data")
        >>> tree = response.json()
        >>> # Returns: {"contractors": [...], "cruises": [...]}
        >>> response = client.get("/api/map-filter/map-data?contractor_id=1")

    Stations inside a bounding box:
        >>> client.get(
        ...     "/api/map-filter/stations",
        ...     params={"min_lat": -5, "max_lat": 5, "min_lon": -5, "max_lon": 5},
        ... )
"""

import dataclasses
from typing import Any

import fastapi

from seabed.core import config
from seabed.db import database
from seabed.services import map_filter, map_tree

router = fastapi.APIRouter(prefix="/api/map-filter", tags=["map-filter"])


def _get_repo(
    request: fastapi.Request,
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> database.SeabedRepositoryProtocol:
    """Resolve the repository shared by every request of this app.

    The repository is created on first use so that building the app does not
    open a database connection.

    Args:
        request: Incoming request (gives access to ``app.state``).
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        SeabedRepositoryProtocol implementation selected by settings.
    """
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        repository = database.get_repository(settings)
        request.app.state.repository = repository
    return repository


def _get_service(
    request: fastapi.Request,
    repo: database.SeabedRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
) -> map_filter.MapFilterService:
    """Build the read service on top of the app-wide cache."""
    return map_filter.MapFilterService(
        repo, request.app.state.cache, request.app.state.cache_tiers
    )


def _as_dicts(records: list[Any]) -> list[dict[str, Any]]:
    return [dataclasses.asdict(record) for record in records]


@router.get("/contractors")
async def list_contractors(
    contract_type_id: int | None = None,
    contract_status_id: int | None = None,
    sponsoring_state: str | None = None,
    year: int | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List contractors matching every given attribute.

    Contractors without remarks are returned with
    ``"Contract established in {year}"``.
    """
    return _as_dicts(
        service.get_contractors(
            contract_type_id, contract_status_id, sponsoring_state, year
        )
    )


@router.get("/contractor-areas")
async def list_contractor_areas(
    contractor_id: int | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List licensed areas, optionally of one contractor."""
    return _as_dicts(service.get_contractor_areas(contractor_id))


@router.get("/contractor-area-blocks")
async def list_contractor_area_blocks(
    area_id: int | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List blocks, optionally of one area."""
    return _as_dicts(service.get_contractor_area_blocks(area_id))


@router.get("/cruises")
async def list_cruises(
    contractor_id: int | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List research cruises, optionally of one contractor."""
    return _as_dicts(service.get_cruises(contractor_id))


@router.get("/stations")
async def list_stations(
    cruise_id: int | None = None,
    min_lat: float | None = None,
    max_lat: float | None = None,
    min_lon: float | None = None,
    max_lon: float | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List stations of a cruise and/or inside an inclusive bounding box.

    Args:
        cruise_id: Restrict to one cruise.
        min_lat: Southern edge in degrees.
        max_lat: Northern edge in degrees.
        min_lon: Western edge in degrees.
        max_lon: Eastern edge in degrees.
        service: Map filter service (injected via FastAPI Depends).

    Returns:
        Station records as dictionaries.
    """
    return _as_dicts(
        service.get_stations(cruise_id, min_lat, max_lat, min_lon, max_lon)
    )


@router.get("/samples")
async def list_samples(
    station_id: int | None = None,
    sample_type: str | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List samples of a station and/or of one sample type.

    A blank ``sample_type`` places no constraint.
    """
    return _as_dicts(service.get_samples(station_id, sample_type))


@router.get("/media")
async def list_media(
    sample_id: int | None = None,
    media_type: str | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """List media files of a sample and/or of one media type."""
    return _as_dicts(service.get_media(sample_id, media_type))


@router.get("/map-data")
async def get_map_data(
    contractor_id: int | None = None,
    contract_type_id: int | None = None,
    contract_status_id: int | None = None,
    sponsoring_state: str | None = None,
    year: int | None = None,
    cruise_id: int | None = None,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> dict[str, Any]:
    """Return the nested contractor and cruise tree for a filter.

    Cruises are chosen by ``cruise_id``, else by ``contractor_id`` (all of
    that contractor's cruises, even if another parameter excluded the
    contractor), else by the filtered contractor set.

    Returns:
        ``{"contractors": [...], "cruises": [...]}``; both lists are empty
        when nothing matches.
    """
    query = map_tree.MapFilter(
        contractor_id=contractor_id,
        contract_type_id=contract_type_id,
        contract_status_id=contract_status_id,
        sponsoring_state=sponsoring_state,
        year=year,
        cruise_id=cruise_id,
    )
    return dataclasses.asdict(service.get_map_data(query))


@router.get("/contract-types")
async def list_contract_types(
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """Contract types for the filter dropdown."""
    return _as_dicts(service.get_contract_types())


@router.get("/contract-statuses")
async def list_contract_statuses(
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """Contract statuses for the filter dropdown."""
    return _as_dicts(service.get_contract_statuses())


@router.get("/sponsoring-states")
async def list_sponsoring_states(
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[str]:
    """Distinct sponsoring states, in first-seen order."""
    return service.get_sponsoring_states()


@router.get("/contractual-years")
async def list_contractual_years(
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[int]:
    """Distinct contractual years, newest first."""
    return service.get_contractual_years()


@router.get("/filter-options")
async def get_filter_options(
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> dict[str, Any]:
    """All four dropdown lookups in one response."""
    return dataclasses.asdict(service.get_filter_options())


@router.get("/area-geojson/{area_id}")
async def get_area_geojson(
    area_id: int,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> dict[str, Any]:
    """Boundary of one area together with its blocks' boundaries.

    Raises:
        HTTPException: If the area is not found (404 status code).
    """
    bundle = service.get_area_geojson(area_id)
    if bundle is None:
        raise fastapi.HTTPException(status_code=404, detail="Area not found")
    return dataclasses.asdict(bundle)


@router.get("/contractor-areas-geojson/{contractor_id}")
async def get_contractor_areas_geojson(
    contractor_id: int,
    service: map_filter.MapFilterService = fastapi.Depends(_get_service),  # noqa: B008
) -> list[dict[str, Any]]:
    """Boundaries of every area of a contractor.

    Raises:
        HTTPException: If the contractor has no areas (404 status code).
    """
    bundles = service.get_contractor_areas_geojson(contractor_id)
    if bundles is None:
        raise fastapi.HTTPException(
            status_code=404,
            detail="No areas found for contractor",
        )
    return _as_dicts(bundles)
