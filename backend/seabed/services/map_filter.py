"""Cached read service behind the map filter and analytics endpoints.

``MapFilterService`` is the one object the API talks to for reads. It holds
a repository and a ``TTLCache`` passed in by the caller; nothing here is
module-global. Reference lookups, contractor/area/block lists and the map
tree go through the cache using the tiers in ``CacheTiers``; per-entity
detail reads (cruises, stations, samples, media) and the analytics rollups
go straight to the repository.

Example:
    >>> from seabed.db import database
    >>> from seabed.services import cache, map_filter, map_tree
    >>> service = map_filter.MapFilterService(
    ...     database.InMemorySeabedRepository(),
    ...     cache.TTLCache(),
    ... )
    >>> service.get_map_data(map_tree.MapFilter())
    MapDataView(contractors=[], cruises=[])
"""

from __future__ import annotations

import dataclasses
import datetime
from typing import TYPE_CHECKING

from seabed.db import models as db_models
from seabed.services import analytics, cache, map_tree

if TYPE_CHECKING:
    from seabed.db import database


@dataclasses.dataclass
class FilterOptions:
    """Choices offered by the filter panel dropdowns."""

    contract_types: list[db_models.ContractType] = dataclasses.field(
        default_factory=list
    )
    contract_statuses: list[db_models.ContractStatus] = dataclasses.field(
        default_factory=list
    )
    sponsoring_states: list[str] = dataclasses.field(default_factory=list)
    contractual_years: list[int] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class BlockGeoJson:
    block_id: int
    block_name: str
    status: str
    geojson: str
    center_latitude: float | None
    center_longitude: float | None
    area_size_km2: float


@dataclasses.dataclass
class AreaGeoJson:
    area_id: int
    area_name: str
    geojson: str
    center_latitude: float | None
    center_longitude: float | None
    total_area_size_km2: float
    allocation_date: datetime.date | None
    expiry_date: datetime.date | None
    blocks: list[BlockGeoJson] = dataclasses.field(default_factory=list)


def _cache_key(prefix: str, *parts: object) -> str:
    return "_".join([prefix, *("" if p is None else str(p) for p in parts)])


class MapFilterService:
    """Read API for the map UI with tiered TTL caching."""

    def __init__(
        self,
        repository: database.SeabedRepositoryProtocol,
        ttl_cache: cache.TTLCache,
        tiers: cache.CacheTiers | None = None,
    ) -> None:
        """Create the service.

        Args:
            repository: Source of entity collections.
            ttl_cache: Cache shared by every read path of this service.
            tiers: Expiry policies; defaults to 24 h absolute for reference
                lookups, 10 min sliding for lists and 5 min sliding for the
                map tree.
        """
        self.repository = repository
        self.cache = ttl_cache
        self.tiers = tiers or cache.CacheTiers(
            reference=cache.CachePolicy.absolute_for(24 * 60 * 60),
            lists=cache.CachePolicy.sliding_for(10 * 60),
            map_data=cache.CachePolicy.sliding_for(5 * 60),
        )

    # Reference lookups

    def get_contract_types(self) -> list[db_models.ContractType]:
        return self.cache.get_or_create(
            "ContractTypes", self.repository.contract_types, self.tiers.reference
        )

    def get_contract_statuses(self) -> list[db_models.ContractStatus]:
        return self.cache.get_or_create(
            "ContractStatuses",
            self.repository.contract_statuses,
            self.tiers.reference,
        )

    def get_sponsoring_states(self) -> list[str]:
        """Distinct sponsoring states in first-seen order."""

        def load() -> list[str]:
            states = (c.sponsoring_state for c in self.repository.contractors())
            return list(dict.fromkeys(states))

        return self.cache.get_or_create(
            "SponsoringStates", load, self.tiers.reference
        )

    def get_contractual_years(self) -> list[int]:
        """Distinct contractual years, newest first."""

        def load() -> list[int]:
            years = {c.contractual_year for c in self.repository.contractors()}
            return sorted(years, reverse=True)

        return self.cache.get_or_create(
            "ContractualYears", load, self.tiers.reference
        )

    def get_filter_options(self) -> FilterOptions:
        return FilterOptions(
            contract_types=self.get_contract_types(),
            contract_statuses=self.get_contract_statuses(),
            sponsoring_states=self.get_sponsoring_states(),
            contractual_years=self.get_contractual_years(),
        )

    # Lists

    def get_contractors(
        self,
        contract_type_id: int | None = None,
        contract_status_id: int | None = None,
        sponsoring_state: str | None = None,
        year: int | None = None,
    ) -> list[db_models.Contractor]:
        """Contractors matching every given attribute.

        Contractors without remarks get ``"Contract established in
        {year}"`` in the returned copy; stored records are not modified.
        """
        map_filter = map_tree.MapFilter(
            contract_type_id=contract_type_id,
            contract_status_id=contract_status_id,
            sponsoring_state=sponsoring_state,
            year=year,
        )

        def load() -> list[db_models.Contractor]:
            return [
                c
                if c.remarks
                else dataclasses.replace(
                    c, remarks=f"Contract established in {c.contractual_year}"
                )
                for c in map_tree.select_contractors(
                    self.repository.contractors(), map_filter
                )
            ]

        key = _cache_key(
            "Contractors", contract_type_id, contract_status_id, sponsoring_state, year
        )
        return self.cache.get_or_create(key, load, self.tiers.lists)

    def get_contractor_areas(
        self, contractor_id: int | None = None
    ) -> list[db_models.Area]:
        def load() -> list[db_models.Area]:
            return [
                a
                for a in self.repository.areas()
                if contractor_id is None or a.contractor_id == contractor_id
            ]

        return self.cache.get_or_create(
            _cache_key("ContractorAreas", contractor_id), load, self.tiers.lists
        )

    def get_contractor_area_blocks(
        self, area_id: int | None = None
    ) -> list[db_models.Block]:
        def load() -> list[db_models.Block]:
            return [
                b
                for b in self.repository.blocks()
                if area_id is None or b.area_id == area_id
            ]

        return self.cache.get_or_create(
            _cache_key("ContractorAreaBlocks", area_id), load, self.tiers.lists
        )

    def get_map_data(
        self, map_filter: map_tree.MapFilter | None = None
    ) -> map_tree.MapDataView:
        """Nested map tree for a filter, cached per filter signature."""
        map_filter = map_filter or map_tree.MapFilter()
        return self.cache.get_or_create(
            map_filter.cache_key(),
            lambda: map_tree.build_filtered_tree(self.repository, map_filter),
            self.tiers.map_data,
        )

    # Uncached detail reads

    def get_cruises(self, contractor_id: int | None = None) -> list[db_models.Cruise]:
        return [
            c
            for c in self.repository.cruises()
            if contractor_id is None or c.contractor_id == contractor_id
        ]

    def get_stations(
        self,
        cruise_id: int | None = None,
        min_lat: float | None = None,
        max_lat: float | None = None,
        min_lon: float | None = None,
        max_lon: float | None = None,
    ) -> list[db_models.Station]:
        """Stations of a cruise and/or inside an inclusive bounding box."""
        stations = (
            self.repository.stations_for_cruises([cruise_id])
            if cruise_id is not None
            else self.repository.stations()
        )
        return [
            s
            for s in stations
            if (min_lat is None or s.latitude >= min_lat)
            and (max_lat is None or s.latitude <= max_lat)
            and (min_lon is None or s.longitude >= min_lon)
            and (max_lon is None or s.longitude <= max_lon)
        ]

    def get_samples(
        self,
        station_id: int | None = None,
        sample_type: str | None = None,
    ) -> list[db_models.Sample]:
        samples = (
            self.repository.samples_for_stations([station_id])
            if station_id is not None
            else self.repository.samples()
        )
        if sample_type and sample_type.strip():
            samples = [s for s in samples if s.sample_type == sample_type]
        return samples

    def get_media(
        self,
        sample_id: int | None = None,
        media_type: str | None = None,
    ) -> list[db_models.Media]:
        media = (
            self.repository.media_for_samples([sample_id])
            if sample_id is not None
            else self.repository.media()
        )
        if media_type and media_type.strip():
            media = [m for m in media if m.media_type == media_type]
        return media

    def _area_geojson(
        self, area: db_models.Area, blocks: list[db_models.Block]
    ) -> AreaGeoJson:
        return AreaGeoJson(
            area_id=area.id,
            area_name=area.name,
            geojson=area.geojson_boundary,
            center_latitude=area.center_latitude,
            center_longitude=area.center_longitude,
            total_area_size_km2=area.total_area_size_km2,
            allocation_date=area.allocation_date,
            expiry_date=area.expiry_date,
            blocks=[
                BlockGeoJson(
                    block_id=b.id,
                    block_name=b.name,
                    status=b.status,
                    geojson=b.geojson_boundary,
                    center_latitude=b.center_latitude,
                    center_longitude=b.center_longitude,
                    area_size_km2=b.area_size_km2,
                )
                for b in blocks
            ],
        )

    def get_area_geojson(self, area_id: int) -> AreaGeoJson | None:
        area = self.repository.get_area(area_id)
        if area is None:
            return None
        return self._area_geojson(area, self.get_contractor_area_blocks(area_id))

    def get_contractor_areas_geojson(
        self, contractor_id: int
    ) -> list[AreaGeoJson] | None:
        """Boundaries of every area of a contractor; None if it has none."""
        areas = self.get_contractor_areas(contractor_id)
        if not areas:
            return None
        blocks_by_area = map_tree.group_by(
            self.get_contractor_area_blocks(), lambda b: b.area_id
        )
        return [self._area_geojson(a, blocks_by_area.get(a.id, [])) for a in areas]

    # Analytics

    def get_block_analytics(self, block_id: int) -> analytics.BlockAnalytics | None:
        return analytics.get_block_analytics(self.repository, block_id)

    def get_contractor_summary(
        self, contractor_id: int
    ) -> analytics.ContractorSummary | None:
        return analytics.get_contractor_summary(self.repository, contractor_id)
