"""Filtered contractor and cruise tree for the map view.

Builds the nested, serializable ``MapDataView`` the map UI consumes:

    contractors -> areas -> blocks
    cruises -> stations -> samples -> (env results, geo results, media)

Selection rules:

1. Contractors are the conjunction of every filter field set on a
   contractor attribute (id, contract type, contract status, sponsoring
   state, contractual year).
2. Cruises are chosen by ``cruise_id`` if given, else by ``contractor_id``
   if given, else by membership in the contractor set from step 1. The
   ``contractor_id`` branch keeps every cruise of that contractor even when
   another filter (for instance ``year``) excluded the contractor itself.
3. Every station of a selected cruise is included.
4. Samples, results and media are fetched with one bulk read per
   collection and grouped in memory by parent id.

An unmatched filter yields empty lists, never None.
"""

from __future__ import annotations

import collections
import dataclasses
import datetime
import statistics
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from seabed.db import database
    from seabed.db import models as db_models


@dataclasses.dataclass(frozen=True)
class MapFilter:
    """Optional, additive constraints for the map tree.

    A field left as None places no constraint. A blank ``sponsoring_state``
    is treated as None.
    """

    contractor_id: int | None = None
    contract_type_id: int | None = None
    contract_status_id: int | None = None
    sponsoring_state: str | None = None
    year: int | None = None
    cruise_id: int | None = None

    def cache_key(self) -> str:
        parts = (
            self.contractor_id,
            self.contract_type_id,
            self.contract_status_id,
            self.sponsoring_state,
            self.year,
            self.cruise_id,
        )
        return "MapData_" + "_".join("" if p is None else str(p) for p in parts)


@dataclasses.dataclass
class BlockView:
    block_id: int
    block_name: str
    block_description: str
    status: str
    center_latitude: float | None
    center_longitude: float | None
    area_size_km2: float
    category: str | None


@dataclasses.dataclass
class AreaView:
    area_id: int
    area_name: str
    area_description: str
    center_latitude: float | None
    center_longitude: float | None
    total_area_size_km2: float
    allocation_date: datetime.date | None
    expiry_date: datetime.date | None
    blocks: list[BlockView] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class ContractorView:
    contractor_id: int
    contractor_name: str
    contract_type: str | None
    contract_status: str | None
    contract_number: str
    sponsoring_state: str
    contractual_year: int
    remarks: str
    areas: list[AreaView] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class EnvResultView:
    env_result_id: int
    analysis_category: str
    analysis_name: str
    analysis_value: float
    units: str
    remarks: str


@dataclasses.dataclass
class GeoResultView:
    geo_result_id: int
    category: str
    analysis: str
    value: float
    units: str
    qualifier: str
    remarks: str


@dataclasses.dataclass
class MediaView:
    media_id: int
    file_name: str
    media_type: str
    camera_specs: str
    capture_date: datetime.date | None
    remarks: str


@dataclasses.dataclass
class SampleView:
    sample_id: int
    sample_code: str
    sample_type: str
    matrix_type: str
    habitat_type: str
    sampling_device: str
    depth_lower: float
    depth_upper: float
    sample_description: str
    analysis: str
    result: str
    unit: str
    env_results: list[EnvResultView] = dataclasses.field(default_factory=list)
    geo_results: list[GeoResultView] = dataclasses.field(default_factory=list)
    media: list[MediaView] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class StationView:
    station_id: int
    station_code: str
    station_type: str
    latitude: float
    longitude: float
    block_id: int | None
    samples: list[SampleView] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class CruiseView:
    """A cruise with its stations.

    ``center_latitude``/``center_longitude`` are the mean station position,
    or None for a cruise without stations.
    """

    cruise_id: int
    contractor_id: int
    cruise_name: str
    research_vessel: str
    start_date: datetime.date | None
    end_date: datetime.date | None
    center_latitude: float | None = None
    center_longitude: float | None = None
    stations: list[StationView] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class MapDataView:
    contractors: list[ContractorView] = dataclasses.field(default_factory=list)
    cruises: list[CruiseView] = dataclasses.field(default_factory=list)


def group_by[T](items: Iterable[T], key: Callable[[T], int]) -> dict[int, list[T]]:
    """Group records by a parent id, keeping input order inside groups."""
    grouped: dict[int, list[T]] = collections.defaultdict(list)
    for item in items:
        grouped[key(item)].append(item)
    return grouped


def select_contractors(
    contractors: Iterable[db_models.Contractor],
    map_filter: MapFilter,
) -> list[db_models.Contractor]:
    """Apply the contractor-attribute part of a filter (logical AND)."""
    selected = list(contractors)
    if map_filter.contractor_id is not None:
        selected = [c for c in selected if c.id == map_filter.contractor_id]
    if map_filter.contract_type_id is not None:
        selected = [
            c for c in selected if c.contract_type_id == map_filter.contract_type_id
        ]
    if map_filter.contract_status_id is not None:
        selected = [
            c
            for c in selected
            if c.contract_status_id == map_filter.contract_status_id
        ]
    if map_filter.sponsoring_state and map_filter.sponsoring_state.strip():
        selected = [
            c for c in selected if c.sponsoring_state == map_filter.sponsoring_state
        ]
    if map_filter.year is not None:
        selected = [c for c in selected if c.contractual_year == map_filter.year]
    return selected


def select_cruises(
    cruises: Iterable[db_models.Cruise],
    map_filter: MapFilter,
    contractor_ids: set[int],
) -> list[db_models.Cruise]:
    """Pick cruises by explicit cruise, explicit contractor, or membership."""
    if map_filter.cruise_id is not None:
        return [c for c in cruises if c.id == map_filter.cruise_id]
    if map_filter.contractor_id is not None:
        return [c for c in cruises if c.contractor_id == map_filter.contractor_id]
    return [c for c in cruises if c.contractor_id in contractor_ids]


def _block_view(block: db_models.Block) -> BlockView:
    return BlockView(
        block_id=block.id,
        block_name=block.name,
        block_description=block.description,
        status=block.status,
        center_latitude=block.center_latitude,
        center_longitude=block.center_longitude,
        area_size_km2=block.area_size_km2,
        category=block.category,
    )


def _area_view(area: db_models.Area, blocks: list[db_models.Block]) -> AreaView:
    return AreaView(
        area_id=area.id,
        area_name=area.name,
        area_description=area.description,
        center_latitude=area.center_latitude,
        center_longitude=area.center_longitude,
        total_area_size_km2=area.total_area_size_km2,
        allocation_date=area.allocation_date,
        expiry_date=area.expiry_date,
        blocks=[_block_view(b) for b in blocks],
    )


def _sample_view(
    sample: db_models.Sample,
    env_results: list[db_models.EnvResult],
    geo_results: list[db_models.GeoResult],
    media: list[db_models.Media],
) -> SampleView:
    return SampleView(
        sample_id=sample.id,
        sample_code=sample.code,
        sample_type=sample.sample_type,
        matrix_type=sample.matrix_type,
        habitat_type=sample.habitat_type,
        sampling_device=sample.sampling_device,
        depth_lower=sample.depth_lower,
        depth_upper=sample.depth_upper,
        sample_description=sample.description,
        analysis=sample.analysis,
        result=sample.result,
        unit=sample.unit,
        env_results=[
            EnvResultView(
                env_result_id=r.id,
                analysis_category=r.analysis_category,
                analysis_name=r.analysis_name,
                analysis_value=r.analysis_value,
                units=r.units,
                remarks=r.remarks,
            )
            for r in env_results
        ],
        geo_results=[
            GeoResultView(
                geo_result_id=r.id,
                category=r.category,
                analysis=r.analysis,
                value=r.value,
                units=r.units,
                qualifier=r.qualifier,
                remarks=r.remarks,
            )
            for r in geo_results
        ],
        media=[
            MediaView(
                media_id=m.id,
                file_name=m.file_name,
                media_type=m.media_type,
                camera_specs=m.camera_specs,
                capture_date=m.capture_date,
                remarks=m.remarks,
            )
            for m in media
        ],
    )


def _cruise_view(
    cruise: db_models.Cruise, stations: list[StationView]
) -> CruiseView:
    view = CruiseView(
        cruise_id=cruise.id,
        contractor_id=cruise.contractor_id,
        cruise_name=cruise.name,
        research_vessel=cruise.research_vessel,
        start_date=cruise.start_date,
        end_date=cruise.end_date,
        stations=stations,
    )
    if stations:
        view.center_latitude = statistics.fmean(s.latitude for s in stations)
        view.center_longitude = statistics.fmean(s.longitude for s in stations)
    return view


def build_filtered_tree(
    repository: database.SeabedRepositoryProtocol,
    map_filter: MapFilter | None = None,
) -> MapDataView:
    """Build the nested map tree for a filter.

    Args:
        repository: Source of entity collections.
        map_filter: Constraints; None or an empty filter selects everything.

    Returns:
        MapDataView with contractors (areas, blocks) and cruises (stations,
        samples, results, media). Lists are empty when nothing matches.
    """
    map_filter = map_filter or MapFilter()

    type_names = {t.id: t.name for t in repository.contract_types()}
    status_names = {s.id: s.name for s in repository.contract_statuses()}
    contractors = select_contractors(repository.contractors(), map_filter)
    contractor_ids = {c.id for c in contractors}

    areas_by_contractor = group_by(
        (a for a in repository.areas() if a.contractor_id in contractor_ids),
        lambda a: a.contractor_id,
    )
    blocks_by_area = group_by(repository.blocks(), lambda b: b.area_id)

    contractor_views = [
        ContractorView(
            contractor_id=c.id,
            contractor_name=c.name,
            contract_type=type_names.get(c.contract_type_id),
            contract_status=status_names.get(c.contract_status_id),
            contract_number=c.contract_number,
            sponsoring_state=c.sponsoring_state,
            contractual_year=c.contractual_year,
            remarks=c.remarks,
            areas=[
                _area_view(a, blocks_by_area.get(a.id, []))
                for a in areas_by_contractor.get(c.id, [])
            ],
        )
        for c in contractors
    ]

    cruises = select_cruises(repository.cruises(), map_filter, contractor_ids)
    if not cruises:
        return MapDataView(contractors=contractor_views, cruises=[])

    stations = repository.stations_for_cruises([c.id for c in cruises])
    samples = repository.samples_for_stations([s.id for s in stations])
    sample_ids = [s.id for s in samples]
    media_by_sample = group_by(
        repository.media_for_samples(sample_ids), lambda m: m.sample_id
    )
    env_by_sample = group_by(
        repository.env_results_for_samples(sample_ids), lambda r: r.sample_id
    )
    geo_by_sample = group_by(
        repository.geo_results_for_samples(sample_ids), lambda r: r.sample_id
    )
    samples_by_station = group_by(samples, lambda s: s.station_id)

    station_views_by_cruise: dict[int, list[StationView]] = (
        collections.defaultdict(list)
    )
    for s in stations:
        station_views_by_cruise[s.cruise_id].append(
            StationView(
                station_id=s.id,
                station_code=s.code,
                station_type=s.station_type,
                latitude=s.latitude,
                longitude=s.longitude,
                block_id=s.block_id,
                samples=[
                    _sample_view(
                        sample,
                        env_by_sample.get(sample.id, []),
                        geo_by_sample.get(sample.id, []),
                        media_by_sample.get(sample.id, []),
                    )
                    for sample in samples_by_station.get(s.id, [])
                ],
            )
        )

    return MapDataView(
        contractors=contractor_views,
        cruises=[
            _cruise_view(c, station_views_by_cruise.get(c.id, [])) for c in cruises
        ],
    )
