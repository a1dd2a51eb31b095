"""Statistical rollups for blocks and contractors.

Block analytics summarise everything measured at stations the association
service placed inside a block; contractor summaries count the contractor's
holdings and field effort. Unknown ids return None, which the API turns
into a 404. A block without stations is not an error: it yields zero
counts and empty sections.
"""

from __future__ import annotations

import dataclasses
import datetime
import statistics
from typing import TYPE_CHECKING

from seabed.services import map_tree

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from seabed.db import database
    from seabed.db import models as db_models

RECENT_STATIONS_LIMIT = 5


@dataclasses.dataclass
class ParameterStats:
    """avg/min/max/count of one measured parameter.

    ``unit`` is taken from the first result in the group.
    """

    category: str
    name: str
    average_value: float
    min_value: float
    max_value: float
    count: int
    unit: str


@dataclasses.dataclass
class DepthRange:
    min: float
    max: float


@dataclasses.dataclass
class SampleTypeSummary:
    sample_type: str
    count: int
    depth_range: DepthRange


@dataclasses.dataclass
class StationSummary:
    station_id: int
    station_code: str
    station_type: str
    latitude: float
    longitude: float


@dataclasses.dataclass
class AnalyticsCounts:
    stations: int = 0
    samples: int = 0
    environmental_results: int = 0
    geological_results: int = 0


@dataclasses.dataclass
class BlockHeader:
    block_id: int
    block_name: str
    status: str
    area_size_km2: float
    category: str | None
    resource_density: float
    economic_value: float
    area_id: int
    area_name: str | None
    contractor_id: int | None
    contractor_name: str | None


@dataclasses.dataclass
class BlockAnalytics:
    block: BlockHeader
    counts: AnalyticsCounts = dataclasses.field(default_factory=AnalyticsCounts)
    environmental_parameters: list[ParameterStats] = dataclasses.field(
        default_factory=list
    )
    resource_metrics: list[ParameterStats] = dataclasses.field(
        default_factory=list
    )
    sample_types: list[SampleTypeSummary] = dataclasses.field(default_factory=list)
    recent_stations: list[StationSummary] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class ContractorHeader:
    contractor_id: int
    contractor_name: str
    contract_type: str | None
    contract_status: str | None
    sponsoring_state: str
    contractual_year: int
    contract_duration: int


@dataclasses.dataclass
class ContractorTotals:
    total_areas: int
    total_blocks: int
    total_area_km2: float
    total_cruises: int
    total_stations: int
    total_samples: int
    earliest_cruise: datetime.date | None
    latest_cruise: datetime.date | None
    expedition_days: int


@dataclasses.dataclass
class AreaBlockCount:
    area_id: int
    area_name: str
    total_area_size_km2: float
    block_count: int


@dataclasses.dataclass
class ContractorSummary:
    contractor: ContractorHeader
    summary: ContractorTotals
    areas: list[AreaBlockCount] = dataclasses.field(default_factory=list)


def _parameter_stats[R](
    results: Iterable[R],
    key: Callable[[R], tuple[str, str]],
    value: Callable[[R], float],
    unit: Callable[[R], str],
) -> list[ParameterStats]:
    """Group results by (category, name) and summarise each group.

    Groups come out in first-seen order.
    """
    groups: dict[tuple[str, str], list[R]] = {}
    for result in results:
        groups.setdefault(key(result), []).append(result)

    stats = []
    for (category, name), members in groups.items():
        values = [value(m) for m in members]
        stats.append(
            ParameterStats(
                category=category,
                name=name,
                average_value=statistics.fmean(values),
                min_value=min(values),
                max_value=max(values),
                count=len(values),
                unit=unit(members[0]),
            )
        )
    return stats


def _sample_types(samples: Iterable[db_models.Sample]) -> list[SampleTypeSummary]:
    groups: dict[str, list[db_models.Sample]] = {}
    for sample in samples:
        groups.setdefault(sample.sample_type, []).append(sample)

    return [
        SampleTypeSummary(
            sample_type=sample_type,
            count=len(members),
            depth_range=DepthRange(
                min=min(s.depth_lower for s in members),
                max=max(s.depth_upper for s in members),
            ),
        )
        for sample_type, members in groups.items()
    ]


def get_block_analytics(
    repository: database.SeabedRepositoryProtocol,
    block_id: int,
) -> BlockAnalytics | None:
    """Summarise measurements taken inside one block.

    Args:
        repository: Source of entity collections.
        block_id: Block to analyse.

    Returns:
        BlockAnalytics, or None if the block does not exist.
    """
    block = repository.get_block(block_id)
    if block is None:
        return None

    area = repository.get_area(block.area_id)
    contractor = repository.get_contractor(area.contractor_id) if area else None

    stations = repository.stations_for_block(block_id)
    samples = repository.samples_for_stations([s.id for s in stations])
    sample_ids = [s.id for s in samples]
    env_results = repository.env_results_for_samples(sample_ids)
    geo_results = repository.geo_results_for_samples(sample_ids)

    recent = sorted(stations, key=lambda s: s.id, reverse=True)
    return BlockAnalytics(
        block=BlockHeader(
            block_id=block.id,
            block_name=block.name,
            status=block.status,
            area_size_km2=block.area_size_km2,
            category=block.category,
            resource_density=block.resource_density,
            economic_value=block.economic_value,
            area_id=block.area_id,
            area_name=area.name if area else None,
            contractor_id=contractor.id if contractor else None,
            contractor_name=contractor.name if contractor else None,
        ),
        counts=AnalyticsCounts(
            stations=len(stations),
            samples=len(samples),
            environmental_results=len(env_results),
            geological_results=len(geo_results),
        ),
        environmental_parameters=_parameter_stats(
            env_results,
            key=lambda r: (r.analysis_category, r.analysis_name),
            value=lambda r: r.analysis_value,
            unit=lambda r: r.units,
        ),
        resource_metrics=_parameter_stats(
            geo_results,
            key=lambda r: (r.category, r.analysis),
            value=lambda r: r.value,
            unit=lambda r: r.units,
        ),
        sample_types=_sample_types(samples),
        recent_stations=[
            StationSummary(
                station_id=s.id,
                station_code=s.code,
                station_type=s.station_type,
                latitude=s.latitude,
                longitude=s.longitude,
            )
            for s in recent[:RECENT_STATIONS_LIMIT]
        ],
    )


def expedition_days(cruises: Iterable[db_models.Cruise]) -> int:
    """Sum of inclusive day spans of cruises with both dates set."""
    return sum(
        (c.end_date - c.start_date).days + 1
        for c in cruises
        if c.start_date is not None and c.end_date is not None
    )


def get_contractor_summary(
    repository: database.SeabedRepositoryProtocol,
    contractor_id: int,
    today: datetime.date | None = None,
) -> ContractorSummary | None:
    """Count a contractor's areas, blocks, cruises, stations and samples.

    Args:
        repository: Source of entity collections.
        contractor_id: Contractor to summarise.
        today: Reference date for the contract duration; defaults to the
            current UTC date.

    Returns:
        ContractorSummary, or None if the contractor does not exist.
    """
    contractor = repository.get_contractor(contractor_id)
    if contractor is None:
        return None

    today = today or datetime.datetime.now(datetime.UTC).date()
    type_names = {t.id: t.name for t in repository.contract_types()}
    status_names = {s.id: s.name for s in repository.contract_statuses()}

    areas = [a for a in repository.areas() if a.contractor_id == contractor_id]
    area_ids = {a.id for a in areas}
    blocks = [b for b in repository.blocks() if b.area_id in area_ids]
    blocks_by_area = map_tree.group_by(blocks, lambda b: b.area_id)
    cruises = [c for c in repository.cruises() if c.contractor_id == contractor_id]
    stations = repository.stations_for_cruises([c.id for c in cruises])
    samples = repository.samples_for_stations([s.id for s in stations])

    start_dates = [c.start_date for c in cruises if c.start_date is not None]
    end_dates = [c.end_date for c in cruises if c.end_date is not None]

    return ContractorSummary(
        contractor=ContractorHeader(
            contractor_id=contractor.id,
            contractor_name=contractor.name,
            contract_type=type_names.get(contractor.contract_type_id),
            contract_status=status_names.get(contractor.contract_status_id),
            sponsoring_state=contractor.sponsoring_state,
            contractual_year=contractor.contractual_year,
            contract_duration=today.year - contractor.contractual_year,
        ),
        summary=ContractorTotals(
            total_areas=len(areas),
            total_blocks=len(blocks),
            total_area_km2=sum(b.area_size_km2 for b in blocks),
            total_cruises=len(cruises),
            total_stations=len(stations),
            total_samples=len(samples),
            earliest_cruise=min(start_dates, default=None),
            latest_cruise=max(end_dates, default=None),
            expedition_days=expedition_days(cruises),
        ),
        areas=[
            AreaBlockCount(
                area_id=a.id,
                area_name=a.name,
                total_area_size_km2=a.total_area_size_km2,
                block_count=len(blocks_by_area.get(a.id, [])),
            )
            for a in areas
        ],
    )
