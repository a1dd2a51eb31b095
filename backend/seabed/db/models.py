"""Data models for seabed exploration records.

This module defines the flat entity records the rest of the application
reads from a repository. Records reference their parents by integer id only
(contractor -> area -> block, contractor -> cruise -> station -> sample ->
results/media); no record holds a pointer to another record, so the data
forms a forest that is navigated through id-indexed lookups.

Boundaries are GeoJSON Feature strings with a Polygon geometry whose first
ring is the outer boundary in (lon, lat) order.

Example:
    Creating a contractor with one area and one block:
        >>> from seabed.db import models as db_models
        >>> contractor = db_models.Contractor(
        ...     id=1,
        ...     name="Ocean Minerals Ltd",
        ...     contract_type_id=1,
        ...     contract_status_id=1,
        ...     sponsoring_state="Norway",
        ...     contractual_year=2020,
        ... )
        >>> area = db_models.Area(id=10, contractor_id=1, name="North Area")
        >>> block = db_models.Block(id=100, area_id=10, name="B-1")

    Stations start unassociated; only the association service sets
    ``block_id``:
        >>> station = db_models.Station(
        ...     id=5, cruise_id=3, code="ST-5", latitude=0.5, longitude=0.5
        ... )
        >>> station.block_id is None
        True
"""

from __future__ import annotations

import dataclasses
import datetime


@dataclasses.dataclass
class ContractType:
    id: int
    name: str


@dataclasses.dataclass
class ContractStatus:
    id: int
    name: str


@dataclasses.dataclass
class Contractor:
    """An exploration contract holder.

    Attributes:
        id: Contractor identifier.
        name: Contractor display name.
        contract_type_id: Reference to a ContractType.
        contract_status_id: Reference to a ContractStatus.
        sponsoring_state: State sponsoring the contract.
        contractual_year: Year the contract was signed.
        contract_number: Registry number of the contract.
        remarks: Free-text remarks.
    """

    id: int
    name: str
    contract_type_id: int
    contract_status_id: int
    sponsoring_state: str
    contractual_year: int
    contract_number: str = ""
    remarks: str = ""


@dataclasses.dataclass
class Area:
    """A licensed exploration area owned by one contractor."""

    id: int
    contractor_id: int
    name: str
    description: str = ""
    geojson_boundary: str = ""
    center_latitude: float | None = None
    center_longitude: float | None = None
    total_area_size_km2: float = 0.0
    allocation_date: datetime.date | None = None
    expiry_date: datetime.date | None = None


@dataclasses.dataclass
class Block:
    """An administrative block inside one area.

    ``status`` is a free-text category (active, pending, inactive,
    reserved, ...) and is not validated.
    """

    id: int
    area_id: int
    name: str
    description: str = ""
    status: str = ""
    geojson_boundary: str = ""
    center_latitude: float | None = None
    center_longitude: float | None = None
    area_size_km2: float = 0.0
    category: str | None = None
    resource_density: float = 0.0
    economic_value: float = 0.0


@dataclasses.dataclass
class Cruise:
    id: int
    contractor_id: int
    name: str
    research_vessel: str = ""
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None


@dataclasses.dataclass
class Station:
    """A sampling position visited on a cruise.

    ``block_id`` is written only by the association service.
    """

    id: int
    cruise_id: int
    code: str
    latitude: float
    longitude: float
    station_type: str = ""
    block_id: int | None = None


@dataclasses.dataclass
class Sample:
    id: int
    station_id: int
    code: str
    sample_type: str = ""
    matrix_type: str = ""
    habitat_type: str = ""
    sampling_device: str = ""
    depth_lower: float = 0.0
    depth_upper: float = 0.0
    description: str = ""
    analysis: str = ""
    result: str = ""
    unit: str = ""


@dataclasses.dataclass
class EnvResult:
    id: int
    sample_id: int
    analysis_category: str
    analysis_name: str
    analysis_value: float
    units: str = ""
    remarks: str = ""


@dataclasses.dataclass
class GeoResult:
    id: int
    sample_id: int
    category: str
    analysis: str
    value: float
    units: str = ""
    qualifier: str = ""
    remarks: str = ""


@dataclasses.dataclass
class Media:
    id: int
    sample_id: int
    file_name: str
    media_type: str = ""
    camera_specs: str = ""
    capture_date: datetime.date | None = None
    remarks: str = ""
