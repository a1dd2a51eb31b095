"""Shared fixtures: a small, fully linked exploration dataset.

Layout of the seeded data:

    Ocean Minerals Ltd (id 1, Norway, 2020, no remarks)
        area 10 "CCZ North", center (10, -130)
            block 100: 5..10 N, 135..130 W
            block 101: 10..15 N, 130..125 W
        cruise 1000 (2021-03-01..2021-03-10): stations 1, 2 in block 100
        cruise 1001 (2022-05-01..2022-05-05): station 3 in block 101,
            station 4 outside every block
    Deep Sea Resources (id 2, Japan, 2024)
        area 20 "Indian Ridge", no center
            block 200: 20..10 S, 65..75 E, center (-12, 70)
            block 201: no boundary
        cruise 2000 (2024-01-10..2024-01-20): station 5 in block 200

Stations start without ``block_id``; use ``associated_repo`` for the
linked state.
"""

from __future__ import annotations

import datetime

import pytest

from seabed.db import database
from seabed.db import models as db_models
from seabed.services import association, geometry


def seed(repo: database.InMemorySeabedRepository) -> database.InMemorySeabedRepository:
    """Load the shared dataset into ``repo`` and return it."""
    repo.add_all(
        [
            db_models.ContractType(id=1, name="Polymetallic Nodules"),
            db_models.ContractType(id=2, name="Polymetallic Sulphides"),
            db_models.ContractStatus(id=1, name="Active"),
            db_models.ContractStatus(id=2, name="Pending"),
            db_models.Contractor(
                id=1,
                name="Ocean Minerals Ltd",
                contract_type_id=1,
                contract_status_id=1,
                sponsoring_state="Norway",
                contractual_year=2020,
                contract_number="ISA-001",
            ),
            db_models.Contractor(
                id=2,
                name="Deep Sea Resources",
                contract_type_id=2,
                contract_status_id=2,
                sponsoring_state="Japan",
                contractual_year=2024,
                contract_number="ISA-002",
                remarks="Renewed",
            ),
            db_models.Area(
                id=10,
                contractor_id=1,
                name="CCZ North",
                geojson_boundary=geometry.rectangle_feature(5, -135, 15, -125),
                center_latitude=10.0,
                center_longitude=-130.0,
                total_area_size_km2=250.0,
                allocation_date=datetime.date(2020, 6, 1),
            ),
            db_models.Area(
                id=20,
                contractor_id=2,
                name="Indian Ridge",
                geojson_boundary=geometry.rectangle_feature(-20, 65, -10, 75),
                total_area_size_km2=250.0,
            ),
            db_models.Block(
                id=100,
                area_id=10,
                name="B-100",
                status="active",
                geojson_boundary=geometry.rectangle_feature(5, -135, 10, -130),
                center_latitude=7.5,
                center_longitude=-132.5,
                area_size_km2=100.0,
                category="nodules",
                resource_density=12.5,
                economic_value=1000.0,
            ),
            db_models.Block(
                id=101,
                area_id=10,
                name="B-101",
                status="pending",
                geojson_boundary=geometry.rectangle_feature(10, -130, 15, -125),
                center_latitude=12.5,
                center_longitude=-127.5,
                area_size_km2=150.0,
            ),
            db_models.Block(
                id=200,
                area_id=20,
                name="B-200",
                status="active",
                geojson_boundary=geometry.rectangle_feature(-20, 65, -10, 75),
                center_latitude=-12.0,
                center_longitude=70.0,
                area_size_km2=200.0,
            ),
            db_models.Block(id=201, area_id=20, name="B-201", area_size_km2=50.0),
            db_models.Cruise(
                id=1000,
                contractor_id=1,
                name="CCZ-2021",
                research_vessel="RV Explorer",
                start_date=datetime.date(2021, 3, 1),
                end_date=datetime.date(2021, 3, 10),
            ),
            db_models.Cruise(
                id=1001,
                contractor_id=1,
                name="CCZ-2022",
                research_vessel="RV Explorer",
                start_date=datetime.date(2022, 5, 1),
                end_date=datetime.date(2022, 5, 5),
            ),
            db_models.Cruise(
                id=2000,
                contractor_id=2,
                name="IR-2024",
                research_vessel="RV Kaiko",
                start_date=datetime.date(2024, 1, 10),
                end_date=datetime.date(2024, 1, 20),
            ),
            db_models.Station(
                id=1, cruise_id=1000, code="ST-1", latitude=7.0, longitude=-133.0
            ),
            db_models.Station(
                id=2, cruise_id=1000, code="ST-2", latitude=8.0, longitude=-131.0
            ),
            db_models.Station(
                id=3, cruise_id=1001, code="ST-3", latitude=12.0, longitude=-128.0
            ),
            db_models.Station(
                id=4, cruise_id=1001, code="ST-4", latitude=30.0, longitude=0.0
            ),
            db_models.Station(
                id=5, cruise_id=2000, code="ST-5", latitude=-15.0, longitude=70.0
            ),
            db_models.Sample(
                id=1,
                station_id=1,
                code="S-1",
                sample_type="Sediment",
                depth_lower=0.0,
                depth_upper=10.0,
            ),
            db_models.Sample(
                id=2,
                station_id=1,
                code="S-2",
                sample_type="Nodule",
                depth_lower=0.0,
                depth_upper=5.0,
            ),
            db_models.Sample(
                id=3,
                station_id=2,
                code="S-3",
                sample_type="Sediment",
                depth_lower=5.0,
                depth_upper=20.0,
            ),
            db_models.Sample(
                id=4,
                station_id=5,
                code="S-4",
                sample_type="Water",
                depth_lower=100.0,
                depth_upper=200.0,
            ),
            db_models.EnvResult(
                id=1,
                sample_id=1,
                analysis_category="Chemistry",
                analysis_name="pH",
                analysis_value=7.8,
                units="pH",
            ),
            db_models.EnvResult(
                id=2,
                sample_id=3,
                analysis_category="Chemistry",
                analysis_name="pH",
                analysis_value=8.0,
                units="pH units",
            ),
            db_models.EnvResult(
                id=3,
                sample_id=1,
                analysis_category="Physical",
                analysis_name="Temperature",
                analysis_value=2.5,
                units="C",
            ),
            db_models.EnvResult(
                id=4,
                sample_id=4,
                analysis_category="Chemistry",
                analysis_name="pH",
                analysis_value=7.5,
                units="pH",
            ),
            db_models.GeoResult(
                id=1,
                sample_id=2,
                category="Metals",
                analysis="Mn",
                value=28.0,
                units="%",
            ),
            db_models.GeoResult(
                id=2,
                sample_id=2,
                category="Metals",
                analysis="Ni",
                value=1.3,
                units="%",
            ),
            db_models.GeoResult(
                id=3,
                sample_id=3,
                category="Metals",
                analysis="Mn",
                value=24.0,
                units="%",
            ),
            db_models.Media(
                id=1, sample_id=1, file_name="s1.jpg", media_type="photo"
            ),
            db_models.Media(
                id=2, sample_id=2, file_name="s2.mp4", media_type="video"
            ),
        ]
    )
    return repo


@pytest.fixture
def seeded_repo() -> database.InMemorySeabedRepository:
    """Seeded repository with no station linked to a block yet."""
    return seed(database.InMemorySeabedRepository())


@pytest.fixture
def associated_repo(
    seeded_repo: database.InMemorySeabedRepository,
) -> database.InMemorySeabedRepository:
    """Seeded repository after one association run."""
    assert association.AssociationService(seeded_repo).associate_all_stations()
    return seeded_repo


class FakeClock:
    """Manually advanced monotonic clock for cache tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
