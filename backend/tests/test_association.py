"""Tests for linking stations to the block that contains them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from seabed.db import database
from seabed.db import models as db_models
from seabed.services import association, geometry

if TYPE_CHECKING:
    import pytest


def _assignments(repo: database.InMemorySeabedRepository) -> dict[int, int | None]:
    return {s.id: s.block_id for s in repo.stations()}


def test_find_block_for_point(
    seeded_repo: database.InMemorySeabedRepository,
) -> None:
    """Test point lookups inside, between and outside blocks."""
    service = association.AssociationService(seeded_repo)
    assert service.find_block_for_point(7, -133) == 100
    assert service.find_block_for_point(12, -128) == 101
    assert service.find_block_for_point(-15, 70) == 200
    assert service.find_block_for_point(30, 0) is None


def test_find_block_first_match_wins_on_overlap() -> None:
    """Test that overlapping blocks resolve to the first stored one."""
    repo = database.InMemorySeabedRepository()
    repo.add_all(
        [
            db_models.Block(
                id=2,
                area_id=1,
                name="second-id-first-stored",
                geojson_boundary=geometry.rectangle_feature(0, 0, 2, 2),
            ),
            db_models.Block(
                id=1,
                area_id=1,
                name="overlapping",
                geojson_boundary=geometry.rectangle_feature(0, 0, 2, 2),
            ),
        ]
    )
    service = association.AssociationService(repo)
    assert service.find_block_for_point(1, 1) == 2


def test_find_block_skips_unusable_boundaries() -> None:
    """Test that empty and malformed boundaries never match."""
    repo = database.InMemorySeabedRepository()
    repo.add_all(
        [
            db_models.Block(id=1, area_id=1, name="empty"),
            db_models.Block(id=2, area_id=1, name="broken", geojson_boundary="{"),
            db_models.Block(
                id=3,
                area_id=1,
                name="good",
                geojson_boundary=geometry.rectangle_feature(0, 0, 2, 2),
            ),
        ]
    )
    service = association.AssociationService(repo)
    assert service.find_block_for_point(1, 1) == 3


def test_associate_all_stations(
    seeded_repo: database.InMemorySeabedRepository,
) -> None:
    """Test a full association run."""
    service = association.AssociationService(seeded_repo)
    assert service.associate_all_stations() is True
    assert _assignments(seeded_repo) == {1: 100, 2: 100, 3: 101, 4: None, 5: 200}


def test_associate_all_stations_is_idempotent(
    seeded_repo: database.InMemorySeabedRepository,
) -> None:
    """Test that a second run with unchanged geometry changes nothing."""
    service = association.AssociationService(seeded_repo)
    assert service.associate_all_stations() is True
    first = _assignments(seeded_repo)
    assert service.associate_all_stations() is True
    assert _assignments(seeded_repo) == first


def test_associate_all_stations_with_no_matches() -> None:
    """Test that a run with nothing to link still succeeds."""
    repo = database.InMemorySeabedRepository()
    repo.add(
        db_models.Station(id=1, cruise_id=1, code="ST", latitude=0, longitude=0)
    )
    assert association.AssociationService(repo).associate_all_stations() is True
    assert repo.stations()[0].block_id is None


def test_associate_all_stations_save_failure(
    seeded_repo: database.InMemorySeabedRepository,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test that a failing save returns False and logs the error."""

    def failing_update(assignments: object) -> None:
        raise RuntimeError("connection lost")

    monkeypatch.setattr(seeded_repo, "update_station_blocks", failing_update)
    service = association.AssociationService(seeded_repo)
    with caplog.at_level(logging.ERROR, logger="seabed.services.association"):
        assert service.associate_all_stations() is False
    assert "association failed" in caplog.text
    assert all(s.block_id is None for s in seeded_repo.stations())
