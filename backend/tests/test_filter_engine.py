"""Tests for client-side re-filtering of the map tree."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from seabed.client import data_sources, filter_engine
from seabed.core import config
from seabed.services import cache, map_filter, map_tree

if TYPE_CHECKING:
    from seabed.db import database


class CountingSource:
    """Local source that records how often the tree was fetched."""

    def __init__(self, service: map_filter.MapFilterService) -> None:
        self._inner = data_sources.LocalMapDataSource(service)
        self.map_data_calls = 0

    def fetch_map_data(self) -> map_tree.MapDataView:
        self.map_data_calls += 1
        return self._inner.fetch_map_data()

    def fetch_filter_options(self) -> map_filter.FilterOptions:
        return self._inner.fetch_filter_options()


@pytest.fixture
def source(associated_repo: database.InMemorySeabedRepository) -> CountingSource:
    service = map_filter.MapFilterService(associated_repo, cache.TTLCache())
    return CountingSource(service)


@pytest.fixture
def engine(source: CountingSource) -> filter_engine.FilterEngine:
    engine = filter_engine.FilterEngine(source)
    engine.load()
    return engine


def _contractor_ids(view: map_tree.MapDataView | None) -> list[int]:
    assert view is not None
    return [c.contractor_id for c in view.contractors]


def _cruise_ids(view: map_tree.MapDataView | None) -> list[int]:
    assert view is not None
    return [c.cruise_id for c in view.cruises]


def test_load_shows_baseline(engine: filter_engine.FilterEngine) -> None:
    """Test that the working view starts as the baseline itself."""
    assert engine.current is engine.original
    assert _contractor_ids(engine.current) == [1, 2]
    assert engine.options is not None


def test_clearing_every_predicate_restores_baseline_reference(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that no active predicate means no recomputation."""
    engine.apply_filters(year=2020)
    assert engine.current is not engine.original
    for cleared in (None, "", "all"):
        engine.apply_filters(year=2020)
        engine.apply_filters(year=cleared)
        assert engine.current is engine.original


def test_filtering_never_mutates_baseline(engine: filter_engine.FilterEngine) -> None:
    """Test that filtered views are copies of the baseline."""
    original = engine.original
    assert original is not None
    engine.apply_filters(sponsoring_state="Norway")
    assert engine.current is not None
    engine.current.contractors[0].contractor_name = "changed"
    assert original.contractors[0].contractor_name == "Ocean Minerals Ltd"
    assert _contractor_ids(original) == [1, 2]


@pytest.mark.parametrize(
    ("changes", "contractors", "cruises"),
    [
        ({"sponsoring_state": "Japan"}, [2], [2000]),
        ({"year": 2020}, [1], [1000, 1001]),
        ({"contract_type_id": 2}, [2], [2000]),
        ({"contract_status_id": 1}, [1], [1000, 1001]),
        ({"contract_type_id": 99}, [1, 2], [1000, 1001, 2000]),
        ({"sponsoring_state": "Norway", "year": 2024}, [], []),
    ],
)
def test_predicates(
    engine: filter_engine.FilterEngine,
    changes: dict[str, object],
    contractors: list[int],
    cruises: list[int],
) -> None:
    """Test individual and combined predicates."""
    view = engine.apply_filters(**changes)
    assert _contractor_ids(view) == contractors
    assert _cruise_ids(view) == cruises


def test_contractor_predicate_keeps_its_cruises(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that a chosen contractor keeps its cruises when year excludes it."""
    view = engine.apply_filters(contractor_id=1, year=2024)
    assert _cruise_ids(view) == [1000, 1001]
    assert _contractor_ids(view) == []


def test_contractor_predicate_matches_server_tree(
    engine: filter_engine.FilterEngine,
    associated_repo: database.InMemorySeabedRepository,
) -> None:
    """Test that local and server filtering agree for the same filter."""
    server = map_tree.build_filtered_tree(
        associated_repo, map_tree.MapFilter(contractor_id=1, year=2024)
    )
    view = engine.apply_filters(contractor_id=1, year=2024)
    assert _contractor_ids(view) == _contractor_ids(server)
    assert _cruise_ids(view) == _cruise_ids(server)


def test_pinned_contractor_keeps_its_cruises(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that a clicked contractor's timeline survives predicates."""
    engine.apply_filters(year=2024)
    view = engine.set_pinned_selection(contractor_id=1)
    assert _cruise_ids(view) == [1000, 1001]
    assert _contractor_ids(view) == [2]


def test_pinned_cruise_survives_excluding_predicate(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that a selected cruise and its contractor stay visible."""
    engine.set_pinned_selection(cruise_id=2000)
    view = engine.apply_filters(sponsoring_state="Norway")
    assert 2000 in _cruise_ids(view)
    assert 2 in _contractor_ids(view)
    assert _cruise_ids(view) == [1000, 1001, 2000]


def test_location_filters_contractors_by_area_center(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test the location predicate using area centers."""
    view = engine.apply_filters(location_id="clarion-clipperton")
    assert _contractor_ids(view) == [1]
    assert _cruise_ids(view) == [1000, 1001]


def test_location_falls_back_to_block_centers(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that an area without a center is matched through its blocks."""
    view = engine.apply_filters(location_id="central-indian-ocean")
    assert _contractor_ids(view) == [2]
    assert _cruise_ids(view) == [2000]


def test_location_filters_cruises_by_stations(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test the cruise location pass."""
    view = engine.apply_filters(sponsoring_state="Norway", location_id="indian-ocean")
    assert _contractor_ids(view) == []
    assert _cruise_ids(view) == []


def test_location_cruise_pass_exempts_pinned_cruise(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that the pinned cruise is kept outside the chosen region."""
    engine.set_pinned_selection(cruise_id=1000)
    view = engine.apply_filters(location_id="central-indian-ocean")
    assert _cruise_ids(view) == [2000, 1000]
    assert _contractor_ids(view) == [2, 1]


def test_location_cruise_pass_skipped_for_pinned_contractor(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that a pinned contractor's cruises are not location filtered."""
    engine.set_pinned_selection(contractor_id=1)
    view = engine.apply_filters(location_id="central-indian-ocean")
    assert _cruise_ids(view) == [1000, 1001]


def test_unknown_location_places_no_constraint(
    engine: filter_engine.FilterEngine,
) -> None:
    """Test that an unknown region id is ignored."""
    view = engine.apply_filters(location_id="atlantis")
    assert _contractor_ids(view) == [1, 2]
    assert _cruise_ids(view) == [1000, 1001, 2000]


def test_failure_falls_back_to_baseline(
    engine: filter_engine.FilterEngine,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test that a recompute error shows the baseline and is only logged."""

    def boom(contractors: object) -> object:
        raise ValueError("bad data")

    monkeypatch.setattr(engine, "_filter_contractors", boom)
    with caplog.at_level(logging.ERROR, logger="seabed.client.filter_engine"):
        view = engine.apply_filters(year=2020)
    assert view is engine.original
    assert "Client-side filtering failed" in caplog.text


def test_predicate_changes_do_not_refetch(
    engine: filter_engine.FilterEngine, source: CountingSource
) -> None:
    """Test that filtering works on the cached baseline only."""
    engine.apply_filters(year=2020)
    engine.set_pinned_selection(cruise_id=2000)
    engine.apply_filters(location_id="indian-ocean")
    assert source.map_data_calls == 1


def test_reset_reuses_cached_baseline(
    engine: filter_engine.FilterEngine, source: CountingSource
) -> None:
    """Test that reset clears state without fetching."""
    engine.apply_filters(year=2020)
    engine.set_pinned_selection(cruise_id=2000)
    view = engine.reset()
    assert view is engine.original
    assert engine.predicates == filter_engine.FilterPredicates()
    assert engine.pinned == filter_engine.PinnedSelection()
    assert source.map_data_calls == 1


def test_reset_without_baseline_fetches(source: CountingSource) -> None:
    """Test that reset loads when nothing is cached yet."""
    engine = filter_engine.FilterEngine(source)
    engine.apply_filters(year=2020)
    assert engine.current is None
    view = engine.reset()
    assert view is not None
    assert source.map_data_calls == 1


def test_refresh_refetches_and_reapplies(
    engine: filter_engine.FilterEngine, source: CountingSource
) -> None:
    """Test an explicit refresh."""
    engine.apply_filters(year=2020)
    view = engine.refresh()
    assert source.map_data_calls == 2
    assert _contractor_ids(view) == [1]


def test_summarize_requires_dev_mode(
    engine: filter_engine.FilterEngine, source: CountingSource
) -> None:
    """Test that diagnostics are only exposed in dev mode."""
    with pytest.raises(RuntimeError):
        engine.summarize()

    dev_engine = filter_engine.FilterEngine(source, dev_mode=True)
    dev_engine.load()
    assert dev_engine.summarize() == filter_engine.FilterSummary(
        contractors=2, cruises=3, cruises_with_stations=3, stations=5
    )


def test_from_settings_uses_dev_mode(source: CountingSource) -> None:
    """Test building an engine from settings."""
    settings = config.Settings(dev_mode=True)
    engine = filter_engine.FilterEngine.from_settings(settings, source)
    assert engine.dev_mode is True
    assert engine.source is source


def test_unknown_predicate_is_ignored(
    engine: filter_engine.FilterEngine,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test that an unknown filter name is logged instead of raising."""
    with caplog.at_level(logging.WARNING, logger="seabed.client.filter_engine"):
        view = engine.apply_filters(depth=4000, year=2020)
    assert _contractor_ids(view) == [1]
    assert engine.predicates == filter_engine.FilterPredicates(year=2020)
    assert "depth" in caplog.text


def test_local_baseline_is_independent_of_server_cache(
    associated_repo: database.InMemorySeabedRepository,
) -> None:
    """Test that editing the loaded baseline leaves the cached tree intact."""
    service = map_filter.MapFilterService(associated_repo, cache.TTLCache())
    engine = filter_engine.FilterEngine(data_sources.LocalMapDataSource(service))
    engine.load()
    assert engine.current is not None
    engine.current.contractors[0].contractor_name = "changed"
    engine.current.cruises.clear()

    cached = service.get_map_data(map_tree.MapFilter())
    assert cached.contractors[0].contractor_name == "Ocean Minerals Ltd"
    assert _cruise_ids(cached) == [1000, 1001, 2000]
