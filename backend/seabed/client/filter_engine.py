"""Local re-filtering of the map tree.

``FilterEngine`` keeps the last unfiltered tree fetched from a data source
(``original``) and a working view (``current``). Changing a predicate or
the pinned selection recomputes ``current`` synchronously from
``original``; the data source is only contacted by ``load``, ``refresh`` or
a ``reset`` with nothing cached.

Recompute rules:

1. No active predicate: ``current`` is ``original`` itself.
2. Otherwise contractors are filtered, in this order, by contractor id,
   contract type name, contract status name, sponsoring state, contractual
   year and named location. A contractor matches a location when any area
   center, or for an area without a center any block center, lies inside
   it.
3. A pinned contractor brings all of its cruises regardless of the
   predicates. The contractor list itself is not widened. Without a pin,
   cruises follow the filtered contractors.
4. A pinned cruise and its contractor are always present.
5. Without a pinned contractor, a location predicate also filters cruises
   by station positions, or by the cruise center for cruises without
   stations. The pinned cruise is exempt.
6. ``current`` is replaced by a new object; ``original`` is never mutated.

Any exception during a recompute leaves ``current = original`` and is
logged; it never reaches the caller.

Example:
    >>> from seabed.client import data_sources
    >>> engine = FilterEngine(data_sources.LocalMapDataSource(service))
    >>> engine.load()  # doctest: +SKIP
    >>> engine.apply_filters(sponsoring_state="Norway")  # doctest: +SKIP
    >>> engine.current.contractors  # doctest: +SKIP
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from seabed.client import data_sources, locations
from seabed.services import map_tree

if TYPE_CHECKING:
    from seabed.core import config
    from seabed.services import map_filter

logger = logging.getLogger(__name__)

_CLEARED_VALUES = (None, "", "all")


@dataclasses.dataclass(frozen=True)
class FilterPredicates:
    """Active dropdown filters. None means the filter is off."""

    contractor_id: int | None = None
    contract_type_id: int | None = None
    contract_status_id: int | None = None
    sponsoring_state: str | None = None
    year: int | None = None
    location_id: str | None = None

    def is_empty(self) -> bool:
        return all(
            getattr(self, f.name) is None for f in dataclasses.fields(self)
        )


_PREDICATE_NAMES = frozenset(f.name for f in dataclasses.fields(FilterPredicates))


@dataclasses.dataclass(frozen=True)
class PinnedSelection:
    """Entities the user clicked on; they survive predicate changes."""

    contractor_id: int | None = None
    cruise_id: int | None = None


@dataclasses.dataclass
class FilterSummary:
    contractors: int
    cruises: int
    cruises_with_stations: int
    stations: int


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
    return None if value in _CLEARED_VALUES else value


class FilterEngine:
    """Holds the baseline tree and derives the filtered working view."""

    def __init__(
        self,
        source: data_sources.MapDataSource,
        dev_mode: bool = False,
    ) -> None:
        """Create an engine with nothing loaded.

        Args:
            source: Provider of the unfiltered tree and filter options.
            dev_mode: Enables ``summarize`` and per-recompute debug logs.
        """
        self.source = source
        self.dev_mode = dev_mode
        self.original: map_tree.MapDataView | None = None
        self.current: map_tree.MapDataView | None = None
        self.options: map_filter.FilterOptions | None = None
        self.predicates = FilterPredicates()
        self.pinned = PinnedSelection()

    @classmethod
    def from_settings(
        cls,
        settings: config.Settings,
        source: data_sources.MapDataSource | None = None,
    ) -> FilterEngine:
        """Engine over ``source``, or over the HTTP API at ``api_base_url``."""
        if source is None:
            source = data_sources.HttpMapDataSource.from_settings(settings)
        return cls(source, dev_mode=settings.dev_mode)

    def load(self) -> map_tree.MapDataView:
        """Fetch filter options and the unfiltered tree from the source.

        Errors from the source propagate; the previous state is kept.
        """
        options = self.source.fetch_filter_options()
        tree = self.source.fetch_map_data()
        self.options = options
        self.original = tree
        self._recompute()
        return tree

    def refresh(self) -> map_tree.MapDataView:
        """Refetch the baseline and reapply the current filters."""
        self.load()
        return self.current

    def apply_filters(self, **changes: Any) -> map_tree.MapDataView | None:
        """Set or clear predicates and recompute.

        Keyword names are ``FilterPredicates`` fields. None, an empty
        string or ``"all"`` clears that predicate. Unknown names are
        logged and ignored.
        """
        unknown = sorted(changes.keys() - _PREDICATE_NAMES)
        if unknown:
            logger.warning("Ignoring unknown filter predicates: %s", unknown)
        normalized = {
            name: _normalize(value)
            for name, value in changes.items()
            if name in _PREDICATE_NAMES
        }
        self.predicates = dataclasses.replace(self.predicates, **normalized)
        self._recompute()
        return self.current

    def set_pinned_selection(
        self,
        contractor_id: int | None = None,
        cruise_id: int | None = None,
    ) -> map_tree.MapDataView | None:
        """Replace the pinned selection and recompute."""
        self.pinned = PinnedSelection(contractor_id=contractor_id, cruise_id=cruise_id)
        self._recompute()
        return self.current

    def reset(self) -> map_tree.MapDataView | None:
        """Clear predicates and pins and show the baseline.

        The cached baseline is reused; the source is only contacted when
        nothing has been loaded yet.
        """
        self.predicates = FilterPredicates()
        self.pinned = PinnedSelection()
        if self.original is None:
            return self.load()
        self.current = self.original
        return self.current

    def summarize(self) -> FilterSummary:
        """Counts of the working view. Only available in dev mode."""
        if not self.dev_mode:
            raise RuntimeError("summarize() requires dev_mode=True")
        view = self.current or map_tree.MapDataView()
        return FilterSummary(
            contractors=len(view.contractors),
            cruises=len(view.cruises),
            cruises_with_stations=sum(1 for c in view.cruises if c.stations),
            stations=sum(len(c.stations) for c in view.cruises),
        )

    def _recompute(self) -> None:
        if self.original is None:
            return
        if self.predicates.is_empty():
            self.current = self.original
            return
        try:
            self.current = self._filtered_view()
        except Exception:
            logger.exception("Client-side filtering failed; showing unfiltered data")
            self.current = self.original
            return
        if self.dev_mode:
            logger.debug("Filtered view: %s", self.summarize())

    def _option_name(self, options: list[Any], option_id: int) -> str | None:
        return next((o.name for o in options if o.id == option_id), None)

    def _contractor_in_location(
        self, contractor: map_tree.ContractorView, location_id: str
    ) -> bool:
        for area in contractor.areas:
            if area.center_latitude is not None and area.center_longitude is not None:
                if locations.is_point_in_location(
                    area.center_latitude, area.center_longitude, location_id
                ):
                    return True
                continue
            for block in area.blocks:
                if (
                    block.center_latitude is not None
                    and block.center_longitude is not None
                    and locations.is_point_in_location(
                        block.center_latitude, block.center_longitude, location_id
                    )
                ):
                    return True
        return False

    @staticmethod
    def _cruise_in_location(cruise: map_tree.CruiseView, location_id: str) -> bool:
        if cruise.stations:
            return any(
                locations.is_point_in_location(s.latitude, s.longitude, location_id)
                for s in cruise.stations
            )
        if cruise.center_latitude is not None and cruise.center_longitude is not None:
            return locations.is_point_in_location(
                cruise.center_latitude, cruise.center_longitude, location_id
            )
        return False

    def _filter_contractors(
        self, contractors: list[map_tree.ContractorView]
    ) -> list[map_tree.ContractorView]:
        p = self.predicates
        if p.contractor_id is not None:
            contractors = [c for c in contractors if c.contractor_id == p.contractor_id]
        if p.contract_type_id is not None and self.options is not None:
            name = self._option_name(self.options.contract_types, p.contract_type_id)
            if name is not None:
                contractors = [c for c in contractors if c.contract_type == name]
        if p.contract_status_id is not None and self.options is not None:
            name = self._option_name(
                self.options.contract_statuses, p.contract_status_id
            )
            if name is not None:
                contractors = [c for c in contractors if c.contract_status == name]
        if p.sponsoring_state is not None:
            contractors = [
                c for c in contractors if c.sponsoring_state == p.sponsoring_state
            ]
        if p.year is not None:
            contractors = [c for c in contractors if c.contractual_year == p.year]
        if p.location_id is not None and locations.get_location_boundary(
            p.location_id
        ):
            contractors = [
                c
                for c in contractors
                if self._contractor_in_location(c, p.location_id)
            ]
        return contractors

    def _filtered_view(self) -> map_tree.MapDataView:
        baseline = copy.deepcopy(self.original)
        contractors = self._filter_contractors(baseline.contractors)

        pinned_contractor_id = (
            self.pinned.contractor_id
            if self.pinned.contractor_id is not None
            else self.predicates.contractor_id
        )

        if pinned_contractor_id is not None:
            cruises = [
                c for c in baseline.cruises if c.contractor_id == pinned_contractor_id
            ]
        else:
            contractor_ids = {c.contractor_id for c in contractors}
            cruises = [c for c in baseline.cruises if c.contractor_id in contractor_ids]

        pinned_cruise_id = self.pinned.cruise_id
        pinned_cruise = next(
            (c for c in baseline.cruises if c.cruise_id == pinned_cruise_id), None
        )
        if pinned_cruise is not None:
            if all(c.cruise_id != pinned_cruise_id for c in cruises):
                cruises.append(pinned_cruise)
            parent_id = pinned_cruise.contractor_id
            if all(c.contractor_id != parent_id for c in contractors):
                contractors.extend(
                    c for c in baseline.contractors if c.contractor_id == parent_id
                )

        location_id = self.predicates.location_id
        if (
            location_id is not None
            and pinned_contractor_id is None
            and locations.get_location_boundary(location_id)
        ):
            cruises = [
                c
                for c in cruises
                if c.cruise_id == pinned_cruise_id
                or self._cruise_in_location(c, location_id)
            ]

        return map_tree.MapDataView(contractors=contractors, cruises=cruises)
