"""Baseline providers for the filter engine.

A data source hands the engine the unfiltered map tree and the filter
dropdown options. ``LocalMapDataSource`` wraps an in-process
``MapFilterService``; ``HttpMapDataSource`` calls the HTTP API with httpx
and validates the JSON back into the same dataclasses with a pydantic
``TypeAdapter``, so the engine sees identical types either way.

Example:
    >>> source = HttpMapDataSource("http://localhost:8000")
    >>> tree = source.fetch_map_data()  # doctest: +SKIP
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Protocol

import httpx
import pydantic

from seabed.db import models as db_models
from seabed.services import map_filter, map_tree

if TYPE_CHECKING:
    from seabed.core import config

_MAP_DATA = pydantic.TypeAdapter(map_tree.MapDataView)
_CONTRACT_TYPES = pydantic.TypeAdapter(list[db_models.ContractType])
_CONTRACT_STATUSES = pydantic.TypeAdapter(list[db_models.ContractStatus])
_STRINGS = pydantic.TypeAdapter(list[str])
_INTS = pydantic.TypeAdapter(list[int])


class MapDataSource(Protocol):
    def fetch_map_data(self) -> map_tree.MapDataView: ...

    def fetch_filter_options(self) -> map_filter.FilterOptions: ...


class LocalMapDataSource:
    """Reads straight from a ``MapFilterService`` in the same process.

    The service returns the tree object held in its cache, so each fetch
    hands out a deep copy the caller is free to modify.
    """

    def __init__(self, service: map_filter.MapFilterService) -> None:
        self.service = service

    def fetch_map_data(self) -> map_tree.MapDataView:
        return copy.deepcopy(self.service.get_map_data(map_tree.MapFilter()))

    def fetch_filter_options(self) -> map_filter.FilterOptions:
        return self.service.get_filter_options()


class HttpMapDataSource:
    """Reads the map tree and reference lookups from the HTTP API."""

    def __init__(
        self,
        base_url: str,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Create the source.

        Args:
            base_url: Root URL of the API, e.g. ``http://localhost:8000``.
            client: Preconfigured client; one is created when omitted. The
                caller owns a client passed in here.
            timeout: Request timeout in seconds for the created client.
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: config.Settings) -> HttpMapDataSource:
        return cls(str(settings.api_base_url))

    def _get(self, path: str) -> bytes:
        response = self._client.get(f"{self.base_url}/api/map-filter/{path}")
        response.raise_for_status()
        return response.content

    def fetch_map_data(self) -> map_tree.MapDataView:
        return _MAP_DATA.validate_json(self._get("map-data"))

    def fetch_filter_options(self) -> map_filter.FilterOptions:
        return map_filter.FilterOptions(
            contract_types=_CONTRACT_TYPES.validate_json(self._get("contract-types")),
            contract_statuses=_CONTRACT_STATUSES.validate_json(
                self._get("contract-statuses")
            ),
            sponsoring_states=_STRINGS.validate_json(self._get("sponsoring-states")),
            contractual_years=_INTS.validate_json(self._get("contractual-years")),
        )

    def close(self) -> None:
        self._client.close()
