"""Station to block association.

Assigns each station to the block whose boundary contains the station's
position. Blocks are tested in storage order and the first match wins;
overlapping block polygons therefore resolve by that order.

A run reads stations and blocks once, computes every assignment in memory
and persists them with a single batched write. Runs are sequential, have no
timeout or progress reporting, and are not mutually exclusive: two
concurrent runs each write their own batch and the last write per station
wins. Stations outside every block keep their current ``block_id``.

Example:
    >>> from seabed.db import database
    >>> from seabed.services.association import AssociationService
    >>> service = AssociationService(database.InMemorySeabedRepository())
    >>> service.associate_all_stations()
    True
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from seabed.services import geometry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from seabed.db import database
    from seabed.db import models as db_models

logger = logging.getLogger(__name__)


class AssociationService:
    """Writes ``Station.block_id`` from point-in-polygon tests."""

    def __init__(self, repository: database.SeabedRepositoryProtocol) -> None:
        self.repository = repository

    @staticmethod
    def _first_containing_block(
        lat: float,
        lon: float,
        blocks: Sequence[db_models.Block],
    ) -> int | None:
        for block in blocks:
            if not block.geojson_boundary:
                continue
            if geometry.contains_point(lat, lon, block.geojson_boundary):
                return block.id
        return None

    def find_block_for_point(self, lat: float, lon: float) -> int | None:
        """Return the id of the first block containing the point.

        Args:
            lat: Latitude in degrees.
            lon: Longitude in degrees.

        Returns:
            Block id, or None when no block with a boundary contains it.
        """
        return self._first_containing_block(lat, lon, self.repository.blocks())

    def associate_all_stations(self) -> bool:
        """Recompute block membership for every station and save it.

        Returns:
            True when the batch was computed and saved (including the case
            where nothing matched), False if reading, computing or saving
            raised. Nothing is retried.
        """
        try:
            blocks = self.repository.blocks()
            stations = self.repository.stations()
            assignments: dict[int, int] = {}
            for station in stations:
                block_id = self._first_containing_block(
                    station.latitude, station.longitude, blocks
                )
                if block_id is not None:
                    assignments[station.id] = block_id

            if assignments:
                self.repository.update_station_blocks(assignments)
        except Exception:
            logger.exception("Station to block association failed")
            return False

        logger.info(
            "Associated %d of %d stations with %d blocks",
            len(assignments),
            len(stations),
            len(blocks),
        )
        return True
