"""Database helpers and repositories for seabed exploration records."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Protocol

import psycopg2
import psycopg2.extensions
import psycopg2.extras

from seabed.db import models as db_models

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from seabed.core import config


class SeabedRepositoryProtocol(Protocol):
    """Protocol interface for reading exploration records.

    Every collection read returns records in storage order (ascending id for
    the PostgreSQL backend, insertion order for the in-memory backend). The
    only write is the bulk station-to-block update used by the association
    service.
    """

    def contract_types(self) -> list[db_models.ContractType]: ...

    def contract_statuses(self) -> list[db_models.ContractStatus]: ...

    def contractors(self) -> list[db_models.Contractor]: ...

    def areas(self) -> list[db_models.Area]: ...

    def blocks(self) -> list[db_models.Block]: ...

    def cruises(self) -> list[db_models.Cruise]: ...

    def stations(self) -> list[db_models.Station]: ...

    def samples(self) -> list[db_models.Sample]: ...

    def env_results(self) -> list[db_models.EnvResult]: ...

    def geo_results(self) -> list[db_models.GeoResult]: ...

    def media(self) -> list[db_models.Media]: ...

    def get_contractor(self, contractor_id: int) -> db_models.Contractor | None: ...

    def get_area(self, area_id: int) -> db_models.Area | None: ...

    def get_block(self, block_id: int) -> db_models.Block | None: ...

    def stations_for_cruises(
        self, cruise_ids: Iterable[int]
    ) -> list[db_models.Station]: ...

    def stations_for_block(self, block_id: int) -> list[db_models.Station]: ...

    def samples_for_stations(
        self, station_ids: Iterable[int]
    ) -> list[db_models.Sample]: ...

    def media_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.Media]: ...

    def env_results_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.EnvResult]: ...

    def geo_results_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.GeoResult]: ...

    def update_station_blocks(self, assignments: Mapping[int, int]) -> None: ...


class InMemorySeabedRepository(SeabedRepositoryProtocol):
    """Simple in-memory store for tests and local development.

    Records are kept per collection in dictionaries keyed by id, so reads
    come back in insertion order. Data is lost when the process exits.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory repository."""
        self._store: dict[type, dict[int, Any]] = {
            model: {} for model in _TABLES
        }

    def add(self, record: Any) -> Any:
        """Add or replace a record in its collection.

        Args:
            record: Any entity record from seabed.db.models.

        Returns:
            The stored record.

        Raises:
            TypeError: If the record type is not a known entity.
        """
        collection = self._store.get(type(record))
        if collection is None:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

        collection[record.id] = record
        return record

    def add_all(self, records: Iterable[Any]) -> None:
        """Add several records, in order."""
        for record in records:
            self.add(record)

    def _all(self, model: type) -> list[Any]:
        return list(self._store[model].values())

    def contract_types(self) -> list[db_models.ContractType]:
        return self._all(db_models.ContractType)

    def contract_statuses(self) -> list[db_models.ContractStatus]:
        return self._all(db_models.ContractStatus)

    def contractors(self) -> list[db_models.Contractor]:
        return self._all(db_models.Contractor)

    def areas(self) -> list[db_models.Area]:
        return self._all(db_models.Area)

    def blocks(self) -> list[db_models.Block]:
        return self._all(db_models.Block)

    def cruises(self) -> list[db_models.Cruise]:
        return self._all(db_models.Cruise)

    def stations(self) -> list[db_models.Station]:
        return self._all(db_models.Station)

    def samples(self) -> list[db_models.Sample]:
        return self._all(db_models.Sample)

    def env_results(self) -> list[db_models.EnvResult]:
        return self._all(db_models.EnvResult)

    def geo_results(self) -> list[db_models.GeoResult]:
        return self._all(db_models.GeoResult)

    def media(self) -> list[db_models.Media]:
        return self._all(db_models.Media)

    def get_contractor(self, contractor_id: int) -> db_models.Contractor | None:
        return self._store[db_models.Contractor].get(contractor_id)

    def get_area(self, area_id: int) -> db_models.Area | None:
        return self._store[db_models.Area].get(area_id)

    def get_block(self, block_id: int) -> db_models.Block | None:
        return self._store[db_models.Block].get(block_id)

    def stations_for_cruises(
        self, cruise_ids: Iterable[int]
    ) -> list[db_models.Station]:
        wanted = set(cruise_ids)
        return [s for s in self.stations() if s.cruise_id in wanted]

    def stations_for_block(self, block_id: int) -> list[db_models.Station]:
        return [s for s in self.stations() if s.block_id == block_id]

    def samples_for_stations(
        self, station_ids: Iterable[int]
    ) -> list[db_models.Sample]:
        wanted = set(station_ids)
        return [s for s in self.samples() if s.station_id in wanted]

    def media_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.Media]:
        wanted = set(sample_ids)
        return [m for m in self.media() if m.sample_id in wanted]

    def env_results_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.EnvResult]:
        wanted = set(sample_ids)
        return [r for r in self.env_results() if r.sample_id in wanted]

    def geo_results_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.GeoResult]:
        wanted = set(sample_ids)
        return [r for r in self.geo_results() if r.sample_id in wanted]

    def update_station_blocks(self, assignments: Mapping[int, int]) -> None:
        """Apply station -> block assignments.

        Every station id is checked before anything is written, so an
        unknown id leaves the store untouched.

        Raises:
            KeyError: If an assignment names an unknown station.
        """
        stations = self._store[db_models.Station]
        missing = [sid for sid in assignments if sid not in stations]
        if missing:
            raise KeyError(f"Unknown station ids: {missing}")

        for station_id, block_id in assignments.items():
            stations[station_id] = dataclasses.replace(
                stations[station_id], block_id=block_id
            )


# Entity -> table name. Column names match the dataclass field names.
_TABLES: dict[type, str] = {
    db_models.ContractType: "contract_types",
    db_models.ContractStatus: "contract_statuses",
    db_models.Contractor: "contractors",
    db_models.Area: "contractor_areas",
    db_models.Block: "contractor_area_blocks",
    db_models.Cruise: "cruises",
    db_models.Station: "stations",
    db_models.Sample: "samples",
    db_models.EnvResult: "env_results",
    db_models.GeoResult: "geo_results",
    db_models.Media: "photo_videos",
}


class PostgresSeabedRepository(SeabedRepositoryProtocol):
    """PostgreSQL-backed repository for exploration records.

    Creates the schema on initialization. Collections are read in ascending
    id order, which is the storage order the association service relies on.
    """

    CREATE_TABLES_SQL = """
    CREATE TABLE IF NOT EXISTS contract_types (
      id INTEGER PRIMARY KEY,
      name TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS contract_statuses (
      id INTEGER PRIMARY KEY,
      name TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS contractors (
      id INTEGER PRIMARY KEY,
      name TEXT NOT NULL,
      contract_type_id INTEGER REFERENCES contract_types (id),
      contract_status_id INTEGER REFERENCES contract_statuses (id),
      sponsoring_state TEXT NOT NULL DEFAULT '',
      contractual_year INTEGER NOT NULL,
      contract_number TEXT NOT NULL DEFAULT '',
      remarks TEXT NOT NULL DEFAULT ''
    );
    CREATE TABLE IF NOT EXISTS contractor_areas (
      id INTEGER PRIMARY KEY,
      contractor_id INTEGER NOT NULL REFERENCES contractors (id),
      name TEXT NOT NULL,
      description TEXT NOT NULL DEFAULT '',
      geojson_boundary TEXT NOT NULL DEFAULT '',
      center_latitude DOUBLE PRECISION,
      center_longitude DOUBLE PRECISION,
      total_area_size_km2 DOUBLE PRECISION NOT NULL DEFAULT 0,
      allocation_date DATE,
      expiry_date DATE
    );
    CREATE TABLE IF NOT EXISTS contractor_area_blocks (
      id INTEGER PRIMARY KEY,
      area_id INTEGER NOT NULL REFERENCES contractor_areas (id),
      name TEXT NOT NULL,
      description TEXT NOT NULL DEFAULT '',
      status TEXT NOT NULL DEFAULT '',
      geojson_boundary TEXT NOT NULL DEFAULT '',
      center_latitude DOUBLE PRECISION,
      center_longitude DOUBLE PRECISION,
      area_size_km2 DOUBLE PRECISION NOT NULL DEFAULT 0,
      category TEXT,
      resource_density DOUBLE PRECISION NOT NULL DEFAULT 0,
      economic_value DOUBLE PRECISION NOT NULL DEFAULT 0
    );
    CREATE TABLE IF NOT EXISTS cruises (
      id INTEGER PRIMARY KEY,
      contractor_id INTEGER NOT NULL REFERENCES contractors (id),
      name TEXT NOT NULL,
      research_vessel TEXT NOT NULL DEFAULT '',
      start_date DATE,
      end_date DATE
    );
    CREATE TABLE IF NOT EXISTS stations (
      id INTEGER PRIMARY KEY,
      cruise_id INTEGER NOT NULL REFERENCES cruises (id),
      code TEXT NOT NULL,
      latitude DOUBLE PRECISION NOT NULL,
      longitude DOUBLE PRECISION NOT NULL,
      station_type TEXT NOT NULL DEFAULT '',
      block_id INTEGER REFERENCES contractor_area_blocks (id)
    );
    CREATE TABLE IF NOT EXISTS samples (
      id INTEGER PRIMARY KEY,
      station_id INTEGER NOT NULL REFERENCES stations (id),
      code TEXT NOT NULL,
      sample_type TEXT NOT NULL DEFAULT '',
      matrix_type TEXT NOT NULL DEFAULT '',
      habitat_type TEXT NOT NULL DEFAULT '',
      sampling_device TEXT NOT NULL DEFAULT '',
      depth_lower DOUBLE PRECISION NOT NULL DEFAULT 0,
      depth_upper DOUBLE PRECISION NOT NULL DEFAULT 0,
      description TEXT NOT NULL DEFAULT '',
      analysis TEXT NOT NULL DEFAULT '',
      result TEXT NOT NULL DEFAULT '',
      unit TEXT NOT NULL DEFAULT ''
    );
    CREATE TABLE IF NOT EXISTS env_results (
      id INTEGER PRIMARY KEY,
      sample_id INTEGER NOT NULL REFERENCES samples (id),
      analysis_category TEXT NOT NULL,
      analysis_name TEXT NOT NULL,
      analysis_value DOUBLE PRECISION NOT NULL,
      units TEXT NOT NULL DEFAULT '',
      remarks TEXT NOT NULL DEFAULT ''
    );
    CREATE TABLE IF NOT EXISTS geo_results (
      id INTEGER PRIMARY KEY,
      sample_id INTEGER NOT NULL REFERENCES samples (id),
      category TEXT NOT NULL,
      analysis TEXT NOT NULL,
      value DOUBLE PRECISION NOT NULL,
      units TEXT NOT NULL DEFAULT '',
      qualifier TEXT NOT NULL DEFAULT '',
      remarks TEXT NOT NULL DEFAULT ''
    );
    CREATE TABLE IF NOT EXISTS photo_videos (
      id INTEGER PRIMARY KEY,
      sample_id INTEGER NOT NULL REFERENCES samples (id),
      file_name TEXT NOT NULL,
      media_type TEXT NOT NULL DEFAULT '',
      camera_specs TEXT NOT NULL DEFAULT '',
      capture_date DATE,
      remarks TEXT NOT NULL DEFAULT ''
    );
    """

    def __init__(self, settings: config.Settings) -> None:
        """Initialize repository with database settings.

        Args:
            settings: Application settings containing database connection URL.
        """
        self.settings = settings
        self._ensure_schema()

    def _connection(self) -> psycopg2.extensions.connection:
        """Create a new database connection.

        Returns:
            psycopg2 connection object returning rows as dictionaries.
        """
        return psycopg2.connect(
            self.settings.database_url,
            cursor_factory=psycopg2.extras.RealDictCursor,
        )

    def _ensure_schema(self) -> None:
        """Create all tables if they don't exist yet."""
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(self.CREATE_TABLES_SQL)
            conn.commit()

    def _select(
        self,
        model: type,
        where: str = "",
        params: tuple[object, ...] = (),
    ) -> list[Any]:
        """Read records of one entity type.

        Args:
            model: Entity dataclass to read.
            where: Optional SQL condition using %s placeholders.
            params: Parameters for the condition.

        Returns:
            Records in ascending id order.
        """
        sql = f"SELECT * FROM {_TABLES[model]}"  # noqa: S608
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY id"
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            return [self._from_row(model, row) for row in cur.fetchall()]

    def _select_one(self, model: type, record_id: int) -> Any | None:
        rows = self._select(model, "id = %s", (record_id,))
        return rows[0] if rows else None

    def contract_types(self) -> list[db_models.ContractType]:
        return self._select(db_models.ContractType)

    def contract_statuses(self) -> list[db_models.ContractStatus]:
        return self._select(db_models.ContractStatus)

    def contractors(self) -> list[db_models.Contractor]:
        return self._select(db_models.Contractor)

    def areas(self) -> list[db_models.Area]:
        return self._select(db_models.Area)

    def blocks(self) -> list[db_models.Block]:
        return self._select(db_models.Block)

    def cruises(self) -> list[db_models.Cruise]:
        return self._select(db_models.Cruise)

    def stations(self) -> list[db_models.Station]:
        return self._select(db_models.Station)

    def samples(self) -> list[db_models.Sample]:
        return self._select(db_models.Sample)

    def env_results(self) -> list[db_models.EnvResult]:
        return self._select(db_models.EnvResult)

    def geo_results(self) -> list[db_models.GeoResult]:
        return self._select(db_models.GeoResult)

    def media(self) -> list[db_models.Media]:
        return self._select(db_models.Media)

    def get_contractor(self, contractor_id: int) -> db_models.Contractor | None:
        return self._select_one(db_models.Contractor, contractor_id)

    def get_area(self, area_id: int) -> db_models.Area | None:
        return self._select_one(db_models.Area, area_id)

    def get_block(self, block_id: int) -> db_models.Block | None:
        return self._select_one(db_models.Block, block_id)

    def stations_for_cruises(
        self, cruise_ids: Iterable[int]
    ) -> list[db_models.Station]:
        return self._select(
            db_models.Station, "cruise_id = ANY(%s)", (list(cruise_ids),)
        )

    def stations_for_block(self, block_id: int) -> list[db_models.Station]:
        return self._select(db_models.Station, "block_id = %s", (block_id,))

    def samples_for_stations(
        self, station_ids: Iterable[int]
    ) -> list[db_models.Sample]:
        return self._select(
            db_models.Sample, "station_id = ANY(%s)", (list(station_ids),)
        )

    def media_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.Media]:
        return self._select(
            db_models.Media, "sample_id = ANY(%s)", (list(sample_ids),)
        )

    def env_results_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.EnvResult]:
        return self._select(
            db_models.EnvResult, "sample_id = ANY(%s)", (list(sample_ids),)
        )

    def geo_results_for_samples(
        self, sample_ids: Iterable[int]
    ) -> list[db_models.GeoResult]:
        return self._select(
            db_models.GeoResult, "sample_id = ANY(%s)", (list(sample_ids),)
        )

    def update_station_blocks(self, assignments: Mapping[int, int]) -> None:
        """Persist station -> block assignments in a single transaction."""
        if not assignments:
            return

        with self._connection() as conn, conn.cursor() as cur:
            psycopg2.extras.execute_batch(
                cur,
                "UPDATE stations SET block_id = %s WHERE id = %s",
                [
                    (block_id, station_id)
                    for station_id, block_id in assignments.items()
                ],
            )
            conn.commit()

    @staticmethod
    def _from_row(model: type, row: Mapping[str, object]) -> Any:
        """Convert a database row dictionary to an entity record.

        Args:
            model: Entity dataclass to build.
            row: Dictionary from database query result.

        Returns:
            Entity record populated from the matching columns.
        """
        names = {field.name for field in dataclasses.fields(model)}
        return model(**{key: value for key, value in row.items() if key in names})


def get_repository(settings: config.Settings) -> SeabedRepositoryProtocol:
    """Factory function to create a repository for the configured backend.

    Args:
        settings: Application settings selecting the backend.

    Returns:
        InMemorySeabedRepository when ``repository_backend`` is "memory",
        PostgresSeabedRepository otherwise.
    """
    if settings.repository_backend == "memory":
        return InMemorySeabedRepository()

    return PostgresSeabedRepository(settings)
