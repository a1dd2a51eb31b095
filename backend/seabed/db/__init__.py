"""Database interface and repository abstractions.

This module consolidates the repository protocol and its implementations
for seabed exploration records. It provides a stable import location for
repository dependency injection throughout the application, supporting
production (PostgreSQL) and testing (in-memory) backends.

Example:
    Use in a service or FastAPI dependency:
        >>> from seabed.db import database
        >>> repo = database.get_repository(settings)
        >>> stations = repo.stations()
"""
