"""API router subpackage for the seabed exploration backend.

This package organizes REST endpoints for the map UI. Each module exposes
its own APIRouter for composition in the application's main FastAPI
instance.

Submodules:
    - map_filter: Filter dropdown lookups, entity lists, the nested map tree
      and area boundary bundles.
    - analytics: Block and contractor rollups and the station to block
      association run.

Routers are grouped by major feature domain to promote clarity and
independent testing.
"""
