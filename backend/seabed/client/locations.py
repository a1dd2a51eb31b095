"""Named ocean regions for the map location filter.

A simplified gazetteer of latitude/longitude rectangles, independent of the
GeoJSON boundaries stored on areas and blocks. Bounds are inclusive. A
rectangle whose ``min_lon`` is greater than its ``max_lon`` crosses the
antimeridian and matches longitudes east of ``min_lon`` or west of
``max_lon``.

Example:
    >>> is_point_in_location(10.0, -130.0, "clarion-clipperton")
    True
    >>> is_point_in_location(10.0, -130.0, "nowhere")
    False
"""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True)
class LocationBoundary:
    id: str
    name: str
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.min_lon > self.max_lon

    def contains(self, lat: float, lon: float) -> bool:
        if not self.min_lat <= lat <= self.max_lat:
            return False
        if self.crosses_antimeridian:
            return lon >= self.min_lon or lon <= self.max_lon
        return self.min_lon <= lon <= self.max_lon


LOCATION_BOUNDARIES: tuple[LocationBoundary, ...] = (
    LocationBoundary(
        "central-indian-ocean", "Central Indian Ocean", -15, 10, 60, 90
    ),
    LocationBoundary(
        "central-indian-ridge",
        "Central Indian Ridge and Southeast Indian Ridge",
        -45,
        0,
        65,
        110,
    ),
    LocationBoundary(
        "clarion-clipperton", "Clarion-Clipperton Fracture Zone", 0, 20, -150, -115
    ),
    LocationBoundary("indian-ocean", "Indian Ocean", -40, 25, 40, 110),
    LocationBoundary("indian-ocean-ridge", "Indian Ocean Ridge", -35, 5, 55, 90),
    LocationBoundary("mid-atlantic-ridge", "Mid-Atlantic Ridge", -40, 40, -50, -10),
    LocationBoundary(
        "rio-grande-rise", "Rio Grande Rise, South Atlantic Ocean", -35, -25, -40, -25
    ),
    LocationBoundary(
        "southwest-indian-ridge", "Southwest Indian Ridge", -45, -25, 25, 70
    ),
    LocationBoundary(
        "pmn-reserved-areas", "Variable - PMN Reserved Areas", -35, 35, -150, 150
    ),
    LocationBoundary(
        "western-pacific-ocean", "Western Pacific Ocean", -10, 30, 120, 170
    ),
)

_BY_ID = {boundary.id: boundary for boundary in LOCATION_BOUNDARIES}


def get_location_boundary(location_id: str) -> LocationBoundary | None:
    """Look up a region by id; None when the id is unknown."""
    return _BY_ID.get(location_id)


def is_point_in_location(lat: float, lon: float, location_id: str) -> bool:
    """Test a point against a named region. Unknown ids contain nothing."""
    boundary = get_location_boundary(location_id)
    return boundary is not None and boundary.contains(lat, lon)
