"""Planar containment and great-circle distance helpers.

Block and area boundaries are stored as GeoJSON Feature strings with a
Polygon geometry. Only the first ring (the outer boundary) is consulted;
holes and multi-ring polygons are not supported. Vertices are (lon, lat)
pairs as GeoJSON prescribes.

Containment uses the even-odd (crossing number) rule on raw degrees. The
result for a point lying exactly on an edge or vertex is not defined.

Parsing never raises to callers. ``evaluate_containment`` returns a
``Containment`` carrying either the answer or the ``GeometryError`` that
made the document unusable; ``contains_point`` collapses that into a
fail-closed boolean.

Example:
    >>> from seabed.services import geometry
    >>> square = geometry.rectangle_feature(0, 0, 1, 1)
    >>> geometry.contains_point(0.5, 0.5, square)
    True
    >>> geometry.contains_point(2, 2, square)
    False
    >>> round(geometry.distance_km(0, 0, 0, 90), 1)
    10007.5
"""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple

EARTH_RADIUS_KM = 6371.0

Ring = list[tuple[float, float]]
GeometryErrorKind = Literal[
    "invalid_json",
    "missing_field",
    "not_polygon",
    "invalid_coordinates",
]


@dataclasses.dataclass(frozen=True)
class GeometryError:
    """Why a boundary document could not be used for containment."""

    kind: GeometryErrorKind
    detail: str = ""


class Containment(NamedTuple):
    contained: bool
    error: GeometryError | None = None


def _load_feature(feature: str | Mapping[str, Any]) -> Mapping[str, Any] | GeometryError:
    if isinstance(feature, Mapping):
        return feature

    try:
        document = json.loads(feature)
    except (TypeError, ValueError) as exc:
        return GeometryError("invalid_json", str(exc))

    if not isinstance(document, Mapping):
        return GeometryError("invalid_json", "document is not an object")

    return document


def parse_outer_ring(feature: str | Mapping[str, Any]) -> Ring | GeometryError:
    """Extract the outer ring of a GeoJSON Polygon feature.

    Args:
        feature: Feature as a JSON string or an already decoded mapping.

    Returns:
        List of (lon, lat) vertices of ring 0, or a GeometryError.
    """
    document = _load_feature(feature)
    if isinstance(document, GeometryError):
        return document

    geometry = document.get("geometry")
    if not isinstance(geometry, Mapping):
        return GeometryError("missing_field", "geometry")

    geometry_type = geometry.get("type")
    if geometry_type is None:
        return GeometryError("missing_field", "geometry.type")
    if geometry_type != "Polygon":
        return GeometryError("not_polygon", str(geometry_type))

    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, list) or not coordinates:
        return GeometryError("missing_field", "geometry.coordinates")

    outer = coordinates[0]
    if not isinstance(outer, list):
        return GeometryError("invalid_coordinates", "ring 0 is not an array")

    ring: Ring = []
    for vertex in outer:
        try:
            ring.append((float(vertex[0]), float(vertex[1])))
        except (TypeError, ValueError, IndexError, KeyError) as exc:
            return GeometryError("invalid_coordinates", str(exc))

    return ring


def ring_contains(lat: float, lon: float, ring: Ring) -> bool:
    """Even-odd ray casting test against a (lon, lat) ring.

    For every edge (i, j) with j the previous vertex, the result toggles
    when the test latitude lies strictly between the edge latitudes and the
    point is west of where the edge crosses that latitude.
    """
    result = False
    j = len(ring) - 1
    for i in range(len(ring)):
        lon_i, lat_i = ring[i]
        lon_j, lat_j = ring[j]
        if (lat_i > lat) != (lat_j > lat) and (
            lon < (lon_j - lon_i) * (lat - lat_i) / (lat_j - lat_i) + lon_i
        ):
            result = not result
        j = i
    return result


def evaluate_containment(
    lat: float,
    lon: float,
    feature: str | Mapping[str, Any],
) -> Containment:
    """Test a point against a polygon feature, reporting parse failures.

    Args:
        lat: Latitude of the point in degrees.
        lon: Longitude of the point in degrees.
        feature: GeoJSON Feature (string or mapping) with Polygon geometry.

    Returns:
        Containment with the answer, or ``contained=False`` and the error
        that made the feature unusable.
    """
    match parse_outer_ring(feature):
        case GeometryError() as error:
            return Containment(False, error)
        case ring:
            return Containment(ring_contains(lat, lon, ring))


def contains_point(
    lat: float,
    lon: float,
    feature: str | Mapping[str, Any],
) -> bool:
    """Return True if the point is inside the feature's outer ring.

    Malformed JSON, missing fields and non-Polygon geometries all yield
    False; this function never raises for bad boundary documents.
    """
    return evaluate_containment(lat, lon, feature).contained


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance in kilometres (R = 6371 km)."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def rectangle_feature(
    min_lat: float,
    min_lon: float,
    max_lat: float,
    max_lon: float,
    properties: Mapping[str, Any] | None = None,
) -> str:
    """Build a closed rectangular Polygon Feature as a JSON string."""
    ring = [
        [min_lon, min_lat],
        [max_lon, min_lat],
        [max_lon, max_lat],
        [min_lon, max_lat],
        [min_lon, min_lat],
    ]
    return json.dumps(
        {
            "type": "Feature",
            "properties": dict(properties or {}),
            "geometry": {"type": "Polygon", "coordinates": [ring]},
        }
    )


def point_feature(
    lat: float,
    lon: float,
    properties: Mapping[str, Any] | None = None,
) -> str:
    """Build a Point Feature as a JSON string."""
    return json.dumps(
        {
            "type": "Feature",
            "properties": dict(properties or {}),
            "geometry": {"type": "Point", "coordinates": [lon, lat]},
        }
    )
