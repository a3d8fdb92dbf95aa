"""Geometry helpers for corridor filtering and route progress.

Point-to-line math treats (lat, lng) as a local planar frame: not
geodesically exact, but consistent and fast at country/continent scale.
Distances are returned in kilometres.
"""

import math

from roadtrip.models.geo import LatLng

EARTH_RADIUS_KM = 6371.0


def haversine_distance(a: LatLng, b: LatLng) -> float:
    """Great-circle distance between two points in km."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lam = math.radians(b.lng - a.lng)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _projection(point: LatLng, seg_start: LatLng, seg_end: LatLng) -> float | None:
    """Projection parameter of point onto start->end, None for a zero-length segment."""
    d_lat = seg_end.lat - seg_start.lat
    d_lng = seg_end.lng - seg_start.lng
    len_sq = d_lat * d_lat + d_lng * d_lng
    if len_sq == 0:
        return None
    dot = (point.lat - seg_start.lat) * d_lat + (point.lng - seg_start.lng) * d_lng
    return dot / len_sq


def point_to_line_distance(point: LatLng, seg_start: LatLng, seg_end: LatLng) -> float:
    """Shortest distance (km) from point to the finite segment [seg_start, seg_end]."""
    param = _projection(point, seg_start, seg_end)
    if param is None or param < 0:
        closest = seg_start
    elif param > 1:
        closest = seg_end
    else:
        closest = LatLng(
            lat=seg_start.lat + param * (seg_end.lat - seg_start.lat),
            lng=seg_start.lng + param * (seg_end.lng - seg_start.lng),
        )
    return haversine_distance(closest, point)


def position_along_route(point: LatLng, seg_start: LatLng, seg_end: LatLng) -> float:
    """Unclamped projection: 0 at seg_start, 1 at seg_end, may fall outside [0, 1]."""
    param = _projection(point, seg_start, seg_end)
    return 0.0 if param is None else param


def progress_ratio(from_point: LatLng, to_point: LatLng, destination: LatLng) -> float:
    """Fraction of the remaining distance to destination removed by moving from -> to.

    Positive when to_point is closer to the destination. Returns 0.0 when
    from_point already sits on the destination.
    """
    current = haversine_distance(from_point, destination)
    if current == 0:
        return 0.0
    return (current - haversine_distance(to_point, destination)) / current


def is_forward_movement(from_point: LatLng, to_point: LatLng, target: LatLng) -> bool:
    """True unless moving from -> to points away from the target direction."""
    dot = (target.lat - from_point.lat) * (to_point.lat - from_point.lat) + (
        target.lng - from_point.lng
    ) * (to_point.lng - from_point.lng)
    return dot >= 0


def directional_progress(from_point: LatLng, to_point: LatLng, destination: LatLng) -> float:
    """Progress ratio, forced to -1.0 when the move heads away from the destination."""
    if not is_forward_movement(from_point, to_point, destination):
        return -1.0
    return progress_ratio(from_point, to_point, destination)
