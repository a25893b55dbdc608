#!/usr/bin/env python3
"""
SnowBridge Geometry Utilities

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Pure geometry helpers for the query stage. Converts GeoJSON
polygons to engine rings, builds the inverse mask that restricts satellite
imagery to a zone, and estimates parcel area for the size label.

This is a PURE COMPUTATION module - no engine or status dependencies.
Engine rings are (lat, lng) ordered; GeoJSON input is (lng, lat) ordered.

Key Features:
1. Ring extraction from Polygon / MultiPolygon (dict or __geo_interface__)
2. Inverse mask: world rectangle with one hole per polygon outer ring
3. Difference mask: shapely world-minus-zone split into hole-free pieces,
   for engines without hole-based fill
4. Planar area (projected shoelace) and geodesic area (pyproj Geod)
5. Human-readable area formatting

Navigation Guide:
- rings_from_geometry: GeoJSON -> (lat, lng) rings
- build_inverse_mask: hole-fill mask
- build_difference_mask: polygon-difference mask
- build_zone_mask: Result-style mask + outline builder used by overlays
- estimate_area_square_meters / geodesic_area_square_meters / format_area
- geometry_centroid / geometry_bounds: label anchor and framing helpers

KNOWN LIMITATION:
- build_inverse_mask only punches holes for each polygon's OUTER ring. Inner
  rings of a zone (donut shapes) are not reflected, so imagery shows inside
  them. build_difference_mask does honour inner rings.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
from pyproj import Geod
from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon, Polygon, box, shape
from shapely.geometry.base import BaseGeometry

from SnowBridge_Core.models import InverseMask, LatLng, MaskBuildFailure, MaskBuildResult, Ring
from SnowBridge_Core.projection import EARTH_CIRCUMFERENCE_M

logger = logging.getLogger(__name__)

SQUARE_METERS_PER_ACRE = 4046.8564224
DEFAULT_MASK_LATITUDE_LIMIT = 85.0

# Errors a geometry build may raise on malformed input
GEOMETRY_ERRORS = (ShapelyError, ValueError, TypeError, IndexError, KeyError)

_GEOD = Geod(ellps="WGS84")

Projector = Callable[[LatLng, float], Tuple[float, float]]


# ===========================================================================
# RING EXTRACTION
# ===========================================================================


def _as_mapping(geom: Any) -> Optional[Dict[str, Any]]:
    """Return a GeoJSON-like mapping for a dict or a __geo_interface__ object."""
    if geom is None:
        return None
    if isinstance(geom, dict):
        return geom
    interface = getattr(geom, "__geo_interface__", None)
    if isinstance(interface, dict):
        return interface
    return None


def _to_latlng_ring(ring: Any) -> Ring:
    if not isinstance(ring, (list, tuple)):
        return []
    return [(float(pt[1]), float(pt[0])) for pt in ring]


def rings_from_geometry(geom: Any) -> Optional[List[Any]]:
    """
    Convert a GeoJSON Polygon / MultiPolygon to (lat, lng) rings.

    Args:
        geom: GeoJSON geometry mapping or object exposing __geo_interface__

    Returns:
        - Polygon: [outer, hole1, ...]
        - MultiPolygon: [[outer, hole1, ...], [outer, ...], ...]
        - None for any other geometry kind (unsupported)
    """
    mapping = _as_mapping(geom)
    if mapping is None:
        return None

    gtype = mapping.get("type")
    coords = mapping.get("coordinates")
    if not isinstance(coords, (list, tuple)):
        return None

    try:
        if gtype == "Polygon":
            return [_to_latlng_ring(ring) for ring in coords]
        if gtype == "MultiPolygon":
            return [
                [_to_latlng_ring(ring) for ring in poly]
                if isinstance(poly, (list, tuple))
                else []
                for poly in coords
            ]
    except (TypeError, ValueError, IndexError):
        # Malformed vertex
        return None
    return None


def polygons_from_rings(geom: Any, rings: List[Any]) -> List[List[Ring]]:
    """Normalise rings_from_geometry() output to a list of polygons."""
    mapping = _as_mapping(geom) or {}
    if mapping.get("type") == "Polygon":
        return [rings]
    return list(rings)


# ===========================================================================
# MASK CONSTRUCTION
# ===========================================================================


def world_ring(lat_limit: float = DEFAULT_MASK_LATITUDE_LIMIT) -> Ring:
    """World rectangle in (lat, lng) order."""
    return [
        (lat_limit, -180.0),
        (lat_limit, 180.0),
        (-lat_limit, 180.0),
        (-lat_limit, -180.0),
    ]


def build_inverse_mask(
    geom: Any,
    rings: Optional[List[Any]],
    lat_limit: float = DEFAULT_MASK_LATITUDE_LIMIT,
) -> Optional[InverseMask]:
    """
    Build a world rectangle with one hole per polygon outer ring.

    Rendered as an opaque fill the result hides everything except the zone
    interior. Inner rings of the zone are ignored.

    Args:
        geom: The zone geometry (Polygon or MultiPolygon)
        rings: Output of rings_from_geometry(geom)
        lat_limit: Latitude bound of the world rectangle

    Returns:
        InverseMask, or None if the geometry is absent or unsupported or
        yields no usable hole.
    """
    mapping = _as_mapping(geom)
    if mapping is None or not rings:
        return None

    holes: List[Ring] = []
    gtype = mapping.get("type")
    if gtype == "Polygon":
        if rings[0]:
            holes.append(rings[0])
    elif gtype == "MultiPolygon":
        for poly in rings:
            if poly and poly[0]:
                holes.append(poly[0])
    else:
        return None

    if not holes:
        return None
    return InverseMask(outer=world_ring(lat_limit), holes=holes)


def _polygon_parts(geometry: BaseGeometry) -> List[Polygon]:
    """Explode a geometry into its polygon parts."""
    if geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, MultiPolygon):
        return list(geometry.geoms)
    parts: List[Polygon] = []
    for part in getattr(geometry, "geoms", []):
        parts.extend(_polygon_parts(part))
    return parts


def _split_interiors(poly: Polygon, depth: int = 0) -> List[Polygon]:
    """Cut a polygon through its holes until no piece has interior rings."""
    if not poly.interiors or depth > 16:
        return [poly]
    minx, miny, maxx, maxy = poly.bounds
    cut_x = poly.interiors[0].centroid.x
    pieces: List[Polygon] = []
    for half in (box(minx, miny, cut_x, maxy), box(cut_x, miny, maxx, maxy)):
        for part in _polygon_parts(poly.intersection(half)):
            pieces.extend(_split_interiors(part, depth + 1))
    return pieces


def _polygon_to_rings(poly: Polygon) -> List[Ring]:
    rings = [[(y, x) for x, y in poly.exterior.coords]]
    rings.extend([(y, x) for x, y in interior.coords] for interior in poly.interiors)
    return rings


def build_difference_mask(
    geom: Any, lat_limit: float = DEFAULT_MASK_LATITUDE_LIMIT
) -> Optional[List[List[Ring]]]:
    """
    Build the mask as world-minus-zone with shapely.

    The difference is cut into hole-free pieces so engines without hole-based
    fill can draw it. Unlike build_inverse_mask, inner rings of the zone are
    honoured.

    Returns:
        List of polygons (each [outer_ring]) in (lat, lng) order, or None if
        the geometry is absent or not a polygon.

    Raises:
        ShapelyError / ValueError on malformed coordinates.
    """
    mapping = _as_mapping(geom)
    if mapping is None or mapping.get("type") not in ("Polygon", "MultiPolygon"):
        return None

    zone = shape(mapping)
    if not zone.is_valid:
        zone = zone.buffer(0)
    world = box(-180.0, -lat_limit, 180.0, lat_limit)
    remainder = world.difference(zone)

    pieces: List[List[Ring]] = []
    for part in _polygon_parts(remainder):
        for piece in _split_interiors(part):
            pieces.append(_polygon_to_rings(piece))
    return pieces or None


def build_zone_mask(
    geom: Any,
    use_hole_fill: bool = True,
    lat_limit: float = DEFAULT_MASK_LATITUDE_LIMIT,
) -> MaskBuildResult:
    """
    Build mask and outline polygons for a zone geometry.

    Args:
        geom: Zone geometry (None means the zone is missing)
        use_hole_fill: True for the world-with-holes mask, False for the
            polygon-difference mask
        lat_limit: Latitude bound of the world rectangle

    Returns:
        MaskBuildResult with the mask and outline, or the failure kind.
    """
    if geom is None:
        return MaskBuildResult.failed(MaskBuildFailure.ZONE_NOT_FOUND)

    rings = rings_from_geometry(geom)
    if rings is None:
        return MaskBuildResult.failed(MaskBuildFailure.RING_EXTRACTION_FAILED)
    outline = polygons_from_rings(geom, rings)

    if use_hole_fill:
        inverse = build_inverse_mask(geom, rings, lat_limit)
        if inverse is None:
            return MaskBuildResult.failed(MaskBuildFailure.MASK_CONSTRUCTION_FAILED)
        return MaskBuildResult.success([inverse.rings], outline, inverse)

    try:
        pieces = build_difference_mask(geom, lat_limit)
    except GEOMETRY_ERRORS as e:
        logger.warning(f"⚠️ Difference mask failed: {e}")
        pieces = None
    if pieces is None:
        return MaskBuildResult.failed(MaskBuildFailure.MASK_CONSTRUCTION_FAILED)
    return MaskBuildResult.success(pieces, outline)


# ===========================================================================
# AREA
# ===========================================================================


def outer_ring_for_area(geom: Any) -> Optional[Ring]:
    """First ring of the first polygon, the ring the size label measures."""
    rings = rings_from_geometry(geom)
    if not rings:
        return None
    polygons = polygons_from_rings(geom, rings)
    if not polygons or not polygons[0]:
        return None
    return polygons[0][0]


def estimate_area_square_meters(
    ring: Optional[Ring],
    projector: Optional[Projector],
    scale: Optional[float],
    zoom: float = 22,
) -> Optional[float]:
    """
    Rough planar area of a ring in m².

    Projects every vertex at the reference zoom, applies the shoelace
    formula in pixel space and converts pixel² to m² with
    (EARTH_CIRCUMFERENCE_M / scale)². Good enough for labels, not for
    measurement.

    Args:
        ring: (lat, lng) vertices; closing vertex optional
        projector: Callable (latlng, zoom) -> (x_px, y_px)
        scale: Projection scale at the reference zoom (pixels per world width)
        zoom: Reference zoom the vertices are projected at

    Returns:
        Area in m², or None if fewer than 3 vertices or no usable projector/scale.
    """
    if not ring or len(ring) < 3 or projector is None:
        return None
    if scale is None or not math.isfinite(scale) or scale <= 0:
        return None

    pts = np.array([projector(tuple(ll), zoom) for ll in ring], dtype=float)
    x = pts[:, 0]
    y = pts[:, 1]
    pixel_area = abs(float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))) / 2.0

    meters_per_px = EARTH_CIRCUMFERENCE_M / scale
    return pixel_area * meters_per_px * meters_per_px


def geodesic_area_square_meters(ring: Optional[Ring]) -> Optional[float]:
    """Ellipsoidal area of a (lat, lng) ring in m² (pyproj Geod, WGS84)."""
    if not ring or len(ring) < 3:
        return None
    lats = [float(ll[0]) for ll in ring]
    lons = [float(ll[1]) for ll in ring]
    area, _perimeter = _GEOD.polygon_area_perimeter(lons, lats)
    return abs(area)


def format_area(square_meters: Optional[float]) -> str:
    """
    Format an area for display.

    Returns:
        "n/a" for missing / non-finite input, "X.XX acres" from 1 acre up,
        otherwise whole square metres, e.g. "3000 m²".
    """
    if square_meters is None:
        return "n/a"
    try:
        value = float(square_meters)
    except (TypeError, ValueError):
        return "n/a"
    if not math.isfinite(value):
        return "n/a"
    acres = value / SQUARE_METERS_PER_ACRE
    if acres >= 1:
        return f"{acres:.2f} acres"
    # Halves round up
    return f"{int(math.floor(value + 0.5))} m²"


# ===========================================================================
# CENTROID / BOUNDS
# ===========================================================================


def geometry_centroid(geom: Any) -> Optional[LatLng]:
    """Centroid of a polygon geometry as (lat, lng), or None."""
    mapping = _as_mapping(geom)
    if mapping is None:
        return None
    try:
        geometry = shape(mapping)
    except GEOMETRY_ERRORS:
        return None
    if geometry.is_empty:
        return None
    c = geometry.centroid
    return (c.y, c.x)


def geometry_bounds(geom: Any) -> Optional[Tuple[LatLng, LatLng]]:
    """Bounds as ((south, west), (north, east)), or None."""
    mapping = _as_mapping(geom)
    if mapping is None:
        return None
    try:
        geometry = shape(mapping)
    except GEOMETRY_ERRORS:
        return None
    if geometry.is_empty:
        return None
    minx, miny, maxx, maxy = geometry.bounds
    return ((miny, minx), (maxy, maxx))

