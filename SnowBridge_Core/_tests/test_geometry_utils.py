"""
Tests for geometry_utils: ring extraction, masks, area and formatting.
"""

import math

import pytest
from shapely.geometry import Polygon

from SnowBridge_Core.geometry_utils import (
    build_difference_mask,
    build_inverse_mask,
    build_zone_mask,
    estimate_area_square_meters,
    format_area,
    geodesic_area_square_meters,
    geometry_bounds,
    geometry_centroid,
    outer_ring_for_area,
    rings_from_geometry,
    world_ring,
)
from SnowBridge_Core.models import MaskBuildFailure
from SnowBridge_Core.projection import EARTH_CIRCUMFERENCE_M

METERS_PER_DEGREE = EARTH_CIRCUMFERENCE_M / 360.0


def equirectangular(latlng, zoom):
    """Projector stub: one pixel per metre at any zoom."""
    lat, lng = latlng
    return (lng * METERS_PER_DEGREE, -lat * METERS_PER_DEGREE)


def _area_of_pieces(pieces):
    return sum(Polygon([(lng, lat) for lat, lng in poly[0]]).area for poly in pieces)


# ============================================================================
# RING EXTRACTION
# ============================================================================


class TestRingsFromGeometry:
    """Tests for GeoJSON -> (lat, lng) ring conversion."""

    def test_polygon_rings_are_lat_lng(self, square):
        """Polygon vertices are swapped to (lat, lng)."""
        rings = rings_from_geometry(square(10.0, 20.0, 1.0))

        assert len(rings) == 1
        assert rings[0][0] == (9.0, 19.0)
        assert rings[0][2] == (11.0, 21.0)

    def test_multipolygon_keeps_nesting(self, square):
        """MultiPolygon yields one list of rings per polygon."""
        a = square(0.0, 0.0, 1.0)["coordinates"]
        b = square(5.0, 5.0, 1.0)["coordinates"]
        rings = rings_from_geometry({"type": "MultiPolygon", "coordinates": [a, b]})

        assert len(rings) == 2
        assert rings[1][0][0] == (4.0, 4.0)

    def test_unsupported_geometry_returns_none(self):
        """Points, lines, None and malformed vertices are unsupported."""
        assert rings_from_geometry({"type": "Point", "coordinates": [1.0, 2.0]}) is None
        assert rings_from_geometry({"type": "LineString", "coordinates": [[0, 0], [1, 1]]}) is None
        assert rings_from_geometry(None) is None
        assert rings_from_geometry({"type": "Polygon", "coordinates": [[["a", "b"]]]}) is None

    def test_geo_interface_objects_accepted(self):
        """Shapely geometries are read through __geo_interface__."""
        rings = rings_from_geometry(Polygon([(0, 0), (2, 0), (2, 1), (0, 1)]))

        assert rings[0][1] == (0.0, 2.0)


# ============================================================================
# INVERSE MASK
# ============================================================================


class TestBuildInverseMask:
    """Tests for the world-with-holes mask."""

    def test_polygon_gives_single_hole_equal_to_outer_ring(self, square):
        """One hole, identical to the zone's outer ring."""
        geom = square(42.93, -80.28, 0.001)
        rings = rings_from_geometry(geom)

        mask = build_inverse_mask(geom, rings)

        assert len(mask.holes) == 1
        assert mask.holes[0] == rings[0]
        assert mask.outer == world_ring(85.0)

    def test_multipolygon_gives_one_hole_per_polygon(self, square):
        """k constituent polygons produce k holes."""
        polys = [square(float(i), float(i), 0.1)["coordinates"] for i in range(3)]
        geom = {"type": "MultiPolygon", "coordinates": polys}

        mask = build_inverse_mask(geom, rings_from_geometry(geom))

        assert len(mask.holes) == 3

    def test_inner_rings_are_not_holes(self, square):
        """Only outer rings are punched out of the world rectangle."""
        outer = square(0.0, 0.0, 1.0)["coordinates"][0]
        inner = square(0.0, 0.0, 0.5)["coordinates"][0]
        geom = {"type": "Polygon", "coordinates": [outer, inner]}

        mask = build_inverse_mask(geom, rings_from_geometry(geom))

        assert len(mask.holes) == 1
        assert mask.rings[0] == mask.outer

    def test_absent_or_unsupported_returns_none(self):
        """No geometry or no rings means no mask."""
        assert build_inverse_mask(None, None) is None
        assert build_inverse_mask({"type": "Polygon", "coordinates": []}, []) is None


# ============================================================================
# DIFFERENCE MASK
# ============================================================================


class TestBuildDifferenceMask:
    """Tests for the shapely world-minus-zone mask."""

    def test_pieces_are_hole_free_and_cover_world_minus_zone(self, square):
        """Every piece is a single ring and total area is world minus zone."""
        pieces = build_difference_mask(square(0.0, 0.0, 1.0))

        assert pieces
        assert all(len(poly) == 1 for poly in pieces)
        assert _area_of_pieces(pieces) == pytest.approx(360.0 * 170.0 - 4.0, rel=1e-9)

    def test_inner_rings_are_honoured(self, square):
        """The donut's inner void stays covered by the mask."""
        outer = square(0.0, 0.0, 1.0)["coordinates"][0]
        inner = square(0.0, 0.0, 0.5)["coordinates"][0]
        geom = {"type": "Polygon", "coordinates": [outer, inner]}

        pieces = build_difference_mask(geom)

        assert _area_of_pieces(pieces) == pytest.approx(360.0 * 170.0 - 3.0, rel=1e-9)

    def test_non_polygon_returns_none(self):
        """Unsupported input builds nothing."""
        assert build_difference_mask({"type": "Point", "coordinates": [0, 0]}) is None
        assert build_difference_mask(None) is None


class TestBuildZoneMask:
    """Tests for the Result-style mask builder."""

    def test_missing_zone_is_zone_not_found(self):
        """None geometry maps to ZONE_NOT_FOUND."""
        result = build_zone_mask(None)

        assert not result.ok
        assert result.failure is MaskBuildFailure.ZONE_NOT_FOUND

    def test_unsupported_geometry_is_ring_extraction_failure(self):
        """A Point zone cannot be turned into rings."""
        result = build_zone_mask({"type": "Point", "coordinates": [0, 0]})

        assert result.failure is MaskBuildFailure.RING_EXTRACTION_FAILED

    def test_empty_polygon_is_mask_construction_failure(self):
        """A Polygon without rings yields no hole."""
        result = build_zone_mask({"type": "Polygon", "coordinates": []})

        assert result.failure is MaskBuildFailure.MASK_CONSTRUCTION_FAILED

    def test_hole_fill_path(self, square):
        """Hole-fill builds one mask polygon with outer ring plus hole."""
        result = build_zone_mask(square(1.0, 1.0, 0.1), use_hole_fill=True)

        assert result.ok
        assert len(result.mask) == 1
        assert len(result.mask[0]) == 2
        assert result.inverse is not None
        assert len(result.outline) == 1

    def test_difference_path(self, square):
        """Difference path builds hole-free pieces and no inverse mask."""
        result = build_zone_mask(square(1.0, 1.0, 0.1), use_hole_fill=False)

        assert result.ok
        assert len(result.mask) >= 2
        assert result.inverse is None


# ============================================================================
# AREA
# ============================================================================


class TestEstimateArea:
    """Tests for the planar shoelace estimate."""

    def test_hundred_metre_square(self):
        """A 100 m x 100 m square measures 10000 m²."""
        d = 100.0 / METERS_PER_DEGREE
        ring = [(0.0, 0.0), (0.0, d), (d, d), (d, 0.0)]

        area = estimate_area_square_meters(ring, equirectangular, EARTH_CIRCUMFERENCE_M)

        assert area == pytest.approx(10000.0, rel=1e-9)

    def test_closed_ring_and_orientation_do_not_matter(self):
        """Closing vertex and winding order give the same area."""
        d = 100.0 / METERS_PER_DEGREE
        ring = [(0.0, 0.0), (d, 0.0), (d, d), (0.0, d), (0.0, 0.0)]

        area = estimate_area_square_meters(ring, equirectangular, EARTH_CIRCUMFERENCE_M)

        assert area == pytest.approx(10000.0, rel=1e-9)

    def test_unusable_input_returns_none(self):
        """Short rings, no projector or a bad scale give None."""
        ring = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)]

        assert estimate_area_square_meters(ring[:2], equirectangular, 1.0) is None
        assert estimate_area_square_meters(ring, None, 1.0) is None
        assert estimate_area_square_meters(ring, equirectangular, 0.0) is None
        assert estimate_area_square_meters(ring, equirectangular, math.nan) is None

    def test_geodesic_area_near_equator(self):
        """Geodesic area of a ~100 m square at the equator is ~10000 m²."""
        d = 100.0 / METERS_PER_DEGREE
        ring = [(0.0, 0.0), (0.0, d), (d, d), (d, 0.0)]

        assert geodesic_area_square_meters(ring) == pytest.approx(10000.0, rel=0.02)
        assert geodesic_area_square_meters(ring[:2]) is None

    def test_outer_ring_for_area_uses_first_polygon(self, square):
        """MultiPolygon measures its first polygon's outer ring."""
        a = square(0.0, 0.0, 1.0)["coordinates"]
        b = square(5.0, 5.0, 1.0)["coordinates"]
        ring = outer_ring_for_area({"type": "MultiPolygon", "coordinates": [a, b]})

        assert ring[0] == (-1.0, -1.0)


class TestFormatArea:
    """Tests for area display strings."""

    def test_square_metres_below_one_acre(self):
        assert format_area(3000) == "3000 m²"
        assert format_area(4046) == "4046 m²"
        assert format_area(0.4) == "0 m²"

    def test_halves_round_up(self):
        assert format_area(2500.5) == "2501 m²"
        assert format_area(2500.49) == "2500 m²"

    def test_acres_from_one_acre(self):
        """1 acre and above renders in acres with two decimals."""
        assert format_area(4046.8564224) == "1.00 acres"
        assert format_area(5000) == "1.24 acres"

        text = format_area(5_000_000)
        assert text.endswith(" acres")
        assert float(text.split()[0]) >= 1.0

    def test_not_finite_is_na(self):
        assert format_area(None) == "n/a"
        assert format_area(math.nan) == "n/a"
        assert format_area(math.inf) == "n/a"
        assert format_area("abc") == "n/a"


class TestCentroidAndBounds:
    """Tests for label anchor and framing helpers."""

    def test_square_centroid_and_bounds(self, square):
        geom = square(10.0, 20.0, 1.0)

        lat, lng = geometry_centroid(geom)
        assert lat == pytest.approx(10.0)
        assert lng == pytest.approx(20.0)
        assert geometry_bounds(geom) == ((9.0, 19.0), (11.0, 21.0))

    def test_missing_geometry(self):
        assert geometry_centroid(None) is None
        assert geometry_bounds(None) is None
