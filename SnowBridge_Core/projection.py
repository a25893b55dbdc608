"""
Web-Mercator pixel projection for SnowBridge Core.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Project geographic (lat, lng) points to the spherical-Mercator
pixel space used by slippy-map renderers, and back.

Pixel space at zoom z is a square of side scale(z) = 256 * 2**z pixels with
the origin at the north-west corner (lng -180, lat +85.05). Metres come from
pyproj (EPSG:4326 -> EPSG:3857); the pixel transform is a linear map of the
Mercator extent onto that square.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import math
from typing import Tuple

from pyproj import Transformer

TILE_SIZE_PX = 256
EARTH_CIRCUMFERENCE_M = 40075016.68557849
MERCATOR_HALF_EXTENT_M = EARTH_CIRCUMFERENCE_M / 2.0
MAX_MERCATOR_LATITUDE = 85.0511287798


def crs_scale(zoom: float) -> float:
    """Pixel width of the whole world at a zoom level."""
    return TILE_SIZE_PX * math.pow(2.0, zoom)


class WebMercatorProjector:
    """Project (lat, lng) <-> pixel coordinates at a zoom level.

    Example:
        projector = WebMercatorProjector()
        x, y = projector.project((42.93, -80.28), 22)
        lat, lng = projector.unproject((x, y), 22)
    """

    def __init__(self) -> None:
        self._forward = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
        self._inverse = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)

    @staticmethod
    def scale(zoom: float) -> float:
        return crs_scale(zoom)

    def project(self, latlng: Tuple[float, float], zoom: float) -> Tuple[float, float]:
        """Project a (lat, lng) point to pixel (x, y) at the given zoom."""
        lat, lng = latlng
        lat = max(-MAX_MERCATOR_LATITUDE, min(MAX_MERCATOR_LATITUDE, lat))
        x_m, y_m = self._forward.transform(lng, lat)
        s = crs_scale(zoom)
        x_px = (x_m + MERCATOR_HALF_EXTENT_M) / EARTH_CIRCUMFERENCE_M * s
        y_px = (MERCATOR_HALF_EXTENT_M - y_m) / EARTH_CIRCUMFERENCE_M * s
        return (x_px, y_px)

    def unproject(self, point: Tuple[float, float], zoom: float) -> Tuple[float, float]:
        """Inverse of project(): pixel (x, y) at zoom -> (lat, lng)."""
        x_px, y_px = point
        s = crs_scale(zoom)
        x_m = x_px / s * EARTH_CIRCUMFERENCE_M - MERCATOR_HALF_EXTENT_M
        y_m = MERCATOR_HALF_EXTENT_M - y_px / s * EARTH_CIRCUMFERENCE_M
        lng, lat = self._inverse.transform(x_m, y_m)
        return (lat, lng)
