"""
Satellite imagery overlay masked to the active parcel's zone.

Turning the overlay on forces the viewport to at least the satellite zoom,
adds the satellite tile layer, and covers everything outside the zone with an
opaque mask plus a thin zone outline. Once on, the overlay stays "sticky":
zoom changes that drop the mask rebuild it through the race gate.
"""

import logging
from typing import Optional

from SnowBridge_Core.geometry_utils import build_zone_mask
from SnowBridge_Core.models import MaskBuildFailure, OverlayKind
from SnowBridge_Core.overlays.base import BUILD_ERRORS, OverlayLifecycle

logger = logging.getLogger(__name__)

ZONE_NOT_FOUND = "Snow zone not found (+8m join mismatch?)"
SATELLITE_LAYER_FAILED = "Unable to enable satellite layer"
RING_EXTRACTION_FAILED = "Unable to build mask from snow zone geometry"
MASK_CONSTRUCTION_FAILED = "Unable to create mask layer"

FAILURE_MESSAGES = {
    MaskBuildFailure.ZONE_NOT_FOUND: ZONE_NOT_FOUND,
    MaskBuildFailure.RING_EXTRACTION_FAILED: RING_EXTRACTION_FAILED,
    MaskBuildFailure.MASK_CONSTRUCTION_FAILED: MASK_CONSTRUCTION_FAILED,
}


class SatelliteOverlay(OverlayLifecycle):
    """🛰️ Zone-masked satellite imagery."""

    kind = OverlayKind.SATELLITE
    label = "Satellite"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tile_handle: Optional[int] = None

    # -----------------------------------------------------------------------
    # Tile layer
    # -----------------------------------------------------------------------

    def ensure_tile_layer(self) -> bool:
        """Attach the satellite tile layer if it is not already attached."""
        if self.engine.has_layer(self.tile_handle):
            return True
        source = self.config.basemaps.satellite
        try:
            self.tile_handle = self.engine.add_tile_layer(
                source.url,
                max_native_zoom=source.max_native_zoom,
                max_zoom=source.max_zoom,
                attribution=source.attribution,
            )
        except BUILD_ERRORS as e:
            logger.warning(f"⚠️ Satellite tile layer failed: {e}")
            self.tile_handle = None
            return False
        return True

    def _teardown(self) -> None:
        self.engine.remove_layer(self.tile_handle)
        self.tile_handle = None

    # -----------------------------------------------------------------------
    # Build
    # -----------------------------------------------------------------------

    def _activate(self, roll: str) -> Optional[str]:
        min_zoom = self.config.map.satellite_enable_min_zoom
        if self.engine.get_zoom() < min_zoom:
            self.engine.set_zoom(min_zoom)

        if self.registry.zone(roll) is None:
            return ZONE_NOT_FOUND
        return self._build(roll)

    def _build(self, roll: str) -> Optional[str]:
        zone = self.registry.zone(roll)
        if zone is None:
            return ZONE_NOT_FOUND

        if not self.ensure_tile_layer():
            return SATELLITE_LAYER_FAILED

        overlays = self.config.overlays
        result = build_zone_mask(
            zone.geometry,
            use_hole_fill=overlays.use_hole_fill and self.engine.supports_hole_fill,
            lat_limit=overlays.mask_latitude_limit,
        )
        if not result.ok:
            return FAILURE_MESSAGES[result.failure]

        try:
            self.state.handles.append(
                self.engine.add_polygon(result.mask, overlays.mask_style)
            )
            self.state.handles.append(
                self.engine.add_polygon(result.outline, overlays.zone_outline_style)
            )
        except BUILD_ERRORS as e:
            logger.warning(f"⚠️ Satellite overlay build failed for roll {roll}: {e}")
            self.clear_handles()
            return MASK_CONSTRUCTION_FAILED
        return None
