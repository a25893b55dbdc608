"""
Roll-keyed registry of parcel and zone features.

The registry is populated once at load and never mutated afterwards; only
display styles change over time, and those live on the engine side. Rolls
are always strings so "123" from one dataset joins 123 from another.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from SnowBridge_Core.models import ParcelFeature, ZoneFeature

logger = logging.getLogger(__name__)


def _roll_of(feature: Dict[str, Any], join_key: str) -> Optional[str]:
    props = (feature or {}).get("properties") or {}
    value = props.get(join_key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class FeatureRegistry:
    """Lookup of ParcelFeature / ZoneFeature by roll."""

    def __init__(
        self,
        parcels: Optional[Dict[str, ParcelFeature]] = None,
        zones: Optional[Dict[str, ZoneFeature]] = None,
    ) -> None:
        self._parcels: Dict[str, ParcelFeature] = dict(parcels or {})
        self._zones: Dict[str, ZoneFeature] = dict(zones or {})

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    @classmethod
    def from_geojson(
        cls,
        parcels_fc: Optional[Dict[str, Any]],
        zones_fc: Optional[Dict[str, Any]] = None,
        join_key: str = "ROLLNUMSHO",
    ) -> "FeatureRegistry":
        """
        Build the registry from GeoJSON FeatureCollections.

        Features without a join value are skipped. When a roll appears twice
        the first feature is kept and a warning is logged.
        """
        parcels: Dict[str, ParcelFeature] = {}
        for roll, feature in cls._iter_keyed(parcels_fc, join_key, "parcel"):
            if roll in parcels:
                logger.warning(f"⚠️ Duplicate parcel roll {roll}: keeping first feature")
                continue
            parcels[roll] = ParcelFeature(
                roll=roll,
                geometry=feature.get("geometry") or {},
                properties=dict(feature.get("properties") or {}),
            )

        zones: Dict[str, ZoneFeature] = {}
        for roll, feature in cls._iter_keyed(zones_fc, join_key, "zone"):
            if roll in zones:
                logger.warning(f"⚠️ Duplicate zone roll {roll}: keeping first feature")
                continue
            zones[roll] = ZoneFeature(
                roll=roll,
                geometry=feature.get("geometry") or {},
                properties=dict(feature.get("properties") or {}),
            )

        missing = [r for r in parcels if r not in zones]
        logger.info(
            f"✅ Registry: {len(parcels)} parcels, {len(zones)} zones "
            f"({len(missing)} parcels without zone)"
        )
        return cls(parcels, zones)

    @staticmethod
    def _iter_keyed(
        fc: Optional[Dict[str, Any]], join_key: str, what: str
    ) -> Iterator:
        skipped = 0
        for feature in (fc or {}).get("features") or []:
            roll = _roll_of(feature, join_key)
            if roll is None:
                skipped += 1
                continue
            yield roll, feature
        if skipped:
            logger.warning(f"⚠️ Skipped {skipped} {what} features without {join_key}")

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def parcel(self, roll: Any) -> Optional[ParcelFeature]:
        if roll is None:
            return None
        return self._parcels.get(str(roll))

    def zone(self, roll: Any) -> Optional[ZoneFeature]:
        if roll is None:
            return None
        return self._zones.get(str(roll))

    def has_parcel(self, roll: Any) -> bool:
        return self.parcel(roll) is not None

    def rolls(self) -> List[str]:
        return list(self._parcels.keys())

    def __len__(self) -> int:
        return len(self._parcels)

    def __contains__(self, roll: Any) -> bool:
        return self.has_parcel(roll)
