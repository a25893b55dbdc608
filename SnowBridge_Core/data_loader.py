"""
Data loading for SnowBridge Core.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Read the parcel, zone and address GeoJSON files, make sure
they are in WGS84 and turn them into the FeatureRegistry and AddressRow list
the rest of the core works with.

Key Features:
- geopandas.read_file for any OGR-readable input (GeoJSON by default)
- Reprojects to EPSG:4326; a missing CRS is assumed to be EPSG:4326
- Parcels are required; zones and addresses are optional (warn and continue)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd

from SnowBridge_Core.address_ranker import build_address_index
from SnowBridge_Core.config_types import DataConfig, RankerConfig
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.models import AddressRow

logger = logging.getLogger(__name__)

CRS_WGS84 = "EPSG:4326"


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 DATA CONTAINERS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class LoadedData:
    """Container for everything the app needs from disk.

    Attributes:
        registry: Parcels and zones keyed by roll
        address_rows: Searchable address rows
        bounds: (minx, miny, maxx, maxy) of the parcels in WGS84, if any
    """

    registry: FeatureRegistry
    address_rows: List[AddressRow] = field(default_factory=list)
    bounds: Optional[Tuple[float, float, float, float]] = None


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ COORDINATE TRANSFORMATION
# ═══════════════════════════════════════════════════════════════════════════════


def _ensure_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Ensure GeoDataFrame is in WGS84 (EPSG:4326).

    Args:
        gdf: Input GeoDataFrame in any CRS

    Returns:
        GeoDataFrame in WGS84
    """
    if gdf.crs is None:
        logger.warning("⚠️ GeoDataFrame has no CRS, assuming EPSG:4326 (WGS84)")
        return gdf.set_crs(CRS_WGS84)

    if gdf.crs.to_epsg() != 4326:
        logger.info(f"🔄 Reprojecting from {gdf.crs} to WGS84 (EPSG:4326)")
        gdf = gdf.to_crs(CRS_WGS84)

    return gdf


def _compute_bounds(gdf: gpd.GeoDataFrame) -> Optional[Tuple[float, float, float, float]]:
    if gdf.empty:
        return None
    total_bounds = gdf.total_bounds
    return (
        float(total_bounds[0]),
        float(total_bounds[1]),
        float(total_bounds[2]),
        float(total_bounds[3]),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 📂 FILE LOADING
# ═══════════════════════════════════════════════════════════════════════════════


def read_feature_collection(
    path: Any, required: bool = False
) -> Tuple[Optional[Dict[str, Any]], Optional[gpd.GeoDataFrame]]:
    """
    Read a vector file into a WGS84 GeoJSON FeatureCollection.

    Args:
        path: File path (None / "" means not configured)
        required: Raise FileNotFoundError instead of warning when missing

    Returns:
        (FeatureCollection dict, GeoDataFrame), or (None, None) when an
        optional file is missing.
    """
    if not path or not Path(path).exists():
        if required:
            raise FileNotFoundError(f"Required data file not found: {path}")
        logger.warning(f"⚠️ Data file not found, continuing without it: {path}")
        return None, None

    gdf = gpd.read_file(path)
    gdf = _ensure_wgs84(gdf)
    # to_json writes missing values as null, so join keys never become "nan"
    fc = json.loads(gdf.to_json())
    logger.info(f"📂 Loaded {len(gdf)} features from {Path(path).name}")
    return fc, gdf


def load_data(
    parcels_path: Any,
    zones_path: Any = None,
    addresses_path: Any = None,
    join_key: str = "ROLLNUMSHO",
    label_fields: Optional[Sequence[str]] = None,
) -> LoadedData:
    """
    Load all three datasets and build the registry and address index.

    Raises:
        FileNotFoundError: If the parcels file is missing.
    """
    parcels_fc, parcels_gdf = read_feature_collection(parcels_path, required=True)
    zones_fc, _ = read_feature_collection(zones_path)
    addresses_fc, _ = read_feature_collection(addresses_path)

    registry = FeatureRegistry.from_geojson(parcels_fc, zones_fc, join_key)
    rows = build_address_index(addresses_fc, join_key, label_fields) if addresses_fc else []

    return LoadedData(
        registry=registry,
        address_rows=rows,
        bounds=_compute_bounds(parcels_gdf) if parcels_gdf is not None else None,
    )


def load_from_config(data: DataConfig, ranker: Optional[RankerConfig] = None) -> LoadedData:
    """Load the files named in DataConfig."""
    return load_data(
        data.parcels_file,
        data.zones_file,
        data.addresses_file,
        join_key=data.join_key,
        label_fields=ranker.label_fields if ranker else None,
    )
