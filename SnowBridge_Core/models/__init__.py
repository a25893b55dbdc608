"""Data models package for typed parcel, selection and overlay structures."""

from .data_models import (
    AddressRow,
    InverseMask,
    LatLng,
    MaskBuildFailure,
    MaskBuildResult,
    OverlayKind,
    OverlayState,
    ParcelFeature,
    RequestDetails,
    Ring,
    Selection,
    Severity,
    SnowbridgeRecord,
    ZoneFeature,
)

__all__ = [
    # Feature models
    "ParcelFeature",
    "ZoneFeature",
    "AddressRow",
    # Selection + overlay state
    "Selection",
    "OverlayKind",
    "OverlayState",
    # Mask results
    "InverseMask",
    "MaskBuildFailure",
    "MaskBuildResult",
    # Records
    "Severity",
    "RequestDetails",
    "SnowbridgeRecord",
    # Type aliases
    "LatLng",
    "Ring",
]
