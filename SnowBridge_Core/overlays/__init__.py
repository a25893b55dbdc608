"""Overlay lifecycle package: satellite mask and size label with race-gated rebuilds."""

from .base import OverlayLifecycle, SELECT_PARCEL_FIRST
from .race_gate import RaceGate
from .satellite import SatelliteOverlay
from .size import SizeOverlay

__all__ = [
    "OverlayLifecycle",
    "RaceGate",
    "SatelliteOverlay",
    "SizeOverlay",
    "SELECT_PARCEL_FIRST",
]
