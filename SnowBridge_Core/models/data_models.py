"""
Typed data models for the SnowBridge query stage.

Architectural Overview:
=======================
This module contains the dataclasses that travel between the registry, the
overlays, the query stage and the record actions. Feature data (parcels,
zones, address rows) is immutable and built once at load; the Selection and
the per-overlay OverlayState are the only mutable values and each has a
single owner (SnowBridgeApp).

Key Interactions:
-----------------
- Input: feature_registry.py / address_ranker.py build ParcelFeature,
  ZoneFeature and AddressRow instances from GeoJSON
- Output: overlays and query_stage mutate Selection / OverlayState
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Data Flow:
----------
1. Loader creates ParcelFeature / ZoneFeature keyed by roll (always a string)
2. Query stage writes Selection.current_roll on enter, clears it on exit
3. Overlays own one OverlayState each; handles are engine layer handles
4. Geometry builders return MaskBuildResult, never raise on bad geometry

MODIFICATION POINT: Add new Severity values here if the request form grows
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

LatLng = Tuple[float, float]
Ring = List[LatLng]


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class Severity(Enum):
    """Severity of a snowbridge request.

    MODIFICATION POINT: Add new severities here and a colour in CONFIG['styles']
    """

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["Severity"]:
        """Convert free text to Severity.

        Args:
            s: Text like "yellow", " RED "

        Returns:
            Matching Severity, or None if the text is not a known severity
        """
        if s is None:
            return None
        text = str(s).strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return None


class OverlayKind(Enum):
    """Which overlay an OverlayState belongs to."""

    SATELLITE = "satellite"
    SIZE = "size"


class MaskBuildFailure(Enum):
    """Why a mask could not be built.

    The user-initiated toggle maps each member to a status message; the
    automatic viewport rebuild logs and drops it.
    """

    ZONE_NOT_FOUND = "zone_not_found"
    RING_EXTRACTION_FAILED = "ring_extraction_failed"
    MASK_CONSTRUCTION_FAILED = "mask_construction_failed"


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ FEATURE DATACLASSES (immutable, built once at load)
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ParcelFeature:
    """A land-boundary polygon and its roll.

    Attributes:
        roll: Join identifier (always a string)
        geometry: GeoJSON geometry mapping in (lng, lat) order
        properties: Original feature properties
    """

    roll: str
    geometry: Dict[str, Any]
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ZoneFeature:
    """A buffer polygon (e.g. "+8m") joined to a parcel by roll."""

    roll: str
    geometry: Dict[str, Any]
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AddressRow:
    """One searchable address point.

    Attributes:
        label: Display label as found in the dataset
        norm: normalize(label), precomputed for ranking
        roll: Join identifier of the parcel the address belongs to
        lat: Latitude of the address point
        lng: Longitude of the address point
    """

    label: str
    norm: str
    roll: str
    lat: float
    lng: float

    def sort_key(self) -> Tuple[str, str, float, float, str]:
        """Tie-break order used when scores are equal."""
        return (self.label, self.roll, self.lat, self.lng, self.norm)


# ═══════════════════════════════════════════════════════════════════════════
# 🎯 SELECTION + OVERLAY STATE (mutable, single owner)
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class Selection:
    """The single active selection.

    Exactly one instance exists per SnowBridgeApp and is passed by reference
    to every component that needs the active roll.
    """

    current_roll: Optional[str] = None
    active: bool = False
    blink_on: bool = False
    has_unsaved_drawing: bool = False

    def is_current(self, roll: Optional[str]) -> bool:
        return roll is not None and self.current_roll == str(roll)

    def reset(self) -> Optional[str]:
        """Clear the selection and return the roll that was active."""
        previous = self.current_roll
        self.current_roll = None
        self.active = False
        self.blink_on = False
        return previous


@dataclass
class OverlayState:
    """On/off state, owned engine handles and race-gate flags for one overlay.

    Attributes:
        kind: Which overlay this state belongs to
        on: Whether the overlay is logically on
        handles: Engine layer handles owned by the overlay
        roll: Roll the current handles were built for
        rebuild_in_flight: A rebuild is executing right now
        rebuild_pending: A trigger arrived while a rebuild was executing
    """

    kind: OverlayKind
    on: bool = False
    handles: List[Any] = field(default_factory=list)
    roll: Optional[str] = None
    rebuild_in_flight: bool = False
    rebuild_pending: bool = False

    @property
    def has_handles(self) -> bool:
        return bool(self.handles)


# ═══════════════════════════════════════════════════════════════════════════
# 🛰️ MASK RESULTS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class InverseMask:
    """World rectangle with one hole per zone polygon, in (lat, lng) order."""

    outer: Ring
    holes: List[Ring]

    @property
    def rings(self) -> List[Ring]:
        """Outer ring followed by holes, the shape an engine polygon takes."""
        return [self.outer] + list(self.holes)


@dataclass(frozen=True)
class MaskBuildResult:
    """Result of building a mask: either mask and outline polygons, or a failure.

    Attributes:
        mask: Mask polygons, each a list of rings (outer first). One polygon
            with holes on the hole-fill path, several hole-free pieces on the
            difference path.
        outline: Zone polygons for the outline layer
        inverse: The world-with-holes mask when built on the hole-fill path
        failure: Set when the build failed; mask/outline are then None
    """

    mask: Optional[List[List[Ring]]] = None
    outline: Optional[List[List[Ring]]] = None
    inverse: Optional[InverseMask] = None
    failure: Optional[MaskBuildFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.mask is not None

    @classmethod
    def success(
        cls,
        mask: List[List[Ring]],
        outline: List[List[Ring]],
        inverse: Optional[InverseMask] = None,
    ) -> "MaskBuildResult":
        return cls(mask=mask, outline=outline, inverse=inverse)

    @classmethod
    def failed(cls, failure: MaskBuildFailure) -> "MaskBuildResult":
        return cls(failure=failure)


# ═══════════════════════════════════════════════════════════════════════════
# 💾 RECORDS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RequestDetails:
    """Snowbridge request form values."""

    severity: Severity
    seniors: bool = False
    est_snow: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "seniors": self.seniors,
            "est_snow": self.est_snow,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> Optional["RequestDetails"]:
        """Build from stored dict; None when the stored severity is unknown."""
        severity = Severity.from_string(d.get("severity"))
        if severity is None:
            return None
        return cls(
            severity=severity,
            seniors=bool(d.get("seniors", False)),
            est_snow=str(d.get("est_snow", "")),
            notes=str(d.get("notes", "")),
        )


@dataclass(frozen=True)
class SnowbridgeRecord:
    """Stored record for one roll (request and/or drawing).

    The drawing is an opaque string (e.g. a PNG data URL) produced by the
    external canvas.
    """

    request: Optional[RequestDetails] = None
    drawing: Optional[str] = None
    updated_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.request is not None:
            d["request"] = self.request.to_dict()
        if self.drawing is not None:
            d["drawing"] = self.drawing
        if self.updated_at is not None:
            d["updated_at"] = self.updated_at
        return d

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["SnowbridgeRecord"]:
        if not isinstance(d, dict):
            return None
        request = d.get("request")
        return cls(
            request=RequestDetails.from_dict(request) if isinstance(request, dict) else None,
            drawing=d.get("drawing") or None,
            updated_at=d.get("updated_at"),
        )

    @property
    def severity(self) -> Optional[Severity]:
        return self.request.severity if self.request else None
