"""
Parcel display-style resolution.

A parcel's style depends on three things: whether it is the active roll (and
which blink phase is showing), whether a request with a severity is stored
for it, and the configured base styles. Resolution order:

1. Active roll: selected_on / selected_off by blink phase
2. Stored request: idle style recoloured with the severity colour
3. Otherwise: idle style
"""

from typing import Any, Dict, Optional

from SnowBridge_Core.config_types import StyleConfig
from SnowBridge_Core.models import Selection, SnowbridgeRecord


def resolve_parcel_style(
    roll: Optional[str],
    selection: Selection,
    record: Optional[SnowbridgeRecord],
    styles: StyleConfig,
) -> Dict[str, Any]:
    """Return the style dict a parcel should currently be drawn with."""
    if roll is not None and selection.active and selection.is_current(roll):
        base = styles.selected_on if selection.blink_on else styles.selected_off
        return dict(base)

    style = dict(styles.idle)
    severity = record.severity if record is not None else None
    if severity is not None:
        color = styles.severity_colors.get(severity.value)
        if color:
            style["color"] = color
            style["fill_color"] = color
            style["fill_opacity"] = styles.severity_fill_opacity
    return style
