#!/usr/bin/env python3
"""
SnowBridge Address Ranker

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn free-text address queries into a deterministically
ordered list of AddressRow candidates. Feeds the search box suggestions and
the submit action of the query stage.

Scoring is NOT fuzzy: exact match and prefix match dominate, token overlap
only breaks ranks among partial matches.

Score table (normalized query q vs candidate c):
- c == q                                  -> 1000
- c starts with q                         -> 800
- otherwise, per query token (best over candidate tokens):
    exact 60, candidate token starts with it 40, contains it 10
  plus 120 if q is a substring of c

Navigation Guide:
- normalize / tokenize / score: pure scoring primitives
- build_address_index: GeoJSON FeatureCollection -> List[AddressRow]
- rank / rank_with_scores: ordered, truncated candidates

CONFIGURATION ARCHITECTURE:
- No CONFIG access - limits and label fields are explicit parameters
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from SnowBridge_Core.models import AddressRow

logger = logging.getLogger(__name__)

DEFAULT_RANK_LIMIT = 12
DEFAULT_LABEL_FIELDS: Tuple[str, ...] = (
    "full_addr",
    "FULL_ADDR",
    "FULLADDR",
    "ADDR_FULL",
    "ADDRESS",
)

SCORE_EXACT = 1000.0
SCORE_PREFIX = 800.0
SCORE_TOKEN_EXACT = 60.0
SCORE_TOKEN_PREFIX = 40.0
SCORE_TOKEN_CONTAINS = 10.0
SCORE_SUBSTRING_BONUS = 120.0

_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_STRIP_CHARS = str.maketrans("", "", ".,")
_WHITESPACE_RE = re.compile(r"\s+")


# ===========================================================================
# SCORING PRIMITIVES
# ===========================================================================


def normalize(s: Any) -> str:
    """Uppercase (ASCII only), drop periods/commas, collapse whitespace, trim."""
    text = "" if s is None else str(s)
    text = text.translate(_ASCII_UPPER).translate(_STRIP_CHARS)
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(norm: str) -> List[str]:
    return [t for t in (norm or "").split(" ") if t]


def score(query_norm: Optional[str], candidate_norm: Optional[str]) -> float:
    """
    Score a normalized candidate against a normalized query.

    Returns:
        -inf if either side is empty, else a non-negative score.
    """
    if not query_norm or not candidate_norm:
        return -math.inf
    if candidate_norm == query_norm:
        return SCORE_EXACT
    if candidate_norm.startswith(query_norm):
        return SCORE_PREFIX

    candidate_tokens = tokenize(candidate_norm)
    total = 0.0
    for qt in tokenize(query_norm):
        best = 0.0
        for ct in candidate_tokens:
            if ct == qt:
                best = max(best, SCORE_TOKEN_EXACT)
            elif ct.startswith(qt):
                best = max(best, SCORE_TOKEN_PREFIX)
            elif qt in ct:
                best = max(best, SCORE_TOKEN_CONTAINS)
        total += best

    if query_norm in candidate_norm:
        total += SCORE_SUBSTRING_BONUS
    return total


# ===========================================================================
# INDEX CONSTRUCTION
# ===========================================================================


def _pick_label(props: Dict[str, Any], label_fields: Optional[Sequence[str]]) -> str:
    """Label from the priority list (first non-blank), else the built-in fields."""
    if label_fields:
        for key in label_fields:
            value = props.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()

    # Built-in fields: first one present wins, even if blank
    for key in DEFAULT_LABEL_FIELDS:
        value = props.get(key)
        if value is not None:
            return str(value).strip()
    return ""


def build_address_index(
    feature_collection: Optional[Dict[str, Any]],
    join_key: str,
    label_fields: Optional[Sequence[str]] = None,
) -> List[AddressRow]:
    """
    Build address rows from a GeoJSON FeatureCollection of points.

    Features are skipped when they are not Points, lack a join value, have
    non-finite coordinates or a blank label. Rolls are coerced to str.

    Args:
        feature_collection: GeoJSON FeatureCollection mapping
        join_key: Property carrying the roll
        label_fields: Optional priority list of label properties

    Returns:
        List of AddressRow in input order.
    """
    rows: List[AddressRow] = []
    skipped = 0
    for feature in (feature_collection or {}).get("features") or []:
        props = (feature or {}).get("properties") or {}
        geom = (feature or {}).get("geometry") or {}
        coords = geom.get("coordinates")
        if geom.get("type") != "Point" or not isinstance(coords, (list, tuple)) or len(coords) < 2:
            skipped += 1
            continue

        roll = props.get(join_key)
        if roll is None:
            skipped += 1
            continue

        try:
            lng = float(coords[0])
            lat = float(coords[1])
        except (TypeError, ValueError):
            skipped += 1
            continue
        if not (math.isfinite(lat) and math.isfinite(lng)):
            skipped += 1
            continue

        label = _pick_label(props, label_fields)
        if not label:
            skipped += 1
            continue

        rows.append(
            AddressRow(label=label, norm=normalize(label), roll=str(roll), lat=lat, lng=lng)
        )

    logger.debug(f"🔎 Address index: {len(rows)} rows ({skipped} skipped)")
    return rows


# ===========================================================================
# RANKING
# ===========================================================================


def rank_with_scores(
    query: Any, rows: Sequence[AddressRow], limit: int = DEFAULT_RANK_LIMIT
) -> List[Tuple[AddressRow, float]]:
    """
    Rank rows against a query and keep their scores.

    Order: score descending, then label, roll, lat, lng, norm ascending.
    Non-positive scores are dropped; the list is truncated to limit.
    """
    query_norm = normalize(query)
    if not query_norm:
        return []

    scored: List[Tuple[AddressRow, float]] = []
    for row in rows or []:
        s = score(query_norm, row.norm)
        if s > 0:
            scored.append((row, s))

    scored.sort(key=lambda pair: (-pair[1],) + pair[0].sort_key())
    n = max(0, int(limit or 0))
    return scored[:n]


def rank(
    query: Any, rows: Sequence[AddressRow], limit: int = DEFAULT_RANK_LIMIT
) -> List[AddressRow]:
    """Ranked candidate rows for a query (see rank_with_scores)."""
    return [row for row, _score in rank_with_scores(query, rows, limit)]
