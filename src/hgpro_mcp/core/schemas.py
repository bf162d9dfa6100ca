"""
TypedDict Schema Definitions for HG-Pro MCP.

This module provides the wire shapes produced by the WRB / Hidden Gap engine.
Field names are a contract with the chart renderer, which indexes
positionally into the caller's candle array, so they keep their camelCase
spelling.

Key Features:
- HiddenGapDict for a single gap zone
- WRBSummary with counts and the last signal pointer
- WRBResultDict for a complete analysis
- Builder for the summary block
"""

from __future__ import annotations
from typing import TypedDict, Literal, List, Optional, Dict, Any


GapType = Literal["buy", "sell"]


# =============================================================================
# Type Definitions
# =============================================================================

class HiddenGapDict(TypedDict):
    """
    A hidden gap zone.

    Attributes:
        type: "buy" (bullish gap below price) or "sell" (bearish gap above)
        top: Upper boundary of the zone
        bottom: Lower boundary of the zone (always < top)
        startIndex: Index of the WRB candle
        endIndex: Scan horizon while active, fill candle index once filled
        filled: Whether later price re-entered the zone
        filledIndex: Index of the filling candle, or None
        pro: High-conviction flag
        diff: top - bottom
    """
    type: GapType
    top: float
    bottom: float
    startIndex: int
    endIndex: int
    filled: bool
    filledIndex: Optional[int]
    pro: bool
    diff: float


class LastSignal(TypedDict):
    """Pointer to the most recent gap."""
    index: int
    type: GapType
    pro: bool


class WRBSummary(TypedDict):
    """Aggregate counts for one analysis run."""
    totalWRB: int
    totalGaps: int
    activeCount: int
    filledCount: int
    proCount: int
    lastSignal: Optional[LastSignal]


class WRBResultDict(TypedDict):
    """
    Complete WRB / Hidden Gap analysis.

    Attributes:
        flags: One boolean per candle (True = WRB)
        gaps: One entry per candle, a gap dict or None
        active: Unfilled gaps in discovery order
        filled: Filled gaps in discovery order
        summary: Aggregate counts
    """
    flags: List[bool]
    gaps: List[Optional[HiddenGapDict]]
    active: List[HiddenGapDict]
    filled: List[HiddenGapDict]
    summary: WRBSummary


# =============================================================================
# Builder Functions
# =============================================================================

def build_summary(
    total_wrb: int,
    total_gaps: int,
    active_count: int,
    filled_count: int,
    pro_count: int,
    last_signal: Optional[LastSignal] = None
) -> WRBSummary:
    """
    Build the summary block of a WRB analysis.

    Example:
        >>> build_summary(3, 1, 1, 0, 0)["activeCount"]
        1
    """
    return {
        "totalWRB": total_wrb,
        "totalGaps": total_gaps,
        "activeCount": active_count,
        "filledCount": filled_count,
        "proCount": pro_count,
        "lastSignal": last_signal,
    }


# =============================================================================
# Validation
# =============================================================================

def validate_wrb_result(result: Dict[str, Any]) -> tuple[bool, str | None]:
    """
    Validate that a dictionary conforms to the WRBResultDict schema.

    Returns:
        Tuple of (is_valid, error_message)
    """
    for key in ("flags", "gaps", "active", "filled", "summary"):
        if key not in result:
            return (False, f"Missing required key: {key}")

    if len(result["flags"]) != len(result["gaps"]):
        return (False, "flags and gaps must be index-aligned")

    summary = result["summary"]
    for key in ("totalWRB", "totalGaps", "activeCount", "filledCount", "proCount", "lastSignal"):
        if key not in summary:
            return (False, f"Summary missing key: {key}")

    if summary["totalGaps"] != summary["activeCount"] + summary["filledCount"]:
        return (False, "totalGaps must equal activeCount + filledCount")

    for gap in result["active"] + result["filled"]:
        if not gap["top"] > gap["bottom"]:
            return (False, f"Gap at {gap['startIndex']} has top <= bottom")

    return (True, None)
