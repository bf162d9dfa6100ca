"""
HG-Pro Analysis Engines.

- wrb: Wide Range Bar detection, Hidden Gap location, Pro grading and
  gap fill tracking (HG_PRO methodology)
"""

from .wrb import (
    GapType,
    HiddenGap,
    WRBAnalysis,
    analyze_wrb,
    build_wrb_summary_text,
    detect_hidden_gaps,
    detect_wrb,
    get_detailed_wrb,
    is_pro_gap,
    track_gap_fills,
)

__all__ = [
    "GapType",
    "HiddenGap",
    "WRBAnalysis",
    "analyze_wrb",
    "build_wrb_summary_text",
    "detect_hidden_gaps",
    "detect_wrb",
    "get_detailed_wrb",
    "is_pro_gap",
    "track_gap_fills",
]
