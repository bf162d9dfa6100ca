"""
WRB / Hidden Gap analysis configuration.

A WRBConfig is immutable and supplied per call. Field values are not
validated here: out-of-range values (e.g. sensitivity <= 0) produce
meaningless but non-crashing output. Range clamping for tool arguments
lives in the sanitize module.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Mapping, Optional


# =============================================================================
# Constants
# =============================================================================

DEFAULT_LOOKBACK_PERIOD = 5
DEFAULT_SENSITIVITY = 1.5
DEFAULT_USE_BODY = True
DEFAULT_MAX_SCOPE = 999

# Wire name -> field name
_WIRE_FIELDS: Dict[str, str] = {
    "lookbackPeriod": "lookback_period",
    "sensitivity": "sensitivity",
    "useBody": "use_body",
    "gapExtension": "gap_extension",
    "maxScope": "max_scope",
}


class GapExtension(str, Enum):
    """How far a hidden gap zone is extended into the WRB bar."""
    NONE = "none"
    STOP_LOSS = "stopLoss"
    BOTH = "both"


DEFAULT_GAP_EXTENSION = GapExtension.STOP_LOSS


@dataclass(frozen=True)
class WRBConfig:
    """
    Options for a WRB / Hidden Gap analysis run.

    Attributes:
        lookback_period: Number of preceding bars a WRB must beat
        sensitivity: Multiplier applied to each preceding bar's range
        use_body: Measure the candle body (True) or the full high-low range
        gap_extension: Gap boundary policy (none, stopLoss, both)
        max_scope: Maximum number of bars scanned forward for a fill
    """
    lookback_period: int = DEFAULT_LOOKBACK_PERIOD
    sensitivity: float = DEFAULT_SENSITIVITY
    use_body: bool = DEFAULT_USE_BODY
    gap_extension: GapExtension = DEFAULT_GAP_EXTENSION
    max_scope: int = DEFAULT_MAX_SCOPE

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> "WRBConfig":
        """
        Build a config from a partial options mapping.

        Both the wire names (``lookbackPeriod``, ``gapExtension``, ...) and
        the snake_case field names are accepted. Missing keys and ``None``
        values fall back to defaults; unknown keys are ignored.

        Example:
            >>> WRBConfig.from_mapping({"gapExtension": "none"}).gap_extension
            <GapExtension.NONE: 'none'>
        """
        if not options:
            return cls()

        values: Dict[str, Any] = {}
        for key, value in options.items():
            name = _WIRE_FIELDS.get(key, key)
            if name in _WIRE_FIELDS.values() and value is not None:
                values[name] = value

        if "gap_extension" in values:
            values["gap_extension"] = GapExtension(values["gap_extension"])

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Return the config using the wire field names."""
        raw = asdict(self)
        return {
            "lookbackPeriod": raw["lookback_period"],
            "sensitivity": raw["sensitivity"],
            "useBody": raw["use_body"],
            "gapExtension": self.gap_extension.value,
            "maxScope": raw["max_scope"],
        }


def resolve_config(config: "WRBConfig | Mapping[str, Any] | None") -> WRBConfig:
    """Accept a WRBConfig, a partial options mapping, or None."""
    if isinstance(config, WRBConfig):
        return config
    return WRBConfig.from_mapping(config)
