"""Constants and configuration for group-separation ranking."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Literal

__all__ = [
    'DISTANCE_DECIMALS',
    'REPORT_DECIMALS',
    'DISPLAY_DECIMALS',
    'DEFAULT_QUANTILE',
    'EmptySelectionPolicy',
    'RankerConfig',
]


# Raw distances are rounded before any comparison or sort so ties are reproducible.
DISTANCE_DECIMALS = 6
# Effect sizes and ratios reported for the selected distances.
REPORT_DECIMALS = 7
# Rounding of the human-readable summary table.
DISPLAY_DECIMALS = 2
DEFAULT_QUANTILE = 0.95

EmptySelectionPolicy = Literal["warn", "raise", "ignore"]


@dataclass(frozen=True)
class RankerConfig:
    """
    Numeric settings for :func:`edma.difference_detection.rank`.

    Attributes
    ----------
    distance_decimals : int
        Decimals kept on distances and ratio deviations before comparing.
    report_decimals : int
        Decimals kept on the reported effect sizes and ratios.
    empty_selection : {"warn", "raise", "ignore"}
        What to do when no distance exceeds the cut-off. ``"warn"`` and
        ``"ignore"`` return an empty selection; ``"raise"`` raises
        :class:`~edma.errors.EmptySelectionError`.
    """
    distance_decimals: int = DISTANCE_DECIMALS
    report_decimals: int = REPORT_DECIMALS
    empty_selection: EmptySelectionPolicy = "warn"

    def __post_init__(self):
        if self.distance_decimals < 0 or self.report_decimals < 0:
            raise ValueError(
                f"decimals must be >= 0, got distance_decimals={self.distance_decimals}, "
                f"report_decimals={self.report_decimals}"
            )
        if self.empty_selection not in ("warn", "raise", "ignore"):
            raise ValueError(
                f"empty_selection must be 'warn', 'raise', or 'ignore', "
                f"got: {self.empty_selection!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
