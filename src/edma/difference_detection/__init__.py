"""
Group-separation ranking for interlandmark distances.

Submodules
==========
- statistics : group coding, squared correlation, quantiles, random-tie ranks
- ranker : ``rank`` (distance tables) and ``separation_analysis`` (landmarks)
- results : ``ILDSelection`` result container
- config : rounding constants and ``RankerConfig``
"""

from .config import (
    DISTANCE_DECIMALS,
    REPORT_DECIMALS,
    DISPLAY_DECIMALS,
    DEFAULT_QUANTILE,
    RankerConfig,
)
from .statistics import (
    as_generator,
    encode_groups,
    squared_correlation,
    quantile_threshold,
    rank_random_ties,
)
from .results import ILDSelection
from .ranker import rank, separation_analysis

__all__ = [
    # Configuration
    'DISTANCE_DECIMALS',
    'REPORT_DECIMALS',
    'DISPLAY_DECIMALS',
    'DEFAULT_QUANTILE',
    'RankerConfig',
    # Statistics
    'as_generator',
    'encode_groups',
    'squared_correlation',
    'quantile_threshold',
    'rank_random_ties',
    # Ranking
    'ILDSelection',
    'rank',
    'separation_analysis',
]
