"""
Pairwise interlandmark distances.

- labels : canonical ``"i-j"`` labels and their reverse mapping
- extract : distance tables from populations of configurations
"""

from .labels import (
    LABEL_SEPARATOR,
    n_pairwise_distances,
    pairwise_labels,
    parse_label,
    label_pairs,
)
from .extract import (
    PopulationLike,
    as_population,
    extract,
    mean_configuration,
)

__all__ = [
    'LABEL_SEPARATOR',
    'n_pairwise_distances',
    'pairwise_labels',
    'parse_label',
    'label_pairs',
    'PopulationLike',
    'as_population',
    'extract',
    'mean_configuration',
]
