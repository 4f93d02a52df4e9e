"""Interlandmark distance analysis of landmark configurations."""

import importlib

from .errors import (
    EDMAError,
    ShapeMismatchError,
    DegenerateInputError,
    DimensionMismatchError,
    EmptySelectionError,
    UndefinedRatioWarning,
)
from .distances import (
    extract,
    mean_configuration,
    pairwise_labels,
    parse_label,
    label_pairs,
)
from .difference_detection import (
    ILDSelection,
    RankerConfig,
    rank,
    separation_analysis,
)

__version__ = "0.1.0"

__all__ = [
    'EDMAError',
    'ShapeMismatchError',
    'DegenerateInputError',
    'DimensionMismatchError',
    'EmptySelectionError',
    'UndefinedRatioWarning',
    'extract',
    'mean_configuration',
    'pairwise_labels',
    'parse_label',
    'label_pairs',
    'ILDSelection',
    'RankerConfig',
    'rank',
    'separation_analysis',
    'plot_selected_distances',
    'plot_ratio_diagnostics',
]


# Plotting pulls in matplotlib; load it on first use only
_VIZ_EXPORTS = {
    'plot_selected_distances',
    'plot_ratio_diagnostics',
}


def __getattr__(name: str):
    if name in _VIZ_EXPORTS:
        module = importlib.import_module(f"{__name__}.viz")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
