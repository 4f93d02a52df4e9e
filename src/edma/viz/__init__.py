"""
Plotting for interlandmark distance selections.

- ild_overlay : distances drawn over the reference/target configuration
- diagnostics : ratio and R² diagnostic panels
"""

from .ild_overlay import plot_selected_distances
from .diagnostics import plot_ratio_diagnostics

__all__ = [
    'plot_selected_distances',
    'plot_ratio_diagnostics',
]
