"""
Overlay of interlandmark distances on a landmark configuration.

Every distance is drawn as a segment between its two landmarks; distances in
the selection are highlighted. Works for 2D and 3D configurations.
"""

from __future__ import annotations

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import LineCollection
from mpl_toolkits.mplot3d.art3d import Line3DCollection

from ..difference_detection.results import ILDSelection
from ..distances.labels import label_pairs
from ..errors import DimensionMismatchError

__all__ = [
    'HIGHLIGHT_COLOR',
    'BASE_COLOR',
    'plot_selected_distances',
]


HIGHLIGHT_COLOR = "#d62728"
BASE_COLOR = "#000000"


def _resolve_coordinates(
    selection: ILDSelection,
    use_reference: bool,
    coordinates: Optional[np.ndarray],
) -> np.ndarray:
    if coordinates is None:
        coordinates = selection.reference if use_reference else selection.target
    if coordinates is None:
        which = "reference" if use_reference else "target"
        raise ValueError(
            f"Selection carries no {which} coordinates; pass them with coordinates=."
        )
    coordinates = np.asarray(coordinates, dtype=float)
    if coordinates.ndim != 2 or coordinates.shape[1] not in (2, 3):
        raise ValueError(
            f"coordinates must be a (P, 2) or (P, 3) array, got shape {coordinates.shape}"
        )
    return coordinates


def plot_selected_distances(
    selection: ILDSelection,
    use_reference: bool = True,
    coordinates: Optional[np.ndarray] = None,
    ax: Optional[plt.Axes] = None,
    highlight_color: str = HIGHLIGHT_COLOR,
    base_color: str = BASE_COLOR,
    highlight_width: float = 3.0,
    base_width: float = 1.0,
    show_landmarks: bool = True,
    annotate: bool = False,
    title: Optional[str] = None,
) -> plt.Axes:
    """
    Draw all distances over a configuration, highlighting the selected ones.

    Parameters
    ----------
    selection : ILDSelection
        Output of :func:`edma.difference_detection.rank`.
    use_reference : bool, default=True
        Draw on the reference configuration; otherwise on the target.
    coordinates : np.ndarray, optional
        Explicit (P, D) configuration, overriding the one carried by the
        selection.
    ax : plt.Axes, optional
        Axes to draw into. A new figure is created if omitted (with a 3D
        projection for 3D landmarks).
    annotate : bool, default=False
        Write the 1-based landmark number next to each landmark.

    Returns
    -------
    plt.Axes
    """
    coords = _resolve_coordinates(selection, use_reference, coordinates)
    n_points, n_dims = coords.shape

    labels = list(selection.baseline.index)
    pairs = label_pairs(labels) - 1
    if pairs.size and pairs.max() >= n_points:
        raise DimensionMismatchError(
            f"Distance labels reference landmark {pairs.max() + 1} but the "
            f"configuration has {n_points} landmarks."
        )
    highlight = np.isin(labels, selection.labels)
    segments = np.stack([coords[pairs[:, 0]], coords[pairs[:, 1]]], axis=1)

    if ax is None:
        fig = plt.figure(figsize=(6, 6))
        ax = fig.add_subplot(projection="3d" if n_dims == 3 else None)
    is_3d = hasattr(ax, "get_zlim")
    if n_dims == 3 and not is_3d:
        raise ValueError("3D landmarks need an Axes created with projection='3d'.")
    if n_dims == 2 and is_3d:
        raise ValueError("2D landmarks cannot be drawn on 3D axes.")

    collection_cls = Line3DCollection if n_dims == 3 else LineCollection

    # Background distances first so highlighted ones stay on top
    if (~highlight).any():
        ax.add_collection(collection_cls(
            segments[~highlight], colors=base_color, linewidths=base_width, zorder=1,
        ))
    if highlight.any():
        ax.add_collection(collection_cls(
            segments[highlight], colors=highlight_color, linewidths=highlight_width, zorder=2,
        ))

    if show_landmarks:
        ax.scatter(*coords.T, color=base_color, s=12, zorder=3)
    if annotate:
        for k, point in enumerate(coords, start=1):
            ax.text(*point, str(k), fontsize=8)

    if n_dims == 2:
        ax.autoscale_view()
        ax.set_aspect("equal", adjustable="datalim")
    else:
        lo, hi = coords.min(axis=0), coords.max(axis=0)
        ax.set_xlim(lo[0], hi[0])
        ax.set_ylim(lo[1], hi[1])
        ax.set_zlim(lo[2], hi[2])

    if title is None:
        which = "reference" if use_reference and coordinates is None else "configuration"
        title = f"{len(selection)} of {len(labels)} distances highlighted ({which})"
    ax.set_title(title, fontsize=10)
    return ax
