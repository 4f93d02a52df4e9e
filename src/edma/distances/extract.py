"""
Interlandmark distance extraction.

Turns a population of landmark configurations into a table of pairwise
distances, one row per configuration and one column per landmark pair.
Distances are computed within each configuration, never between them.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist

from ..errors import DegenerateInputError, ShapeMismatchError
from .labels import pairwise_labels

__all__ = [
    'PopulationLike',
    'as_population',
    'extract',
    'mean_configuration',
]

logger = logging.getLogger(__name__)

PopulationLike = Union[np.ndarray, Sequence[np.ndarray]]

SUPPORTED_DIMENSIONS = (2, 3)


def as_population(population: PopulationLike) -> np.ndarray:
    """
    Validate a population of configurations and stack it as ``(N, P, D)``.

    Parameters
    ----------
    population : array-like
        Either an ``(N, P, D)`` array, a sequence of ``(P, D)`` arrays, or a
        single ``(P, D)`` configuration (treated as ``N = 1``).

    Returns
    -------
    np.ndarray, shape (N, P, D)
        A float copy of the input; the caller's arrays are never modified.

    Raises
    ------
    DegenerateInputError
        If the population is empty or has fewer than 2 landmarks.
    ShapeMismatchError
        If configurations differ in landmark count or dimensionality, or the
        dimensionality is not 2 or 3.
    """
    if isinstance(population, np.ndarray):
        configs = [population] if population.ndim == 2 else list(population)
    else:
        configs = list(population)

    if len(configs) == 0:
        raise DegenerateInputError("Population is empty; need at least one configuration.")

    arrays = [np.array(c, dtype=float) for c in configs]
    for k, arr in enumerate(arrays):
        if arr.ndim != 2:
            raise ShapeMismatchError(
                f"Configuration {k} must be a 2-D (points x dims) array, got shape {arr.shape}."
            )

    shape = arrays[0].shape
    mismatched = [k for k, arr in enumerate(arrays) if arr.shape != shape]
    if mismatched:
        raise ShapeMismatchError(
            f"All configurations must share shape {shape}; "
            f"configuration {mismatched[0]} has shape {arrays[mismatched[0]].shape}."
        )

    n_points, n_dims = shape
    if n_points < 2:
        raise DegenerateInputError(
            f"Configurations need at least 2 landmarks, got {n_points}."
        )
    if n_dims not in SUPPORTED_DIMENSIONS:
        raise ShapeMismatchError(
            f"Landmarks must be 2-D or 3-D, got {n_dims} coordinates per point."
        )

    stacked = np.stack(arrays, axis=0)
    if not np.all(np.isfinite(stacked)):
        raise ValueError("Landmark coordinates contain NaN or infinite values.")
    return stacked


def extract(
    population: PopulationLike,
    index: Optional[Sequence] = None,
) -> Tuple[pd.DataFrame, list]:
    """
    Compute all pairwise interlandmark distances for each configuration.

    Parameters
    ----------
    population : array-like
        ``(N, P, D)`` array or sequence of ``(P, D)`` configurations.
    index : sequence, optional
        Row labels for the returned table (defaults to ``0..N-1``).

    Returns
    -------
    distances : pd.DataFrame, shape (N, M)
        Euclidean distance between landmarks ``i`` and ``j`` of each
        configuration. Rows keep the population order, columns are tagged
        with the ``"i-j"`` labels in enumeration order.
    labels : list of str
        The ``M = P * (P - 1) / 2`` column labels.

    Examples
    --------
    >>> square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=float)
    >>> table, labels = extract([square])
    >>> labels
    ['1-2', '1-3', '1-4', '2-3', '2-4', '3-4']
    """
    arr = as_population(population)
    n_configs, n_points, n_dims = arr.shape
    labels = pairwise_labels(n_points)

    # pdist's condensed order is (0,1), (0,2), ..., (1,2), ... = label order
    values = np.vstack([pdist(config) for config in arr])

    if index is not None and len(index) != n_configs:
        raise ShapeMismatchError(
            f"index has {len(index)} entries but the population has {n_configs} configurations."
        )

    table = pd.DataFrame(values, columns=labels, index=index)
    logger.debug(
        "Extracted %d distances from %d configurations (%d landmarks, %dD)",
        len(labels), n_configs, n_points, n_dims,
    )
    return table, labels


def mean_configuration(
    population: PopulationLike,
    mask: Optional[Sequence[bool]] = None,
) -> np.ndarray:
    """
    Mean shape of a population, optionally restricted to a subset.

    Useful for building reference/target configurations as group means,
    e.g. ``mean_configuration(pop, groups == "wt")``.

    Returns
    -------
    np.ndarray, shape (P, D)
    """
    arr = as_population(population)
    if mask is not None:
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (arr.shape[0],):
            raise ShapeMismatchError(
                f"mask must have one entry per configuration ({arr.shape[0]}), got shape {mask.shape}."
            )
        if not mask.any():
            raise ValueError("mask selects no configurations.")
        arr = arr[mask]
    return arr.mean(axis=0)
