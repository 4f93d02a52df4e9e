"""
Canonical labels for interlandmark distances.

A distance between landmarks ``i`` and ``j`` (1-based, ``i < j``) is labelled
``"i-j"``. Labels are always enumerated in the same order: all pairs with
``i = 1`` (ascending ``j``), then ``i = 2``, and so on. This is also the
condensed ordering of ``scipy.spatial.distance.pdist``, so distance tables
built for the same number of landmarks can be joined column-wise.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Tuple

import numpy as np

from ..errors import DegenerateInputError

__all__ = [
    'LABEL_SEPARATOR',
    'n_pairwise_distances',
    'pairwise_labels',
    'parse_label',
    'label_pairs',
]


LABEL_SEPARATOR = "-"


def n_pairwise_distances(n_points: int) -> int:
    """Number of distinct landmark pairs, ``P * (P - 1) / 2``."""
    return n_points * (n_points - 1) // 2


@lru_cache(maxsize=None)
def _labels(n_points: int) -> Tuple[str, ...]:
    return tuple(
        f"{i}{LABEL_SEPARATOR}{j}"
        for i in range(1, n_points)
        for j in range(i + 1, n_points + 1)
    )


def pairwise_labels(n_points: int) -> List[str]:
    """
    Generate the distance labels for a configuration of ``n_points`` landmarks.

    Parameters
    ----------
    n_points : int
        Number of landmarks per configuration (P).

    Returns
    -------
    list of str
        ``P * (P - 1) / 2`` labels in enumeration order.

    Raises
    ------
    DegenerateInputError
        If fewer than two landmarks are given.

    Examples
    --------
    >>> pairwise_labels(4)
    ['1-2', '1-3', '1-4', '2-3', '2-4', '3-4']
    """
    n_points = int(n_points)
    if n_points < 2:
        raise DegenerateInputError(
            f"At least 2 landmarks are required to define a distance, got {n_points}."
        )
    return list(_labels(n_points))


def parse_label(label: str) -> Tuple[int, int]:
    """
    Recover the 1-based landmark indices from a ``"i-j"`` label.

    Raises
    ------
    ValueError
        If the label is not two positive integers joined by ``-`` with ``i < j``.
    """
    parts = str(label).split(LABEL_SEPARATOR)
    if len(parts) != 2:
        raise ValueError(f"Malformed distance label {label!r}; expected 'i-j'.")
    try:
        i, j = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Malformed distance label {label!r}; expected 'i-j'.") from None
    if i < 1 or j <= i:
        raise ValueError(f"Invalid distance label {label!r}; expected 1 <= i < j.")
    return i, j


def label_pairs(labels: Iterable[str]) -> np.ndarray:
    """Parse many labels into an ``(M, 2)`` array of 1-based landmark indices."""
    pairs = [parse_label(label) for label in labels]
    if not pairs:
        return np.empty((0, 2), dtype=int)
    return np.asarray(pairs, dtype=int)
