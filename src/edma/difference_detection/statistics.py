"""
Numeric building blocks for group-separation ranking.

Pure functions with no knowledge of distance labels: group coding, per-column
squared Pearson correlation, quantile cut-offs and ranking with random
tie-breaks.
"""

from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from numpy.random import Generator, SeedSequence, default_rng

from ..errors import DegenerateInputError

__all__ = [
    'RandomState',
    'as_generator',
    'encode_groups',
    'squared_correlation',
    'quantile_threshold',
    'rank_random_ties',
]


RandomState = Optional[Union[int, SeedSequence, Generator]]


def as_generator(random_state: RandomState = None) -> Generator:
    """Return a numpy Generator for an int seed, SeedSequence, Generator or None."""
    if isinstance(random_state, Generator):
        return random_state
    return default_rng(random_state)


def encode_groups(groups: Sequence) -> Tuple[np.ndarray, Dict]:
    """
    Code group labels as numbers for correlation.

    Numeric labels are used as they are. Categorical labels are coded
    ``1..k`` by sorted level (or by category order for ``pd.Categorical``).

    Parameters
    ----------
    groups : sequence
        One label per configuration.

    Returns
    -------
    codes : np.ndarray of float, shape (N,)
    coding : dict
        Mapping from original level to numeric code (empty for numeric input).

    Raises
    ------
    ValueError
        If any label is missing.
    DegenerateInputError
        If fewer than two distinct values are present.
    """
    series = pd.Series(groups)
    if series.isna().any():
        raise ValueError(
            f"Group labels contain {int(series.isna().sum())} missing value(s)."
        )

    if isinstance(series.dtype, pd.CategoricalDtype):
        categorical = series.cat.remove_unused_categories()
        codes = categorical.cat.codes.to_numpy(dtype=float) + 1.0
        coding = {level: k + 1 for k, level in enumerate(categorical.cat.categories)}
    elif pd.api.types.is_numeric_dtype(series.dtype):
        codes = series.to_numpy(dtype=float)
        coding = {}
    else:
        int_codes, levels = pd.factorize(series, sort=True)
        codes = int_codes.astype(float) + 1.0
        coding = {level: k + 1 for k, level in enumerate(levels)}

    if np.unique(codes).size < 2:
        raise DegenerateInputError(
            "Group labels must contain at least two distinct values to define a correlation."
        )
    return codes, coding


def squared_correlation(values: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Squared Pearson correlation of every column of ``values`` with ``target``.

    Parameters
    ----------
    values : np.ndarray, shape (n, m)
    target : np.ndarray, shape (n,)

    Returns
    -------
    np.ndarray, shape (m,)
        R² per column, clipped to [0, 1]. Columns with zero variance have no
        defined correlation and come back as NaN.
    """
    values = np.asarray(values, dtype=float)
    target = np.asarray(target, dtype=float)
    if values.ndim == 1:
        values = values.reshape(-1, 1)

    centered = values - values.mean(axis=0)
    target_centered = target - target.mean()

    covariance = target_centered @ centered
    scale = np.sqrt((centered ** 2).sum(axis=0) * (target_centered ** 2).sum())

    with np.errstate(divide="ignore", invalid="ignore"):
        r = np.where(scale > 0, covariance / scale, np.nan)
    return np.clip(r ** 2, 0.0, 1.0)


def quantile_threshold(values: np.ndarray, q: float) -> float:
    """
    Cut-off at probability ``q`` with linear interpolation between order
    statistics (Hyndman & Fan type 7).
    """
    if not 0.0 < q < 1.0:
        raise ValueError(f"quantile must be in (0, 1), got {q}")
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        raise DegenerateInputError("Cannot compute a quantile of an empty vector.")
    return float(np.quantile(values, q))


def rank_random_ties(values: np.ndarray, rng: Optional[Generator] = None) -> np.ndarray:
    """
    Ascending ranks ``1..n``; exact ties are ordered uniformly at random.

    Examples
    --------
    >>> rank_random_ties(np.array([0.3, 0.1, 0.2]))
    array([3, 1, 2])
    """
    values = np.asarray(values, dtype=float)
    rng = rng if rng is not None else default_rng()
    n = values.size

    # Stable sort of a random permutation keeps tied entries in random order
    permutation = rng.permutation(n)
    order = permutation[np.argsort(values[permutation], kind="stable")]

    ranks = np.empty(n, dtype=int)
    ranks[order] = np.arange(1, n + 1)
    return ranks
