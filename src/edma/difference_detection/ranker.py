"""
Group-separation ranking of interlandmark distances.

For every interlandmark distance, the squared correlation (R²) between its
values across a population and the group label measures how well that
distance alone separates the groups. Distances whose R² lies strictly above
an upper quantile are selected and cross-referenced with how much they change
between a reference and a target configuration, both as a raw ratio and as a
rank of the relative change ``|1 - ratio|``.

Workflow
--------
1. Round population, reference and target distances to a fixed precision
2. Per distance: average reference/target size and target/reference ratio
3. Per distance: R² against the numeric-coded group label, sorted decreasingly
4. Select distances with R² strictly above the ``quantile`` cut-off
5. Rank all distances by ``|1 - ratio|`` (random tie-break), inverted so
   rank 1 = largest change, and express it as a percentile
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..distances.extract import PopulationLike, as_population, extract
from ..distances.labels import n_pairwise_distances, pairwise_labels
from ..errors import (
    DimensionMismatchError,
    EmptySelectionError,
    ShapeMismatchError,
    UndefinedRatioWarning,
)
from .config import DEFAULT_QUANTILE, RankerConfig
from .results import ILDSelection
from .statistics import (
    RandomState,
    as_generator,
    encode_groups,
    quantile_threshold,
    rank_random_ties,
    squared_correlation,
)

__all__ = [
    'rank',
    'separation_analysis',
]

logger = logging.getLogger(__name__)

TableLike = Union[pd.DataFrame, pd.Series, np.ndarray]


# =============================================================================
# Input normalisation
# =============================================================================

def _infer_labels(n_columns: int) -> list:
    """Labels for a bare array of ``n_columns`` distances."""
    n_points = int(round((1 + np.sqrt(1 + 8 * n_columns)) / 2))
    if n_pairwise_distances(n_points) != n_columns:
        raise DimensionMismatchError(
            f"{n_columns} columns is not a valid number of pairwise distances "
            f"(expected P*(P-1)/2 for some P)."
        )
    return pairwise_labels(n_points)


def _as_table(values: TableLike, name: str, labels: Optional[list] = None) -> pd.DataFrame:
    if isinstance(values, pd.DataFrame):
        table = values
    elif isinstance(values, pd.Series):
        table = values.to_frame().T
    else:
        arr = np.asarray(values, dtype=float)
        if arr.ndim == 1:
            arr = arr.reshape(1, -1)
        if arr.ndim != 2:
            raise DimensionMismatchError(f"{name} must be a 2-D table, got shape {arr.shape}.")
        if labels is None:
            labels = _infer_labels(arr.shape[1])
        if len(labels) != arr.shape[1]:
            raise DimensionMismatchError(
                f"{name} has {arr.shape[1]} distances but {len(labels)} labels are expected."
            )
        table = pd.DataFrame(arr, columns=labels)

    table = table.astype(float)
    if not np.all(np.isfinite(table.to_numpy())):
        raise ValueError(f"{name} contains NaN or infinite distances.")
    return table


def _check_single_row(table: pd.DataFrame, name: str) -> None:
    if len(table) != 1:
        raise DimensionMismatchError(
            f"{name} must hold exactly one configuration, got {len(table)} rows."
        )


def _check_same_labels(table: pd.DataFrame, labels: list, name: str) -> None:
    other = [str(c) for c in table.columns]
    if other == labels:
        return
    if len(other) != len(labels):
        raise DimensionMismatchError(
            f"{name} has {len(other)} distances but the population has {len(labels)}."
        )
    first = next(k for k, (a, b) in enumerate(zip(other, labels)) if a != b)
    raise DimensionMismatchError(
        f"{name} labels disagree with the population at column {first}: "
        f"{other[first]!r} != {labels[first]!r}."
    )


# =============================================================================
# Ranking
# =============================================================================

def rank(
    population_distances: TableLike,
    group_labels: Sequence,
    reference_distances: TableLike,
    target_distances: TableLike,
    quantile: float = DEFAULT_QUANTILE,
    *,
    config: Optional[RankerConfig] = None,
    random_state: RandomState = None,
    reference: Optional[np.ndarray] = None,
    target: Optional[np.ndarray] = None,
) -> ILDSelection:
    """
    Select the distances that best separate two groups.

    Parameters
    ----------
    population_distances : pd.DataFrame, shape (N, M)
        Distance table of the population, as returned by
        :func:`edma.distances.extract`.
    group_labels : sequence, length N
        Group of each configuration, aligned by position. Categorical labels
        are coded by sorted level; numeric labels are used as they are.
    reference_distances, target_distances : pd.DataFrame, shape (1, M)
        Distance tables of the two baseline configurations. Must share the
        population's labels, in the same order.
    quantile : float, default=0.95
        Probability in (0, 1) for the R² cut-off. 0.95 keeps roughly the top
        5% most group-predictive distances.
    config : RankerConfig, optional
        Rounding and empty-selection settings.
    random_state : int, SeedSequence or Generator, optional
        Seed for breaking exact ties in the ratio-deviation rank. Results are
        only reproducible when this is fixed.
    reference, target : np.ndarray, optional
        Baseline coordinates, carried through for plotting.

    Returns
    -------
    ILDSelection

    Raises
    ------
    DimensionMismatchError
        If sizes or labels of the inputs disagree.
    DegenerateInputError
        If group labels have fewer than two distinct values.
    EmptySelectionError
        If nothing passes the cut-off and ``config.empty_selection == "raise"``.
    """
    config = config or RankerConfig()
    decimals = config.distance_decimals

    population = _as_table(population_distances, "population_distances")
    labels = [str(c) for c in population.columns]
    population.columns = labels
    ref_table = _as_table(reference_distances, "reference_distances", labels)
    tgt_table = _as_table(target_distances, "target_distances", labels)

    _check_single_row(ref_table, "reference_distances")
    _check_single_row(tgt_table, "target_distances")
    _check_same_labels(ref_table, labels, "reference_distances")
    _check_same_labels(tgt_table, labels, "target_distances")

    n_configs, n_labels = population.shape
    if len(group_labels) != n_configs:
        raise DimensionMismatchError(
            f"Got {len(group_labels)} group labels for {n_configs} configurations."
        )
    codes, coding = encode_groups(group_labels)
    if not 0.0 < quantile < 1.0:
        raise ValueError(f"quantile must be in (0, 1), got {quantile}")

    # 1. Baseline pairing, rounded before any comparison
    population = population.round(decimals)
    ref = ref_table.iloc[0].to_numpy().round(decimals)
    tgt = tgt_table.iloc[0].to_numpy().round(decimals)

    # 2. Average baseline size
    average = (ref + tgt) / 2.0

    # 3. Ratio, undefined where the reference distance is zero
    undefined = ref == 0
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(undefined, np.nan, tgt / np.where(undefined, 1.0, ref))
    if undefined.any():
        bad = [lab for lab, flag in zip(labels, undefined) if flag]
        logger.warning("Reference distance is zero for %d label(s): %s", len(bad), bad)
        warnings.warn(
            f"Target/reference ratio undefined for {len(bad)} distance(s) with zero "
            f"reference length: {bad}",
            UndefinedRatioWarning,
            stacklevel=2,
        )
    ratio_series = pd.Series(ratio, index=labels, name='ratio')
    ratio_order = ratio_series[~undefined].sort_values(kind="stable")

    # 4. Effect size per distance, sorted into importance order
    r2 = squared_correlation(population.to_numpy(), codes)
    constant = np.isnan(r2)
    if constant.any():
        logger.warning(
            "%d distance(s) are constant across the population; R2 undefined, "
            "reported as 0 and never selected: %s",
            int(constant.sum()), [lab for lab, flag in zip(labels, constant) if flag],
        )
    effect_sizes = pd.Series(np.where(constant, 0.0, r2), index=labels, name='effect_size')
    effect_sizes = effect_sizes.sort_values(ascending=False, kind="stable")

    # 5. Strict cut-off over the defined R2 values only
    if constant.all():
        threshold = float('nan')
        selected_labels = []
    else:
        threshold = quantile_threshold(r2[~constant], quantile)
        eligible = ~pd.Series(constant, index=labels)[effect_sizes.index].to_numpy()
        passing = (effect_sizes.to_numpy() > threshold) & eligible
        selected_labels = list(effect_sizes.index[passing])
    logger.debug("R2 cut-off at quantile %.3f: %.6f", quantile, threshold)

    # 6. Rank every defined ratio by |1 - ratio|; rank 1 = largest deviation
    deviation = np.round(np.abs(1.0 - ratio), decimals)
    rng = as_generator(random_state)
    n_ranked = int((~undefined).sum())
    inverted = np.full(n_labels, np.nan)
    inverted[~undefined] = 1 + n_ranked - rank_random_ties(deviation[~undefined], rng)

    # 7. Percentile relative to all labels
    percentile = np.round(inverted * 100.0 / n_labels)

    inverted_series = pd.Series(inverted, index=labels).astype("Int64")
    percentile_series = pd.Series(percentile, index=labels).astype("Int64")
    undefined_series = pd.Series(undefined, index=labels)

    # 8. Assembly
    selected = pd.DataFrame(
        {
            'effect_size': effect_sizes[selected_labels].round(config.report_decimals),
            'ratio': ratio_series[selected_labels].round(config.report_decimals),
            'ratio_undefined': undefined_series[selected_labels],
            'inverted_rank': inverted_series[selected_labels],
            'percentile': percentile_series[selected_labels],
        },
        index=pd.Index(selected_labels, dtype=object),
    )

    baseline = pd.DataFrame(
        {
            'reference': ref,
            'target': tgt,
            'average': average,
            'ratio': ratio,
            'ratio_undefined': undefined,
            'deviation': deviation,
        },
        index=labels,
    )

    if selected.empty:
        message = (
            f"No distance has R2 strictly above the {quantile} quantile "
            f"cut-off ({threshold:.6f})."
        )
        if config.empty_selection == "raise":
            raise EmptySelectionError(message)
        if config.empty_selection == "warn":
            logger.warning(message)
    else:
        logger.info(
            "Selected %d of %d distances with R2 > %.4f (quantile=%s)",
            len(selected), n_labels, threshold, quantile,
        )

    metadata = {
        'n_configurations': n_configs,
        'n_labels': n_labels,
        'distance_decimals': decimals,
        'report_decimals': config.report_decimals,
        'empty_selection': config.empty_selection,
        'group_coding': coding,
        'n_undefined_ratios': int(undefined.sum()),
        'n_constant_distances': int(constant.sum()),
        'random_state': random_state if isinstance(random_state, (int, np.integer)) else None,
    }

    return ILDSelection(
        selected=selected,
        effect_sizes=effect_sizes,
        baseline=baseline,
        ratio_order=ratio_order,
        population_distances=population,
        quantile=float(quantile),
        threshold=threshold,
        reference=None if reference is None else np.array(reference, dtype=float),
        target=None if target is None else np.array(target, dtype=float),
        metadata=metadata,
    )


def separation_analysis(
    population: PopulationLike,
    groups: Sequence,
    reference: np.ndarray,
    target: np.ndarray,
    quantile: float = DEFAULT_QUANTILE,
    *,
    config: Optional[RankerConfig] = None,
    random_state: RandomState = None,
) -> ILDSelection:
    """
    Extract distances from landmark configurations and rank them.

    Runs :func:`edma.distances.extract` once over the population and once
    over the reference/target pair, then :func:`rank`.

    Parameters
    ----------
    population : array-like, shape (N, P, D)
        Aligned landmark configurations.
    groups : sequence, length N
        Group of each configuration.
    reference, target : np.ndarray, shape (P, D)
        Baseline configurations (e.g. group means from
        :func:`edma.distances.mean_configuration`).
    quantile : float, default=0.95
        Probability for the R² cut-off.

    Examples
    --------
    >>> ref = mean_configuration(population, groups == "ch")
    >>> tgt = mean_configuration(population, groups == "eu")
    >>> selection = separation_analysis(population, groups, ref, tgt, quantile=0.95)
    """
    pop = as_population(population)
    baseline_pair = as_population([reference, target])
    if baseline_pair.shape[1:] != pop.shape[1:]:
        raise ShapeMismatchError(
            f"Reference/target shape {baseline_pair.shape[1:]} does not match "
            f"population configurations {pop.shape[1:]}."
        )

    population_table, _ = extract(pop)
    baseline_table, _ = extract(baseline_pair, index=['reference', 'target'])

    return rank(
        population_table,
        groups,
        baseline_table.iloc[[0]],
        baseline_table.iloc[[1]],
        quantile,
        config=config,
        random_state=random_state,
        reference=baseline_pair[0],
        target=baseline_pair[1],
    )
