from pathlib import Path
import sys
import warnings

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from edma.difference_detection import RankerConfig, rank, separation_analysis
from edma.distances import extract, mean_configuration, pairwise_labels
from edma.errors import (
    DegenerateInputError,
    DimensionMismatchError,
    EmptySelectionError,
    ShapeMismatchError,
    UndefinedRatioWarning,
)


UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


def _two_group_population(n_per_group: int = 5, seed: int = 0):
    """Squares whose third landmark is pushed up in the second group."""
    rng = np.random.default_rng(seed)
    population = []
    for shift in (0.0, 0.5):
        for _ in range(n_per_group):
            config = UNIT_SQUARE + rng.normal(scale=0.05, size=UNIT_SQUARE.shape)
            config[2, 1] += shift
            population.append(config)
    groups = np.array(['a'] * n_per_group + ['b'] * n_per_group)
    return np.stack(population), groups


def _perfect_population():
    """Landmark 3 differs between groups only; every other distance is constant."""
    moved = UNIT_SQUARE.copy()
    moved[2] = [1.0, 2.0]
    population = np.stack([UNIT_SQUARE] * 3 + [moved] * 3)
    groups = ['wt'] * 3 + ['mut'] * 3
    return population, groups


def _single_row(values, labels):
    return pd.DataFrame([values], columns=labels)


# -----------------------------------------------------------------------------
# Scenarios
# -----------------------------------------------------------------------------

def test_four_landmark_two_group_scenario():
    population, groups = _two_group_population()
    reference = mean_configuration(population, groups == 'a')
    target = mean_configuration(population, groups == 'b')

    selection = separation_analysis(
        population, groups, reference, target, quantile=0.8, random_state=0
    )

    assert list(selection.baseline.index) == ['1-2', '1-3', '1-4', '2-3', '2-4', '3-4']
    assert len(selection.effect_sizes) == 6
    assert 1 <= len(selection) <= 2
    assert (selection.selected['effect_size'] > selection.threshold).all()
    assert selection.threshold == pytest.approx(np.quantile(selection.effect_sizes, 0.8))
    # Distances to the moved landmark separate the groups best
    assert selection.labels[0] in {'1-3', '2-3', '3-4'}
    np.testing.assert_array_equal(selection.reference, reference)
    np.testing.assert_array_equal(selection.target, target)


def test_effect_sizes_sorted_and_bounded():
    population, groups = _two_group_population(seed=1)
    selection = separation_analysis(
        population, groups, population[0], population[-1], quantile=0.5, random_state=1
    )
    values = selection.effect_sizes.to_numpy()
    assert ((values >= 0) & (values <= 1)).all()
    assert (np.diff(values) <= 0).all()


def test_perfectly_separating_distances_have_unit_effect_size():
    population, groups = _perfect_population()
    selection = separation_analysis(
        population, groups, population[0], population[-1], quantile=0.4, random_state=0
    )

    for label in ('1-3', '2-3', '3-4'):
        assert selection.effect_sizes[label] == pytest.approx(1.0)
    # Constant distances have no defined R2: reported as 0, never selected
    for label in ('1-2', '1-4', '2-4'):
        assert selection.effect_sizes[label] == 0.0
        assert label not in selection
    assert selection.metadata['n_constant_distances'] == 3


def test_threshold_is_strict():
    population, groups = _perfect_population()
    # Defined R2 values all equal 1, so the cut-off equals every one of them
    selection = separation_analysis(
        population, groups, population[0], population[-1], quantile=0.3, random_state=0
    )
    assert selection.threshold == pytest.approx(1.0)
    assert selection.is_empty


def test_constant_distances_do_not_lower_the_cutoff():
    population, groups = _two_group_population()
    # Landmarks 1 and 2 identical everywhere: distance 1-2 is constant
    population[:, 0] = [0.0, 0.0]
    population[:, 1] = [1.0, 0.0]

    selection = separation_analysis(
        population, groups, population[0], population[-1], quantile=0.5, random_state=0
    )
    defined = selection.effect_sizes.drop('1-2').to_numpy()
    with_zero = selection.effect_sizes.to_numpy()

    assert selection.metadata['n_constant_distances'] == 1
    assert selection.threshold == pytest.approx(np.quantile(defined, 0.5))
    assert selection.threshold > np.quantile(with_zero, 0.5)
    assert (selection.selected['effect_size'] > selection.threshold).all()
    assert '1-2' not in selection


def test_all_constant_distances_give_empty_selection():
    population = np.stack([UNIT_SQUARE] * 4)
    selection = separation_analysis(
        population, [0, 0, 1, 1], UNIT_SQUARE, UNIT_SQUARE, quantile=0.5, random_state=0
    )
    assert selection.is_empty
    assert np.isnan(selection.threshold)
    assert (selection.effect_sizes == 0.0).all()


def test_identical_reference_and_target_give_unit_ratios():
    population, groups = _two_group_population()
    selection = separation_analysis(
        population, groups, population[0], population[0], quantile=0.5, random_state=0
    )
    np.testing.assert_array_equal(selection.baseline['ratio'].to_numpy(), np.ones(6))
    np.testing.assert_array_equal(selection.baseline['deviation'].to_numpy(), np.zeros(6))
    # All deviations tie, so ranks are distinct values drawn from 1..M
    ranks = selection.selected['inverted_rank'].tolist()
    assert len(set(ranks)) == len(ranks)
    assert all(1 <= r <= 6 for r in ranks)


# -----------------------------------------------------------------------------
# Ratio ranks
# -----------------------------------------------------------------------------

def _table_inputs():
    population, groups = _two_group_population()
    table, labels = extract(population)
    return table, groups, labels


def test_largest_ratio_deviation_gets_inverted_rank_one():
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    tgt = _single_row([1.0, 1.1, 0.95, 1.2, 1.0, 3.0], labels)

    # quantile close to 0 keeps every distance except the weakest
    selection = rank(table, groups, ref, tgt, quantile=0.01, random_state=0)
    baseline = selection.baseline

    assert baseline.loc['3-4', 'deviation'] == pytest.approx(2.0)
    assert baseline.loc['1-3', 'ratio'] == pytest.approx(1.1)
    assert baseline.loc['1-2', 'average'] == pytest.approx(1.0)
    assert baseline.loc['3-4', 'average'] == pytest.approx(2.0)

    assert '3-4' in selection
    assert selection.selected.loc['3-4', 'inverted_rank'] == 1
    assert selection.selected.loc['3-4', 'percentile'] == 17
    assert selection.selected['percentile'].between(0, 100).all()
    assert selection.selected['inverted_rank'].between(1, 6).all()


def test_ratio_order_ascending_by_ratio():
    table, groups, labels = _table_inputs()
    ref = _single_row([2.0] * 6, labels)
    tgt = _single_row([2.0, 1.0, 3.0, 2.5, 0.5, 2.2], labels)
    selection = rank(table, groups, ref, tgt, quantile=0.5, random_state=0)

    assert list(selection.ratio_order.index) == ['2-4', '1-3', '1-2', '3-4', '2-3', '1-4']
    assert (np.diff(selection.ratio_order.to_numpy()) >= 0).all()


def test_ranks_reproducible_with_fixed_seed():
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    tgt = _single_row([1.0] * 6, labels)

    first = rank(table, groups, ref, tgt, quantile=0.01, random_state=7)
    second = rank(table, groups, ref, tgt, quantile=0.01, random_state=7)
    pd.testing.assert_frame_equal(first.selected, second.selected)


def test_zero_reference_distance_is_flagged():
    population, groups = _two_group_population()
    reference = UNIT_SQUARE.copy()
    reference[1] = reference[0]  # landmarks 1 and 2 coincide

    with pytest.warns(UndefinedRatioWarning, match="1-2"):
        selection = separation_analysis(
            population, groups, reference, UNIT_SQUARE, quantile=0.01, random_state=0
        )

    row = selection.baseline.loc['1-2']
    assert bool(row['ratio_undefined'])
    assert np.isnan(row['ratio'])
    assert '1-2' not in selection.ratio_order.index
    assert not np.isinf(selection.baseline['ratio']).any()
    assert selection.metadata['n_undefined_ratios'] == 1
    assert '1-2' in selection
    assert selection.selected.loc['1-2', 'ratio_undefined']
    assert pd.isna(selection.selected.loc['1-2', 'inverted_rank'])
    # Remaining ranks cover 1..5
    defined = selection.selected.loc[~selection.selected['ratio_undefined'], 'inverted_rank']
    assert defined.between(1, 5).all()


def test_no_warning_when_all_ratios_defined():
    population, groups = _two_group_population()
    with warnings.catch_warnings():
        warnings.simplefilter("error", UndefinedRatioWarning)
        separation_analysis(population, groups, population[0], population[1], quantile=0.5)


# -----------------------------------------------------------------------------
# Empty selection
# -----------------------------------------------------------------------------

def _flat_inputs():
    """Identical configurations in both groups, so every R2 is 0."""
    population = np.stack([UNIT_SQUARE] * 6)
    table, labels = extract(population)
    groups = [0, 0, 0, 1, 1, 1]
    ref = _single_row([1.0] * 6, labels)
    return table, groups, ref


def test_empty_selection_is_valid_by_default():
    table, groups, ref = _flat_inputs()
    selection = rank(table, groups, ref, ref, quantile=0.5, random_state=0)
    assert selection.is_empty
    assert len(selection) == 0
    assert list(selection.selected.columns) == [
        'effect_size', 'ratio', 'ratio_undefined', 'inverted_rank', 'percentile'
    ]
    assert len(selection.effect_sizes) == 6


def test_empty_selection_can_raise():
    table, groups, ref = _flat_inputs()
    with pytest.raises(EmptySelectionError, match="strictly above"):
        rank(table, groups, ref, ref, quantile=0.5, config=RankerConfig(empty_selection="raise"))


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------

def test_rank_rejects_group_length_mismatch():
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    with pytest.raises(DimensionMismatchError, match="group labels"):
        rank(table, groups[:-1], ref, ref, quantile=0.5)


def test_rank_rejects_reordered_reference_labels():
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    shuffled = ref[labels[::-1]]
    with pytest.raises(DimensionMismatchError, match="disagree"):
        rank(table, groups, ref, shuffled, quantile=0.5)


def test_rank_rejects_reference_with_wrong_label_count():
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    short = _single_row([1.0] * 3, pairwise_labels(3))
    with pytest.raises(DimensionMismatchError, match="3 distances"):
        rank(table, groups, short, ref, quantile=0.5)


def test_rank_rejects_multi_row_reference():
    table, groups, labels = _table_inputs()
    with pytest.raises(DimensionMismatchError, match="exactly one configuration"):
        rank(table, groups, table.iloc[:2], table.iloc[[0]], quantile=0.5)


def test_rank_rejects_single_group():
    table, _, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    with pytest.raises(DegenerateInputError):
        rank(table, ['a'] * len(table), ref, ref, quantile=0.5)


@pytest.mark.parametrize("quantile", [0.0, 1.0, 1.2])
def test_rank_rejects_invalid_quantile(quantile):
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    with pytest.raises(ValueError, match="quantile"):
        rank(table, groups, ref, ref, quantile=quantile)


def test_rank_accepts_bare_arrays():
    table, groups, labels = _table_inputs()
    selection = rank(
        table.to_numpy(), groups, np.ones(6), np.full(6, 1.5), quantile=0.5, random_state=0
    )
    assert list(selection.effect_sizes.sort_index().index) == sorted(labels)


def test_rank_rejects_array_with_impossible_column_count():
    _, groups, _ = _table_inputs()
    with pytest.raises(DimensionMismatchError, match="not a valid number"):
        rank(np.ones((10, 5)), groups, np.ones(5), np.ones(5), quantile=0.5)


def test_separation_analysis_rejects_mismatched_baseline_shape():
    population, groups = _two_group_population()
    with pytest.raises(ShapeMismatchError):
        separation_analysis(population, groups, UNIT_SQUARE[:3], UNIT_SQUARE[:3])


def test_rank_rounds_population_distances():
    table, groups, labels = _table_inputs()
    ref = _single_row([1.0] * 6, labels)
    selection = rank(table, groups, ref, ref, quantile=0.5, random_state=0)
    np.testing.assert_array_equal(
        selection.population_distances.to_numpy(), table.round(6).to_numpy()
    )
