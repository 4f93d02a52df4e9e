"""
Result container for group-separation ranking.

:class:`ILDSelection` bundles the distances judged most group-predictive with
every intermediate table a downstream consumer (plotting, reporting) needs:
the full effect-size ranking, the reference/target baseline table and the
population distance table.

Example
-------
>>> selection = separation_analysis(population, groups, reference, target, quantile=0.9)
>>> selection.selected
       effect_size      ratio  ratio_undefined  inverted_rank  percentile
14-22    0.8123311  1.0412218            False              3           5
...
>>> selection.pairs()          # landmark indices of the selected distances
>>> selection.summary()        # compact table rounded to 2 decimals
>>> selection.save('results/ilds_r2/')
"""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from ..distances.labels import label_pairs
from .config import DISPLAY_DECIMALS

__all__ = [
    'SELECTED_COLUMNS',
    'BASELINE_COLUMNS',
    'ILDSelection',
]


SELECTED_COLUMNS = ['effect_size', 'ratio', 'ratio_undefined', 'inverted_rank', 'percentile']
BASELINE_COLUMNS = ['reference', 'target', 'average', 'ratio', 'ratio_undefined', 'deviation']

_TABLE_FILES = {
    'selected': 'selected.csv',
    'effect_sizes': 'effect_sizes.csv',
    'baseline': 'baseline.csv',
    'population_distances': 'population_distances.csv',
}


@dataclass
class ILDSelection:
    """
    Distances that best separate two groups, with their baseline change.

    Attributes
    ----------
    selected : pd.DataFrame
        One row per selected label, in decreasing effect-size order. Columns:
        ``effect_size``, ``ratio``, ``ratio_undefined``, ``inverted_rank``
        (1 = largest relative change between reference and target) and
        ``percentile`` (0-100).
    effect_sizes : pd.Series
        R² of every label, sorted decreasingly.
    baseline : pd.DataFrame
        Reference and target distance per label (label enumeration order),
        with their average, ratio, undefined-ratio flag and ``|1 - ratio|``.
    ratio_order : pd.Series
        Defined ratios sorted increasingly, indexed by label.
    population_distances : pd.DataFrame
        Rounded distance table of the whole population.
    quantile : float
        Probability used for the effect-size cut-off.
    threshold : float
        The effect-size cut-off itself; selected labels are strictly above it.
    reference, target : np.ndarray, optional
        Baseline configurations, carried for plotting.
    metadata : dict
        Run parameters (decimals, sizes, group coding, seed).
    """
    selected: pd.DataFrame
    effect_sizes: pd.Series
    baseline: pd.DataFrame
    ratio_order: pd.Series
    population_distances: pd.DataFrame
    quantile: float
    threshold: float
    reference: Optional[np.ndarray] = None
    target: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        missing = set(SELECTED_COLUMNS) - set(self.selected.columns)
        if missing:
            raise ValueError(
                f"selected table missing required columns: {sorted(missing)}. "
                f"Required: {SELECTED_COLUMNS}"
            )
        missing = set(BASELINE_COLUMNS) - set(self.baseline.columns)
        if missing:
            raise ValueError(
                f"baseline table missing required columns: {sorted(missing)}. "
                f"Required: {BASELINE_COLUMNS}"
            )

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    @property
    def labels(self) -> List[str]:
        """Selected labels in decreasing effect-size order."""
        return list(self.selected.index)

    @property
    def is_empty(self) -> bool:
        return self.selected.empty

    def __len__(self) -> int:
        return len(self.selected)

    def __contains__(self, label: str) -> bool:
        return label in self.selected.index

    def pairs(self) -> np.ndarray:
        """1-based landmark indices ``(i, j)`` of each selected label, shape (k, 2)."""
        return label_pairs(self.labels)

    def summary(self, digits: int = DISPLAY_DECIMALS) -> pd.DataFrame:
        """
        Compact view of the selection: one column per selected label, rows
        ``effect_size``, ``ratio``, ``inverted_rank`` and ``percentile``,
        rounded to ``digits``.
        """
        cols = ['effect_size', 'ratio', 'inverted_rank', 'percentile']
        table = self.selected[cols].astype(float).round(digits)
        return table.T

    def baseline_correlation(self) -> float:
        """
        Pearson correlation between the average reference/target size of a
        distance and its target/reference ratio.

        Answers whether ratios vary more for short distances. NaN when fewer
        than two defined ratios exist or either axis is constant.
        """
        defined = self.baseline.loc[~self.baseline['ratio_undefined']]
        if len(defined) < 2:
            return float('nan')
        x = defined['average'].to_numpy(dtype=float)
        y = defined['ratio'].to_numpy(dtype=float)
        if np.std(x) == 0 or np.std(y) == 0:
            return float('nan')
        return float(np.corrcoef(x, y)[0, 1])

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def save(self, path: Union[str, Path], overwrite: bool = False) -> Path:
        """
        Save the selection to a directory.

        Creates ``selected.csv``, ``effect_sizes.csv``, ``baseline.csv``,
        ``population_distances.csv`` and ``metadata.json``.

        Returns
        -------
        Path
            Path to the output directory.
        """
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)

        targets = [path / name for name in _TABLE_FILES.values()] + [path / 'metadata.json']
        if not overwrite:
            for target in targets:
                if target.exists():
                    raise FileExistsError(
                        f"{target} exists. Use overwrite=True to replace."
                    )

        self.selected.to_csv(path / _TABLE_FILES['selected'], index_label='label')
        self.effect_sizes.rename('effect_size').to_csv(
            path / _TABLE_FILES['effect_sizes'], index_label='label'
        )
        self.baseline.to_csv(path / _TABLE_FILES['baseline'], index_label='label')
        self.population_distances.to_csv(path / _TABLE_FILES['population_distances'])

        meta = {
            'quantile': self.quantile,
            'threshold': self.threshold,
            'reference': None if self.reference is None else np.asarray(self.reference).tolist(),
            'target': None if self.target is None else np.asarray(self.target).tolist(),
            'metadata': self._prepare_metadata_for_json(self.metadata),
        }
        with open(path / 'metadata.json', 'w') as f:
            json.dump(meta, f, indent=2, default=str)

        return path

    @classmethod
    def from_dir(cls, path: Union[str, Path]) -> "ILDSelection":
        """Load a selection written by :meth:`save`."""
        path = Path(path)
        for name in _TABLE_FILES.values():
            if not (path / name).exists():
                raise FileNotFoundError(f"No {name} found in {path}.")

        # Labels like "1-2" must stay strings
        selected = pd.read_csv(path / _TABLE_FILES['selected'], index_col='label', dtype={'label': str})
        selected['inverted_rank'] = selected['inverted_rank'].astype('Int64')
        selected['percentile'] = selected['percentile'].astype('Int64')
        selected['ratio_undefined'] = selected['ratio_undefined'].astype(bool)
        # Empty tables come back as object columns
        selected['effect_size'] = selected['effect_size'].astype(float)
        selected['ratio'] = selected['ratio'].astype(float)
        selected.index.name = None

        effect_sizes = pd.read_csv(
            path / _TABLE_FILES['effect_sizes'], index_col='label', dtype={'label': str}
        )['effect_size']
        effect_sizes.index.name = None

        baseline = pd.read_csv(path / _TABLE_FILES['baseline'], index_col='label', dtype={'label': str})
        baseline['ratio_undefined'] = baseline['ratio_undefined'].astype(bool)
        baseline.index.name = None

        population = pd.read_csv(path / _TABLE_FILES['population_distances'], index_col=0)

        meta_path = path / 'metadata.json'
        if meta_path.exists():
            with open(meta_path, 'r') as f:
                meta = json.load(f)
        else:
            meta = {}
            warnings.warn(f"No metadata.json found in {path}")

        ratio_order = baseline.loc[~baseline['ratio_undefined'], 'ratio'].sort_values(kind='stable')

        reference = meta.get('reference')
        target = meta.get('target')
        return cls(
            selected=selected,
            effect_sizes=effect_sizes,
            baseline=baseline,
            ratio_order=ratio_order,
            population_distances=population,
            quantile=float(meta.get('quantile', float('nan'))),
            threshold=float(meta.get('threshold', float('nan'))),
            reference=None if reference is None else np.asarray(reference, dtype=float),
            target=None if target is None else np.asarray(target, dtype=float),
            metadata=meta.get('metadata', {}),
        )

    @staticmethod
    def _prepare_metadata_for_json(metadata: Dict[str, Any]) -> Dict[str, Any]:
        """Convert metadata values to JSON-serializable types."""
        result = {}
        for key, value in metadata.items():
            if isinstance(value, dict):
                result[key] = {str(k): v for k, v in value.items()}
            elif isinstance(value, Path):
                result[key] = str(value)
            elif hasattr(value, 'tolist'):  # numpy arrays and scalars
                result[key] = value.tolist()
            else:
                result[key] = value
        return result

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"<ILDSelection: {len(self)} of {len(self.effect_sizes)} distances "
            f"(quantile={self.quantile}, threshold={self.threshold:.4f})>"
        )
