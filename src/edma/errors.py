"""Error taxonomy for interlandmark distance analyses.

All errors derive from ``ValueError`` so callers catching the generic
validation error keep working.
"""

__all__ = [
    'EDMAError',
    'ShapeMismatchError',
    'DegenerateInputError',
    'DimensionMismatchError',
    'EmptySelectionError',
    'UndefinedRatioWarning',
]


class EDMAError(ValueError):
    """Base class for invalid-input errors raised by this package."""


class ShapeMismatchError(EDMAError):
    """Configurations differ in point count or dimensionality."""


class DegenerateInputError(EDMAError):
    """Input is too small to define any distance or correlation."""


class DimensionMismatchError(EDMAError):
    """Population, group labels, reference and target disagree in size or labels."""


class EmptySelectionError(EDMAError):
    """No distance exceeds the effect-size cut-off."""


class UndefinedRatioWarning(UserWarning):
    """Target/reference ratio is undefined because the reference distance is zero."""
