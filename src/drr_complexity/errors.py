"""
Exceptions raised by the analysis pipeline.

All of them are fatal: scripts let them propagate and the run stops.
"""


class AnalysisError(Exception):
    """Base class for pipeline errors."""


class ShapeMismatchError(AnalysisError):
    """Columns of a dimension table differ in length."""


class DegenerateInputError(AnalysisError):
    """Input on which a rank correlation is undefined (constant column, too few rows)."""


class InvalidProbabilityError(AnalysisError, ValueError):
    """A p-value outside [0, 1] reached the significance classifier."""


class ConfigError(AnalysisError):
    """A required key is missing from configs/params.yml."""
