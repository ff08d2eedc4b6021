"""
Exceptions raised by pcakit.
"""


class PCAError(Exception):
    """Base class for all pcakit errors."""


class InvalidInput(PCAError, ValueError):
    """
    The input table (or an option applied to it) cannot be decomposed.

    Raised for tables with fewer than two rows or columns, non-numeric or
    non-finite values, zero-variance columns under standardization and
    out-of-range component counts.
    """


class ComputationError(PCAError, RuntimeError):
    """
    The numerical routine failed on otherwise valid input.

    Typically wraps numpy.linalg.LinAlgError or a power iteration that did
    not converge. Callers are expected to re-supply or validate the input.
    """
