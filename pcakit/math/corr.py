"""
Standardization and association matrices for pcakit.

This module provides the column standardization used before PCA and the
correlation and covariance matrices the decomposition is computed from.
Matrices are laid out with observations as rows and variables as columns.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Tuple, Union, Any
import scipy.stats

from pcakit.exceptions import InvalidInput
from pcakit.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

CORRELATION_METHODS = ('pearson', 'spearman', 'kendall')


def _as_array(data: Union[NamedMatrix, pd.DataFrame, np.ndarray]) -> np.ndarray:
    if isinstance(data, (NamedMatrix, pd.DataFrame)):
        return np.asarray(data.values, dtype=float)
    return np.asarray(data, dtype=float)


def column_std(values: np.ndarray, ddof: int = 1) -> np.ndarray:
    """
    Standard deviation of every column.

    Args:
        values: Data matrix (observations x variables)
        ddof: Delta degrees of freedom (divisor is n - ddof)

    Returns:
        Array of column standard deviations
    """
    n_rows = values.shape[0]
    if n_rows - ddof <= 0:
        raise InvalidInput(f"ddof={ddof} leaves no degrees of freedom for {n_rows} rows")
    return np.std(values, axis=0, ddof=ddof)


def zero_variance_columns(values: np.ndarray) -> List[int]:
    """
    Indices of columns whose values are all identical.

    Args:
        values: Data matrix

    Returns:
        List of column indices
    """
    return [j for j in range(values.shape[1]) if np.ptp(values[:, j]) == 0]


def standardize(values: Union[NamedMatrix, pd.DataFrame, np.ndarray],
                ddof: int = 1,
                center: bool = True,
                scale: bool = True) -> Tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
    """
    Center and scale the columns of a matrix.

    With both center and scale set, every resulting column has mean 0 and
    variance 1 (computed with the same ddof).

    Args:
        values: Data matrix (observations x variables)
        ddof: Delta degrees of freedom for the standard deviation
        center: Subtract column means
        scale: Divide by column standard deviations

    Returns:
        Tuple of (prepared matrix, center vector, scale vector or None)
    """
    data = _as_array(values)

    if center:
        center_vec = data.mean(axis=0)
    else:
        center_vec = np.zeros(data.shape[1])
    prepared = data - center_vec

    scale_vec = None
    if scale:
        constant = zero_variance_columns(data)
        if constant:
            raise InvalidInput(f"Cannot standardize zero-variance column(s) at index {constant}")
        scale_vec = column_std(data, ddof=ddof)
        prepared = prepared / scale_vec

    return prepared, center_vec, scale_vec


def covariance_matrix(values: Union[NamedMatrix, pd.DataFrame, np.ndarray],
                      ddof: int = 1) -> np.ndarray:
    """
    Covariance matrix between the columns of a matrix.

    Args:
        values: Data matrix (observations x variables)
        ddof: Delta degrees of freedom

    Returns:
        Square covariance matrix (variables x variables)
    """
    data = _as_array(values)
    column_std(data, ddof=ddof)
    return np.atleast_2d(np.cov(data, rowvar=False, ddof=ddof))


def cross_product_matrix(values: Union[NamedMatrix, pd.DataFrame, np.ndarray],
                         ddof: int = 1) -> np.ndarray:
    """
    Uncentered second-moment matrix X^T X / (n - ddof).

    Args:
        values: Data matrix, used as given
        ddof: Delta degrees of freedom

    Returns:
        Square matrix (variables x variables)
    """
    data = _as_array(values)
    column_std(data, ddof=ddof)
    return data.T @ data / (data.shape[0] - ddof)


def correlation_matrix(values: Union[NamedMatrix, pd.DataFrame, np.ndarray],
                       method: str = 'pearson') -> np.ndarray:
    """
    Compute the correlation matrix between the columns of a matrix.

    Args:
        values: Data matrix (observations x variables)
        method: Correlation method ('pearson', 'spearman', or 'kendall')

    Returns:
        Correlation matrix as numpy array, unit diagonal
    """
    if method not in CORRELATION_METHODS:
        raise InvalidInput(f"Unknown correlation method: {method}")

    data = _as_array(values)
    constant = zero_variance_columns(data)
    if constant:
        raise InvalidInput(f"Correlation undefined for zero-variance column(s) at index {constant}")

    if method == 'pearson':
        corr = np.corrcoef(data, rowvar=False)
    elif method == 'spearman':
        ranks = scipy.stats.rankdata(data, axis=0)
        corr = np.corrcoef(ranks, rowvar=False)
    else:
        n = data.shape[1]
        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                tau, _ = scipy.stats.kendalltau(data[:, i], data[:, j])
                corr[i, j] = tau
                corr[j, i] = tau

    corr = np.atleast_2d(corr)
    # Symmetric with an exact unit diagonal
    corr = (corr + corr.T) / 2.0
    np.fill_diagonal(corr, 1.0)

    logger.debug("Computed %s correlation for %d variables", method, corr.shape[0])
    return corr


def correlation_named_matrix(nmat: NamedMatrix, method: str = 'pearson') -> NamedMatrix:
    """
    Correlation matrix of a NamedMatrix, labelled by its variables.

    Args:
        nmat: NamedMatrix (observations x variables)
        method: Correlation method

    Returns:
        Square NamedMatrix with the variable names on both axes
    """
    corr = correlation_matrix(nmat, method)
    return NamedMatrix(corr, rownames=nmat.colnames(), colnames=nmat.colnames())
