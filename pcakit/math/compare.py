"""
Cross-checks between PCA implementations.

Runs every solver of compute_pca, plus scikit-learn's PCA on the same
prepared matrix, and reports how far each one is from the eigh solver
once eigenvector signs are aligned.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict
from sklearn.decomposition import PCA

from pcakit.exceptions import ComputationError
from pcakit.math.corr import standardize as standardize_columns
from pcakit.math.pca import SOLVERS, Table, compute_pca, validate_table

logger = logging.getLogger(__name__)


def align_signs(reference: np.ndarray, other: np.ndarray) -> np.ndarray:
    """
    Flip columns of other so that each points the same way as in reference.

    Args:
        reference: Matrix whose column orientation is kept
        other: Matrix with the same shape

    Returns:
        Copy of other with columns negated where needed
    """
    aligned = np.array(other, dtype=float)
    for j in range(aligned.shape[1]):
        if np.dot(reference[:, j], aligned[:, j]) < 0:
            aligned[:, j] = -aligned[:, j]
    return aligned


def sklearn_pca(table: Table, standardize: bool = True, ddof: int = 1) -> Dict[str, np.ndarray]:
    """
    PCA of the same prepared matrix through scikit-learn.

    scikit-learn always divides by n - 1; eigenvalues are rescaled to the
    requested ddof.

    Args:
        table: Input table
        standardize: Standardize columns before decomposition
        ddof: Delta degrees of freedom

    Returns:
        Dictionary with 'eigenvalues', 'loadings' (variables x components)
        and 'scores'
    """
    values, _, _ = validate_table(table)
    prepared, _, _ = standardize_columns(values, ddof=ddof, center=True, scale=standardize)
    n_rows = prepared.shape[0]

    pca = PCA(svd_solver='full')
    scores = pca.fit_transform(prepared)

    return {
        'eigenvalues': pca.explained_variance_ * (n_rows - 1) / (n_rows - ddof),
        'loadings': pca.components_.T,
        'scores': scores
    }


def compare_implementations(table: Table,
                            standardize: bool = True,
                            ddof: int = 1,
                            tol: float = 1e-4) -> pd.DataFrame:
    """
    Compare every PCA implementation against the eigh solver.

    Args:
        table: Input table
        standardize: Standardize columns before decomposition
        ddof: Delta degrees of freedom
        tol: Largest absolute difference still counted as agreement

    Returns:
        DataFrame indexed by implementation with the maximum absolute
        difference of eigenvalues, loadings and scores, and an 'agree' flag.
        A solver that fails to converge gets NaN differences and agree=False.
    """
    results = {'eigh': compute_pca(table, standardize=standardize, ddof=ddof).to_dict()}
    for solver in SOLVERS:
        if solver in results:
            continue
        try:
            results[solver] = compute_pca(table, standardize=standardize, ddof=ddof,
                                          solver=solver).to_dict()
        except ComputationError as e:
            logger.warning("Implementation %s failed: %s", solver, e)
            results[solver] = None
    results['sklearn'] = sklearn_pca(table, standardize=standardize, ddof=ddof)

    reference = results['eigh']

    rows = {}
    for name, other in results.items():
        if other is None:
            rows[name] = {'eigenvalues': np.nan, 'loadings': np.nan, 'scores': np.nan, 'agree': False}
            continue

        k = min(reference['loadings'].shape[1], other['loadings'].shape[1])
        ref_loadings = reference['loadings'][:, :k]
        loadings = align_signs(ref_loadings, other['loadings'][:, :k])
        # Scores follow the loadings' orientation
        flips = np.sign(np.sum(loadings * other['loadings'][:, :k], axis=0))
        scores = other['scores'][:, :k] * flips

        diffs = {
            'eigenvalues': float(np.max(np.abs(reference['eigenvalues'][:k] - other['eigenvalues'][:k]))),
            'loadings': float(np.max(np.abs(ref_loadings - loadings))),
            'scores': float(np.max(np.abs(reference['scores'][:, :k] - scores)))
        }
        diffs['agree'] = all(d <= tol for d in diffs.values())
        rows[name] = diffs

        if not diffs['agree']:
            logger.warning("Implementation %s disagrees with eigh: %s", name, diffs)

    return pd.DataFrame.from_dict(rows, orient='index')
