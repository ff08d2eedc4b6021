"""
PCA (Principal Component Analysis) implementation for pcakit.

This module provides the standardized PCA kernel: columns are standardized,
the correlation (or covariance) matrix is eigen-decomposed, and eigenvalues,
loadings and scores are derived from the sorted eigenpairs.

Three solvers are available and agree under the sign convention:

- ``eigh``: symmetric eigen-decomposition of the association matrix
- ``svd``: singular value decomposition of the prepared data matrix
- ``power``: block power iteration with a Rayleigh-Ritz step on the association matrix
"""

import json
import logging
import numbers
import numpy as np
import pandas as pd
import yaml
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pcakit.exceptions import ComputationError, InvalidInput
from pcakit.math.corr import (
    correlation_matrix, covariance_matrix, cross_product_matrix,
    standardize as standardize_columns
)
from pcakit.math.named_matrix import NamedMatrix

logger = logging.getLogger(__name__)

SOLVERS = ('eigh', 'svd', 'power')

# Numerical tolerances relative to the largest eigenvalue
EIGENVALUE_CLIP_RTOL = 1e-10
TIE_RTOL = 1e-10
DOMINANT_ATOL = 1e-8
CANONICAL_ATOL = 1e-6

Table = Union[NamedMatrix, pd.DataFrame, np.ndarray, Sequence[Sequence[float]]]


class PCAResult:
    """
    Result of a principal component analysis.

    Eigenvalues cover every component; loadings and scores are restricted
    to the retained components. Arrays are read-only.
    """

    def __init__(self,
                 eigenvalues: np.ndarray,
                 rotation: np.ndarray,
                 scores: np.ndarray,
                 center: np.ndarray,
                 scale: Optional[np.ndarray],
                 n_components: int,
                 standardize: bool = True,
                 scale_loadings: bool = False,
                 ddof: int = 1,
                 solver: str = 'eigh',
                 variable_names: Optional[List[Any]] = None,
                 observation_names: Optional[List[Any]] = None):
        self.eigenvalues = _frozen(eigenvalues)
        self.rotation = _frozen(rotation)
        self.scores = _frozen(scores)
        self.center = _frozen(center)
        self.scale = None if scale is None else _frozen(scale)
        self.n_components = n_components
        self.standardize = standardize
        self.scale_loadings = scale_loadings
        self.ddof = ddof
        self.solver = solver
        self.variable_names = list(variable_names) if variable_names is not None \
            else list(range(rotation.shape[0]))
        self.observation_names = list(observation_names) if observation_names is not None \
            else list(range(scores.shape[0]))

        loadings = self.rotation[:, :n_components]
        if scale_loadings:
            loadings = loadings * np.sqrt(self.eigenvalues[:n_components])
        self.loadings = _frozen(loadings)

    @property
    def sdev(self) -> np.ndarray:
        """Standard deviations of the components (square roots of the eigenvalues)."""
        return np.sqrt(self.eigenvalues)

    @property
    def explained_variance_ratio(self) -> np.ndarray:
        """Fraction of the total variance carried by each component."""
        total = self.eigenvalues.sum()
        if total == 0:
            return np.zeros_like(self.eigenvalues)
        return self.eigenvalues / total

    @property
    def cumulative_variance_ratio(self) -> np.ndarray:
        """Running sum of the explained variance ratios."""
        return np.cumsum(self.explained_variance_ratio)

    def component_names(self, n: Optional[int] = None) -> List[str]:
        """Return PC1..PCn labels (all retained components by default)."""
        n = self.n_components if n is None else n
        return [f"PC{i + 1}" for i in range(n)]

    def loadings_frame(self) -> pd.DataFrame:
        """Loadings labelled by variable (rows) and component (columns)."""
        return pd.DataFrame(self.loadings, index=self.variable_names,
                            columns=self.component_names())

    def scores_frame(self) -> pd.DataFrame:
        """Scores labelled by observation (rows) and component (columns)."""
        return pd.DataFrame(self.scores, index=self.observation_names,
                            columns=self.component_names())

    def to_dict(self) -> Dict[str, np.ndarray]:
        """The three core artifacts: eigenvalues, loadings and scores."""
        return {
            'eigenvalues': self.eigenvalues,
            'loadings': self.loadings,
            'scores': self.scores
        }

    def __getitem__(self, key: str) -> np.ndarray:
        return self.to_dict()[key]

    def __repr__(self) -> str:
        return (f"PCAResult(variables={len(self.variable_names)}, "
                f"observations={len(self.observation_names)}, "
                f"n_components={self.n_components}, solver={self.solver!r})")


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=float)
    arr.setflags(write=False)
    return arr


def validate_table(table: Table, min_rows: int = 2) -> Tuple[np.ndarray, List[Any], List[Any]]:
    """
    Check that a table can be decomposed and extract its values and names.

    Args:
        table: NamedMatrix, DataFrame, 2-D array or nested sequence of numbers
        min_rows: Fewest observations accepted

    Returns:
        Tuple of (float matrix, observation names, variable names)
    """
    if isinstance(table, NamedMatrix):
        raw = table.values
        row_names, col_names = table.rownames(), table.colnames()
    elif isinstance(table, pd.DataFrame):
        raw = table.values
        row_names, col_names = table.index.tolist(), table.columns.tolist()
    else:
        try:
            raw = np.asarray(table)
        except ValueError as e:
            raise InvalidInput(f"Table rows must all have the same length: {e}") from e
        row_names = col_names = None

    if raw.ndim != 2:
        raise InvalidInput(f"Table must be 2-dimensional, got {raw.ndim} dimension(s)")

    if raw.dtype.kind == 'O':
        for value in raw.flat:
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidInput(f"Non-numeric value in table: {value!r}")
    elif raw.dtype.kind not in 'iuf':
        raise InvalidInput(f"Table values must be numeric, got dtype {raw.dtype}")

    values = raw.astype(float)
    n_rows, n_cols = values.shape
    if n_rows < min_rows or n_cols < 2:
        raise InvalidInput(f"Table must have at least {min_rows} rows and 2 columns, got {n_rows}x{n_cols}")
    if not np.all(np.isfinite(values)):
        raise InvalidInput("Table contains non-finite values")

    if row_names is None:
        row_names = list(range(n_rows))
    if col_names is None:
        col_names = list(range(n_cols))

    return values, row_names, col_names


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector (the zero vector is returned unchanged)
    """
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def vector_length(v: np.ndarray) -> float:
    """Calculate the length (norm) of a vector."""
    return float(np.linalg.norm(v))


def proj_vec(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Project vector v onto vector u.

    Args:
        u: Vector to project onto
        v: Vector to project

    Returns:
        Projection of v onto u
    """
    if np.dot(u, u) == 0:
        return np.zeros_like(v)
    return np.dot(u, v) / np.dot(u, u) * u


def orthogonalize(v: np.ndarray, basis: List[np.ndarray]) -> np.ndarray:
    """
    Remove from v its components along each vector of basis.

    Args:
        v: Vector to orthogonalize
        basis: Previously found vectors

    Returns:
        v with the projections removed
    """
    for u in basis:
        v = v - proj_vec(u, v)
    return v


def rand_starting_vec(n: int, seed: int = 0) -> np.ndarray:
    """
    Generate a reproducible random starting vector for power iteration.

    Args:
        n: Vector length
        seed: Seed for the generator

    Returns:
        Random vector
    """
    return np.random.default_rng(seed).standard_normal(n)


def power_iteration(matrix: np.ndarray,
                    iters: int = 1000,
                    tol: float = 1e-10,
                    start_vectors: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Find the leading eigenpairs of a symmetric positive semi-definite matrix.

    Block power (subspace) iteration: the start block is repeatedly multiplied
    by the matrix and re-orthonormalized, and a Rayleigh-Ritz step rotates it
    onto the best eigenvector estimates within the block. Iteration stops once
    every Ritz pair has a residual ||A v - lambda v|| within tolerance, so
    closely spaced eigenvalues inside the block do not slow convergence.

    Args:
        matrix: Symmetric matrix
        iters: Maximum number of iterations
        tol: Convergence tolerance on the residuals, relative to the matrix scale
        start_vectors: Initial vector or block of column vectors
            (defaults to one seeded random vector)

    Returns:
        Tuple of (eigenvalues descending, orthonormal eigenvectors as columns)
    """
    n = matrix.shape[0]

    if start_vectors is None:
        start_vectors = rand_starting_vec(n)
    block = np.asarray(start_vectors, dtype=float)
    if block.ndim == 1:
        block = block[:, np.newaxis]
    if block.shape[0] != n or block.shape[1] > n:
        raise InvalidInput(f"Start vectors of shape {block.shape} do not fit a {n}x{n} matrix")

    q, r = np.linalg.qr(block)
    if np.any(np.abs(np.diag(r)) <= tol * max(np.abs(block).max(), 1.0)):
        raise ComputationError("Power iteration start vectors are linearly dependent")

    scale = max(np.abs(matrix).max(), 1.0)

    for _ in range(iters):
        q, _ = np.linalg.qr(matrix @ q)
        ritz = q.T @ matrix @ q
        eigvals, rotation = np.linalg.eigh((ritz + ritz.T) / 2)
        order = np.argsort(eigvals)[::-1]
        eigvals, q = eigvals[order], q @ rotation[:, order]

        residuals = np.linalg.norm(matrix @ q - q * eigvals, axis=0)
        if residuals.max() <= tol * scale:
            return eigvals, q

    raise ComputationError(f"Power iteration did not converge in {iters} iterations")


def powerit_eigen(matrix: np.ndarray,
                  n_comps: Optional[int] = None,
                  iters: int = 1000,
                  tol: float = 1e-10) -> Tuple[np.ndarray, np.ndarray]:
    """
    Find the leading eigenpairs of a symmetric matrix by power iteration.

    The start block holds one seeded random vector per requested eigenpair.

    Args:
        matrix: Symmetric positive semi-definite matrix
        n_comps: Number of eigenpairs (defaults to the matrix size)
        iters: Maximum iterations
        tol: Convergence tolerance

    Returns:
        Tuple of (eigenvalues, eigenvectors as columns)
    """
    n = matrix.shape[0]
    n_comps = n if n_comps is None else min(n_comps, n)

    start = np.column_stack([rand_starting_vec(n, seed=i) for i in range(n_comps)])
    return power_iteration(np.asarray(matrix, dtype=float), iters=iters, tol=tol,
                           start_vectors=start)


def dominant_index(v: np.ndarray) -> int:
    """
    Index of the largest-magnitude entry of v (earliest one on ties).

    Args:
        v: Vector

    Returns:
        Index into v
    """
    mags = np.abs(v)
    return int(np.flatnonzero(mags >= mags.max() - DOMINANT_ATOL)[0])


def fix_signs(vectors: np.ndarray) -> np.ndarray:
    """
    Apply the sign convention: the largest-magnitude entry of each column is positive.

    Args:
        vectors: Eigenvectors as columns

    Returns:
        Sign-fixed copy of vectors
    """
    fixed = np.array(vectors, dtype=float)
    for j in range(fixed.shape[1]):
        if fixed[dominant_index(fixed[:, j]), j] < 0:
            fixed[:, j] = -fixed[:, j]
    return fixed


def tie_groups(eigvals: np.ndarray, scale: float) -> List[slice]:
    """
    Split eigenvalues sorted in descending order into runs of tied values.

    Args:
        eigvals: Eigenvalues, descending
        scale: Magnitude the tie tolerance is relative to

    Returns:
        Slices covering eigvals, one per run
    """
    groups = []
    start = 0
    for i in range(1, len(eigvals) + 1):
        if i == len(eigvals) or eigvals[i - 1] - eigvals[i] > TIE_RTOL * scale:
            groups.append(slice(start, i))
            start = i
    return groups


def canonical_basis(vectors: np.ndarray) -> np.ndarray:
    """
    Orthonormal basis of the span of vectors that does not depend on how it was found.

    The unit column axes are projected onto the span in column order and
    orthonormalized; axes whose projection adds nothing new are skipped.

    Args:
        vectors: Orthonormal columns spanning one eigenspace

    Returns:
        Orthonormal columns spanning the same space
    """
    projector = vectors @ vectors.T
    basis = []
    for axis in projector.T:
        v = orthogonalize(orthogonalize(axis, basis), basis)
        if vector_length(v) > CANONICAL_ATOL:
            basis.append(normalize_vector(v))
        if len(basis) == vectors.shape[1]:
            break
    return np.column_stack(basis)


def sort_eigenpairs(eigvals: np.ndarray, vectors: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Order eigenpairs by descending eigenvalue and clip round-off negatives.

    Eigenvectors of tied eigenvalues are not unique, so each tied eigenspace
    is given its canonical basis and ordered by the column each vector is
    dominated by, earlier variable first.

    Args:
        eigvals: Eigenvalues
        vectors: Eigenvectors as columns

    Returns:
        Tuple of (sorted eigenvalues, sorted eigenvectors)
    """
    eigvals = np.asarray(eigvals, dtype=float)
    scale = max(np.abs(eigvals).max(), 1.0)
    clip = EIGENVALUE_CLIP_RTOL * scale * len(eigvals)

    if np.any(eigvals < -clip):
        raise InvalidInput(f"Matrix is not positive semi-definite (eigenvalue {eigvals.min():.3g})")
    eigvals = np.where(np.abs(eigvals) <= clip, 0.0, eigvals)

    order = np.argsort(-eigvals, kind='stable')
    eigvals = eigvals[order]
    vectors = np.array(vectors, dtype=float)[:, order]

    for group in tie_groups(eigvals, scale):
        if group.stop - group.start > 1:
            block = canonical_basis(vectors[:, group])
            dominant = [dominant_index(v) for v in block.T]
            vectors[:, group] = block[:, np.argsort(dominant, kind='stable')]

    return eigvals, vectors


def eigen_decompose(matrix: np.ndarray,
                    solver: str = 'eigh',
                    iters: int = 1000,
                    tol: float = 1e-10) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigen-decompose a symmetric positive semi-definite matrix.

    Args:
        matrix: Correlation or covariance matrix
        solver: 'eigh' or 'power'
        iters: Maximum iterations for the power solver
        tol: Convergence tolerance for the power solver

    Returns:
        Tuple of (eigenvalues descending, sign-fixed orthonormal eigenvectors as columns)
    """
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidInput(f"Expected a square matrix, got shape {matrix.shape}")
    if not np.allclose(matrix, matrix.T):
        raise InvalidInput("Matrix is not symmetric")

    if solver == 'eigh':
        try:
            eigvals, vectors = np.linalg.eigh(matrix)
        except np.linalg.LinAlgError as e:
            raise ComputationError(f"Eigen-decomposition failed: {e}") from e
    elif solver == 'power':
        try:
            eigvals, vectors = powerit_eigen(matrix, iters=iters, tol=tol)
        except np.linalg.LinAlgError as e:
            raise ComputationError(f"Power iteration failed: {e}") from e
    else:
        raise InvalidInput(f"Unknown solver for a symmetric matrix: {solver}")

    if not (np.all(np.isfinite(eigvals)) and np.all(np.isfinite(vectors))):
        raise ComputationError("Eigen-decomposition produced non-finite values")

    eigvals, vectors = sort_eigenpairs(eigvals, vectors)
    return eigvals, fix_signs(vectors)


def svd_decompose(prepared: np.ndarray, ddof: int = 1) -> Tuple[np.ndarray, np.ndarray]:
    """
    Eigenpairs of X^T X / (n - ddof) via the singular values of X.

    Args:
        prepared: Centered (and optionally scaled) data matrix
        ddof: Delta degrees of freedom

    Returns:
        Tuple of (eigenvalues descending, sign-fixed eigenvectors as columns)
    """
    n_rows, n_cols = prepared.shape
    try:
        _, singular, vt = np.linalg.svd(prepared, full_matrices=n_rows < n_cols)
    except np.linalg.LinAlgError as e:
        raise ComputationError(f"Singular value decomposition failed: {e}") from e

    eigvals = np.zeros(n_cols)
    eigvals[:len(singular)] = singular ** 2 / (n_rows - ddof)

    eigvals, vectors = sort_eigenpairs(eigvals, vt.T)
    return eigvals, fix_signs(vectors)


def compute_pca(table: Table,
                standardize: bool = True,
                n_components: Optional[int] = None,
                center: bool = True,
                ddof: int = 1,
                scale_loadings: bool = False,
                solver: str = 'eigh',
                iters: int = 1000,
                tol: float = 1e-10) -> PCAResult:
    """
    Principal component analysis of a table (observations x variables).

    Args:
        table: Input table, at least 2x2, all values finite numeric
        standardize: Decompose the correlation matrix of standardized columns;
            otherwise the covariance matrix of centered columns
        n_components: Components retained in loadings and scores (default all)
        center: Center columns when not standardizing
        ddof: Delta degrees of freedom for standard deviations and covariances
        scale_loadings: Multiply eigenvectors by the square root of their eigenvalue
        solver: 'eigh', 'svd' or 'power'
        iters: Maximum iterations for the power solver
        tol: Convergence tolerance for the power solver

    Returns:
        PCAResult with eigenvalues, loadings and scores
    """
    values, row_names, col_names = validate_table(table)
    n_rows, n_cols = values.shape

    if solver not in SOLVERS:
        raise InvalidInput(f"Unknown solver: {solver}")
    if ddof not in (0, 1):
        raise InvalidInput(f"ddof must be 0 or 1, got {ddof}")
    if n_components is None:
        n_components = n_cols
    elif isinstance(n_components, bool) or not isinstance(n_components, numbers.Integral) \
            or not 1 <= n_components <= n_cols:
        raise InvalidInput(f"n_components must be an integer between 1 and {n_cols}, got {n_components}")

    logger.debug("PCA on %dx%d table (standardize=%s, solver=%s)", n_rows, n_cols, standardize, solver)

    center = center or standardize
    prepared, center_vec, scale_vec = standardize_columns(
        values, ddof=ddof, center=center, scale=standardize
    )

    if solver == 'svd':
        eigvals, vectors = svd_decompose(prepared, ddof=ddof)
    else:
        if standardize:
            association = correlation_matrix(values)
        elif center:
            association = covariance_matrix(values, ddof=ddof)
        else:
            association = cross_product_matrix(prepared, ddof=ddof)
        eigvals, vectors = eigen_decompose(association, solver=solver, iters=iters, tol=tol)

    scores = prepared @ vectors[:, :n_components]

    logger.debug("Eigenvalues: %s", np.array2string(eigvals, precision=4))

    return PCAResult(
        eigenvalues=eigvals,
        rotation=vectors,
        scores=scores,
        center=center_vec,
        scale=scale_vec,
        n_components=n_components,
        standardize=standardize,
        scale_loadings=scale_loadings,
        ddof=ddof,
        solver=solver,
        variable_names=col_names,
        observation_names=row_names
    )


def project(result: PCAResult, table: Table) -> np.ndarray:
    """
    Project new observations onto the retained components of a fitted result.

    The stored center and scale are applied before projection.

    Args:
        result: Result of compute_pca
        table: Observations with the same variables, in the same order

    Returns:
        Scores matrix (observations x retained components)
    """
    if not isinstance(table, (NamedMatrix, pd.DataFrame)):
        try:
            table = np.atleast_2d(np.asarray(table))
        except ValueError as e:
            raise InvalidInput(f"Table rows must all have the same length: {e}") from e
    values, _, _ = validate_table(table, min_rows=1)
    if values.shape[1] != len(result.variable_names):
        raise InvalidInput(f"Expected {len(result.variable_names)} variables, got shape {values.shape}")

    prepared = values - result.center
    if result.scale is not None:
        prepared = prepared / result.scale
    return prepared @ result.rotation[:, :result.n_components]


def summarize_pca(result: PCAResult) -> pd.DataFrame:
    """
    Importance of components.

    Args:
        result: Result of compute_pca

    Returns:
        DataFrame with rows 'Standard deviation', 'Proportion of Variance'
        and 'Cumulative Proportion', one column per component
    """
    return pd.DataFrame(
        [result.sdev, result.explained_variance_ratio, result.cumulative_variance_ratio],
        index=['Standard deviation', 'Proportion of Variance', 'Cumulative Proportion'],
        columns=result.component_names(len(result.eigenvalues))
    )


def pca_named_matrix(nmat: NamedMatrix,
                     n_comps: Optional[int] = None,
                     **kwargs) -> Tuple[PCAResult, Dict[Any, np.ndarray]]:
    """
    Perform PCA on a NamedMatrix and key the scores by observation.

    Args:
        nmat: NamedMatrix containing the data
        n_comps: Number of components to retain
        **kwargs: Forwarded to compute_pca

    Returns:
        Tuple of (PCAResult, {observation name: score vector})
    """
    result = compute_pca(nmat, n_components=n_comps, **kwargs)
    proj_dict = {name: score for name, score in zip(nmat.rownames(), result.scores)}
    return result, proj_dict


def prepare_pca_export(result: PCAResult) -> Dict[str, Any]:
    """
    Convert a PCAResult into plain lists and dicts for serialization.

    Args:
        result: Result of compute_pca

    Returns:
        Export-ready dictionary
    """
    return {
        'variables': list(result.variable_names),
        'observations': list(result.observation_names),
        'components': result.component_names(),
        'standardize': result.standardize,
        'ddof': result.ddof,
        'solver': result.solver,
        'eigenvalues': result.eigenvalues.tolist(),
        'explained_variance_ratio': result.explained_variance_ratio.tolist(),
        'center': result.center.tolist(),
        'scale': None if result.scale is None else result.scale.tolist(),
        'loadings': result.loadings.tolist(),
        'scores': result.scores.tolist()
    }


def save_pca_results(result: PCAResult, filepath: str) -> None:
    """
    Save a PCAResult to a JSON or YAML file.

    Args:
        result: Result of compute_pca
        filepath: Destination; the extension selects the format
    """
    export_data = prepare_pca_export(result)

    if filepath.endswith('.json'):
        with open(filepath, 'w') as f:
            json.dump(export_data, f, indent=2)
    elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
        with open(filepath, 'w') as f:
            yaml.safe_dump(export_data, f, default_flow_style=False)
    else:
        raise ValueError(f"Unsupported file format: {filepath}")

    logger.info("Saved PCA results to %s", filepath)
