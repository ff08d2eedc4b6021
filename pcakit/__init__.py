"""
pcakit: principal component analysis of small numeric tables.

The kernel standardizes columns, eigen-decomposes the correlation (or
covariance) matrix and derives eigenvalues, loadings and scores.
"""

__version__ = '0.1.0'

from pcakit.exceptions import PCAError, InvalidInput, ComputationError
from pcakit.math.named_matrix import NamedMatrix
from pcakit.math.pca import PCAResult, compute_pca, project, summarize_pca
from pcakit.datasets import load_usarrests
