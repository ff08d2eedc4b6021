"""
Named Matrix implementation for pcakit.

This module provides a data structure for tables with named rows
(observations) and named columns (variables), the input shape expected
by the PCA kernel.
"""

import numpy as np
import pandas as pd
from typing import List, Dict, Union, Optional, Tuple, Any


class IndexHash:
    """
    Maintains an ordered index of names with fast lookup.
    """

    def __init__(self, names: Optional[List[Any]] = None):
        """
        Initialize an IndexHash with optional initial names.

        Args:
            names: Optional list of initial names
        """
        self._names = [] if names is None else list(names)
        self._index_hash = {name: idx for idx, name in enumerate(self._names)}

    def get_names(self) -> List[Any]:
        """Return the ordered list of names."""
        return self._names.copy()

    def index(self, name: Any) -> Optional[int]:
        """
        Get the index for a given name, or None if not found.

        Args:
            name: The name to look up

        Returns:
            The index if found, None otherwise
        """
        return self._index_hash.get(name)

    def subset(self, names: List[Any]) -> 'IndexHash':
        """
        Create a subset of the index with only the specified names.

        Args:
            names: List of names to include in the subset

        Returns:
            A new IndexHash containing only the specified names
        """
        valid_names = [name for name in names if name in self._index_hash]
        return IndexHash(valid_names)

    def __len__(self) -> int:
        """Return the number of names in the index."""
        return len(self._names)

    def __contains__(self, name: Any) -> bool:
        """Check if a name is in the index."""
        return name in self._index_hash


class NamedMatrix:
    """
    A matrix with named rows and columns.

    Rows are observations and columns are variables. A pandas DataFrame
    is used as the underlying storage.
    """

    def __init__(self,
                 matrix: Optional[Union[np.ndarray, pd.DataFrame]] = None,
                 rownames: Optional[List[Any]] = None,
                 colnames: Optional[List[Any]] = None):
        """
        Initialize a NamedMatrix with optional initial data.

        Args:
            matrix: Initial matrix data (numpy array or pandas DataFrame)
            rownames: List of row names
            colnames: List of column names
        """
        if matrix is None:
            self._matrix = pd.DataFrame(
                index=[] if rownames is None else list(rownames),
                columns=[] if colnames is None else list(colnames)
            )
        elif isinstance(matrix, pd.DataFrame):
            self._matrix = matrix.copy()
            if rownames is not None:
                self._matrix.index = list(rownames)
            if colnames is not None:
                self._matrix.columns = list(colnames)
        else:
            matrix = np.asarray(matrix)
            if matrix.ndim != 2:
                raise ValueError(f"Expected a 2-dimensional matrix, got {matrix.ndim} dimensions")
            rows = list(rownames) if rownames is not None else list(range(matrix.shape[0]))
            cols = list(colnames) if colnames is not None else list(range(matrix.shape[1]))
            self._matrix = pd.DataFrame(matrix, index=rows, columns=cols)

        # Indices always mirror the stored frame
        self._row_index = IndexHash(self._matrix.index.tolist())
        self._col_index = IndexHash(self._matrix.columns.tolist())

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> 'NamedMatrix':
        """
        Build a NamedMatrix from a DataFrame, keeping its index and columns.

        Args:
            df: Source DataFrame

        Returns:
            A new NamedMatrix
        """
        return cls(df)

    @property
    def matrix(self) -> pd.DataFrame:
        """Get the underlying DataFrame."""
        return self._matrix

    @property
    def values(self) -> np.ndarray:
        """Get the matrix as a numpy array."""
        return self._matrix.values

    @property
    def shape(self) -> Tuple[int, int]:
        """Get the (rows, columns) shape."""
        return self._matrix.shape

    def rownames(self) -> List[Any]:
        """Get the list of row names."""
        return self._row_index.get_names()

    def colnames(self) -> List[Any]:
        """Get the list of column names."""
        return self._col_index.get_names()

    def to_dataframe(self) -> pd.DataFrame:
        """Return a copy of the data as a DataFrame."""
        return self._matrix.copy()

    def transpose(self) -> 'NamedMatrix':
        """
        Swap rows and columns.

        Returns:
            A new NamedMatrix with rows and columns swapped
        """
        return NamedMatrix(self._matrix.T)

    def rowname_subset(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified rows.

        Args:
            rownames: List of row names to include

        Returns:
            A new NamedMatrix with only the specified rows
        """
        valid_rows = [row for row in rownames if row in self._row_index]

        if not valid_rows:
            return NamedMatrix(
                pd.DataFrame(columns=self.colnames()),
                rownames=[],
                colnames=self.colnames()
            )

        return NamedMatrix(self._matrix.loc[valid_rows])

    def colname_subset(self, colnames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset of the matrix with only the specified columns.

        Args:
            colnames: List of column names to include

        Returns:
            A new NamedMatrix with only the specified columns
        """
        valid_cols = [col for col in colnames if col in self._col_index]

        if not valid_cols:
            return NamedMatrix(
                pd.DataFrame(index=self.rownames()),
                rownames=self.rownames(),
                colnames=[]
            )

        return NamedMatrix(self._matrix[valid_cols])

    def inv_rowname_subset(self, rownames: List[Any]) -> 'NamedMatrix':
        """
        Create a subset excluding the specified rows.

        Args:
            rownames: List of row names to exclude

        Returns:
            A new NamedMatrix without the specified rows
        """
        exclude_set = set(rownames)
        include_rows = [row for row in self.rownames() if row not in exclude_set]
        return self.rowname_subset(include_rows)

    def get_row_by_name(self, row_name: Any) -> np.ndarray:
        """
        Get a row of the matrix by name.

        Args:
            row_name: The name of the row

        Returns:
            The row as a numpy array
        """
        if row_name not in self._row_index:
            raise KeyError(f"Row name '{row_name}' not found")
        return self._matrix.loc[row_name].values

    def get_col_by_name(self, col_name: Any) -> np.ndarray:
        """
        Get a column of the matrix by name.

        Args:
            col_name: The name of the column

        Returns:
            The column as a numpy array
        """
        if col_name not in self._col_index:
            raise KeyError(f"Column name '{col_name}' not found")
        return self._matrix[col_name].values

    def __repr__(self) -> str:
        return f"NamedMatrix(rows={len(self.rownames())}, cols={len(self.colnames())})"

    def __str__(self) -> str:
        return (f"NamedMatrix with {len(self.rownames())} rows and "
                f"{len(self.colnames())} columns\n{self._matrix}")


def create_named_matrix(matrix_data: Optional[Union[np.ndarray, List[List[Any]]]] = None,
                        rownames: Optional[List[Any]] = None,
                        colnames: Optional[List[Any]] = None) -> NamedMatrix:
    """
    Create a NamedMatrix from data.

    Args:
        matrix_data: Initial matrix data (numpy array or nested lists)
        rownames: List of row names
        colnames: List of column names

    Returns:
        A new NamedMatrix
    """
    if matrix_data is not None and not isinstance(matrix_data, np.ndarray):
        matrix_data = np.array(matrix_data)
    return NamedMatrix(matrix_data, rownames, colnames)
