"""
Tests for the named_matrix module.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pcakit.math.named_matrix import IndexHash, NamedMatrix, create_named_matrix


class TestIndexHash:
    """Tests for the IndexHash class."""

    def test_init_empty(self):
        """Test creating an empty IndexHash."""
        idx = IndexHash()
        assert idx.get_names() == []
        assert len(idx) == 0

    def test_init_with_names(self):
        """Test creating an IndexHash with initial names."""
        idx = IndexHash(['a', 'b', 'c'])
        assert idx.get_names() == ['a', 'b', 'c']
        assert idx.index('a') == 0
        assert idx.index('c') == 2
        assert idx.index('d') is None
        assert len(idx) == 3

    def test_subset(self):
        """Test creating a subset of an IndexHash."""
        idx = IndexHash(['a', 'b', 'c', 'd'])
        idx2 = idx.subset(['b', 'd', 'e'])  # 'e' doesn't exist

        assert idx2.get_names() == ['b', 'd']
        assert idx2.index('d') == 1

    def test_contains(self):
        """Test the contains operator."""
        idx = IndexHash(['a', 'b', 'c'])
        assert 'a' in idx
        assert 'z' not in idx


class TestNamedMatrix:
    """Tests for the NamedMatrix class."""

    def setup_method(self):
        """Build a small states x variables table."""
        self.data = np.array([
            [13.2, 236.0, 58.0],
            [10.0, 263.0, 48.0],
            [8.1, 294.0, 80.0]
        ])
        self.rownames = ['Alabama', 'Alaska', 'Arizona']
        self.colnames = ['Murder', 'Assault', 'UrbanPop']
        self.nmat = NamedMatrix(self.data, self.rownames, self.colnames)

    def test_init_from_array(self):
        """Test creating a NamedMatrix from a numpy array."""
        assert self.nmat.rownames() == self.rownames
        assert self.nmat.colnames() == self.colnames
        assert self.nmat.shape == (3, 3)
        assert np.array_equal(self.nmat.values, self.data)

    def test_init_default_names(self):
        """Test that missing names default to positions."""
        nmat = NamedMatrix(self.data)
        assert nmat.rownames() == [0, 1, 2]
        assert nmat.colnames() == [0, 1, 2]

    def test_init_from_dataframe(self):
        """Test creating a NamedMatrix from a DataFrame."""
        df = pd.DataFrame(self.data, index=self.rownames, columns=self.colnames)
        nmat = NamedMatrix.from_dataframe(df)

        assert nmat.rownames() == self.rownames
        assert nmat.colnames() == self.colnames
        # The frame is copied
        df.iloc[0, 0] = 0.0
        assert nmat.values[0, 0] == 13.2

    def test_init_rejects_vectors(self):
        """Test that 1-D data is rejected."""
        with pytest.raises(ValueError):
            NamedMatrix(np.array([1.0, 2.0, 3.0]))

    def test_get_by_name(self):
        """Test row and column lookup."""
        assert np.array_equal(self.nmat.get_row_by_name('Alaska'), self.data[1])
        assert np.array_equal(self.nmat.get_col_by_name('Assault'), self.data[:, 1])

        with pytest.raises(KeyError):
            self.nmat.get_row_by_name('Texas')
        with pytest.raises(KeyError):
            self.nmat.get_col_by_name('Rape')

    def test_rowname_subset(self):
        """Test selecting rows."""
        subset = self.nmat.rowname_subset(['Arizona', 'Alabama', 'Texas'])

        assert subset.rownames() == ['Arizona', 'Alabama']
        assert np.array_equal(subset.values, self.data[[2, 0]])

        empty = self.nmat.rowname_subset(['Texas'])
        assert empty.rownames() == []
        assert empty.colnames() == self.colnames

    def test_colname_subset(self):
        """Test selecting columns."""
        subset = self.nmat.colname_subset(['UrbanPop', 'Murder'])

        assert subset.colnames() == ['UrbanPop', 'Murder']
        assert np.array_equal(subset.values, self.data[:, [2, 0]])

    def test_inv_rowname_subset(self):
        """Test excluding rows."""
        subset = self.nmat.inv_rowname_subset(['Alaska'])
        assert subset.rownames() == ['Alabama', 'Arizona']

    def test_transpose(self):
        """Test swapping rows and columns."""
        transposed = self.nmat.transpose()

        assert transposed.rownames() == self.colnames
        assert transposed.colnames() == self.rownames
        assert np.array_equal(transposed.values, self.data.T)

    def test_to_dataframe(self):
        """Test that to_dataframe returns a copy."""
        df = self.nmat.to_dataframe()
        df.iloc[0, 0] = 0.0
        assert self.nmat.values[0, 0] == 13.2

    def test_repr(self):
        """Test the string representations."""
        assert repr(self.nmat) == "NamedMatrix(rows=3, cols=3)"
        assert "3 rows and 3 columns" in str(self.nmat)


class TestCreateNamedMatrix:
    """Tests for the create_named_matrix helper."""

    def test_from_lists(self):
        """Test creating a NamedMatrix from nested lists."""
        nmat = create_named_matrix([[1, 2], [3, 4]], ['r1', 'r2'], ['c1', 'c2'])

        assert nmat.rownames() == ['r1', 'r2']
        assert nmat.colnames() == ['c1', 'c2']
        assert np.array_equal(nmat.values, np.array([[1, 2], [3, 4]]))

    def test_empty(self):
        """Test creating an empty NamedMatrix."""
        nmat = create_named_matrix()
        assert nmat.rownames() == []
        assert nmat.colnames() == []
