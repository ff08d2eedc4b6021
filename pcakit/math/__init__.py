"""
Numerical core of pcakit: labelled tables, association matrices and PCA.
"""
