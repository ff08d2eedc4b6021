"""
Setup script for pcakit package.
"""

from setuptools import setup, find_packages

setup(
    name="pcakit",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "scikit-learn>=1.0.0",

        # Plotting
        "matplotlib>=3.4.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'pcakit=pcakit.__main__:main',
        ],
    },
    description="Principal component analysis of numeric tables via eigen-decomposition",
    keywords="pca, principal components, eigen-decomposition, statistics",
    python_requires=">=3.8",
)
