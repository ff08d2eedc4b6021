"""
Main entry point for pcakit.

Runs a principal component analysis on a CSV table or a bundled dataset
and prints the eigenvalues, the importance of components and the loadings.
"""

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from pcakit.components.config import ConfigManager, load_config_file
from pcakit.datasets import DATASETS, load_dataset, load_table
from pcakit.exceptions import PCAError
from pcakit.math.compare import compare_implementations
from pcakit.math.pca import SOLVERS, compute_pca, save_pca_results, summarize_pca

logger = logging.getLogger('pcakit')


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    if level.lower() == 'warn':
        level = 'WARNING'
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='Principal component analysis of a numeric table')

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--input',
        help='CSV file; a non-numeric first column holds observation names'
    )
    source.add_argument(
        '--dataset',
        choices=sorted(DATASETS),
        default='usarrests',
        help='Bundled dataset to analyse when no --input is given'
    )

    parser.add_argument(
        '--columns',
        nargs='+',
        help='Subset of columns to analyse'
    )

    parser.add_argument(
        '--no-standardize',
        action='store_true',
        help='Decompose the covariance matrix instead of the correlation matrix'
    )

    parser.add_argument(
        '--n-components',
        type=int,
        help='Number of components to retain'
    )

    parser.add_argument(
        '--ddof',
        type=int,
        choices=[0, 1],
        help='Delta degrees of freedom for standard deviations'
    )

    parser.add_argument(
        '--solver',
        choices=SOLVERS,
        help='Decomposition method'
    )

    parser.add_argument(
        '--scale-loadings',
        action='store_true',
        help='Scale loadings by the square root of their eigenvalue'
    )

    parser.add_argument(
        '--output',
        help='Write the result to a .json or .yaml file'
    )

    parser.add_argument(
        '--scree',
        help='Save a scree plot to this image file'
    )

    parser.add_argument(
        '--biplot',
        help='Save a biplot of the first two components to this image file'
    )

    parser.add_argument(
        '--compare',
        action='store_true',
        help='Compare all solvers and scikit-learn on the same table'
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level'
    )

    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> dict:
    """
    Collect configuration overrides from a config file and the command line.

    Args:
        args: Parsed arguments

    Returns:
        Overrides dictionary, command line taking precedence
    """
    overrides = {}

    if args.config:
        overrides.update(load_config_file(args.config))

    pca = dict(overrides.get('pca', {}))
    if args.no_standardize:
        pca['standardize'] = False
    if args.n_components is not None:
        pca['n-components'] = args.n_components
    if args.ddof is not None:
        pca['ddof'] = args.ddof
    if args.solver:
        pca['solver'] = args.solver
    if args.scale_loadings:
        pca['scale-loadings'] = True
    if pca:
        overrides['pca'] = pca

    if args.log_level:
        overrides.setdefault('logging', {})['level'] = args.log_level

    return overrides


def save_plots(result, scree_path: Optional[str], biplot_path: Optional[str]) -> None:
    """
    Render the requested plots to image files.

    Args:
        result: Result of compute_pca
        scree_path: Destination of the scree plot, or None
        biplot_path: Destination of the biplot, or None
    """
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt
    from pcakit.plots import biplot, scree_plot

    for path, draw in ((scree_path, scree_plot), (biplot_path, biplot)):
        if path:
            ax = draw(result)
            ax.figure.savefig(path, bbox_inches='tight')
            plt.close(ax.figure)
            logger.info("Saved plot to %s", path)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv: Arguments (defaults to sys.argv[1:])

    Returns:
        Process exit status
    """
    args = parse_args(argv)

    try:
        config = ConfigManager.get_config(build_overrides(args))
    except (OSError, ValueError) as e:
        setup_logging()
        logger.error("Could not load configuration: %s", e)
        return 1

    setup_logging(config.get('logging.level', 'warn'))
    precision = config.get('output.precision', 4)

    try:
        if args.input:
            table = load_table(args.input, columns=args.columns)
        else:
            table = load_dataset(args.dataset, columns=args.columns)

        options = config.pca_options()
        result = compute_pca(table, **options)

        with pd.option_context('display.precision', precision, 'display.width', 120):
            print("Eigenvalues:")
            print(pd.Series(result.eigenvalues,
                            index=result.component_names(len(result.eigenvalues))).to_string())
            print()
            print("Importance of components:")
            print(summarize_pca(result).to_string())
            print()
            print("Loadings:")
            print(result.loadings_frame().to_string())

            if args.compare:
                print()
                print("Agreement with eigh:")
                print(compare_implementations(
                    table, standardize=options['standardize'], ddof=options['ddof']
                ).to_string())

        if args.output:
            save_pca_results(result, args.output)

        if args.scree or args.biplot:
            save_plots(result, args.scree, args.biplot)
    except (PCAError, ValueError, OSError) as e:
        logger.error("PCA failed: %s", e)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
