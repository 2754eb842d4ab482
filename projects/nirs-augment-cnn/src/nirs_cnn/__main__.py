"""
Command-line entry point.

    python -m nirs_cnn --config configs/default.yaml --output-dir results/
"""

import argparse
from typing import List, Optional

import matplotlib
matplotlib.use("Agg")

from .config import load_config
from .logging_config import setup_logging
from .pipeline import run_pipeline


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description='Train the augmented 1D-CNN on NIR spectra and report test RMSE')
    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--data-dir', help='directory holding the six CSV tables')
    parser.add_argument('--output-dir', help='where to write figures and the model')
    parser.add_argument('--epochs', type=int)
    parser.add_argument('--seed', type=int)
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--log-file')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    config = load_config(args.config, overrides={
        'data_dir':   args.data_dir,
        'output_dir': args.output_dir,
        'epochs':     args.epochs,
        'seed':       args.seed,
    })
    result = run_pipeline(config)

    print(f"Test RMSE: {result.test_rmse:.4f}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
