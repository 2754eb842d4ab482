"""
pipeline.py — End-to-End Training Run

Single entry point that chains loading, standardisation, augmentation,
training and evaluation.

Usage
-----
    from nirs_cnn.config import load_config
    from nirs_cnn.pipeline import run_pipeline

    result = run_pipeline(load_config('configs/default.yaml'))
    print(result.test_rmse)
"""

import logging
import os
import random
from dataclasses import dataclass

import numpy as np
import tensorflow as tf

from .data import load_dataset
from .preprocessing import standardize, scale_target, expand_training_set, to_cnn_input
from .cnn import build_callbacks, train_and_evaluate_spectral_cnn
from .plotting import plot_training_history, plot_predictions, plot_augmented_examples

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    test_rmse: float
    history: object
    model: object
    y_test: np.ndarray
    y_pred: np.ndarray
    n_train_augmented: int


def set_seed(seed):
    """
    Seed Python, NumPy and TensorFlow RNGs.

    Returns
    -------
    rng : numpy Generator — seeded generator for the augmentation draws
    """
    random.seed(seed)
    np.random.seed(seed)
    tf.random.set_seed(seed)
    logger.debug("Seeded RNGs with %d", seed)
    return np.random.default_rng(seed)


def run_pipeline(config, dataset=None):
    """
    Run the full calibration → augmentation → training → test sequence.

    Parameters
    ----------
    config  : PipelineConfig
    dataset : SpectralDataset — pre-loaded data (None = read config.data_dir)

    Returns
    -------
    result : PipelineResult
    """
    rng = set_seed(config.seed)

    # 1–2. Load the six tables, slice band and target
    if dataset is None:
        dataset = load_dataset(config.data_dir, config.band, config.target,
                               files=config.files, step=config.band_step)

    # 3. Standardise on calibration statistics
    (X_cal, X_val, X_test), _ = standardize(dataset.X_cal, dataset.X_val, dataset.X_test,
                                            per_channel=config.per_channel)
    (y_cal, y_val), y_scaler  = scale_target(dataset.y_cal, dataset.y_val)

    # 4. Ten-fold replication with randomised affine perturbation
    X_aug, y_aug = expand_training_set(X_cal, y_cal, repeats=config.repeats,
                                       betashift=config.betashift,
                                       slopeshift=config.slopeshift,
                                       multishift=config.multishift, rng=rng)
    logger.info("Augmented calibration set: %d → %d spectra", len(X_cal), len(X_aug))

    out_dir = config.output_dir
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
        plot_augmented_examples(X_cal, X_aug, dataset.wavelengths,
                                output_path=os.path.join(out_dir, 'augmentation.png'))

    # 5–7. Build, train, predict
    callbacks = build_callbacks(factor=config.lr_factor, patience=config.lr_patience,
                                min_lr=config.min_lr)
    model, history, test_rmse, y_pred = train_and_evaluate_spectral_cnn(
        to_cnn_input(X_aug), y_aug,
        to_cnn_input(X_val), y_val,
        to_cnn_input(X_test), dataset.y_test,
        epochs=config.epochs,
        batch_size=config.batch_size,
        target_scaler=y_scaler,
        callbacks=callbacks,
        save_path=os.path.join(out_dir, 'model') if out_dir else None,
        dense_units=config.dense_units,
        dropout=config.dropout,
        learning_rate=config.learning_rate,
    )

    if out_dir:
        plot_training_history(history, output_path=os.path.join(out_dir, 'history.png'))
        plot_predictions(dataset.y_test, y_pred, output_path=os.path.join(out_dir, 'predictions.png'))
        logger.info("Figures written to %s", out_dir)

    return PipelineResult(
        test_rmse=test_rmse,
        history=history,
        model=model,
        y_test=dataset.y_test,
        y_pred=y_pred,
        n_train_augmented=len(X_aug),
    )
