"""
plotting.py — Training and Prediction Figures

Each function returns the matplotlib Figure. When output_path is given the
figure is written to disk and closed.
"""

import os

import numpy as np
import matplotlib.pyplot as plt

from .cnn import rmse


def _finish(fig, output_path):
    fig.tight_layout()
    if output_path:
        parent = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(parent, exist_ok=True)
        fig.savefig(output_path)
        plt.close(fig)
    return fig


def plot_training_history(history, output_path=None):
    """
    Training / validation loss per epoch, with the learning rate on a
    secondary axis when the plateau callback recorded it.

    Parameters
    ----------
    history     : Keras History object or its .history dict
    output_path : str — save figure to this path (None = keep open)
    """
    hist   = getattr(history, 'history', history)
    epochs = np.arange(1, len(hist['loss']) + 1)

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.semilogy(epochs, hist['loss'], label='train')
    if 'val_loss' in hist:
        ax.semilogy(epochs, hist['val_loss'], label='validation')
    ax.set_xlabel('epoch')
    ax.set_ylabel('MSE loss')
    ax.legend(loc='upper left')

    lr_key = 'learning_rate' if 'learning_rate' in hist else 'lr'
    if lr_key in hist:
        ax_lr = ax.twinx()
        ax_lr.semilogy(epochs, hist[lr_key], color='tab:gray', linestyle='--', label='learning rate')
        ax_lr.set_ylabel('learning rate')
        ax_lr.legend(loc='upper right')

    ax.set_title('Training history')
    return _finish(fig, output_path)


def plot_predictions(y_true, y_pred, output_path=None, title=None):
    """
    Predicted vs. reference concentration with the identity line.

    Parameters
    ----------
    y_true, y_pred : arrays — concentrations (n,)
    output_path    : str    — save figure to this path (None = keep open)
    title          : str    — plot title (default shows the RMSE)
    """
    y_true = np.ravel(y_true)
    y_pred = np.ravel(y_pred)

    fig, ax = plt.subplots(figsize=(5, 5))
    ax.scatter(y_true, y_pred, s=14, alpha=0.7, edgecolor='black', linewidth=0.3)

    lo = min(y_true.min(), y_pred.min())
    hi = max(y_true.max(), y_pred.max())
    ax.plot([lo, hi], [lo, hi], color='tab:red', linewidth=1)

    ax.set_xlabel('reference')
    ax.set_ylabel('predicted')
    ax.set_title(title or f'Test set, RMSE {rmse(y_true, y_pred):.4f}')
    return _finish(fig, output_path)


def plot_augmented_examples(X, X_aug, wavelengths, n=5, output_path=None):
    """
    Overlay the first n original spectra with their augmented copies.

    X_aug is expected in expand_training_set order (copies of a sample
    adjacent), so every copy of the first n samples is drawn.
    """
    X, X_aug = np.asarray(X), np.asarray(X_aug)
    n        = min(n, len(X))
    repeats  = len(X_aug) // len(X)

    fig, ax = plt.subplots(figsize=(8, 4))
    for i in range(n):
        color = f'C{i % 10}'
        for copy in X_aug[i * repeats:(i + 1) * repeats]:
            ax.plot(wavelengths, copy, color=color, alpha=0.25, linewidth=0.8)
        ax.plot(wavelengths, X[i], color=color, linewidth=1.5)

    ax.set_xlabel('wavelength [nm]')
    ax.set_ylabel('standardised intensity')
    ax.set_title('Augmented spectra')
    return _finish(fig, output_path)
