"""
preprocessing.py — Spectral Standardisation and Augmentation

Prepares NIR spectra for the 1D-CNN regressor.

Pipeline steps:
    1. Standardisation (statistics fit on the calibration set only)
    2. Target scaling
    3. Ten-fold replication of the calibration rows
    4. Randomised affine augmentation (baseline offset, slope, multiplicative)
    5. Reshape to (n, channels, 1) for Conv1D input

The augmentation mimics the physical variation seen between NIR measurements:
an additive baseline shift, a linear tilt across the wavelength axis and a
multiplicative scatter effect. The tilt pivots around the centre of the band,
so a slope perturbation leaves the mid-band intensity untouched.

References
----------
Bjerrum, E. J., Glahder, M. & Skov, T. (2017). Data augmentation of spectral
    data for convolutional neural network (CNN) based deep chemometrics.
"""

import logging

import numpy as np
from sklearn.preprocessing import StandardScaler

logger = logging.getLogger(__name__)


# ── Standardisation ────────────────────────────────────────────────────────────

def fit_standardizer(X, per_channel=False):
    """
    Training-set mean and standard deviation.

    Global mode uses a single mean/std over the whole matrix, which keeps the
    relative shape of every spectrum intact. Per-channel mode standardises
    each wavelength independently (StandardScaler statistics).

    Parameters
    ----------
    X           : array — training spectra (n x channels)
    per_channel : bool  — per-wavelength statistics (default False)

    Returns
    -------
    mean, std : arrays broadcastable against X
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"Expected a 2D spectra matrix, got shape {X.shape}")

    if per_channel:
        scaler = StandardScaler().fit(X)
        mean   = scaler.mean_.reshape(1, -1)
        std    = scaler.scale_.reshape(1, -1)
    else:
        mean   = np.array([[X.mean()]])
        std    = np.array([[X.std()]])

    # Flat channels (or a constant matrix) would divide by zero
    std = np.where(std == 0, 1.0, std)
    return mean, std


def standardize(X_train, *others, per_channel=False):
    """
    Standardise spectra using statistics of the training set.

    Statistics are fit on X_train only and applied to every other set to
    prevent leakage of validation/test information.

    Parameters
    ----------
    X_train     : array — training spectra (n x channels)
    *others     : arrays — further sets to transform (validation, test, ...)
    per_channel : bool   — see fit_standardizer

    Returns
    -------
    scaled : list  — [X_train_s, *others_s]
    stats  : tuple — (mean, std) used for the transform
    """
    mean, std = fit_standardizer(X_train, per_channel=per_channel)
    scaled    = [(np.asarray(X, dtype=np.float64) - mean) / std
                 for X in (X_train, *others)]
    return scaled, (mean, std)


def scale_target(y_train, *others):
    """
    StandardScaler on the concentration target, fit on y_train only.

    Returns
    -------
    scaled : list           — 1D arrays [y_train_s, *others_s]
    scaler : StandardScaler — fitted scaler (use inverse_transform on predictions)
    """
    scaler = StandardScaler().fit(np.asarray(y_train, dtype=np.float64).reshape(-1, 1))
    scaled = [scaler.transform(np.asarray(y, dtype=np.float64).reshape(-1, 1)).ravel()
              for y in (y_train, *others)]
    return scaled, scaler


# ── Augmentation ───────────────────────────────────────────────────────────────

def augment_spectra(X, betashift=0.05, slopeshift=0.05, multishift=0.05, rng=None):
    """
    Randomised affine perturbation of each spectrum.

    For every row a baseline offset beta ~ U(-betashift, betashift), a slope
    ~ U(1 - slopeshift, 1 + slopeshift) and a multiplicative factor
    ~ U(1 - multishift, 1 + multishift) are drawn. With the relative channel
    position a = j / n_channels:

        offset = slope * a + beta - a - slope / 2 + 0.5
        x'     = multi * x + offset

    With all three shifts at zero the transform is the identity.

    Parameters
    ----------
    X          : array — spectra (n x channels)
    betashift  : float — half-width of the baseline offset range
    slopeshift : float — half-width of the slope range around 1
    multishift : float — half-width of the multiplicative range around 1
    rng        : numpy Generator or int seed (default: fresh generator)

    Returns
    -------
    X_aug : array (n x channels) — new matrix, X is not modified
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"Expected a 2D spectra matrix, got shape {X.shape}")
    for name, value in (('betashift', betashift),
                        ('slopeshift', slopeshift),
                        ('multishift', multishift)):
        if not value >= 0:
            raise ValueError(f"{name} must be non-negative, got {value}")

    rng = np.random.default_rng(rng)
    n, n_channels = X.shape

    beta  = rng.uniform(-1, 1, size=(n, 1)) * betashift
    slope = rng.uniform(-1, 1, size=(n, 1)) * slopeshift + 1
    multi = rng.uniform(-1, 1, size=(n, 1)) * multishift + 1

    axis   = np.arange(n_channels) / float(n_channels)
    offset = slope * axis + beta - axis - slope / 2.0 + 0.5

    return multi * X + offset


def expand_training_set(X, y, repeats=10, betashift=0.05, slopeshift=0.05,
                        multishift=0.05, rng=None):
    """
    Replicate the training rows and augment every copy.

    Copies of the same sample stay adjacent (np.repeat), and the target is
    repeated alongside so rows stay paired.

    Parameters
    ----------
    X       : array — training spectra (n x channels)
    y       : array — training targets (n,)
    repeats : int   — copies per sample (default 10)
    betashift, slopeshift, multishift, rng : see augment_spectra

    Returns
    -------
    X_aug : array (n * repeats x channels)
    y_aug : array (n * repeats,)
    """
    X = np.asarray(X, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if repeats < 1:
        raise ValueError(f"repeats must be >= 1, got {repeats}")
    if len(X) != len(y):
        raise ValueError(f"Row mismatch: {len(X)} spectra vs {len(y)} targets")

    X_rep = np.repeat(X, repeats, axis=0)
    y_rep = np.repeat(y, repeats, axis=0)
    X_aug = augment_spectra(X_rep, betashift=betashift, slopeshift=slopeshift,
                            multishift=multishift, rng=rng)

    logger.debug("Expanded training set from %d to %d rows", len(X), len(X_aug))
    return X_aug, y_rep


def to_cnn_input(X):
    """Reshape (n, channels) spectra to (n, channels, 1) for Conv1D."""
    X = np.asarray(X, dtype=np.float64)
    return X.reshape(X.shape[0], X.shape[1], 1)
