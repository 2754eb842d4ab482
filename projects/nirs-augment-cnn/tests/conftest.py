"""Shared fixtures: synthetic NIR experiments written as CSV tables."""

import logging

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from nirs_cnn.data import DEFAULT_FILES

WAVELENGTHS = np.arange(1100, 1900, 2)


def synthetic_spectra(n, rng, wavelengths=WAVELENGTHS):
    """Two Gaussian absorption bands on a sloped baseline; band 1 scales with assay."""
    assay    = rng.uniform(150, 250, size=n)
    band_1   = np.exp(-0.5 * ((wavelengths - 1450) / 40.0) ** 2)
    band_2   = np.exp(-0.5 * ((wavelengths - 1700) / 60.0) ** 2)
    baseline = rng.uniform(0.1, 0.3, size=(n, 1)) + 1e-4 * (wavelengths - 1100)
    X        = baseline + (assay[:, None] / 200.0) * band_1 + 0.5 * band_2
    X       += rng.normal(0, 1e-3, size=X.shape)
    return X, assay


def write_split(data_dir, spectra_name, reference_name, n, rng):
    X, assay = synthetic_spectra(n, rng)
    spectra  = pd.DataFrame(X, columns=[str(wl) for wl in WAVELENGTHS])
    spectra.insert(0, 'sample', [f's{i:03d}' for i in range(n)])
    spectra.to_csv(data_dir / spectra_name, index=False)
    pd.DataFrame({'sample': spectra['sample'], 'assay': assay}).to_csv(
        data_dir / reference_name, index=False)


@pytest.fixture
def experiment_dir(tmp_path):
    rng      = np.random.default_rng(0)
    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    for split, n in (('calibration', 24), ('validation', 8), ('test', 8)):
        write_split(data_dir, DEFAULT_FILES[f'{split}_spectra'],
                    DEFAULT_FILES[f'{split}_reference'], n, rng)
    return data_dir


@pytest.fixture
def spectra():
    X, _ = synthetic_spectra(12, np.random.default_rng(1))
    return X


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger('nirs_cnn')
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
