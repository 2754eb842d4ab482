"""
data.py — NIR Spectra CSV Loading

Reads the six CSV tables that make up a calibration / validation / test
experiment and slices them into model-ready arrays.

Expected tables (one spectra + one reference table per split):
    calibration_spectra   — wavelength-named columns, one row per sample
    calibration_reference — concentration column, same row order
    validation_spectra / validation_reference
    test_spectra          / test_reference

Usage
-----
    from nirs_cnn.data import load_dataset

    ds = load_dataset('data/', band=(1100, 1898), target='assay')
    ds.X_cal.shape, ds.y_cal.shape
"""

import logging
import os
from dataclasses import dataclass

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


SPLITS = ('calibration', 'validation', 'test')

DEFAULT_FILES = {
    'calibration_spectra':   'calibrate_X.csv',
    'calibration_reference': 'calibrate_Y.csv',
    'validation_spectra':    'validate_X.csv',
    'validation_reference':  'validate_Y.csv',
    'test_spectra':          'test_X.csv',
    'test_reference':        'test_Y.csv',
}


@dataclass
class SpectralDataset:
    """Band-sliced features and targets for the three splits."""
    X_cal: np.ndarray
    y_cal: np.ndarray
    X_val: np.ndarray
    y_val: np.ndarray
    X_test: np.ndarray
    y_test: np.ndarray
    wavelengths: np.ndarray

    @property
    def n_channels(self):
        return len(self.wavelengths)


# ── Table I/O ──────────────────────────────────────────────────────────────────

def read_table(path):
    """
    Read a single CSV table.

    Parameters
    ----------
    path : str — CSV file path

    Returns
    -------
    df : pandas.DataFrame
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"CSV table not found: {path}")

    # pandas silently renames a repeated '1100' header to '1100.1', which
    # would then parse as a separate wavelength
    header = pd.read_csv(path, header=None, nrows=1, dtype=str).iloc[0].str.strip()
    repeated = sorted(set(header[header.duplicated()]))
    if repeated:
        raise ValueError(f"Duplicate column headers in {path}: {repeated}")

    df = pd.read_csv(path)
    if df.empty:
        raise ValueError(f"CSV table is empty: {path}")
    return df


def load_tables(data_dir, files=None):
    """
    Load all six experiment tables.

    Parameters
    ----------
    data_dir : str  — directory holding the CSV files
    files    : dict — overrides for DEFAULT_FILES (same keys)

    Returns
    -------
    tables : dict — DataFrames keyed like DEFAULT_FILES
    """
    names = dict(DEFAULT_FILES)
    if files:
        unknown = set(files) - set(DEFAULT_FILES)
        if unknown:
            raise ValueError(f"Unknown table keys: {sorted(unknown)}")
        names.update(files)

    tables = {}
    for key, name in names.items():
        path        = os.path.join(data_dir, name)
        tables[key] = read_table(path)
        logger.info("Loaded %-22s %s rows x %s cols from %s",
                    key, *tables[key].shape, path)
    return tables


# ── Column Selection ───────────────────────────────────────────────────────────

def wavelength_columns(df):
    """
    Columns whose names parse as wavelengths.

    Returns
    -------
    columns     : list  — column labels, in file order
    wavelengths : array — float wavelength of each column
    """
    columns, wavelengths = [], []
    for col in df.columns:
        try:
            wl = float(col)
        except (TypeError, ValueError):
            continue
        columns.append(col)
        wavelengths.append(wl)
    return columns, np.array(wavelengths, dtype=np.float64)


def select_band(df, start, stop, step=1):
    """
    Slice the spectral band start <= wavelength <= stop.

    Parameters
    ----------
    df    : DataFrame — spectra table
    start : float     — first wavelength (inclusive)
    stop  : float     — last wavelength (inclusive)
    step  : int       — keep every step-th channel inside the band

    Returns
    -------
    X           : array (n x channels) — float64 intensities
    wavelengths : array (channels,)
    """
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")

    columns, wavelengths = wavelength_columns(df)
    keep = [i for i, wl in enumerate(wavelengths) if start <= wl <= stop][::step]
    if not keep:
        raise ValueError(
            f"No wavelength columns in band [{start}, {stop}]"
            + (f" (table covers {wavelengths.min()}-{wavelengths.max()})"
               if len(wavelengths) else " (table has no wavelength columns)"))

    X = df[[columns[i] for i in keep]].to_numpy(dtype=np.float64)
    return X, wavelengths[keep]


def select_target(df, column):
    """Target column as a 1D float array."""
    if column not in df.columns:
        raise KeyError(f"Target column {column!r} not found; available: {list(df.columns)}")
    return df[column].to_numpy(dtype=np.float64)


# ── Dataset Assembly ───────────────────────────────────────────────────────────

def load_dataset(data_dir, band, target, files=None, step=1):
    """
    Load, slice and validate a full calibration / validation / test experiment.

    Parameters
    ----------
    data_dir : str   — directory holding the CSV files
    band     : tuple — (start, stop) wavelength range
    target   : str   — concentration column in the reference tables
    files    : dict  — overrides for DEFAULT_FILES
    step     : int   — channel decimation inside the band

    Returns
    -------
    dataset : SpectralDataset
    """
    tables = load_tables(data_dir, files)
    start, stop = band

    arrays, axis = {}, None
    for split in SPLITS:
        X, wl = select_band(tables[f'{split}_spectra'], start, stop, step)
        y     = select_target(tables[f'{split}_reference'], target)

        if len(X) != len(y):
            raise ValueError(f"{split}: {len(X)} spectra rows vs {len(y)} reference rows")
        if axis is None:
            axis = wl
        elif len(wl) != len(axis) or not np.allclose(wl, axis):
            raise ValueError(f"{split}: wavelength axis differs from calibration set")

        arrays[split] = (X, y)

    logger.info("Band %s-%s: %d channels, %d/%d/%d samples (cal/val/test)",
                start, stop, len(axis),
                len(arrays['calibration'][1]),
                len(arrays['validation'][1]),
                len(arrays['test'][1]))

    return SpectralDataset(
        X_cal=arrays['calibration'][0], y_cal=arrays['calibration'][1],
        X_val=arrays['validation'][0],  y_val=arrays['validation'][1],
        X_test=arrays['test'][0],       y_test=arrays['test'][1],
        wavelengths=axis,
    )
