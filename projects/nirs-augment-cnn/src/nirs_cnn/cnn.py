"""
cnn.py — 1D Convolutional Neural Network for NIR Concentration Regression

Five convolution blocks with growing filter count and shrinking kernel
size, so the first layers see broad absorption bands and the later layers
resolve narrow features. A small dense head with dropout regresses a single
concentration value.

Architecture
------------
    Input        : (n_channels, 1)
    Conv1D       :   8 filters, kernel size 64, ReLU  → MaxPooling1D(2)
    Conv1D       :  16 filters, kernel size 32, ReLU  → MaxPooling1D(2)
    Conv1D       :  32 filters, kernel size 16, ReLU  → MaxPooling1D(2)
    Conv1D       :  64 filters, kernel size  8, ReLU  → MaxPooling1D(2)
    Conv1D       : 128 filters, kernel size  4, ReLU  → MaxPooling1D(2)
    Flatten      : —
    Dropout      : 0.2
    Dense        : 64 nodes, ReLU
    Dropout      : 0.2
    Dense        : 1 node, linear

Trained with mean squared error, Adam and a ReduceLROnPlateau schedule.
"""

import logging

import numpy as np
from sklearn.metrics import mean_squared_error

from tensorflow.keras.models import Sequential
from tensorflow.keras import Input
from tensorflow.keras.layers import Conv1D, MaxPooling1D, Flatten, Dense, Dropout
from tensorflow.keras.optimizers import Adam
from tensorflow.keras.callbacks import ReduceLROnPlateau

from .preprocessing import to_cnn_input

logger = logging.getLogger(__name__)


DEFAULT_FILTERS      = (8, 16, 32, 64, 128)
DEFAULT_KERNEL_SIZES = (64, 32, 16, 8, 4)


# ── Model Definition ───────────────────────────────────────────────────────────

def build_spectral_cnn(input_length, filters=DEFAULT_FILTERS,
                       kernel_sizes=DEFAULT_KERNEL_SIZES, pool_size=2,
                       dense_units=64, dropout=0.2, learning_rate=1e-3,
                       padding='same'):
    """
    Five-block 1D-CNN regressor.

    Parameters
    ----------
    input_length  : int   — number of spectral channels
    filters       : tuple — filters per convolution block
    kernel_sizes  : tuple — kernel size per convolution block
    pool_size     : int   — max-pooling window after each block
    dense_units   : int   — hidden units of the dense head
    dropout       : float — dropout rate before and after the hidden layer
    learning_rate : float — initial Adam learning rate
    padding       : str   — Conv1D padding ('same' keeps short bands usable)

    Returns
    -------
    model : compiled Keras Sequential model
    """
    if len(filters) != len(kernel_sizes):
        raise ValueError(f"{len(filters)} filter counts vs {len(kernel_sizes)} kernel sizes")

    min_length = pool_size ** len(filters)
    if input_length < min_length:
        raise ValueError(f"input_length {input_length} too short for {len(filters)} "
                         f"pooling stages of size {pool_size} (need >= {min_length})")

    layers = [Input(shape=(input_length, 1))]
    for n_filters, kernel_size in zip(filters, kernel_sizes):
        layers.append(Conv1D(filters=n_filters, kernel_size=kernel_size,
                             activation='relu', padding=padding))
        layers.append(MaxPooling1D(pool_size=pool_size))

    layers += [
        Flatten(),
        Dropout(dropout),
        Dense(dense_units, activation='relu'),
        Dropout(dropout),
        Dense(1, activation='linear'),
    ]

    model = Sequential(layers)
    model.compile(
        optimizer=Adam(learning_rate=learning_rate),
        loss='mse',
    )
    return model


def build_callbacks(monitor='val_loss', factor=0.5, patience=10, min_lr=1e-6, verbose=0):
    """Learning-rate plateau schedule used during training."""
    return [
        ReduceLROnPlateau(monitor=monitor, factor=factor, patience=patience,
                          min_lr=min_lr, verbose=verbose),
    ]


# ── Evaluation ─────────────────────────────────────────────────────────────────

def rmse(y_true, y_pred):
    """Root mean squared error."""
    return float(np.sqrt(mean_squared_error(np.ravel(y_true), np.ravel(y_pred))))


def predict_concentration(model, X, target_scaler=None):
    """
    Predict concentrations for (n, channels) or (n, channels, 1) spectra.

    If target_scaler is given the predictions are mapped back to
    concentration units with its inverse_transform.
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 2:
        X = to_cnn_input(X)

    y_pred = model.predict(X, verbose=0).reshape(-1, 1)
    if target_scaler is not None:
        y_pred = target_scaler.inverse_transform(y_pred)
    return y_pred.ravel()


# ── Training & Evaluation ──────────────────────────────────────────────────────

def train_and_evaluate_spectral_cnn(X_train, y_train, X_val, y_val, X_test, y_test,
                                    epochs=100, batch_size=32, target_scaler=None,
                                    callbacks=None, save_path=None, verbose=0,
                                    **model_kwargs):
    """
    Train, evaluate and optionally save the spectral 1D-CNN.

    Parameters
    ----------
    X_train/val/test : arrays — spectra (n, channels) or (n, channels, 1)
    y_train/val      : arrays — (scaled) targets used for fitting
    y_test           : array  — test targets in concentration units
    epochs           : int    — training epochs
    batch_size       : int    — Adam mini-batch size
    target_scaler    : fitted StandardScaler — maps predictions back to
                                concentration units (None = targets unscaled)
    callbacks        : list   — Keras callbacks (default: build_callbacks())
    save_path        : str    — save model to this path (None = don't save)
                                Extension '.keras' appended automatically.
    verbose          : int    — Keras fit verbosity
    **model_kwargs   : forwarded to build_spectral_cnn

    Returns
    -------
    model     : trained Keras model
    history   : Keras History object
    test_rmse : float — test RMSE in concentration units
    y_pred    : array — test predictions in concentration units
    """
    for name, X, y in (('train', X_train, y_train),
                       ('validation', X_val, y_val),
                       ('test', X_test, y_test)):
        if len(X) != len(y):
            raise ValueError(f"{name}: {len(X)} spectra vs {len(y)} targets")

    X_train, X_val = (np.asarray(X, dtype=np.float64) for X in (X_train, X_val))
    if X_train.ndim == 2:
        X_train = to_cnn_input(X_train)
    if X_val.ndim == 2:
        X_val = to_cnn_input(X_val)

    model = build_spectral_cnn(X_train.shape[1], **model_kwargs)
    if callbacks is None:
        callbacks = build_callbacks()

    logger.info("Training on %d spectra (%d channels) for %d epochs",
                X_train.shape[0], X_train.shape[1], epochs)

    history = model.fit(
        X_train, np.asarray(y_train, dtype=np.float64),
        epochs=epochs,
        batch_size=batch_size,
        validation_data=(X_val, np.asarray(y_val, dtype=np.float64)),
        callbacks=callbacks,
        verbose=verbose
    )

    if save_path:
        model.save(f'{save_path}.keras')
        logger.info("Saved model to %s.keras", save_path)

    y_pred    = predict_concentration(model, X_test, target_scaler)
    test_rmse = rmse(y_test, y_pred)
    logger.info("Test RMSE: %.4f", test_rmse)

    return model, history, test_rmse, y_pred
