import numpy as np
import pytest
from sklearn.preprocessing import StandardScaler
from tensorflow.keras.callbacks import ReduceLROnPlateau
from tensorflow.keras.layers import Conv1D, Dense, Dropout, MaxPooling1D

from nirs_cnn.cnn import (
    build_callbacks,
    build_spectral_cnn,
    predict_concentration,
    rmse,
    train_and_evaluate_spectral_cnn,
)


def test_architecture_has_five_conv_blocks():
    model = build_spectral_cnn(400)

    convs = [layer for layer in model.layers if isinstance(layer, Conv1D)]
    pools = [layer for layer in model.layers if isinstance(layer, MaxPooling1D)]
    drops = [layer for layer in model.layers if isinstance(layer, Dropout)]
    dense = [layer for layer in model.layers if isinstance(layer, Dense)]

    assert [c.filters for c in convs] == [8, 16, 32, 64, 128]
    assert [c.kernel_size[0] for c in convs] == [64, 32, 16, 8, 4]
    assert len(pools) == 5
    assert len(drops) == 2
    assert dense[-1].units == 1


def test_model_predicts_one_value_per_spectrum():
    model = build_spectral_cnn(64)
    out = model.predict(np.zeros((3, 64, 1)), verbose=0)
    assert out.shape == (3, 1)


def test_build_rejects_inconsistent_blocks():
    with pytest.raises(ValueError, match="kernel sizes"):
        build_spectral_cnn(400, filters=(8, 16), kernel_sizes=(64,))
    with pytest.raises(ValueError, match="too short"):
        build_spectral_cnn(16)


def test_callbacks_reduce_lr_on_plateau():
    (cb,) = build_callbacks(patience=3, factor=0.2)
    assert isinstance(cb, ReduceLROnPlateau)
    assert cb.patience == 3
    assert cb.factor == pytest.approx(0.2)


def test_rmse():
    assert rmse([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == 0.0
    assert rmse([0.0, 0.0], [3.0, 4.0]) == pytest.approx(np.sqrt(12.5))


def test_train_and_evaluate_smoke(tmp_path):
    rng = np.random.default_rng(0)
    X = rng.normal(size=(40, 64))
    y = X[:, 10] * 2.0 + 100.0

    scaler = StandardScaler().fit(y[:24].reshape(-1, 1))
    y_s = scaler.transform(y.reshape(-1, 1)).ravel()

    model, history, test_rmse, y_pred = train_and_evaluate_spectral_cnn(
        X[:24], y_s[:24], X[24:32], y_s[24:32], X[32:], y[32:],
        epochs=2, batch_size=8, target_scaler=scaler,
        save_path=str(tmp_path / 'model'),
    )

    assert len(history.history['loss']) == 2
    assert 'val_loss' in history.history
    assert y_pred.shape == (8,)
    assert np.isfinite(test_rmse)
    assert test_rmse == pytest.approx(rmse(y[32:], y_pred))
    assert (tmp_path / 'model.keras').exists()

    # Predictions are returned in concentration units
    np.testing.assert_allclose(predict_concentration(model, X[32:], scaler), y_pred, rtol=1e-5)


def test_train_and_evaluate_row_mismatch():
    X = np.zeros((10, 64))
    with pytest.raises(ValueError, match="validation"):
        train_and_evaluate_spectral_cnn(X, np.zeros(10), X, np.zeros(9), X, np.zeros(10), epochs=1)
