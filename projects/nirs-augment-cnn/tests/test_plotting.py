import matplotlib.pyplot as plt
import numpy as np
import pytest
from matplotlib.figure import Figure

from nirs_cnn.plotting import plot_augmented_examples, plot_predictions, plot_training_history
from nirs_cnn.preprocessing import expand_training_set


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


@pytest.fixture
def history():
    return {
        'loss': [1.0, 0.5, 0.25],
        'val_loss': [1.2, 0.6, 0.4],
        'learning_rate': [1e-3, 1e-3, 5e-4],
    }


def test_history_with_learning_rate_gets_secondary_axis(history):
    fig = plot_training_history(history)
    assert isinstance(fig, Figure)
    assert len(fig.axes) == 2
    assert plt.fignum_exists(fig.number)


def test_history_without_learning_rate_has_single_axis(history):
    del history['learning_rate']
    fig = plot_training_history(history)
    assert len(fig.axes) == 1
    assert len(fig.axes[0].lines) == 2


def test_history_accepts_keras_history_object(history):
    class FakeHistory:
        pass

    hist = FakeHistory()
    hist.history = history
    fig = plot_training_history(hist)
    assert len(fig.axes[0].lines) == 2


def test_saving_creates_nested_directory_and_closes(tmp_path, history):
    path = tmp_path / 'figures' / 'run1' / 'history.png'
    fig = plot_training_history(history, output_path=str(path))

    assert isinstance(fig, Figure)
    assert path.exists()
    assert not plt.fignum_exists(fig.number)


def test_predictions_title_reports_rmse(tmp_path):
    y_true = np.array([1.0, 2.0, 3.0, 4.0])
    y_pred = np.array([1.1, 1.8, 3.2, 4.1])

    fig = plot_predictions(y_true, y_pred)
    assert plt.fignum_exists(fig.number)
    assert fig.axes[0].get_title() == 'Test set, RMSE 0.1581'

    path = tmp_path / 'out' / 'pred.png'
    fig = plot_predictions(y_true, y_pred, output_path=str(path), title='holdout')
    assert fig.axes[0].get_title() == 'holdout'
    assert path.exists()
    assert not plt.fignum_exists(fig.number)


def test_augmented_overlay_draws_every_copy(spectra):
    X = spectra[:4]
    X_aug, _ = expand_training_set(X, np.zeros(len(X)), repeats=2, rng=0)
    wavelengths = np.arange(X.shape[1])

    fig = plot_augmented_examples(X, X_aug, wavelengths, n=3)
    # 3 originals plus 2 copies of each
    assert len(fig.axes[0].lines) == 3 * (2 + 1)

    fig = plot_augmented_examples(X, X_aug, wavelengths, n=10)
    assert len(fig.axes[0].lines) == len(X) * (2 + 1)
