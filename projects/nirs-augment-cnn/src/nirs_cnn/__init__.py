"""
nirs_cnn — NIR Spectra Concentration Regression

Source modules for the augmented spectral CNN portfolio project.

Modules
-------
data           : CSV table loading, band and target slicing
preprocessing  : Standardisation and affine spectral augmentation
cnn            : 1D-CNN architecture, training and evaluation utilities
plotting       : Training history and prediction figures
config         : Experiment parameters and YAML loading
pipeline       : End-to-end training run
logging_config : Package logger setup
"""

from .data           import load_tables, load_dataset, select_band, select_target, SpectralDataset, DEFAULT_FILES
from .preprocessing  import fit_standardizer, standardize, scale_target, augment_spectra, expand_training_set, to_cnn_input
from .cnn            import build_spectral_cnn, build_callbacks, rmse, predict_concentration, train_and_evaluate_spectral_cnn
from .config         import PipelineConfig, load_config
from .pipeline       import run_pipeline, set_seed, PipelineResult
from .logging_config import setup_logging
