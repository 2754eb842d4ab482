"""
config.py — Pipeline Configuration

Central registry of the experiment parameters. Defaults reproduce the
reference run; a YAML file and in-memory overrides are merged on top.

Usage
-----
    from nirs_cnn.config import load_config

    cfg = load_config('configs/default.yaml', overrides={'epochs': 20})
"""

import logging
import os
from dataclasses import dataclass, field, fields, asdict
from typing import Optional

import yaml

from .data import DEFAULT_FILES

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    # Data
    data_dir: str = 'data'
    files: dict = field(default_factory=lambda: dict(DEFAULT_FILES))
    band_start: float = 1100.0
    band_stop: float = 1898.0
    band_step: int = 1
    target: str = 'assay'

    # Preprocessing / augmentation
    per_channel: bool = False
    repeats: int = 10
    betashift: float = 0.05
    slopeshift: float = 0.05
    multishift: float = 0.05

    # Model
    dense_units: int = 64
    dropout: float = 0.2
    learning_rate: float = 1e-3

    # Training
    epochs: int = 100
    batch_size: int = 32
    lr_factor: float = 0.5
    lr_patience: int = 10
    min_lr: float = 1e-6
    seed: int = 42

    # Output
    output_dir: Optional[str] = None

    @property
    def band(self):
        return (self.band_start, self.band_stop)

    def to_dict(self):
        return asdict(self)


def _check_keys(mapping, source):
    known   = {f.name for f in fields(PipelineConfig)}
    unknown = set(mapping) - known
    if unknown:
        raise ValueError(f"Unknown config keys in {source}: {sorted(unknown)}")


def load_config(path=None, overrides=None):
    """
    Build a PipelineConfig from defaults, an optional YAML file and overrides.

    Later sources take precedence. None values in overrides are ignored so
    unset CLI flags do not clobber the file.

    Parameters
    ----------
    path      : str  — YAML file (None = defaults only)
    overrides : dict — in-memory values merged last

    Returns
    -------
    config : PipelineConfig
    """
    values = {}

    if path is not None:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as fh:
            loaded = yaml.safe_load(fh) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config at {path} must be a mapping")
        _check_keys(loaded, path)
        values.update(loaded)
        logger.debug("Loaded config from %s", path)

    if overrides:
        overrides = {k: v for k, v in overrides.items() if v is not None}
        _check_keys(overrides, 'overrides')
        values.update(overrides)

    if 'files' in values:
        files = dict(DEFAULT_FILES)
        files.update(values['files'] or {})
        values['files'] = files

    return PipelineConfig(**values)
