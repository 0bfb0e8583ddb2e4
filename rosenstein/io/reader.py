"""
Reader — all observation reads go through here.

Observations are one or more independent scalar series:

    signal_id (optional)   which series a row belongs to
    I         (optional)   sample index, used for ordering
    value                  the sample
"""

import polars as pl
from pathlib import Path
from typing import Dict

import numpy as np

DEFAULT_SIGNAL_ID = 'signal'

# Output name -> filename
OUTPUT_FILENAMES = {
    'lyapunov':   'lyapunov.parquet',
    'divergence': 'divergence.parquet',
    'neighbors':  'neighbors.parquet',
}


def load_observations(path: str) -> pl.DataFrame:
    """Load observations from parquet or csv, sorted by I when present."""
    p = Path(path)
    if p.is_dir():
        p = p / 'observations.parquet'
    if not p.exists():
        raise FileNotFoundError(f"observations not found: {p}")

    if p.suffix == '.csv':
        df = pl.read_csv(str(p))
    else:
        df = pl.read_parquet(str(p))

    if 'signal_id' not in df.columns:
        df = df.with_columns(pl.lit(DEFAULT_SIGNAL_ID).alias('signal_id'))
    if 'I' in df.columns:
        df = df.sort(['signal_id', 'I'])
    return df


def split_signals(obs: pl.DataFrame) -> Dict[str, np.ndarray]:
    """signal_id -> float64 values, in first-seen order."""
    signals = obs['signal_id'].unique(maintain_order=True).to_list()
    return {
        str(sid): obs.filter(pl.col('signal_id') == sid)['value'].to_numpy().astype(np.float64)
        for sid in signals
    }


def output_path(output_dir: str, name: str) -> Path:
    """Get the output path for an output by name."""
    filename = OUTPUT_FILENAMES.get(name, f"{name}.parquet")
    d = Path(output_dir)
    d.mkdir(parents=True, exist_ok=True)
    return d / filename


def load_output(output_dir: str, name: str):
    """Load a written output by name, or None if absent."""
    path = Path(output_dir) / OUTPUT_FILENAMES.get(name, f"{name}.parquet")
    if path.exists():
        return pl.read_parquet(str(path))
    return None
