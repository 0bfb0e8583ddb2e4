"""Parquet I/O (reader, writer, manifest)."""

from .manifest import load_manifest, get_observations_path, get_output_dir, get_lyapunov_config
from .reader import load_observations, split_signals, load_output
from .writer import write_output

__all__ = [
    'load_manifest',
    'get_observations_path',
    'get_output_dir',
    'get_lyapunov_config',
    'load_observations',
    'split_signals',
    'load_output',
    'write_output',
]
