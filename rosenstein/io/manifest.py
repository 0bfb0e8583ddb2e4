"""
Manifest — parse manifest.yaml into paths and engine config.

    paths:
      observations: observations.parquet
      output_dir: output
    lyapunov:
      dimension: 2
      horizon: 25
      window: 10

Both sections are optional. Relative paths resolve against the directory
holding the manifest.
"""

import logging
from pathlib import Path
from typing import Dict, Any

import yaml

from rosenstein.core.config import LyapunovConfig, load_config

logger = logging.getLogger(__name__)

MANIFEST_NAMES = ('manifest.yaml', 'manifest.yml')
MANIFEST_SECTIONS = ('paths', 'lyapunov')
DEFAULT_PATHS = {
    'observations': 'observations.parquet',
    'output_dir': 'output',
}


def find_manifest(data_path: str) -> Path:
    """A manifest file given directly, or the first MANIFEST_NAMES entry in a directory."""
    p = Path(data_path)
    if p.is_file():
        return p
    for name in MANIFEST_NAMES:
        if (p / name).exists():
            return p / name
    raise FileNotFoundError(f"No {' or '.join(MANIFEST_NAMES)} in {data_path}")


def load_manifest(data_path: str) -> Dict[str, Any]:
    """
    Load and shape-check a manifest.

    Raises:
        FileNotFoundError: no manifest at data_path
        ValueError: top level or `paths` is not a mapping

    Unknown top-level sections are logged and ignored. The returned dict
    carries `_manifest_path` and `_data_dir` for path resolution.
    """
    manifest_path = find_manifest(data_path)

    with open(manifest_path) as f:
        manifest = yaml.safe_load(f) or {}

    if not isinstance(manifest, dict):
        raise ValueError(
            f"{manifest_path}: manifest must be a mapping, got {type(manifest).__name__}"
        )

    paths = manifest.get('paths') or {}
    if not isinstance(paths, dict):
        raise ValueError(f"{manifest_path}: 'paths' must be a mapping")
    manifest['paths'] = {**DEFAULT_PATHS, **paths}

    for key in sorted(set(manifest) - set(MANIFEST_SECTIONS)):
        logger.warning("%s: ignoring unknown section '%s'", manifest_path, key)

    manifest['_manifest_path'] = str(manifest_path)
    manifest['_data_dir'] = str(manifest_path.parent)
    return manifest


def _resolve(manifest: Dict[str, Any], key: str) -> str:
    paths = manifest.get('paths') or DEFAULT_PATHS
    return str(Path(manifest.get('_data_dir', '.')) / paths.get(key, DEFAULT_PATHS[key]))


def get_observations_path(manifest: Dict[str, Any]) -> str:
    return _resolve(manifest, 'observations')


def get_output_dir(manifest: Dict[str, Any]) -> str:
    return _resolve(manifest, 'output_dir')


def get_lyapunov_config(manifest: Dict[str, Any]) -> LyapunovConfig:
    """Shipped defaults overridden by the manifest's lyapunov block."""
    return load_config(overrides=manifest.get('lyapunov') or {})
