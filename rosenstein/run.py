"""
Rosenstein Sequencer
====================

Resolves a data directory into explicit paths and config, then runs the
Lyapunov stage. Pure orchestration — no computation here.

Data directory layout:
    <data_dir>/manifest.yaml
    <data_dir>/observations.parquet   (or paths.observations)
    <data_dir>/output/                (or paths.output_dir)

Usage:
    python -m rosenstein domains/logistic
    python -m rosenstein domains/logistic --log-level DEBUG
"""

import argparse
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import polars as pl

from rosenstein.io.manifest import (
    get_lyapunov_config,
    get_observations_path,
    get_output_dir,
    load_manifest,
)
from rosenstein.stages import lyapunov as lyapunov_stage
from rosenstein.validation import validate_manifest_paths


def resolve_workers(n_jobs: int) -> int:
    """ROSENSTEIN_WORKERS env var overrides n_jobs (0 = all cores)."""
    env = os.environ.get("ROSENSTEIN_WORKERS", "")
    if env:
        return int(env) or (os.cpu_count() or 1)
    return n_jobs


def run(
    data_path: str,
    output_dir: Optional[str] = None,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Run the pipeline for a data directory.

    Args:
        data_path: Directory containing manifest.yaml (or the manifest file)
        output_dir: Overrides paths.output_dir
        verbose: Print progress

    Returns:
        Summary DataFrame from the Lyapunov stage
    """
    manifest = load_manifest(str(data_path))

    # Validate manifest paths before any computation
    path_errors = validate_manifest_paths(manifest)
    if path_errors:
        msg = "MANIFEST PATH ERRORS:\n" + "\n".join(f"  - {e}" for e in path_errors)
        raise FileNotFoundError(msg)

    observations_path = get_observations_path(manifest)
    output_dir = Path(output_dir or get_output_dir(manifest))

    # Safety: refuse to wipe if this looks like a data root
    if output_dir.resolve() == Path(manifest['_data_dir']).resolve() or \
            Path(observations_path).resolve().parent == output_dir.resolve():
        raise ValueError(
            f"output_dir ({output_dir}) contains the observations. "
            f"Pass the output/ subdirectory, not the data root."
        )

    config = get_lyapunov_config(manifest)
    config = config.replace(n_jobs=resolve_workers(config.n_jobs)).validate()

    # Fresh start — remove old outputs
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if verbose:
        print("=" * 70)
        print("ROSENSTEIN PIPELINE")
        print("=" * 70)
        print(f"Input:    {observations_path}")
        print(f"Manifest: {manifest['_manifest_path']}")
        print(f"Output:   {output_dir}")
        print(f"Workers:  {config.n_jobs}")
        print()

    return lyapunov_stage.run(
        observations_path,
        str(output_dir),
        config=config,
        verbose=verbose,
    )


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Rosenstein Lyapunov pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Usage:
  python -m rosenstein ~/domains/logistic
  python -m rosenstein ~/domains/logistic --output /tmp/out --log-level DEBUG
"""
    )
    parser.add_argument('data_path', help='Path to data directory (must contain manifest.yaml)')
    parser.add_argument('--output', help='Output directory (overrides manifest paths.output_dir)')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    run(args.data_path, output_dir=args.output, verbose=not args.quiet)


if __name__ == '__main__':
    main()
