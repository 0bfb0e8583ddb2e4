"""
Lyapunov Stage
==============

Pure orchestration - calls rosenstein.core.lyapunov for computation.

Inputs:
    - observations (parquet or csv): signal_id, I, value

Outputs:
    - lyapunov.parquet     one row per signal (λ and fit diagnostics)
    - divergence.parquet   divergence curve per signal
    - neighbors.parquet    neighbor map per signal

Each signal is an independent scalar series. A failed estimate for one
signal is recorded in the `error` column of its row; the other signals
still run.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

import polars as pl

from rosenstein.core.config import LyapunovConfig, load_config
from rosenstein.core.errors import RosensteinError
from rosenstein.core.lyapunov import estimate_lyapunov
from rosenstein.io.reader import load_observations, split_signals
from rosenstein.io.writer import LYAPUNOV_SCHEMA, write_output
from rosenstein.validation import ValidationError, validate_observations

logger = logging.getLogger(__name__)


def run(
    observations_path: str,
    output_dir: str,
    config: Optional[LyapunovConfig] = None,
    write_neighbors: bool = True,
    verbose: bool = True,
) -> pl.DataFrame:
    """
    Estimate Lyapunov exponents for all signals.

    Args:
        observations_path: Path to observations (parquet or csv)
        output_dir: Directory for the parquet outputs
        config: Engine parameters (defaults: shipped lyapunov.yaml)
        write_neighbors: Also write neighbors.parquet
        verbose: Print progress

    Returns:
        Summary DataFrame, one row per signal
    """
    config = config or load_config()

    if verbose:
        print("=" * 70)
        print("LYAPUNOV (Rosenstein)")
        print(f"J={config.delay} m={config.dimension} T_max={config.horizon} "
              f"W={config.window} dt={config.dt}")
        print("=" * 70)

    obs = load_observations(observations_path)

    report = validate_observations(obs)
    for w in report.warnings:
        logger.warning(w)
    if not report.valid:
        raise ValidationError(report.errors, report.warnings)

    signals = split_signals(obs)
    if verbose:
        print(f"Loaded observations: {obs.shape}")
        print(f"Processing {len(signals)} signals...")

    rows, curves, maps = [], [], []

    for signal_id, values in signals.items():
        row = {key: None for key in LYAPUNOV_SCHEMA}
        row['signal_id'] = signal_id
        row['n_samples'] = len(values)

        try:
            estimate = estimate_lyapunov(values, config)
        except RosensteinError as e:
            logger.warning("%s: %s: %s", signal_id, type(e).__name__, e)
            row['error'] = f"{type(e).__name__}: {e}"
            rows.append(row)
            continue

        row.update(estimate.to_dict())
        rows.append(row)

        curves.append(
            estimate.curve.to_frame()
            .with_columns(pl.lit(signal_id).alias('signal_id'))
        )
        maps.append(
            estimate.neighbors.to_frame()
            .with_columns(pl.lit(signal_id).alias('signal_id'))
        )

    result = pl.DataFrame(rows, schema=LYAPUNOV_SCHEMA)

    write_output(result, output_dir, 'lyapunov', verbose=verbose)
    write_output(pl.concat(curves) if curves else None, output_dir, 'divergence', verbose=verbose)
    if write_neighbors:
        write_output(pl.concat(maps) if maps else None, output_dir, 'neighbors', verbose=verbose)

    if verbose:
        valid = result.filter(pl.col('lyapunov').is_not_null())
        print(f"\nEstimated: {len(valid)}/{len(result)} signals")
        if len(valid) > 0:
            print(f"  Mean λ:  {valid['lyapunov'].mean():.4f}")
            print(f"  Range:   [{valid['lyapunov'].min():.4f}, {valid['lyapunov'].max():.4f}]")
        print()
        print("─" * 50)
        print(f"✓ {Path(output_dir).absolute()}")
        print("─" * 50)

    return result


def main():
    parser = argparse.ArgumentParser(
        description="Lyapunov stage (Rosenstein)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Estimates the largest Lyapunov exponent for every signal in an
observations file.

Example:
  python -m rosenstein.stages.lyapunov observations.parquet output/ --horizon 25 --window 10
"""
    )
    parser.add_argument('observations', help='Path to observations (parquet or csv)')
    parser.add_argument('output_dir', help='Output directory')
    parser.add_argument('--config', help='YAML config (defaults to shipped lyapunov.yaml)')
    parser.add_argument('--delay', type=int, help='Reconstruction delay J')
    parser.add_argument('--dimension', type=int, help='Embedding dimension m')
    parser.add_argument('--horizon', type=int, help='Divergence horizon T_max')
    parser.add_argument('--window', type=int, help='Regression window W')
    parser.add_argument('--dt', type=float, help='Sampling interval')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress output')

    args = parser.parse_args()

    overrides = {
        key: getattr(args, key)
        for key in ('delay', 'dimension', 'horizon', 'window', 'dt')
        if getattr(args, key) is not None
    }
    config = load_config(args.config, overrides=overrides)

    run(args.observations, args.output_dir, config=config, verbose=not args.quiet)


if __name__ == '__main__':
    main()
