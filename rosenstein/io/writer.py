"""
Writer — all parquet writes go through here.

Every output has a fixed schema. A stage hands over whatever rows it has;
the writer checks the columns, casts to the schema and puts signal_id
first. When no signal produced rows the file is still written, with the
schema and zero rows, so downstream reads never branch on existence.
"""

from pathlib import Path
from typing import Dict, Optional

import polars as pl

from rosenstein.io.reader import output_path

LYAPUNOV_SCHEMA = {
    'signal_id': pl.Utf8,
    'n_samples': pl.Int64,
    'lyapunov': pl.Float64,
    'intercept': pl.Float64,
    'stderr': pl.Float64,
    'r_squared': pl.Float64,
    'mean_period': pl.Float64,
    'n_vectors': pl.Int64,
    'n_neighbors': pl.Int64,
    'n_excluded': pl.Int64,
    'embedding_dim': pl.Int64,
    'embedding_tau': pl.Int64,
    'horizon': pl.Int64,
    'window': pl.Int64,
    'dt': pl.Float64,
    'error': pl.Utf8,
}

DIVERGENCE_SCHEMA = {
    'signal_id': pl.Utf8,
    'offset': pl.Int64,
    'time': pl.Float64,
    'mean_log_distance': pl.Float64,
    'n_pairs': pl.Int64,
    'n_excluded': pl.Int64,
}

NEIGHBORS_SCHEMA = {
    'signal_id': pl.Utf8,
    'row': pl.Int64,
    'neighbor': pl.Int64,
    'distance': pl.Float64,
}

OUTPUT_SCHEMAS: Dict[str, Dict[str, pl.DataType]] = {
    'lyapunov': LYAPUNOV_SCHEMA,
    'divergence': DIVERGENCE_SCHEMA,
    'neighbors': NEIGHBORS_SCHEMA,
}


def conform(df: Optional[pl.DataFrame], schema: Dict[str, pl.DataType]) -> pl.DataFrame:
    """
    Select and cast df to schema, in schema column order.

    None becomes an empty frame with the schema. Missing columns raise
    ValueError; extra columns are dropped.
    """
    if df is None:
        return pl.DataFrame(schema=schema)

    missing = [c for c in schema if c not in df.columns]
    if missing:
        raise ValueError(f"output missing columns {missing} (have: {df.columns})")

    return df.select([pl.col(c).cast(dtype) for c, dtype in schema.items()])


def write_output(
    df: Optional[pl.DataFrame],
    output_dir: str,
    name: str,
    verbose: bool = True,
) -> Path:
    """
    Write an output by name into output_dir.

    Args:
        df: Rows to write; None writes the schema with zero rows
        output_dir: Output directory
        name: Output name ('lyapunov', 'divergence', 'neighbors')
        verbose: Print path on write

    Returns:
        Path to written file
    """
    if name not in OUTPUT_SCHEMAS:
        raise ValueError(f"Unknown output: {name}. Known: {sorted(OUTPUT_SCHEMAS)}")

    frame = conform(df, OUTPUT_SCHEMAS[name])
    path = output_path(output_dir, name)
    frame.write_parquet(str(path))

    if verbose:
        print(f"  -> {path} ({frame.height} rows)")

    return path
