"""
Input Data Validation

Validates the manifest and the observations before any estimation runs.
Problems are collected, not raised one at a time, so a user sees every
issue with an input in one report.

Usage:
    from rosenstein.validation import validate_observations, ValidationError

    report = validate_observations(obs)
    if not report.valid:
        raise ValidationError(report.errors, report.warnings)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any

import numpy as np
import polars as pl


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, errors: List[str], warnings: List[str] = None):
        self.errors = errors
        self.warnings = warnings or []

        message = "Input validation failed:\n" + "\n".join(
            f"  ERROR: {e}" for e in errors
        )
        if warnings:
            message += "\n" + "\n".join(f"  WARNING: {w}" for w in warnings)

        super().__init__(message)


@dataclass
class InputValidationReport:
    """Report from input validation."""

    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    total_signals: int = 0
    total_observations: int = 0
    constant_signal_ids: List[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            "=" * 60,
            "INPUT VALIDATION REPORT",
            "=" * 60,
            f"Total signals: {self.total_signals}",
            f"Total observations: {self.total_observations:,}",
        ]
        if self.constant_signal_ids:
            lines.append(f"CONSTANT signals ({len(self.constant_signal_ids)}):")
            for sig in self.constant_signal_ids[:10]:
                lines.append(f"  - {sig}")
        if self.errors:
            lines.append("ERRORS:")
            lines.extend(f"  - {e}" for e in self.errors)
        if self.warnings:
            lines.append("WARNINGS:")
            lines.extend(f"  - {w}" for w in self.warnings)
        lines.append(f"Status: {'PASSED' if self.valid else 'FAILED'}")
        lines.append("=" * 60)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'errors': self.errors,
            'warnings': self.warnings,
            'total_signals': self.total_signals,
            'total_observations': self.total_observations,
            'constant_signal_ids': self.constant_signal_ids,
        }


def validate_manifest_paths(manifest: Dict[str, Any]) -> List[str]:
    """
    Validate input paths in the manifest before running.

    Returns list of errors. Empty list = all paths valid.
    """
    errors = []
    data_dir = Path(manifest.get('_data_dir', '.'))
    paths = manifest.get('paths', {}) or {}

    obs = paths.get('observations', 'observations.parquet')
    if not (data_dir / obs).exists():
        errors.append(f"observations file not found: {data_dir / obs}")

    out = paths.get('output_dir', 'output')
    if not (data_dir / out).parent.exists():
        errors.append(f"output_dir parent does not exist: {(data_dir / out).parent}")

    block = manifest.get('lyapunov')
    if block is not None and not isinstance(block, dict):
        errors.append(f"lyapunov block must be a mapping, got {type(block).__name__}")

    return errors


def validate_observations(obs: pl.DataFrame, min_samples: int = 2) -> InputValidationReport:
    """
    Check observations schema and per-signal data quality.

    Errors: missing value column, nulls, non-finite values, signals shorter
    than min_samples. Constant signals are a warning; their spectrum is
    degenerate and their estimate will fail with DegenerateSpectrum.
    """
    report = InputValidationReport(total_observations=obs.height)

    if 'value' not in obs.columns:
        report.error(f"observations missing 'value' column (have: {obs.columns})")
        return report

    signal_col = 'signal_id' if 'signal_id' in obs.columns else None
    groups = obs.partition_by(signal_col, as_dict=True) if signal_col else {('signal',): obs}
    report.total_signals = len(groups)

    for key, group in groups.items():
        sid = str(key[0] if isinstance(key, tuple) else key)
        if group['value'].null_count() > 0:
            report.error(f"{sid}: {group['value'].null_count()} null values")
            continue

        values = group['value'].to_numpy().astype(np.float64)
        n_bad = int(np.sum(~np.isfinite(values)))
        if n_bad:
            report.error(f"{sid}: {n_bad} non-finite values")
            continue
        if len(values) < min_samples:
            report.error(f"{sid}: {len(values)} samples, need at least {min_samples}")
            continue
        if np.ptp(values) == 0:
            report.constant_signal_ids.append(sid)
            report.warnings.append(f"{sid}: CONSTANT signal (zero variance)")

    return report
