"""
Mean period from the power spectrum.

    f_mean = sum(f_k * p_k) / sum(p_k)
    mu     = 1 / f_mean

mu is the Theiler window used by the neighbor search: candidates closer
than mu samples in time are not independent neighbors.

The periodogram is an injected capability. The default is scipy's
periodogram at unit sampling frequency, so frequencies are in cycles per
sample and mu is an index separation.
"""

import logging
from typing import Callable, Tuple

import numpy as np
from scipy.signal import periodogram

from rosenstein.core.errors import DegenerateSpectrum

logger = logging.getLogger(__name__)

Periodogram = Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]]


def scipy_periodogram(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """(frequency, power) pairs for x, frequencies in cycles per sample."""
    freqs, power = periodogram(np.asarray(x, dtype=np.float64), fs=1.0)
    return freqs, power


def mean_frequency(freqs: np.ndarray, power: np.ndarray) -> float:
    """Power-weighted mean frequency. Raises DegenerateSpectrum if undefined."""
    freqs = np.asarray(freqs, dtype=np.float64)
    power = np.asarray(power, dtype=np.float64)

    if freqs.size == 0 or power.size == 0:
        raise DegenerateSpectrum("empty spectrum")
    if freqs.shape != power.shape:
        raise DegenerateSpectrum(
            f"frequency/power length mismatch: {freqs.shape} vs {power.shape}"
        )
    if not (np.all(np.isfinite(freqs)) and np.all(np.isfinite(power))):
        raise DegenerateSpectrum("spectrum contains non-finite values")

    total = float(np.sum(power))
    if total <= 0:
        raise DegenerateSpectrum("spectrum has zero total power (constant series?)")

    f_mean = float(np.sum(freqs * power)) / total
    if not np.isfinite(f_mean) or f_mean <= 0:
        raise DegenerateSpectrum(f"weighted mean frequency is {f_mean}")
    return f_mean


def mean_period(x: np.ndarray, periodogram_fn: Periodogram = scipy_periodogram) -> float:
    """
    Mean period of x in samples.

    Args:
        x: 1D series
        periodogram_fn: Returns (frequency, power) for x

    Returns:
        mu = 1 / weighted mean frequency

    Raises:
        DegenerateSpectrum: spectrum empty/undefined or mean frequency zero
    """
    x = np.asarray(x, dtype=np.float64)
    if x.size < 2:
        raise DegenerateSpectrum(f"need at least 2 samples for a spectrum, got {x.size}")
    if np.ptp(x) == 0:
        raise DegenerateSpectrum("constant series has no spectrum")

    freqs, power = periodogram_fn(x)
    mu = 1.0 / mean_frequency(freqs, power)

    logger.debug("mean period %.4f samples (n=%d)", mu, x.size)
    return mu
