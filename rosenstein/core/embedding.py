"""
Time-delay embedding.

    X[i] = [x_i, x_{i+J}, ..., x_{i+(m-1)J}]

M = N - (m-1)J rows. The returned matrix is read-only.
"""

import numpy as np

from rosenstein.core.errors import InsufficientData


def n_embedded(n: int, delay: int, dimension: int) -> int:
    """Number of phase-space rows for a series of length n."""
    return n - (dimension - 1) * delay


def time_delay_embedding(x: np.ndarray, delay: int, dimension: int) -> np.ndarray:
    """
    Reconstruct phase space from a scalar series.

    Args:
        x: 1D series of length N
        delay: Reconstruction delay J >= 1
        dimension: Embedding dimension m >= 1

    Returns:
        Read-only array of shape (M, m), M = N - (m-1)J

    Raises:
        ValueError: J or m below 1, or x not 1D
        InsufficientData: M < 1
    """
    if int(delay) != delay or delay < 1:
        raise ValueError(f"delay must be an integer >= 1, got {delay}")
    if int(dimension) != dimension or dimension < 1:
        raise ValueError(f"dimension must be an integer >= 1, got {dimension}")
    delay, dimension = int(delay), int(dimension)

    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"series must be 1D, got shape {x.shape}")

    n_vectors = n_embedded(len(x), delay, dimension)
    if n_vectors < 1:
        raise InsufficientData(
            f"series of length {len(x)} too short for J={delay}, m={dimension} "
            f"(needs at least {(dimension - 1) * delay + 1} samples)"
        )

    embedded = np.empty((n_vectors, dimension), dtype=np.float64)
    for k in range(dimension):
        embedded[:, k] = x[k * delay: k * delay + n_vectors]

    embedded.flags.writeable = False
    return embedded
