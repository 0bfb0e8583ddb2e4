"""
Nearest-neighbor search under temporal exclusion.

For every candidate row i in 0..M-T_max-1, find the closest other
candidate e such that

    |i - e| > mu        (not a temporal neighbor)
    d(i, e) > 0         (not a duplicate state)

Ties go to the smallest e. Candidates are restricted to rows that still
have T_max rows of future trajectory, the same horizon the divergence
tracker uses.

Eligibility is decided before the minimum is taken. A row with no
eligible candidate raises NoEligibleNeighbor rather than returning an
arbitrary index.

Two searches with identical results:
    brute   chunked pairwise distances, O(M^2 m)
    kdtree  scipy cKDTree with an expanding k, exact distances recomputed
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple, Union

import numpy as np
import polars as pl
from joblib import Parallel, delayed
from scipy.spatial import cKDTree

from rosenstein.core.distance import DistanceMetric, get_metric
from rosenstein.core.errors import InsufficientData, NoEligibleNeighbor

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 256
# Relative slack when deciding whether a KD-tree query has covered every
# point at the best eligible distance.
_KDTREE_RTOL = 1e-9


@dataclass(frozen=True)
class NeighborMap:
    """Nearest eligible neighbor for each candidate row."""
    base: np.ndarray         # candidate rows 0..M'-1
    neighbor: np.ndarray     # e(i)
    distance: np.ndarray     # d(i, e(i))
    mean_period: float
    horizon: int

    def __len__(self) -> int:
        return len(self.base)

    def as_dict(self) -> Dict[int, int]:
        return {int(i): int(e) for i, e in zip(self.base, self.neighbor)}

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame({
            'row': self.base.astype(np.int64),
            'neighbor': self.neighbor.astype(np.int64),
            'distance': self.distance,
        })


def candidate_count(n_vectors: int, horizon: int) -> int:
    """Rows with a full horizon of future trajectory."""
    return n_vectors - horizon


def find_nearest_neighbors(
    embedded: np.ndarray,
    mean_period: float,
    horizon: int,
    metric: Union[str, DistanceMetric] = "euclidean",
    algorithm: str = "brute",
    n_jobs: int = 1,
) -> NeighborMap:
    """
    Find the closest temporally separated neighbor of every candidate row.

    Args:
        embedded: Phase-space matrix (M, m)
        mean_period: Exclusion radius mu >= 0, in rows
        horizon: T_max >= 0; candidates are rows 0..M-T_max-1
        metric: Distance metric name or instance
        algorithm: 'brute' or 'kdtree'
        n_jobs: Workers for the candidate map (-1 = all cores)

    Returns:
        NeighborMap over the candidate range

    Raises:
        InsufficientData: M - T_max <= 0
        NoEligibleNeighbor: some candidate has no eligible neighbor
    """
    embedded = np.asarray(embedded, dtype=np.float64)
    if embedded.ndim != 2:
        raise ValueError(f"embedded must be 2D, got shape {embedded.shape}")
    if not (np.isfinite(mean_period) and mean_period >= 0):
        raise ValueError(f"mean_period must be finite and >= 0, got {mean_period}")
    if int(horizon) != horizon or horizon < 0:
        raise ValueError(f"horizon must be an integer >= 0, got {horizon}")
    horizon = int(horizon)
    dist = get_metric(metric)

    n_candidates = candidate_count(len(embedded), horizon)
    if n_candidates <= 0:
        raise InsufficientData(
            f"{len(embedded)} embedded rows leave no candidates for horizon {horizon}"
        )

    candidates = embedded[:n_candidates]
    chunks = [
        (start, min(start + _CHUNK_SIZE, n_candidates))
        for start in range(0, n_candidates, _CHUNK_SIZE)
    ]

    if algorithm == "brute":
        search, args = _search_brute, (candidates, float(mean_period), dist)
    elif algorithm == "kdtree":
        search, args = _search_kdtree, (
            candidates, float(mean_period), dist, cKDTree(candidates),
        )
    else:
        raise ValueError(f"Unknown algorithm: {algorithm}. Use 'brute' or 'kdtree'.")

    if n_jobs == 1 or len(chunks) == 1:
        parts = [search(start, stop, *args) for start, stop in chunks]
    else:
        parts = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(search)(start, stop, *args) for start, stop in chunks
        )

    neighbor = np.concatenate([p[0] for p in parts])
    distance = np.concatenate([p[1] for p in parts])
    base = np.arange(n_candidates)
    for arr in (base, neighbor, distance):
        arr.flags.writeable = False

    logger.debug(
        "neighbors: %d candidates, mu=%.3f, algorithm=%s, mean d0=%.4g",
        n_candidates, mean_period, algorithm, float(np.mean(distance)),
    )

    return NeighborMap(
        base=base,
        neighbor=neighbor,
        distance=distance,
        mean_period=float(mean_period),
        horizon=horizon,
    )


def _eligible(i: int, others: np.ndarray, d: np.ndarray, mu: float) -> np.ndarray:
    """Eligibility predicate: temporally separated and non-coincident."""
    return (np.abs(others - i) > mu) & (d > 0)


def _select(i: int, others: np.ndarray, d: np.ndarray, mu: float) -> Tuple[int, float]:
    """Closest eligible index, smallest index on ties."""
    ok = _eligible(i, others, d, mu)
    if not np.any(ok):
        raise NoEligibleNeighbor(i)
    idx = others[ok]
    dd = d[ok]
    best = dd.min()
    j = int(idx[dd == best].min())
    return j, float(best)


def _search_brute(
    start: int,
    stop: int,
    candidates: np.ndarray,
    mu: float,
    dist: DistanceMetric,
) -> Tuple[np.ndarray, np.ndarray]:
    """Exhaustive search for rows start..stop-1."""
    others = np.arange(len(candidates))
    block = dist.pairwise(candidates[start:stop], candidates)

    neighbor = np.empty(stop - start, dtype=np.int64)
    distance = np.empty(stop - start, dtype=np.float64)
    for offset, i in enumerate(range(start, stop)):
        neighbor[offset], distance[offset] = _select(i, others, block[offset], mu)
    return neighbor, distance


def _search_kdtree(
    start: int,
    stop: int,
    candidates: np.ndarray,
    mu: float,
    dist: DistanceMetric,
    tree: cKDTree,
) -> Tuple[np.ndarray, np.ndarray]:
    """KD-tree search for rows start..stop-1, same result as brute force."""
    n = len(candidates)
    # Start just past the exclusion window; self and temporal neighbors
    # usually fill the first slots.
    k0 = n if mu >= n else min(n, 2 * int(mu) + 8)

    neighbor = np.empty(stop - start, dtype=np.int64)
    distance = np.empty(stop - start, dtype=np.float64)
    for offset, i in enumerate(range(start, stop)):
        neighbor[offset], distance[offset] = _kdtree_one(
            i, candidates, mu, dist, tree, k0,
        )
    return neighbor, distance


def _kdtree_one(
    i: int,
    candidates: np.ndarray,
    mu: float,
    dist: DistanceMetric,
    tree: cKDTree,
    k: int,
) -> Tuple[int, float]:
    n = len(candidates)
    point = candidates[i]
    while True:
        k = min(k, n)
        tree_d, idx = tree.query(point, k=k, p=dist.p)
        tree_d = np.atleast_1d(tree_d)
        idx = np.atleast_1d(idx)

        d = dist.pairwise(point[None, :], candidates[idx])[0]
        ok = _eligible(i, idx, d, mu)

        if np.any(ok):
            best = d[ok].min()
            # Every point at distance <= best must be in this batch for the
            # smallest-index tie-break to match the exhaustive search.
            covered = k == n or tree_d[-1] > best * (1 + _KDTREE_RTOL)
            if covered:
                return _select(i, idx, d, mu)
        elif k == n:
            raise NoEligibleNeighbor(i)

        k *= 2

