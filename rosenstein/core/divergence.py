"""
Divergence tracking.

Follows every neighbor pair (k, e(k)) forward and averages the log
distance at each offset:

    y(t) = < ln || X[e(k)+t] - X[k+t] || >_k,    t = 0..T_max

Pairs whose distance is exactly zero at an offset have no logarithm.
They are dropped from that offset's average and counted in n_excluded.
If every pair at an offset is dropped the offset has no value and the
run fails with DegenerateDivergence.
"""

import logging
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
import polars as pl
from joblib import Parallel, delayed

from rosenstein.core.distance import DistanceMetric, get_metric
from rosenstein.core.errors import DegenerateDivergence, InsufficientData
from rosenstein.core.neighbors import NeighborMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DivergenceCurve:
    """Mean log-distance of neighbor pairs against elapsed time."""
    offset: np.ndarray             # 0..T_max
    time: np.ndarray               # offset * dt
    mean_log_distance: np.ndarray
    n_pairs: np.ndarray            # pairs averaged at each offset
    n_excluded: np.ndarray         # zero-distance pairs dropped at each offset
    dt: float

    def __len__(self) -> int:
        return len(self.offset)

    @property
    def total_excluded(self) -> int:
        return int(np.sum(self.n_excluded))

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame({
            'offset': self.offset.astype(np.int64),
            'time': self.time,
            'mean_log_distance': self.mean_log_distance,
            'n_pairs': self.n_pairs.astype(np.int64),
            'n_excluded': self.n_excluded.astype(np.int64),
        })


def track_divergence(
    embedded: np.ndarray,
    neighbors: NeighborMap,
    horizon: int,
    dt: float = 1.0,
    metric: Union[str, DistanceMetric] = "euclidean",
    n_jobs: int = 1,
) -> DivergenceCurve:
    """
    Build the divergence curve for offsets 0..horizon.

    Args:
        embedded: Phase-space matrix (M, m)
        neighbors: Output of find_nearest_neighbors
        horizon: T_max
        dt: Sampling interval, > 0
        metric: Distance metric name or instance
        n_jobs: Workers for the offset map (-1 = all cores)

    Returns:
        DivergenceCurve with horizon + 1 points
    """
    embedded = np.asarray(embedded, dtype=np.float64)
    if int(horizon) != horizon or horizon < 0:
        raise ValueError(f"horizon must be an integer >= 0, got {horizon}")
    if not dt > 0:
        raise ValueError(f"dt must be > 0, got {dt}")
    horizon = int(horizon)
    dist = get_metric(metric)

    if len(neighbors) == 0:
        raise InsufficientData("neighbor map is empty")

    base = np.asarray(neighbors.base)
    partner = np.asarray(neighbors.neighbor)
    offsets = range(horizon + 1)

    if n_jobs == 1:
        points = [_offset_point(t, embedded, base, partner, dist) for t in offsets]
    else:
        points = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_offset_point)(t, embedded, base, partner, dist) for t in offsets
        )

    mean_log = np.array([p[0] for p in points], dtype=np.float64)
    n_pairs = np.array([p[1] for p in points], dtype=np.int64)
    n_excluded = np.array([p[2] for p in points], dtype=np.int64)
    offset = np.arange(horizon + 1)

    total_excluded = int(n_excluded.sum())
    if total_excluded:
        logger.warning(
            "divergence: excluded %d zero-distance points across %d offsets",
            total_excluded, int(np.count_nonzero(n_excluded)),
        )
    logger.debug("divergence: %d offsets, %d pairs at t=0", horizon + 1, n_pairs[0])

    curve = DivergenceCurve(
        offset=offset,
        time=offset * float(dt),
        mean_log_distance=mean_log,
        n_pairs=n_pairs,
        n_excluded=n_excluded,
        dt=float(dt),
    )
    for arr in (curve.offset, curve.time, curve.mean_log_distance, curve.n_pairs, curve.n_excluded):
        arr.flags.writeable = False
    return curve


def _offset_point(
    t: int,
    embedded: np.ndarray,
    base: np.ndarray,
    partner: np.ndarray,
    dist: DistanceMetric,
) -> Tuple[float, int, int]:
    """(mean ln d, pairs used, pairs excluded) at offset t."""
    n_vectors = len(embedded)
    a = base + t
    b = partner + t
    in_range = (a < n_vectors) & (b < n_vectors)
    if not np.any(in_range):
        raise InsufficientData(f"no neighbor pair reaches offset {t}")

    d = dist.rowwise(embedded[b[in_range]], embedded[a[in_range]])
    positive = d > 0
    n_used = int(np.count_nonzero(positive))
    n_excluded = int(d.size - n_used)
    if n_used == 0:
        raise DegenerateDivergence(t, int(d.size))

    return float(np.mean(np.log(d[positive]))), n_used, n_excluded
