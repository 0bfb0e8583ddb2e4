"""
Distance metrics for phase-space vectors.

NeighborFinder and DivergenceTracker only see the DistanceMetric
interface, so either can be tested with any metric. Euclidean is the
default everywhere.
"""

from dataclasses import dataclass
from typing import Dict, Union

import numpy as np
from scipy.spatial.distance import cdist

# cdist names that are fixed Minkowski orders
_CDIST_ORDERS = {"cityblock": 1.0, "euclidean": 2.0, "chebyshev": np.inf}


@dataclass(frozen=True)
class DistanceMetric:
    """
    A Minkowski-family metric.

    Attributes:
        name: Registry name
        cdist_name: Metric name understood by scipy.spatial.distance.cdist
        p: Minkowski order (used by the KD-tree search)
    """
    name: str
    cdist_name: str
    p: float

    def __post_init__(self):
        # The KD-tree search needs a true Minkowski norm
        if not self.p >= 1:
            raise ValueError(f"Minkowski order p must be >= 1, got {self.p}")
        if self.cdist_name == "minkowski":
            return
        if _CDIST_ORDERS.get(self.cdist_name) != self.p:
            raise ValueError(
                f"cdist metric '{self.cdist_name}' does not match p={self.p}; "
                f"use one of {sorted(_CDIST_ORDERS)} with its order, or 'minkowski'"
            )

    def pairwise(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """(len(a), len(b)) matrix of distances."""
        if self.cdist_name == "minkowski":
            return cdist(a, b, "minkowski", p=self.p)
        return cdist(a, b, self.cdist_name)

    def rowwise(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Distance between a[k] and b[k] for every k."""
        diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
        return np.linalg.norm(diff, ord=self.p, axis=1)


EUCLIDEAN = DistanceMetric("euclidean", "euclidean", 2.0)
MANHATTAN = DistanceMetric("manhattan", "cityblock", 1.0)
CHEBYSHEV = DistanceMetric("chebyshev", "chebyshev", np.inf)

_METRICS: Dict[str, DistanceMetric] = {
    m.name: m for m in (EUCLIDEAN, MANHATTAN, CHEBYSHEV)
}


def get_metric(metric: Union[str, DistanceMetric] = "euclidean") -> DistanceMetric:
    """Resolve a metric by name. DistanceMetric instances pass through."""
    if isinstance(metric, DistanceMetric):
        return metric
    if metric not in _METRICS:
        available = ", ".join(sorted(_METRICS))
        raise ValueError(f"Unknown metric: '{metric}'. Available: {available}")
    return _METRICS[metric]
