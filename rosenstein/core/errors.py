"""
Typed failures for the Rosenstein pipeline.

Every stage validates its own preconditions and raises one of these.
Nothing downstream receives NaN or Inf in place of a failure.

All errors subclass ValueError so existing `except ValueError` callers
keep working.
"""

from typing import Optional


class RosensteinError(ValueError):
    """Base class for all pipeline failures."""


class InsufficientData(RosensteinError):
    """Series too short for the requested delay, dimension and horizon."""


class DegenerateSpectrum(RosensteinError):
    """Mean period is undefined (empty spectrum, zero power, zero mean frequency)."""


class NoEligibleNeighbor(RosensteinError):
    """Every candidate neighbor of a row is excluded."""

    def __init__(self, row: int, message: Optional[str] = None):
        self.row = row
        super().__init__(
            message or f"no eligible neighbor for row {row} "
                       f"(exclusion window too wide for available data)"
        )


class RegressionWindowTooSmall(RosensteinError):
    """Regression window outside [2, len(curve) - 1]."""

    def __init__(self, window: int, available: int):
        self.window = window
        self.available = available
        super().__init__(
            f"regression window W={window} invalid: need 2 <= W <= {available}"
        )


class DegenerateDivergence(RosensteinError):
    """Every neighbor pair coincides at some offset, so ln d is undefined."""

    def __init__(self, offset: int, n_pairs: int):
        self.offset = offset
        self.n_pairs = n_pairs
        super().__init__(
            f"all {n_pairs} neighbor pairs have zero distance at offset {offset}"
        )
