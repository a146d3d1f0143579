"""Percentile estimation over historical game totals.

Every function here is **pure**: no I/O, no logging, no side effects.

Two estimators are exposed:

1. :func:`compute_percentiles` - unweighted **nearest-rank** quantiles.
   The index for quantile ``q`` over ``n`` sorted values is::

       clamp(ceil(q * n) - 1, 0, n - 1)

   There is no linear interpolation; p05 and p95 are always values that
   actually occurred.  The median uses the usual even/odd split (mean of
   the two middle values when ``n`` is even).

2. :func:`compute_weighted_percentiles` - each observation carries a
   weight.  Values are sorted, weights accumulated, and each quantile is the
   first value whose cumulative weight fraction reaches the target.

Both raise :class:`~totals_edge.core.errors.EmptyInputError` on an empty
sample.  Callers are expected to check the sample size before calling.

Run tests with::

    pytest tests/test_percentiles.py -v
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final, Iterable, Sequence, Tuple

import numpy as np

from totals_edge.core.errors import EmptyInputError

P05: Final[float] = 0.05
P50: Final[float] = 0.50
P95: Final[float] = 0.95

#: Slack on the cumulative-weight comparison so a fraction that should be
#: exactly 0.50 but accumulates to 0.4999999999 still qualifies.
_CUM_WEIGHT_TOL: Final[float] = 1e-12


@dataclass(frozen=True)
class PercentileSummary:
    """Distribution summary of one sample of totals."""

    n: int
    p05: float
    median: float
    p95: float
    min: float
    max: float

    @property
    def spread(self) -> float:
        """Width of the p05-p95 band."""
        return self.p95 - self.p05


@dataclass(frozen=True)
class WeightedValue:
    value: float
    weight: float


def _as_finite_array(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        raise EmptyInputError("cannot compute percentiles of an empty sample")
    if not np.all(np.isfinite(arr)):
        raise ValueError("totals must be finite numbers (found NaN or inf)")
    return arr


def nearest_rank_index(q: float, n: int) -> int:
    """Zero-based nearest-rank index for quantile ``q`` in a sample of ``n``."""
    if n <= 0:
        raise EmptyInputError("nearest-rank index requires n >= 1")
    return max(0, min(n - 1, math.ceil(q * n) - 1))


def compute_percentiles(totals: Iterable[float]) -> PercentileSummary:
    """Unweighted nearest-rank p05 / median / p95 plus min and max.

    Args:
        totals: Historical combined scores in any order.

    Returns:
        :class:`PercentileSummary`.

    Raises:
        EmptyInputError: If ``totals`` is empty.
        ValueError: If any total is NaN or infinite.
    """
    ordered = np.sort(_as_finite_array(totals))
    n = int(ordered.size)
    mid = n // 2
    if n % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2.0
    else:
        median = ordered[mid]

    return PercentileSummary(
        n=n,
        p05=float(ordered[nearest_rank_index(P05, n)]),
        median=float(median),
        p95=float(ordered[nearest_rank_index(P95, n)]),
        min=float(ordered[0]),
        max=float(ordered[-1]),
    )


def compute_weighted_percentiles(
    observations: Sequence[WeightedValue] | Sequence[Tuple[float, float]],
) -> PercentileSummary:
    """Weighted p05 / median / p95 by cumulative weight fraction.

    Each quantile is the first sorted value whose cumulative weight, divided
    by the total weight, reaches the target (0.05, 0.50, 0.95).  The scan
    for p95 is the last one; values above it only influence ``max``.

    Args:
        observations: ``WeightedValue`` items or ``(value, weight)`` pairs.

    Returns:
        :class:`PercentileSummary` with ``n`` equal to the observation count
        (not the effective weighted count).

    Raises:
        EmptyInputError: If ``observations`` is empty.
        ValueError: If a weight is negative or all weights are zero.
    """
    if len(observations) == 0:
        raise EmptyInputError("cannot compute weighted percentiles of an empty sample")

    pairs = [
        (o.value, o.weight) if isinstance(o, WeightedValue) else (o[0], o[1])
        for o in observations
    ]
    values = _as_finite_array(v for v, _ in pairs)
    weights = np.asarray([w for _, w in pairs], dtype=float)
    if np.any(weights < 0) or not np.all(np.isfinite(weights)):
        raise ValueError("weights must be finite and non-negative")
    total_weight = float(weights.sum())
    if total_weight <= 0:
        raise ValueError("total weight must be positive")

    order = np.argsort(values, kind="stable")
    values = values[order]
    cum_frac = np.cumsum(weights[order]) / total_weight

    def _at(target: float) -> float:
        idx = int(np.searchsorted(cum_frac, target - _CUM_WEIGHT_TOL, side="left"))
        return float(values[min(idx, values.size - 1)])

    return PercentileSummary(
        n=int(values.size),
        p05=_at(P05),
        median=_at(P50),
        p95=_at(P95),
        min=float(values[0]),
        max=float(values[-1]),
    )
