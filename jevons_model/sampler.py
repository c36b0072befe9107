"""
Curve sampling utilities.

Turns fitted curve parameters into a finite, ordered sequence of (x, y)
samples over the visible axis range.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Tuple
import logging
import math
import numbers

import numpy as np

from .model import (
    AxisRange, ConfigurationError, FitResult, FitStrategy,
    ModelParameters, ObservationPoint,
)

logger = logging.getLogger(__name__)


DEFAULT_STEP = 5.0
DEFAULT_SPLICE_TOLERANCE = 5.0
MAX_SAMPLES = 100_000


@dataclass(frozen=True)
class CurveSample:
    """A single point on a sampled curve (usage, cost)."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


Samples = Tuple[CurveSample, ...]


def check_step(step: float) -> float:
    """Validate a sampling step, raising ConfigurationError if it is not positive."""
    if not isinstance(step, numbers.Real) or not math.isfinite(step) or step <= 0:
        raise ConfigurationError(f"Sampling step must be a positive number, got {step!r}")
    return float(step)


def sample_curve(params: ModelParameters, axis_range: AxisRange, step: float = DEFAULT_STEP) -> Samples:
    """
    Sample cost = a * usage^b from min_x to max_x in fixed increments.

    Grid points are computed as min_x + i * step so repeated calls give
    identical output. max_x is appended when the grid stops short of it.
    Non-finite values (e.g. usage 0 with a negative exponent) are dropped.
    Spans too wide for MAX_SAMPLES points at the given step are sampled
    with a wider step instead.

    Args:
        params: Curve coefficients
        axis_range: Visible range; only min_x / max_x are used
        step: Grid spacing in usage units (must be > 0)

    Returns:
        Tuple of CurveSample, strictly increasing in x
    """
    step = check_step(step)

    span = axis_range.max_x - axis_range.min_x
    if span / step + 1 > MAX_SAMPLES:
        widened = span / (MAX_SAMPLES - 1)
        logger.debug("Widening sampling step from %s to %s to stay within %d samples",
                     step, widened, MAX_SAMPLES)
        step = widened
    count = int(math.floor(span / step + 1e-9)) + 1

    xs = np.minimum(axis_range.min_x + step * np.arange(count), axis_range.max_x)
    if xs[-1] < axis_range.max_x - step * 1e-9:
        xs = np.append(xs, axis_range.max_x)
    else:
        xs[-1] = axis_range.max_x

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        ys = params.evaluate(xs)

    finite = np.isfinite(ys)
    if not finite.all():
        logger.debug("Dropped %d non-finite samples", int((~finite).sum()))

    return tuple(CurveSample(float(x), float(y)) for x, y in zip(xs[finite], ys[finite]))


def splice_points(
    samples: Iterable[CurveSample],
    points: Iterable[CurveSample],
    tolerance: float = DEFAULT_SPLICE_TOLERANCE,
) -> Samples:
    """
    Insert exact points into a sampled curve.

    Grid samples closer than ``tolerance`` to any inserted x (or at exactly the
    same x) are removed first, then each exact point goes in at the first
    index whose x exceeds it.
    """
    if not math.isfinite(tolerance) or tolerance < 0:
        raise ConfigurationError(f"Splice tolerance must be non-negative, got {tolerance!r}")

    targets: List[CurveSample] = []
    for point in sorted(points, key=lambda p: p.x):
        if not targets or targets[-1].x != point.x:
            targets.append(point)

    def _is_near(sample: CurveSample) -> bool:
        return any(sample.x == t.x or abs(sample.x - t.x) < tolerance for t in targets)

    kept = [s for s in samples if not _is_near(s)]
    xs = [s.x for s in kept]
    for target in targets:
        idx = bisect_right(xs, target.x)
        kept.insert(idx, target)
        xs.insert(idx, target.x)

    return tuple(kept)


def sample_fit(
    fit_result: FitResult,
    p1: ObservationPoint,
    p2: ObservationPoint,
    axis_range: AxisRange,
    step: float = DEFAULT_STEP,
    tolerance: float = DEFAULT_SPLICE_TOLERANCE,
) -> Tuple[Samples, ...]:
    """
    Sample every curve of a fit over the shared axis range.

    For a power-law fit through both points the two observations are spliced
    in as exact samples. Inverse curves each pass through their own point by
    construction and are not spliced. Fallback curves do not pass through the
    observations, so nothing is spliced into them either.
    """
    curves = tuple(sample_curve(params, axis_range, step) for params in fit_result.curves)

    if fit_result.strategy is FitStrategy.POWER_LAW and not fit_result.any_fallback:
        exact = [CurveSample(p.usage, p.cost) for p in (p1, p2)]
        curves = (splice_points(curves[0], exact, tolerance),)

    return curves
