"""
Jevons Paradox curve model.

This module provides the numeric core of the illustration:
- Observation points ("before" and "after" scenarios) and their coercion
  from raw form values
- Curve fitting through the two points (power law or independent inverse curves)
- Derivation of the visible axis range

Everything here is a pure function of its inputs; callers re-run the model
whenever a point changes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised for structurally invalid configuration (a caller bug, not bad input)."""


def _coerce_number(value: Any) -> float:
    """Coerce a raw form value to float, returning nan when it is not a usable number."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return math.nan
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return number if math.isfinite(number) else math.nan


@dataclass(frozen=True)
class ObservationPoint:
    """One (cost, usage) scenario, e.g. a regular car at $4 for 250 miles."""
    label: str
    cost: float   # Cost per unit of service ($)
    usage: float  # Consumption (miles/week)

    @property
    def is_valid(self) -> bool:
        """True when both cost and usage are finite and strictly positive."""
        return (math.isfinite(self.cost) and math.isfinite(self.usage)
                and self.cost > 0 and self.usage > 0)


def coerce_observation(raw: Mapping[str, Any]) -> ObservationPoint:
    """
    Build an ObservationPoint from raw form values.

    Accepts strings or numbers. ``miles`` is accepted as an alias for ``usage``.
    Missing or non-numeric values become nan (an invalid point); this never raises.

    Example:
        coerce_observation({"label": "Hybrid car", "cost": "2", "miles": "400"})
    """
    usage = raw.get("usage", raw.get("miles"))
    label = raw.get("label")
    return ObservationPoint(
        label="" if label is None else str(label),
        cost=_coerce_number(raw.get("cost")),
        usage=_coerce_number(usage),
    )


DEFAULT_POINTS: Tuple[ObservationPoint, ObservationPoint] = (
    ObservationPoint(label="Regular car", cost=4.0, usage=250.0),
    ObservationPoint(label="Hybrid car", cost=2.0, usage=400.0),
)


# --- Fitting ---

class FitStrategy(str, Enum):
    """How the curve is fitted through the two observation points."""
    # One elasticity curve cost = a * usage^b through both points
    POWER_LAW = "power_law"
    # One constant-expenditure curve cost = k / usage per point
    INVERSE_INDEPENDENT = "inverse_independent"


def parse_strategy(value: Union[str, FitStrategy]) -> FitStrategy:
    """Convert a strategy name to FitStrategy, raising ConfigurationError if unknown."""
    try:
        return FitStrategy(value)
    except ValueError:
        valid = ", ".join(s.value for s in FitStrategy)
        raise ConfigurationError(f"Unknown fit strategy: {value}. Valid: {valid}") from None


@dataclass(frozen=True)
class ModelParameters:
    """Coefficients of cost(usage) = a * usage ** b."""
    a: float
    b: float

    def evaluate(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Return the cost at usage x (scalar or array)."""
        return self.a * np.power(x, self.b)


# Used whenever no physically meaningful fit exists
FALLBACK_PARAMETERS = ModelParameters(a=1.0, b=-0.5)


@dataclass(frozen=True)
class FitResult:
    """Fitted curve(s) for a pair of observation points."""
    strategy: FitStrategy
    curves: Tuple[ModelParameters, ...]
    fallback: Tuple[bool, ...]  # Per curve: True when FALLBACK_PARAMETERS were used

    @property
    def any_fallback(self) -> bool:
        return any(self.fallback)


def fit_power_law(p1: ObservationPoint, p2: ObservationPoint) -> ModelParameters:
    """
    Fit cost = a * usage^b through both points by log-linearization.

    b = (ln c2 - ln c1) / (ln u2 - ln u1), a = c1 / u1^b

    Returns FALLBACK_PARAMETERS when either point is invalid or the usages
    are equal. This is "no meaningful fit", not an error.
    """
    if not (p1.is_valid and p2.is_valid) or p1.usage == p2.usage:
        return FALLBACK_PARAMETERS

    b = (math.log(p2.cost) - math.log(p1.cost)) / (math.log(p2.usage) - math.log(p1.usage))
    try:
        a = p1.cost / math.pow(p1.usage, b)
    except (OverflowError, ZeroDivisionError):
        return FALLBACK_PARAMETERS
    if not (math.isfinite(a) and math.isfinite(b)):
        return FALLBACK_PARAMETERS
    return ModelParameters(a=a, b=b)


def fit_inverse(point: ObservationPoint) -> ModelParameters:
    """
    Fit the constant-expenditure curve cost = k / usage with k = cost * usage.

    Returns FALLBACK_PARAMETERS for an invalid point or when k overflows.
    """
    if not point.is_valid:
        return FALLBACK_PARAMETERS
    k = point.cost * point.usage
    if not math.isfinite(k):
        return FALLBACK_PARAMETERS
    return ModelParameters(a=k, b=-1.0)


def fit(
    p1: ObservationPoint,
    p2: ObservationPoint,
    strategy: FitStrategy = FitStrategy.POWER_LAW,
) -> FitResult:
    """
    Fit curve(s) for the two points using the given strategy.

    POWER_LAW yields a single curve passing through both points.
    INVERSE_INDEPENDENT yields one curve per point; in general the two points
    lie on different curves (constant total expenditure per scenario).
    """
    strategy = parse_strategy(strategy)

    if strategy is FitStrategy.POWER_LAW:
        params = fit_power_law(p1, p2)
        fallback = params is FALLBACK_PARAMETERS
        if fallback:
            logger.info("Power-law fit not defined for %r / %r, using fallback %s",
                        p1, p2, FALLBACK_PARAMETERS)
        return FitResult(strategy=strategy, curves=(params,), fallback=(fallback,))

    curves = (fit_inverse(p1), fit_inverse(p2))
    fallback = tuple(c is FALLBACK_PARAMETERS for c in curves)
    if any(fallback):
        logger.info("Inverse fit uses fallback for unusable point(s): %s", fallback)
    return FitResult(strategy=strategy, curves=curves, fallback=fallback)


# --- Axis range ---

@dataclass
class RangePaddingPolicy:
    """
    How much room to leave around the observation points.

    mode:
        "absolute" adds pad_x / pad_y (the default: 50 miles, $2)
        "relative" adds fraction_x / fraction_y of the largest value
    """
    mode: str = "absolute"
    pad_x: float = 50.0
    pad_y: float = 2.0
    fraction_x: float = 0.2
    fraction_y: float = 0.5
    min_span_x: float = 50.0  # Width used when the range would collapse
    min_span_y: float = 1.0

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "pad_x": self.pad_x,
            "pad_y": self.pad_y,
            "fraction_x": self.fraction_x,
            "fraction_y": self.fraction_y,
            "min_span_x": self.min_span_x,
            "min_span_y": self.min_span_y,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RangePaddingPolicy":
        return cls(
            mode=data.get("mode", "absolute"),
            pad_x=data.get("pad_x", 50.0),
            pad_y=data.get("pad_y", 2.0),
            fraction_x=data.get("fraction_x", 0.2),
            fraction_y=data.get("fraction_y", 0.5),
            min_span_x=data.get("min_span_x", 50.0),
            min_span_y=data.get("min_span_y", 1.0),
        )

    def padding(self, max_x: float, max_y: float) -> Tuple[float, float]:
        """Return (pad_x, pad_y) for the given largest usage and cost."""
        if self.mode == "absolute":
            return self.pad_x, self.pad_y
        elif self.mode == "relative":
            return self.fraction_x * max_x, self.fraction_y * max_y
        else:
            raise ConfigurationError(f"Unknown padding mode: {self.mode}. "
                                     f"Valid modes: absolute, relative")


@dataclass(frozen=True)
class AxisRange:
    """Visible domain window: usage on x, cost on y."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def span_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def span_y(self) -> float:
        return self.max_y - self.min_y

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def _range_value(value: float) -> float:
    """Non-finite or negative values count as 0 when sizing the axes."""
    return value if math.isfinite(value) and value > 0 else 0.0


def compute_range(
    p1: ObservationPoint,
    p2: ObservationPoint,
    policy: Optional[RangePaddingPolicy] = None,
) -> AxisRange:
    """
    Derive the visible axis range from the two points.

    The cost axis is anchored at zero. Equal usages widen max_x by the pad so
    the range never collapses.
    """
    if policy is None:
        policy = RangePaddingPolicy()

    u1, u2 = _range_value(p1.usage), _range_value(p2.usage)
    c1, c2 = _range_value(p1.cost), _range_value(p2.cost)
    pad_x, pad_y = policy.padding(max(u1, u2), max(c1, c2))

    min_x = max(0.0, min(u1, u2) - pad_x)
    max_x = max(u1, u2) + pad_x
    min_y = 0.0
    max_y = max(c1, c2) + pad_y

    if u1 == u2:
        max_x += pad_x if pad_x > 0 else policy.min_span_x
        logger.debug("Equal usages (%s), widened x range to %s", u1, max_x)

    if max_x <= min_x:
        max_x = min_x + policy.min_span_x
        logger.debug("Collapsed x range widened to [%s, %s]", min_x, max_x)
    if max_y <= min_y:
        max_y = min_y + policy.min_span_y
        logger.debug("Collapsed y range widened to [%s, %s]", min_y, max_y)

    return AxisRange(min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)
