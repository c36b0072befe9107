"""
Plotting-surface geometry.

Maps domain coordinates (usage, cost) to pixel coordinates on a bounded
drawing surface and derives the guide lines, labels and ticks drawn around
the curve. Pixel origin is the top-left corner; cost increases upward.
"""

from dataclasses import dataclass, asdict
from typing import Iterable, List, Optional, Tuple, Union
import math

from .model import AxisRange, ConfigurationError, ObservationPoint
from .sampler import CurveSample


EPSILON = 1e-9
LABEL_OFFSET_PX = 6.0
ARROW_DROP = 0.5  # Arrow sits this far (in cost units) below the cheaper point


def format_number(value: float) -> str:
    """Format a number for display: integers without decimals, others to 2 places."""
    if not math.isfinite(value):
        return "N/A"
    if float(value).is_integer() and abs(value) < 1e15:
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def format_currency(value: float) -> str:
    """Format a cost tick: 4 -> '$4', 1.5 -> '$1.5'."""
    if not math.isfinite(value):
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}${format_number(abs(value))}"


@dataclass(frozen=True)
class Surface:
    """Pixel dimensions of the drawing surface."""
    width: float = 600.0
    height: float = 400.0
    margin: float = 40.0

    def __post_init__(self):
        for name in ("width", "height", "margin"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"Surface {name} must be a finite number, got {value!r}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Surface must have positive size, got {self.width}x{self.height}")
        if self.margin < 0:
            raise ConfigurationError(f"Surface margin must be non-negative, got {self.margin}")
        if self.width - 2 * self.margin <= 0 or self.height - 2 * self.margin <= 0:
            raise ConfigurationError(
                f"Margin {self.margin} leaves no drawable area on a "
                f"{self.width}x{self.height} surface")

    @property
    def plot_width(self) -> float:
        return self.width - 2 * self.margin

    @property
    def plot_height(self) -> float:
        return self.height - 2 * self.margin

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProjectedPoint:
    """A point in pixel space."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


PointLike = Union[CurveSample, ObservationPoint, Tuple[float, float]]


class GeometryProjector:
    """
    Affine mapping from an AxisRange onto a Surface.

    The range's minimum maps to the margin on each axis:

        px = (x - min_x) / (max_x - min_x) * (width - 2*margin) + margin
        py = height - ((y - min_y) / (max_y - min_y) * (height - 2*margin) + margin)

    Zero spans are clamped to EPSILON. Values outside the range are not
    clamped, so the mapping stays monotonic everywhere.
    """

    def __init__(self, axis_range: AxisRange, surface: Surface):
        self.axis_range = axis_range
        self.surface = surface
        self._span_x = max(axis_range.max_x - axis_range.min_x, EPSILON)
        self._span_y = max(axis_range.max_y - axis_range.min_y, EPSILON)

    def project_x(self, x: float) -> float:
        s = self.surface
        return (x - self.axis_range.min_x) / self._span_x * s.plot_width + s.margin

    def project_y(self, y: float) -> float:
        s = self.surface
        return s.height - ((y - self.axis_range.min_y) / self._span_y * s.plot_height + s.margin)

    def project(self, point: PointLike) -> ProjectedPoint:
        """Project a CurveSample, an ObservationPoint (usage, cost) or an (x, y) tuple."""
        if isinstance(point, ObservationPoint):
            x, y = point.usage, point.cost
        elif isinstance(point, CurveSample):
            x, y = point.x, point.y
        else:
            x, y = point
        return ProjectedPoint(self.project_x(x), self.project_y(y))

    def polyline(self, samples: Iterable[CurveSample]) -> Tuple[ProjectedPoint, ...]:
        """Project every sample in order."""
        return tuple(self.project(s) for s in samples)

    @property
    def plot_area(self) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) of the drawable area in pixels."""
        s = self.surface
        return (s.margin, s.margin, s.width - s.margin, s.height - s.margin)


def project(point: PointLike, axis_range: AxisRange, surface: Surface) -> ProjectedPoint:
    """Project a single point; see GeometryProjector."""
    return GeometryProjector(axis_range, surface).project(point)


# --- Annotation primitives ---

@dataclass(frozen=True)
class GuideLine:
    """Dashed drop-line from an observation point to one of the axes."""
    owner: str       # "p1" or "p2"
    orientation: str  # "horizontal" or "vertical"
    start: ProjectedPoint
    end: ProjectedPoint
    dashed: bool = True

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "orientation": self.orientation,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "dashed": self.dashed,
        }


@dataclass(frozen=True)
class Arrow:
    """Horizontal arrow between the two usages, pointing from p1 to p2."""
    start: ProjectedPoint
    end: ProjectedPoint
    delta: float
    label: str

    def to_dict(self) -> dict:
        return {
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "delta": self.delta,
            "label": self.label,
        }


@dataclass(frozen=True)
class TextLabel:
    """
    Text anchored at a pixel position.

    role is one of "caption" (point label), "x_value", "y_value" (axis value
    labels for a point) or "delta" (the arrow label).
    """
    text: str
    anchor: ProjectedPoint
    role: str
    owner: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "anchor": self.anchor.to_dict(),
            "role": self.role,
            "owner": self.owner,
        }


@dataclass(frozen=True)
class Annotations:
    """All guide geometry drawn around the curve."""
    lines: Tuple[GuideLine, ...]
    arrow: Optional[Arrow]
    labels: Tuple[TextLabel, ...]

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "arrow": self.arrow.to_dict() if self.arrow else None,
            "labels": [label.to_dict() for label in self.labels],
        }


def delta_label(delta: float, unit: str = "miles") -> str:
    """Describe a usage change: 150 -> '150 miles more', -150 -> '150 miles fewer'."""
    direction = "more" if delta >= 0 else "fewer"
    return f"{format_number(abs(delta))} {unit} {direction}"


def build_annotations(
    p1: ObservationPoint,
    p2: ObservationPoint,
    axis_range: AxisRange,
    projector: GeometryProjector,
    unit: str = "miles",
) -> Annotations:
    """
    Derive drop-lines, the delta arrow and text labels for the two points.

    Invalid points get no guide lines or labels. The arrow requires both
    usages to be finite numbers.
    """
    lines: List[GuideLine] = []
    labels: List[TextLabel] = []
    left, _, _, bottom = projector.plot_area

    for owner, point in (("p1", p1), ("p2", p2)):
        if not point.is_valid:
            continue
        at = projector.project(point)
        lines.append(GuideLine(
            owner=owner,
            orientation="horizontal",
            start=projector.project((axis_range.min_x, point.cost)),
            end=at,
        ))
        lines.append(GuideLine(
            owner=owner,
            orientation="vertical",
            start=projector.project((point.usage, axis_range.min_y)),
            end=at,
        ))
        if point.label:
            labels.append(TextLabel(
                text=point.label,
                anchor=ProjectedPoint(at.x + LABEL_OFFSET_PX, at.y - LABEL_OFFSET_PX),
                role="caption",
                owner=owner,
            ))
        labels.append(TextLabel(
            text=format_number(point.usage),
            anchor=ProjectedPoint(at.x, bottom + LABEL_OFFSET_PX),
            role="x_value",
            owner=owner,
        ))
        labels.append(TextLabel(
            text=format_currency(point.cost),
            anchor=ProjectedPoint(left - LABEL_OFFSET_PX, at.y),
            role="y_value",
            owner=owner,
        ))

    arrow = None
    if math.isfinite(p1.usage) and math.isfinite(p2.usage):
        delta = p2.usage - p1.usage
        text = delta_label(delta, unit)
        floor_y = axis_range.min_y + 0.05 * (axis_range.max_y - axis_range.min_y)
        costs = [c for c in (p1.cost, p2.cost) if math.isfinite(c)]
        arrow_y = max(min(costs) - ARROW_DROP, floor_y) if costs else floor_y
        start = projector.project((p1.usage, arrow_y))
        end = projector.project((p2.usage, arrow_y))
        arrow = Arrow(start=start, end=end, delta=delta, label=text)
        labels.append(TextLabel(
            text=text,
            anchor=ProjectedPoint((start.x + end.x) / 2, start.y),
            role="delta",
        ))

    return Annotations(lines=tuple(lines), arrow=arrow, labels=tuple(labels))


# --- Axis ticks ---

@dataclass(frozen=True)
class Tick:
    """An axis tick: domain value, display label and pixel position along the axis."""
    value: float
    label: str
    position: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AxisTicks:
    x: Tuple[Tick, ...]
    y: Tuple[Tick, ...]

    def to_dict(self) -> dict:
        return {
            "x": [t.to_dict() for t in self.x],
            "y": [t.to_dict() for t in self.y],
        }


def tick_values(lo: float, hi: float, step: float, max_ticks: int = 50) -> List[float]:
    """
    Multiples of step within [lo, hi]. The step is doubled until at most
    max_ticks values remain.
    """
    if not math.isfinite(step) or step <= 0:
        raise ConfigurationError(f"Tick step must be positive, got {step!r}")
    if max_ticks < 2:
        raise ConfigurationError(f"max_ticks must be at least 2, got {max_ticks}")
    while (hi - lo) / step + 1 > max_ticks:
        step *= 2
    first = math.ceil(lo / step - 1e-9)
    last = math.floor(hi / step + 1e-9)
    # 0.0 rather than -0.0 for i == 0
    return [i * step + 0.0 for i in range(first, last + 1)]


def build_ticks(
    axis_range: AxisRange,
    projector: GeometryProjector,
    x_step: float = 50.0,
    y_step: float = 1.0,
    max_ticks: int = 50,
) -> AxisTicks:
    """Numeric usage ticks along x and currency-formatted cost ticks along y."""
    xs = tick_values(axis_range.min_x, axis_range.max_x, x_step, max_ticks)
    ys = tick_values(axis_range.min_y, axis_range.max_y, y_step, max_ticks)
    return AxisTicks(
        x=tuple(Tick(v, format_number(v), projector.project_x(v)) for v in xs),
        y=tuple(Tick(v, format_currency(v), projector.project_y(v)) for v in ys),
    )
