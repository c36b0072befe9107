"""
Chart runner for executing configs and producing scenes.

Orchestrates config -> fit -> range -> samples -> pixel geometry -> structured output.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import math

from .config import ChartConfig, validate_config
from .geometry import (
    Annotations, AxisTicks, GeometryProjector, ProjectedPoint, Surface,
    build_annotations, build_ticks,
)
from .model import (
    AxisRange, ConfigurationError, FitStrategy, ModelParameters, ObservationPoint,
    RangePaddingPolicy, compute_range, fit, parse_strategy,
)
from .sampler import (
    DEFAULT_SPLICE_TOLERANCE, DEFAULT_STEP, Samples, check_step, sample_fit,
)

logger = logging.getLogger(__name__)


VERSION = "0.1.0"


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _format_timestamp() -> str:
    """Return ISO 8601 timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ScenePoint:
    """An observation point with its pixel position (None when invalid)."""
    owner: str  # "p1" or "p2"
    point: ObservationPoint
    position: Optional[ProjectedPoint]

    def to_dict(self) -> dict:
        return {
            "owner": self.owner,
            "label": self.point.label,
            "cost": _finite_or_none(self.point.cost),
            "usage": _finite_or_none(self.point.usage),
            "valid": self.point.is_valid,
            "position": self.position.to_dict() if self.position else None,
        }


@dataclass(frozen=True)
class CurveSeries:
    """One sampled curve in domain and pixel space."""
    name: str
    params: ModelParameters
    fallback: bool
    samples: Samples
    polyline: Tuple[ProjectedPoint, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "params": {"a": self.params.a, "b": self.params.b},
            "fallback": self.fallback,
            "samples": [s.to_dict() for s in self.samples],
            "polyline": [p.to_dict() for p in self.polyline],
        }


@dataclass(frozen=True)
class Scene:
    """
    Everything the rendering layer needs to draw the chart.

    Diagnostics flag anomalies the renderer may choose to surface:
    "invalid_observation:p1", "invalid_observation:p2", "fallback_fit",
    "degenerate_range".
    """
    strategy: FitStrategy
    points: Tuple[ScenePoint, ScenePoint]
    curves: Tuple[CurveSeries, ...]
    axis_range: AxisRange
    surface: Surface
    annotations: Annotations
    ticks: AxisTicks
    x_title: str
    y_title: str
    diagnostics: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        r = self.axis_range
        return {
            "strategy": self.strategy.value,
            "points": [p.to_dict() for p in self.points],
            "curves": [c.to_dict() for c in self.curves],
            "axis_range": {"min_x": r.min_x, "max_x": r.max_x, "min_y": r.min_y, "max_y": r.max_y},
            "surface": self.surface.to_dict(),
            "annotations": self.annotations.to_dict(),
            "ticks": self.ticks.to_dict(),
            "x_title": self.x_title,
            "y_title": self.y_title,
            "diagnostics": list(self.diagnostics),
        }


def _is_degenerate(p1: ObservationPoint, p2: ObservationPoint) -> bool:
    """Equal usages, or no positive cost, would collapse an axis without widening."""
    if math.isfinite(p1.usage) and p1.usage == p2.usage:
        return True
    costs = [c for c in (p1.cost, p2.cost) if math.isfinite(c) and c > 0]
    return not costs


def build_scene(
    p1: ObservationPoint,
    p2: ObservationPoint,
    strategy: FitStrategy = FitStrategy.POWER_LAW,
    padding: Optional[RangePaddingPolicy] = None,
    surface: Optional[Surface] = None,
    step: float = DEFAULT_STEP,
    splice_tolerance: float = DEFAULT_SPLICE_TOLERANCE,
    unit: str = "miles",
    x_title: str = "# of Miles Driven (miles/week)",
    y_title: str = "Cost of Driving 25 miles",
    x_tick_step: float = 50.0,
    y_tick_step: float = 1.0,
    max_ticks: int = 50,
) -> Scene:
    """
    Run the full pipeline for two observation points.

    Configuration problems (non-positive step, bad surface, unknown strategy)
    raise ConfigurationError before anything is computed. Bad point values
    never raise; they show up in Scene.diagnostics.
    """
    strategy = parse_strategy(strategy)
    step = check_step(step)
    if surface is None:
        surface = Surface()

    diagnostics: List[str] = []
    for owner, point in (("p1", p1), ("p2", p2)):
        if not point.is_valid:
            logger.warning("Invalid observation %s: %r", owner, point)
            diagnostics.append(f"invalid_observation:{owner}")

    fit_result = fit(p1, p2, strategy)
    if fit_result.any_fallback:
        diagnostics.append("fallback_fit")

    axis_range = compute_range(p1, p2, padding)
    if _is_degenerate(p1, p2):
        logger.info("Degenerate input widened to range %s", axis_range)
        diagnostics.append("degenerate_range")

    projector = GeometryProjector(axis_range, surface)
    sampled = sample_fit(fit_result, p1, p2, axis_range, step, splice_tolerance)

    if strategy is FitStrategy.POWER_LAW:
        names = ["Cost Curve"]
    else:
        names = [p.label or owner for owner, p in (("p1", p1), ("p2", p2))]

    curves = tuple(
        CurveSeries(
            name=name,
            params=params,
            fallback=fallback,
            samples=samples,
            polyline=projector.polyline(samples),
        )
        for name, params, fallback, samples in zip(
            names, fit_result.curves, fit_result.fallback, sampled)
    )

    points = tuple(
        ScenePoint(owner, p, projector.project(p) if p.is_valid else None)
        for owner, p in (("p1", p1), ("p2", p2))
    )

    logger.debug("Built scene: %d curve(s), %d samples, range %s",
                 len(curves), sum(len(c.samples) for c in curves), axis_range)

    return Scene(
        strategy=strategy,
        points=points,
        curves=curves,
        axis_range=axis_range,
        surface=surface,
        annotations=build_annotations(p1, p2, axis_range, projector, unit),
        ticks=build_ticks(axis_range, projector, x_tick_step, y_tick_step, max_ticks),
        x_title=x_title,
        y_title=y_title,
        diagnostics=tuple(diagnostics),
    )


def build_scene_from_config(config: ChartConfig) -> Scene:
    """Build a scene from a ChartConfig (which must hold exactly two points)."""
    observations = config.observations()
    if len(observations) != 2:
        raise ConfigurationError(f"Exactly two points are required, got {len(observations)}")
    p1, p2 = observations
    return build_scene(
        p1, p2,
        strategy=config.strategy,
        padding=config.padding,
        surface=config.surface.to_surface(),
        step=config.sampling.step,
        splice_tolerance=config.sampling.splice_tolerance,
        unit=config.axes.unit,
        x_title=config.axes.x_title,
        y_title=config.axes.y_title,
        x_tick_step=config.axes.x_tick_step,
        y_tick_step=config.axes.y_tick_step,
        max_ticks=config.axes.max_ticks,
    )


@dataclass
class RunResult:
    """
    Complete result from running a chart config.

    Contains metadata, echoed config, and the scene.
    """
    meta: Dict[str, Any]
    config: dict
    scene: Scene

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "meta": self.meta,
            "config": self.config,
            "scene": self.scene.to_dict(),
        }


class Runner:
    """
    Chart runner that validates a config and produces a structured result.

    Example:
        config = load_config("configs/hybrid.json")
        runner = Runner(config)
        result = runner.run()
        save_result(result, "results/hybrid.json")
    """

    def __init__(self, config: ChartConfig, config_path: Optional[str] = None):
        """
        Initialize runner with chart config.

        Args:
            config: Chart configuration
            config_path: Optional path to config file (for metadata)

        Raises:
            ConfigurationError: If the config is invalid
        """
        self.config = config
        self.config_path = config_path

        errors = validate_config(config)
        if errors:
            raise ConfigurationError(f"Invalid config: {'; '.join(errors)}")

    def run(self) -> RunResult:
        """Build the scene and return it with metadata."""
        scene = build_scene_from_config(self.config)
        meta = {
            "chart_name": self.config.name,
            "timestamp": _format_timestamp(),
            "config_path": self.config_path,
            "version": VERSION,
        }
        return RunResult(meta=meta, config=self.config.to_dict(), scene=scene)


def save_result(result: RunResult, path: str | Path) -> None:
    """
    Save a run result to JSON file.

    Args:
        result: RunResult to save
        path: Output file path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(result.to_dict(), f, indent=2)


def load_result(path: str | Path) -> dict:
    """
    Load a previous run result from JSON file.

    Args:
        path: Path to result file

    Returns:
        Dict containing the result data
    """
    path = Path(path)
    with open(path, 'r') as f:
        return json.load(f)
