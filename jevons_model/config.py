"""
Configuration loading and serialization for chart configs.

Provides JSON-serializable config structures and conversion utilities.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, List, Optional
import json
from pathlib import Path

try:
    import json5
    _HAS_JSON5 = True
except ImportError:
    _HAS_JSON5 = False

from .geometry import Surface
from .model import (
    ConfigurationError, DEFAULT_POINTS, FitStrategy, ObservationPoint,
    RangePaddingPolicy, coerce_observation,
)
from .sampler import DEFAULT_SPLICE_TOLERANCE, DEFAULT_STEP


# Canonical export formats; "jpg" is accepted as an alias for "jpeg"
EXPORT_FORMATS = ("png", "jpeg", "svg", "pdf")
FORMAT_ALIASES = {"jpg": "jpeg"}

PADDING_MODES = ("absolute", "relative")


def normalize_format(fmt: str) -> str:
    """Return the canonical export format name, raising ValueError if unsupported."""
    key = str(fmt).lower().lstrip(".")
    key = FORMAT_ALIASES.get(key, key)
    if key not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}. "
                         f"Valid formats: {', '.join(EXPORT_FORMATS)}")
    return key


# --- Config Dataclasses ---

@dataclass
class PointSpec:
    """
    Raw observation point as entered by the user.

    cost and usage are kept as given (numbers or strings) and only coerced
    when the chart is built, so invalid entries survive a save/load cycle.
    """
    label: str = ""
    cost: Any = None
    usage: Any = None

    def to_observation(self) -> ObservationPoint:
        return coerce_observation({"label": self.label, "cost": self.cost, "usage": self.usage})

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PointSpec":
        return cls(
            label=data.get("label", ""),
            cost=data.get("cost"),
            usage=data.get("usage", data.get("miles")),
        )

    @classmethod
    def from_observation(cls, point: ObservationPoint) -> "PointSpec":
        return cls(label=point.label, cost=point.cost, usage=point.usage)


def _default_points() -> List[PointSpec]:
    return [PointSpec.from_observation(p) for p in DEFAULT_POINTS]


@dataclass
class SamplingSpec:
    """Curve sampling parameters (in usage units)."""
    step: float = DEFAULT_STEP
    splice_tolerance: float = DEFAULT_SPLICE_TOLERANCE

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SamplingSpec":
        return cls(
            step=data.get("step", DEFAULT_STEP),
            splice_tolerance=data.get("splice_tolerance", DEFAULT_SPLICE_TOLERANCE),
        )


@dataclass
class SurfaceSpec:
    """Drawing surface size in pixels."""
    width: float = 600.0
    height: float = 400.0
    margin: float = 40.0

    def to_surface(self) -> Surface:
        """Build the Surface; raises ConfigurationError for invalid sizes."""
        return Surface(width=self.width, height=self.height, margin=self.margin)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SurfaceSpec":
        return cls(
            width=data.get("width", 600.0),
            height=data.get("height", 400.0),
            margin=data.get("margin", 40.0),
        )


@dataclass
class AxesSpec:
    """Axis titles, usage unit and tick spacing."""
    x_title: str = "# of Miles Driven (miles/week)"
    y_title: str = "Cost of Driving 25 miles"
    unit: str = "miles"
    x_tick_step: float = 50.0
    y_tick_step: float = 1.0
    max_ticks: int = 50

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AxesSpec":
        return cls(
            x_title=data.get("x_title", "# of Miles Driven (miles/week)"),
            y_title=data.get("y_title", "Cost of Driving 25 miles"),
            unit=data.get("unit", "miles"),
            x_tick_step=data.get("x_tick_step", 50.0),
            y_tick_step=data.get("y_tick_step", 1.0),
            max_ticks=data.get("max_ticks", 50),
        )


@dataclass
class ExportSpec:
    """Image export settings."""
    formats: List[str] = field(default_factory=lambda: ["png"])
    filename: str = "jevons-paradox"
    output_dir: Optional[str] = None
    dpi: int = 100
    jpeg_quality: int = 95

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ExportSpec":
        return cls(
            formats=list(data.get("formats", ["png"])),
            filename=data.get("filename", "jevons-paradox"),
            output_dir=data.get("output_dir"),
            dpi=data.get("dpi", 100),
            jpeg_quality=data.get("jpeg_quality", 95),
        )

    def paths(self) -> List[Path]:
        """Output paths for every configured format, e.g. jevons-paradox.png."""
        base = Path(self.output_dir) if self.output_dir else Path(".")
        return [base / f"{self.filename}.{normalize_format(fmt)}" for fmt in self.formats]


@dataclass
class ChartConfig:
    """
    Complete chart configuration.

    This is the top-level config that gets serialized to/from JSON.
    """
    name: str = "jevons-paradox"
    description: str = ""
    strategy: str = FitStrategy.POWER_LAW.value
    points: List[PointSpec] = field(default_factory=_default_points)
    padding: RangePaddingPolicy = field(default_factory=RangePaddingPolicy)
    sampling: SamplingSpec = field(default_factory=SamplingSpec)
    surface: SurfaceSpec = field(default_factory=SurfaceSpec)
    axes: AxesSpec = field(default_factory=AxesSpec)
    export: ExportSpec = field(default_factory=ExportSpec)

    def to_dict(self) -> dict:
        """Convert config to JSON-serializable dict."""
        return {
            "name": self.name,
            "description": self.description,
            "strategy": self.strategy,
            "points": [p.to_dict() for p in self.points],
            "padding": self.padding.to_dict(),
            "sampling": self.sampling.to_dict(),
            "surface": self.surface.to_dict(),
            "axes": self.axes.to_dict(),
            "export": self.export.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChartConfig":
        """Create config from dict (e.g., from JSON)."""
        points = data.get("points")
        return cls(
            name=data.get("name", "jevons-paradox"),
            description=data.get("description", ""),
            strategy=data.get("strategy", FitStrategy.POWER_LAW.value),
            points=[PointSpec.from_dict(p) for p in points] if points is not None else _default_points(),
            padding=RangePaddingPolicy.from_dict(data.get("padding", {})),
            sampling=SamplingSpec.from_dict(data.get("sampling", {})),
            surface=SurfaceSpec.from_dict(data.get("surface", {})),
            axes=AxesSpec.from_dict(data.get("axes", {})),
            export=ExportSpec.from_dict(data.get("export", {})),
        )

    def observations(self) -> List[ObservationPoint]:
        """Coerce the configured points into ObservationPoints."""
        return [p.to_observation() for p in self.points]


def load_config(path: str | Path) -> ChartConfig:
    """
    Load a chart configuration from a JSON file.

    Supports JSON with comments (JSONC) if json5 is installed.

    Args:
        path: Path to JSON config file

    Returns:
        ChartConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the file is not valid JSON or not a JSON object
    """
    path = Path(path)
    with open(path, 'r') as f:
        if _HAS_JSON5:
            data = json5.load(f)
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must contain a JSON object")
    return ChartConfig.from_dict(data)


def save_config(config: ChartConfig, path: str | Path) -> None:
    """
    Save a chart configuration to a JSON file.

    Args:
        config: ChartConfig to save
        path: Path to output file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: ChartConfig) -> List[str]:
    """
    Validate a configuration and return list of error messages.

    Returns empty list if config is valid. Point values are not checked:
    unusable points fall back to default model parameters instead.
    """
    errors = []

    if not config.name or not config.name.strip():
        errors.append("Config must have a non-empty 'name'")

    valid_strategies = [s.value for s in FitStrategy]
    if config.strategy not in valid_strategies:
        errors.append(f"Unknown strategy: {config.strategy}. Valid: {valid_strategies}")

    if len(config.points) != 2:
        errors.append(f"Exactly two points are required, got {len(config.points)}")

    # Padding
    pad = config.padding
    if pad.mode not in PADDING_MODES:
        errors.append(f"Unknown padding mode: {pad.mode}. Valid: {list(PADDING_MODES)}")
    for name in ("pad_x", "pad_y", "fraction_x", "fraction_y"):
        value = getattr(pad, name)
        if not _is_number(value) or value < 0:
            errors.append(f"padding.{name} must be non-negative, got {value!r}")
    for name in ("min_span_x", "min_span_y"):
        value = getattr(pad, name)
        if not _is_number(value) or value <= 0:
            errors.append(f"padding.{name} must be positive, got {value!r}")

    # Sampling
    if not _is_number(config.sampling.step) or config.sampling.step <= 0:
        errors.append(f"sampling.step must be positive, got {config.sampling.step!r}")
    tol = config.sampling.splice_tolerance
    if not _is_number(tol) or tol < 0:
        errors.append(f"sampling.splice_tolerance must be non-negative, got {tol!r}")

    # Surface
    try:
        config.surface.to_surface()
    except ConfigurationError as e:
        errors.append(str(e))

    # Axes
    for name in ("x_tick_step", "y_tick_step"):
        value = getattr(config.axes, name)
        if not _is_number(value) or value <= 0:
            errors.append(f"axes.{name} must be positive, got {value!r}")
    if not isinstance(config.axes.max_ticks, int) or config.axes.max_ticks < 2:
        errors.append(f"axes.max_ticks must be an integer >= 2, got {config.axes.max_ticks!r}")

    # Export
    for fmt in config.export.formats:
        try:
            normalize_format(fmt)
        except ValueError as e:
            errors.append(str(e))
    if not config.export.filename or not config.export.filename.strip():
        errors.append("export.filename must be non-empty")
    if not _is_number(config.export.dpi) or config.export.dpi <= 0:
        errors.append(f"export.dpi must be positive, got {config.export.dpi!r}")
    if not _is_number(config.export.jpeg_quality) or not 1 <= config.export.jpeg_quality <= 100:
        errors.append(f"export.jpeg_quality must be in [1, 100], got {config.export.jpeg_quality!r}")

    return errors
