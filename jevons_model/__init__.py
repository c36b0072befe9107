"""
Jevons Paradox Curve Model

Fits a cost curve through two (cost, usage) observations, e.g. a regular car
at $4 for 250 miles/week and a hybrid at $2 for 400 miles/week, and maps the
curve, the points and their guide annotations onto a pixel drawing surface.

Example usage (programmatic):
    from jevons_model import ObservationPoint, build_scene

    scene = build_scene(
        ObservationPoint("Regular car", cost=4, usage=250),
        ObservationPoint("Hybrid car", cost=2, usage=400),
    )
    print(scene.curves[0].params)           # a ~= 13755, b ~= -1.4748
    print(scene.annotations.arrow.label)    # "150 miles more"

Example usage (JSON config):
    from jevons_model import load_config, Runner, save_result

    config = load_config("configs/hybrid.json")
    result = Runner(config).run()
    save_result(result, "results/hybrid.json")

CLI usage:
    python -m jevons_model --export jevons-paradox.png
"""

from .model import (
    ConfigurationError,
    ObservationPoint,
    coerce_observation,
    DEFAULT_POINTS,
    FitStrategy,
    ModelParameters,
    FALLBACK_PARAMETERS,
    FitResult,
    fit,
    fit_power_law,
    fit_inverse,
    RangePaddingPolicy,
    AxisRange,
    compute_range,
)

from .sampler import (
    CurveSample,
    sample_curve,
    splice_points,
    sample_fit,
)

from .geometry import (
    Surface,
    ProjectedPoint,
    GeometryProjector,
    project,
    GuideLine,
    Arrow,
    TextLabel,
    Annotations,
    build_annotations,
    Tick,
    AxisTicks,
    build_ticks,
)

from .config import (
    ChartConfig,
    PointSpec,
    SamplingSpec,
    SurfaceSpec,
    AxesSpec,
    ExportSpec,
    load_config,
    save_config,
    validate_config,
)

from .runner import (
    Scene,
    ScenePoint,
    CurveSeries,
    build_scene,
    build_scene_from_config,
    Runner,
    RunResult,
    save_result,
    load_result,
)

# Rendering (optional, requires matplotlib)
try:
    from .plot import (
        render_scene,
        plot_scene,
        export_scene,
        export_scene_bytes,
    )
    _HAS_PLOT = True
except ImportError:
    _HAS_PLOT = False
    render_scene = None
    plot_scene = None
    export_scene = None
    export_scene_bytes = None

__all__ = [
    # Core model
    'ConfigurationError',
    'ObservationPoint',
    'coerce_observation',
    'DEFAULT_POINTS',
    'FitStrategy',
    'ModelParameters',
    'FALLBACK_PARAMETERS',
    'FitResult',
    'fit',
    'fit_power_law',
    'fit_inverse',
    'RangePaddingPolicy',
    'AxisRange',
    'compute_range',
    # Sampling
    'CurveSample',
    'sample_curve',
    'splice_points',
    'sample_fit',
    # Geometry
    'Surface',
    'ProjectedPoint',
    'GeometryProjector',
    'project',
    'GuideLine',
    'Arrow',
    'TextLabel',
    'Annotations',
    'build_annotations',
    'Tick',
    'AxisTicks',
    'build_ticks',
    # Config
    'ChartConfig',
    'PointSpec',
    'SamplingSpec',
    'SurfaceSpec',
    'AxesSpec',
    'ExportSpec',
    'load_config',
    'save_config',
    'validate_config',
    # Runner
    'Scene',
    'ScenePoint',
    'CurveSeries',
    'build_scene',
    'build_scene_from_config',
    'Runner',
    'RunResult',
    'save_result',
    'load_result',
    # Rendering (optional)
    'render_scene',
    'plot_scene',
    'export_scene',
    'export_scene_bytes',
]

__version__ = '0.1.0'
