"""
Tests for the full pipeline: scenes, runner and result files.

Run with: pytest test_runner.py -v
"""

import pytest
import json
import math

from .config import ChartConfig, PointSpec, SamplingSpec, SurfaceSpec
from .geometry import Surface
from .model import (
    ConfigurationError, FALLBACK_PARAMETERS, FitStrategy, ObservationPoint,
)
from .runner import (
    Runner, build_scene, build_scene_from_config, save_result, load_result,
)
from .sampler import MAX_SAMPLES, CurveSample


@pytest.fixture
def car_points():
    return (ObservationPoint("Regular car", 4.0, 250.0),
            ObservationPoint("Hybrid car", 2.0, 400.0))


class TestBuildScene:
    """Tests for build_scene."""

    def test_power_law_scene(self, car_points):
        scene = build_scene(*car_points)
        assert scene.strategy is FitStrategy.POWER_LAW
        assert len(scene.curves) == 1
        curve = scene.curves[0]
        assert curve.name == "Cost Curve"
        assert curve.params.b == pytest.approx(math.log(0.5) / math.log(1.6))
        assert not curve.fallback
        assert CurveSample(250.0, 4.0) in curve.samples
        assert CurveSample(400.0, 2.0) in curve.samples
        assert len(curve.polyline) == len(curve.samples)
        assert scene.annotations.arrow.label == "150 miles more"
        assert scene.diagnostics == ()

    def test_point_positions_on_polyline(self, car_points):
        scene = build_scene(*car_points)
        polyline = scene.curves[0].polyline
        for sp in scene.points:
            assert sp.position in polyline

    def test_equal_usage_scenario(self):
        p1 = ObservationPoint("a", 4.0, 250.0)
        p2 = ObservationPoint("b", 2.0, 250.0)
        scene = build_scene(p1, p2)
        assert scene.curves[0].params == FALLBACK_PARAMETERS
        assert scene.curves[0].fallback
        assert scene.axis_range.max_x > scene.axis_range.min_x
        assert "fallback_fit" in scene.diagnostics
        assert "degenerate_range" in scene.diagnostics
        assert scene.annotations.arrow.label == "0 miles more"

    def test_invalid_input_never_raises(self):
        p1 = ObservationPoint("a", math.nan, -5.0)
        p2 = ObservationPoint("b", 0.0, math.nan)
        scene = build_scene(p1, p2)
        assert scene.curves[0].samples
        assert scene.points[0].position is None
        assert "invalid_observation:p1" in scene.diagnostics
        assert "invalid_observation:p2" in scene.diagnostics
        assert scene.annotations.lines == ()
        json.dumps(scene.to_dict(), allow_nan=False)

    def test_inverse_scene(self, car_points):
        scene = build_scene(*car_points, strategy="inverse_independent")
        assert [c.name for c in scene.curves] == ["Regular car", "Hybrid car"]
        assert [c.params.a for c in scene.curves] == [1000.0, 800.0]

    def test_samples_sorted_and_non_empty(self, car_points):
        for strategy in FitStrategy:
            scene = build_scene(*car_points, strategy=strategy, step=3.0)
            for curve in scene.curves:
                xs = [s.x for s in curve.samples]
                assert xs
                assert all(a < b for a, b in zip(xs, xs[1:]))

    def test_wide_usage_span_does_not_raise(self):
        scene = build_scene(ObservationPoint("a", 100.0, 1e5), ObservationPoint("b", 1.0, 1e6))
        samples = scene.curves[0].samples
        assert 0 < len(samples) <= MAX_SAMPLES + 2
        assert samples[-1].x == scene.axis_range.max_x
        assert scene.diagnostics == ()

    def test_inverse_overflow_falls_back(self):
        scene = build_scene(ObservationPoint("a", 1e300, 1e10), ObservationPoint("b", 2.0, 1e10 + 40),
                            strategy="inverse_independent")
        assert scene.curves[0].params is FALLBACK_PARAMETERS
        assert scene.curves[0].fallback
        assert "fallback_fit" in scene.diagnostics
        assert all(curve.samples for curve in scene.curves)
        json.dumps(scene.to_dict(), allow_nan=False)

    def test_idempotent(self, car_points):
        first = json.dumps(build_scene(*car_points).to_dict())
        second = json.dumps(build_scene(*car_points).to_dict())
        assert first == second

    def test_configuration_errors(self, car_points):
        with pytest.raises(ConfigurationError):
            build_scene(*car_points, step=0)
        with pytest.raises(ConfigurationError):
            build_scene(*car_points, strategy="spline")
        with pytest.raises(ConfigurationError):
            build_scene(*car_points, surface=Surface(width=-1))

    def test_custom_titles_and_unit(self, car_points):
        scene = build_scene(*car_points, unit="km", x_title="Distance", y_title="Price")
        assert scene.annotations.arrow.label == "150 km more"
        d = scene.to_dict()
        assert (d["x_title"], d["y_title"]) == ("Distance", "Price")
        assert d["ticks"]["y"][0]["label"] == "$0"


class TestRunner:
    """Tests for Runner and result files."""

    def test_run_defaults(self):
        result = Runner(ChartConfig(), config_path="configs/default.json").run()
        assert result.meta["chart_name"] == "jevons-paradox"
        assert result.meta["config_path"] == "configs/default.json"
        assert result.scene.annotations.arrow.label == "150 miles more"
        assert result.config["strategy"] == "power_law"

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigurationError):
            Runner(ChartConfig(sampling=SamplingSpec(step=-1)))

    def test_build_from_config_string_points(self):
        config = ChartConfig(points=[PointSpec("a", "4", "250"), PointSpec("b", "2", "400")],
                             surface=SurfaceSpec(width=800, height=600, margin=20))
        scene = build_scene_from_config(config)
        assert scene.surface == Surface(800, 600, 20)
        assert scene.points[1].point.cost == 2.0

    def test_build_from_config_point_count(self):
        with pytest.raises(ConfigurationError):
            build_scene_from_config(ChartConfig(points=[]))

    def test_save_and_load(self, tmp_path):
        result = Runner(ChartConfig()).run()
        path = tmp_path / "out" / "result.json"
        save_result(result, path)
        data = load_result(path)
        assert data["scene"]["annotations"]["arrow"]["label"] == "150 miles more"
        assert data["meta"]["version"] == result.meta["version"]
        assert len(data["scene"]["curves"][0]["samples"]) == len(result.scene.curves[0].samples)
