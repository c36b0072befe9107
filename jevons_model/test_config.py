"""
Tests for chart config serialization and validation.

Run with: pytest test_config.py -v
"""

import pytest
import json
import math

from .config import (
    ChartConfig, PointSpec, SamplingSpec, SurfaceSpec, AxesSpec, ExportSpec,
    load_config, save_config, validate_config, normalize_format,
)
from .model import ConfigurationError, RangePaddingPolicy


class TestPointSpec:

    def test_to_observation_coerces(self):
        p = PointSpec(label="Hybrid car", cost="2", usage="400").to_observation()
        assert (p.label, p.cost, p.usage) == ("Hybrid car", 2.0, 400.0)

    def test_invalid_values_survive(self):
        spec = PointSpec.from_dict({"label": "x", "cost": "abc", "miles": 10})
        assert spec.cost == "abc"
        assert spec.usage == 10
        assert math.isnan(spec.to_observation().cost)


class TestChartConfig:

    def test_defaults(self):
        config = ChartConfig()
        p1, p2 = config.observations()
        assert (p1.label, p1.cost, p1.usage) == ("Regular car", 4.0, 250.0)
        assert (p2.label, p2.cost, p2.usage) == ("Hybrid car", 2.0, 400.0)
        assert config.strategy == "power_law"
        assert validate_config(config) == []

    def test_round_trip(self):
        config = ChartConfig(
            name="bikes",
            strategy="inverse_independent",
            points=[PointSpec("Bike", 1.0, 30.0), PointSpec("E-bike", 0.5, 70.0)],
            padding=RangePaddingPolicy(mode="relative"),
            sampling=SamplingSpec(step=2.0, splice_tolerance=1.0),
            surface=SurfaceSpec(width=800, height=500, margin=50),
            axes=AxesSpec(unit="km", x_tick_step=10.0),
            export=ExportSpec(formats=["png", "svg"], dpi=150),
        )
        assert ChartConfig.from_dict(config.to_dict()) == config

    def test_from_empty_dict_uses_defaults(self):
        assert ChartConfig.from_dict({}) == ChartConfig()

    def test_save_and_load(self, tmp_path):
        config = ChartConfig(name="saved", points=[PointSpec("a", 3, 100), PointSpec("b", 1, 300)])
        path = tmp_path / "nested" / "chart.json"
        save_config(config, path)
        assert json.loads(path.read_text())["name"] == "saved"
        assert load_config(path) == config

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.json")

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_config(path)

    def test_load_miles_field(self, tmp_path):
        path = tmp_path / "chart.json"
        path.write_text(json.dumps({
            "name": "cars",
            "points": [{"label": "Car", "cost": 4, "miles": 250},
                       {"label": "Hybrid", "cost": 2, "miles": 400}],
        }))
        p1, p2 = load_config(path).observations()
        assert (p1.usage, p2.usage) == (250.0, 400.0)

    def test_load_with_comments(self, tmp_path):
        pytest.importorskip("json5")
        path = tmp_path / "chart.json"
        path.write_text('{\n  // two cars\n  "name": "cars",\n  "strategy": "power_law",\n}\n')
        assert load_config(path).name == "cars"


class TestExportSpec:

    def test_paths(self, tmp_path):
        spec = ExportSpec(formats=["png", "jpg"], filename="chart", output_dir=str(tmp_path))
        assert spec.paths() == [tmp_path / "chart.png", tmp_path / "chart.jpeg"]

    @pytest.mark.parametrize("fmt,expected", [
        ("png", "png"), (".PNG", "png"), ("jpg", "jpeg"), ("svg", "svg"), ("pdf", "pdf"),
    ])
    def test_normalize_format(self, fmt, expected):
        assert normalize_format(fmt) == expected

    @pytest.mark.parametrize("fmt", ["", "gif", "bmp"])
    def test_unsupported_format(self, fmt):
        with pytest.raises(ValueError):
            normalize_format(fmt)


class TestValidateConfig:

    def test_bad_points_are_not_config_errors(self):
        config = ChartConfig(points=[PointSpec("a", "abc", -1), PointSpec("b", 0, 0)])
        assert validate_config(config) == []

    def test_wrong_point_count(self):
        config = ChartConfig(points=[PointSpec("a", 1, 1)])
        assert any("two points" in e for e in validate_config(config))

    def test_unknown_strategy(self):
        assert any("strategy" in e for e in validate_config(ChartConfig(strategy="cubic")))

    def test_non_positive_step(self):
        config = ChartConfig(sampling=SamplingSpec(step=0))
        assert any("sampling.step" in e for e in validate_config(config))

    def test_bad_surface(self):
        config = ChartConfig(surface=SurfaceSpec(width=0))
        errors = validate_config(config)
        assert len(errors) == 1
        assert "positive size" in errors[0]

    def test_bad_padding(self):
        config = ChartConfig(padding=RangePaddingPolicy(mode="log", pad_x=-1, min_span_y=0))
        errors = validate_config(config)
        assert len(errors) == 3

    def test_bad_export(self):
        config = ChartConfig(export=ExportSpec(formats=["gif"], filename=" ", dpi=0, jpeg_quality=101))
        assert len(validate_config(config)) == 4

    def test_bad_axes(self):
        config = ChartConfig(axes=AxesSpec(x_tick_step=-50, max_ticks=1))
        assert len(validate_config(config)) == 2

    def test_empty_name(self):
        assert validate_config(ChartConfig(name="  ")) == ["Config must have a non-empty 'name'"]

    def test_surface_spec_raises(self):
        with pytest.raises(ConfigurationError):
            SurfaceSpec(width=100, height=100, margin=60).to_surface()
