"""
Tests for the command-line interface.

Run with: pytest test_cli.py -v
"""

import pytest
import json
import logging

from . import cli
from .config import ChartConfig, PointSpec, save_config


@pytest.fixture(autouse=True)
def restore_package_logger():
    """cli.main reconfigures the package logger; put it back afterwards."""
    logger = logging.getLogger("jevons_model")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestCli:

    def test_default_summary(self, capsys, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert cli.main([]) == 0
        out = capsys.readouterr().out
        assert "Jevons" in out or "jevons" in out
        assert "150 miles more" in out
        assert "Regular car" in out

    def test_points_and_stdout(self, capsys):
        code = cli.main(["--point", "Bike", "1", "30", "--point", "E-bike", "0.5", "70", "--stdout"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["scene"]["annotations"]["arrow"]["label"] == "40 miles more"
        assert data["config"]["points"][0]["label"] == "Bike"

    def test_single_point_rejected(self):
        with pytest.raises(SystemExit):
            cli.main(["--point", "Bike", "1", "30"])

    def test_stdout_and_output_conflict(self, tmp_path):
        with pytest.raises(SystemExit):
            cli.main(["--stdout", "-o", str(tmp_path / "x.json")])

    def test_invalid_point_values_still_succeed(self, capsys):
        code = cli.main(["--point", "a", "abc", "250", "--point", "b", "2", "250", "--stdout"])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert "fallback_fit" in data["scene"]["diagnostics"]
        assert "invalid_observation:p1" in data["scene"]["diagnostics"]

    def test_wide_usage_span_succeeds(self, capsys):
        code = cli.main(["--point", "car", "4", "250", "--point", "ev", "2", "600000", "-q"])
        assert code == 0
        assert capsys.readouterr().err == ""

    def test_config_file_and_output(self, tmp_path, capsys):
        config_path = tmp_path / "chart.json"
        save_config(ChartConfig(name="bikes", strategy="inverse_independent",
                                points=[PointSpec("Bike", 1, 30), PointSpec("E-bike", 0.5, 70)]),
                    config_path)
        out_path = tmp_path / "result.json"
        assert cli.main(["--config", str(config_path), "-o", str(out_path), "-q"]) == 0
        data = json.loads(out_path.read_text())
        assert data["scene"]["strategy"] == "inverse_independent"
        assert data["meta"]["config_path"] == str(config_path)
        assert capsys.readouterr().out == ""

    def test_missing_config(self, tmp_path, capsys):
        assert cli.main(["--config", str(tmp_path / "nope.json")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_config_values(self, capsys):
        assert cli.main(["--step", "0"]) == 1
        assert "sampling.step" in capsys.readouterr().err

    def test_malformed_config(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert cli.main(["--config", str(path)]) == 1
        assert "Invalid config" in capsys.readouterr().err

    def test_log_level_is_isolated(self, capsys):
        assert cli.main(["--point", "a", "x", "1", "--point", "b", "2", "3",
                         "-q", "--log-level", "WARNING"]) == 0
        err = capsys.readouterr().err
        assert "Invalid observation p1" in err
        assert logging.getLogger("jevons_model").propagate is False

    def test_export(self, tmp_path, capsys):
        pytest.importorskip("matplotlib").use("Agg")
        png = tmp_path / "chart.png"
        svg = tmp_path / "chart.svg"
        assert cli.main(["--export", str(png), "--export", str(svg)]) == 0
        assert png.read_bytes().startswith(b"\x89PNG")
        assert svg.exists()
        assert f"Image saved to: {png}" in capsys.readouterr().out

    def test_export_bad_suffix(self, tmp_path, capsys):
        pytest.importorskip("matplotlib").use("Agg")
        assert cli.main(["--export", str(tmp_path / "chart.gif")]) == 1
        assert "Unsupported export format" in capsys.readouterr().err
