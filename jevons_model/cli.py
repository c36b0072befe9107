"""
Command-line interface for building and exporting charts.

Usage:
    jevons-model
    jevons-model --point "Regular car" 4 250 --point "Hybrid car" 2 400
    jevons-model --config configs/hybrid.json --export chart.png --export chart.svg
    jevons-model --strategy inverse_independent --stdout
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ChartConfig, PointSpec, load_config, validate_config
from .formatter import colorize, format_scene_summary, supports_color
from .model import ConfigurationError, FitStrategy
from .runner import Runner, RunResult, save_result

# Optional plotting support
try:
    from .plot import export_scene
    HAS_PLOT = True
except ImportError:
    HAS_PLOT = False
    export_scene = None

logger = logging.getLogger("jevons_model")


def _configure_logging(level_name: str) -> None:
    """Send package log records to stderr at the given level, leaving the root logger alone."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(logging.BASIC_FORMAT))
    for old in logger.handlers[:]:
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(getattr(logging, level_name))


def build_config(args: argparse.Namespace) -> ChartConfig:
    """Load the config file (or defaults) and apply command-line overrides."""
    config = load_config(args.config) if args.config else ChartConfig()

    if args.point:
        config.points = [PointSpec(label=label, cost=cost, usage=usage)
                         for label, cost, usage in args.point]
    if args.strategy:
        config.strategy = args.strategy
    if args.step is not None:
        config.sampling.step = args.step
    if args.padding:
        config.padding.mode = args.padding
    return config


def _export_images(result: RunResult, config: ChartConfig, paths: List[Path], quiet: bool) -> bool:
    if not HAS_PLOT:
        print("Error: image export requires matplotlib. Install with: pip install -e '.[plot]'",
              file=sys.stderr)
        return False
    for path in paths:
        try:
            written = export_scene(result.scene, path, dpi=config.export.dpi,
                                   jpeg_quality=config.export.jpeg_quality)
        except (ValueError, OSError) as e:
            print(f"Error exporting {path}: {e}", file=sys.stderr)
            return False
        if not quiet:
            print(f"Image saved to: {written}")
    return True


def run(args: argparse.Namespace) -> int:
    """Run the chart pipeline for parsed arguments and return an exit code."""
    try:
        config = build_config(args)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Invalid config {args.config}: {e}", file=sys.stderr)
        return 1

    errors = validate_config(config)
    if errors:
        print("Error: Invalid config:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        return 1

    try:
        result = Runner(config, config_path=str(args.config) if args.config else None).run()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.stdout:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        if args.output:
            save_result(result, args.output)
            if not args.quiet:
                print(f"Results saved to: {args.output}")
        if not args.quiet:
            summary = format_scene_summary(result.scene, name=config.name)
            print(colorize(summary) if supports_color() else summary)

    paths = list(args.export or [])
    if args.export_all:
        paths.extend(config.export.paths())
    if paths and not _export_images(result, config, paths, quiet=args.quiet or args.stdout):
        return 1

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Fit and draw a Jevons Paradox cost curve through two observations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --point "Regular car" 4 250 --point "Hybrid car" 2 400
  %(prog)s --config configs/hybrid.json -o results/hybrid.json
  %(prog)s --export jevons-paradox.png --export jevons-paradox.jpeg
  %(prog)s --strategy inverse_independent --stdout
        """,
    )

    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Chart config file (JSON, or JSONC when json5 is installed)",
    )
    parser.add_argument(
        "--point",
        nargs=3,
        action="append",
        metavar=("LABEL", "COST", "USAGE"),
        help="Observation point; give exactly twice (before, after)",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in FitStrategy],
        default=None,
        help="Curve family (default: from config, else power_law)",
    )
    parser.add_argument(
        "--step",
        type=float,
        default=None,
        help="Curve sampling step in usage units",
    )
    parser.add_argument(
        "--padding",
        choices=["absolute", "relative"],
        default=None,
        help="Axis padding mode",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Save the JSON result to this path",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print JSON result to stdout instead of the summary",
    )
    parser.add_argument(
        "--export",
        type=Path,
        action="append",
        help="Export the chart image (format from suffix: png, jpeg, svg, pdf); repeatable",
    )
    parser.add_argument(
        "--export-all",
        action="store_true",
        help="Export every format listed in the config's export section",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress summary output",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level for jevons_model",
    )

    args = parser.parse_args(argv)

    if args.point is not None and len(args.point) != 2:
        parser.error("--point must be given exactly twice")
    if args.stdout and args.output:
        parser.error("Cannot use --stdout with --output")

    _configure_logging(args.log_level)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
