"""
Rendering and image export for chart scenes.

Requires the 'plot' optional dependency: pip install -e ".[plot]"

The renderer draws the pixel-space geometry of a Scene as-is: the figure is
sized to the scene's surface and the axes map one data unit to one pixel,
origin top-left.

Usage:
    from jevons_model import load_config, Runner
    from jevons_model.plot import plot_scene, export_scene

    result = Runner(load_config("configs/hybrid.json")).run()

    # Plot and show
    plot_scene(result.scene)

    # Or write image files
    export_scene(result.scene, "jevons-paradox.png")
    export_scene(result.scene, "jevons-paradox.svg")
"""

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional, Union

try:
    import matplotlib.pyplot as plt
    import matplotlib.patches as mpatches
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from .config import normalize_format
from .runner import Scene


COLORS = {
    'curve': '#10b981',        # Emerald cost curve
    'curve_alt': '#6366f1',    # Second curve (independent inverse fit)
    'guide': '#e11d48',        # Drop-lines and point markers
    'text': '#0f172a',         # Titles and labels
    'tick': '#334155',         # Tick labels
    'axis': '#94a3b8',
    'label_bg': '#ecfdf5',     # Delta label box
}


@dataclass
class PlotStyle:
    """Centralized style configuration for rendered charts.

    Override individual fields to customize: ``PlotStyle(curve_width=2)``.
    """

    # Curve
    curve_width: float = 4.0
    curve_alpha: float = 0.8
    fallback_linestyle: str = ':'

    # Guides
    guide_width: float = 2.0
    guide_alpha: float = 0.6
    guide_dash: tuple = (5, 5)
    marker_size: float = 7.0

    # Axes
    axis_width: float = 1.0
    tick_length: float = 4.0
    grid: bool = True
    grid_alpha: float = 0.3
    grid_color: str = '#cccccc'

    # Figure
    facecolor: str = 'white'

    # Font sizes (points)
    title_fontsize: int = 11
    tick_fontsize: int = 9
    caption_fontsize: int = 9
    delta_fontsize: int = 11

    # Point value labels repeat tick positions; off by default
    show_value_labels: bool = False

    # Colors (override COLORS dict entries)
    colors: Optional[Dict[str, str]] = None

    def color(self, key: str) -> str:
        if self.colors and key in self.colors:
            return self.colors[key]
        return COLORS[key]


DEFAULT_STYLE = PlotStyle()


def _check_matplotlib():
    """Raise helpful error if matplotlib is not installed."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "Plotting requires matplotlib. Install with: pip install -e '.[plot]'"
        )


def _draw_axes(ax, scene: Scene, style: PlotStyle):
    """Axis lines, grid, ticks and axis titles."""
    s = scene.surface
    left, top, right, bottom = s.margin, s.margin, s.width - s.margin, s.height - s.margin

    for tick in scene.ticks.y:
        if style.grid:
            ax.plot([left, right], [tick.position] * 2, color=style.grid_color,
                    alpha=style.grid_alpha, linewidth=1, zorder=0)
        ax.plot([left - style.tick_length, left], [tick.position] * 2,
                color=style.color('axis'), linewidth=style.axis_width)
        ax.text(left - style.tick_length - 2, tick.position, tick.label,
                ha='right', va='center', fontsize=style.tick_fontsize, color=style.color('tick'))

    for tick in scene.ticks.x:
        if style.grid:
            ax.plot([tick.position] * 2, [top, bottom], color=style.grid_color,
                    alpha=style.grid_alpha, linewidth=1, zorder=0)
        ax.plot([tick.position] * 2, [bottom, bottom + style.tick_length],
                color=style.color('axis'), linewidth=style.axis_width)
        ax.text(tick.position, bottom + style.tick_length + 2, tick.label,
                ha='center', va='top', fontsize=style.tick_fontsize, color=style.color('tick'))

    ax.plot([left, right], [bottom, bottom], color=style.color('axis'), linewidth=style.axis_width)
    ax.plot([left, left], [top, bottom], color=style.color('axis'), linewidth=style.axis_width)

    ax.text((left + right) / 2, s.height - 2, scene.x_title, ha='center', va='bottom',
            fontsize=style.title_fontsize, fontweight='bold', color=style.color('text'))
    ax.text(2, (top + bottom) / 2, scene.y_title, ha='left', va='center', rotation=90,
            fontsize=style.title_fontsize, fontweight='bold', color=style.color('text'))


def _draw_curves(ax, scene: Scene, style: PlotStyle):
    s = scene.surface
    clip = mpatches.Rectangle((s.margin, s.margin), s.plot_width, s.plot_height,
                              transform=ax.transData, fill=False, visible=False)
    ax.add_patch(clip)

    color_keys = ['curve', 'curve_alt']
    for i, curve in enumerate(scene.curves):
        xs = [p.x for p in curve.polyline]
        ys = [p.y for p in curve.polyline]
        (line,) = ax.plot(xs, ys, color=style.color(color_keys[i % len(color_keys)]),
                          linewidth=style.curve_width, alpha=style.curve_alpha,
                          linestyle=style.fallback_linestyle if curve.fallback else '-',
                          solid_capstyle='round', label=curve.name, zorder=2)
        line.set_clip_path(clip)


def _draw_annotations(ax, scene: Scene, style: PlotStyle):
    guide = style.color('guide')
    for guide_line in scene.annotations.lines:
        ax.plot([guide_line.start.x, guide_line.end.x], [guide_line.start.y, guide_line.end.y],
                color=guide, alpha=style.guide_alpha, linewidth=style.guide_width,
                linestyle=(0, style.guide_dash) if guide_line.dashed else '-', zorder=1)

    for point in scene.points:
        if point.position is not None:
            ax.plot(point.position.x, point.position.y, 'o', color=guide,
                    markersize=style.marker_size, zorder=3)

    arrow = scene.annotations.arrow
    if arrow is not None and arrow.start.x != arrow.end.x:
        ax.annotate('', xy=(arrow.end.x, arrow.end.y), xytext=(arrow.start.x, arrow.start.y),
                    arrowprops=dict(arrowstyle='->', color=style.color('text'), linewidth=1.5),
                    zorder=3)

    for label in scene.annotations.labels:
        if label.role == 'delta':
            ax.text(label.anchor.x, label.anchor.y, label.text, ha='center', va='center',
                    fontsize=style.delta_fontsize, fontweight='bold', color=style.color('text'),
                    bbox=dict(boxstyle='round,pad=0.4', facecolor=style.color('label_bg'),
                              edgecolor='none', alpha=0.9),
                    zorder=4)
        elif label.role == 'caption':
            ax.text(label.anchor.x, label.anchor.y, label.text, ha='left', va='bottom',
                    fontsize=style.caption_fontsize, color=style.color('text'), zorder=4)
        elif style.show_value_labels and label.role == 'x_value':
            ax.text(label.anchor.x, label.anchor.y, label.text, ha='center', va='top',
                    fontsize=style.tick_fontsize, fontweight='bold', color=guide)
        elif style.show_value_labels and label.role == 'y_value':
            ax.text(label.anchor.x, label.anchor.y, label.text, ha='right', va='center',
                    fontsize=style.tick_fontsize, fontweight='bold', color=guide)


def render_scene(scene: Scene, style: Optional[PlotStyle] = None, dpi: int = 100) -> Any:
    """
    Draw a scene onto a new matplotlib Figure sized to the scene's surface.

    Args:
        scene: Scene from build_scene / Runner.run
        style: Optional PlotStyle (default: DEFAULT_STYLE)
        dpi: Figure resolution; the surface size is in pixels at this dpi

    Returns:
        matplotlib Figure object (caller closes it)
    """
    _check_matplotlib()

    if style is None:
        style = DEFAULT_STYLE

    s = scene.surface
    fig = plt.figure(figsize=(s.width / dpi, s.height / dpi), dpi=dpi)
    fig.patch.set_facecolor(style.facecolor)

    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, s.width)
    ax.set_ylim(s.height, 0)  # Pixel origin is top-left
    ax.axis('off')

    _draw_axes(ax, scene, style)
    _draw_curves(ax, scene, style)
    _draw_annotations(ax, scene, style)

    return fig


def plot_scene(
    scene: Scene,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = True,
    style: Optional[PlotStyle] = None,
    dpi: int = 100,
) -> Optional[Any]:
    """
    Render a scene, optionally saving and/or showing it.

    Returns:
        matplotlib Figure object
    """
    fig = render_scene(scene, style=style, dpi=dpi)

    if save_path:
        export_figure(fig, save_path, dpi=dpi)

    if show:
        plt.show()

    return fig


def export_figure(
    fig,
    path: Union[str, Path],
    fmt: Optional[str] = None,
    dpi: int = 100,
    jpeg_quality: int = 95,
) -> Path:
    """
    Save a rendered figure. The format comes from fmt or the file suffix.

    Raises:
        ValueError: If the format is missing or unsupported
    """
    path = Path(path)
    fmt = normalize_format(fmt if fmt else path.suffix)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, format=fmt, dpi=dpi, facecolor=fig.get_facecolor(),
                **_format_kwargs(fmt, jpeg_quality))
    return path


def _format_kwargs(fmt: str, jpeg_quality: int) -> dict:
    if fmt == 'jpeg':
        return {'pil_kwargs': {'quality': jpeg_quality}}
    return {}


def export_scene(
    scene: Scene,
    path: Union[str, Path],
    fmt: Optional[str] = None,
    style: Optional[PlotStyle] = None,
    dpi: int = 100,
    jpeg_quality: int = 95,
) -> Path:
    """
    Render a scene and write it as PNG, JPEG, SVG or PDF.

    Args:
        scene: Scene to render
        path: Output file path
        fmt: Format name; defaults to the file suffix
        style: Optional PlotStyle
        dpi: Resolution for raster formats
        jpeg_quality: JPEG quality (1-100)

    Returns:
        Path of the written file
    """
    fmt = normalize_format(fmt if fmt else Path(path).suffix)
    fig = render_scene(scene, style=style, dpi=dpi)
    try:
        return export_figure(fig, path, fmt=fmt, dpi=dpi, jpeg_quality=jpeg_quality)
    finally:
        plt.close(fig)


def export_scene_bytes(
    scene: Scene,
    fmt: str = 'png',
    style: Optional[PlotStyle] = None,
    dpi: int = 100,
    jpeg_quality: int = 95,
) -> bytes:
    """Render a scene and return the encoded image bytes."""
    fmt = normalize_format(fmt)
    fig = render_scene(scene, style=style, dpi=dpi)
    try:
        buf = BytesIO()
        fig.savefig(buf, format=fmt, dpi=dpi, facecolor=fig.get_facecolor(),
                    **_format_kwargs(fmt, jpeg_quality))
        return buf.getvalue()
    finally:
        plt.close(fig)
