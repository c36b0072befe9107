"""
Plain-text formatting for terminal output.

All formatting functions return plain text using box-drawing characters (no ANSI).
Color is applied separately via colorize() as a post-processing step for terminal display.
"""

import os
import sys
from typing import Any, List, Optional, Sequence, Tuple

from .geometry import format_currency, format_number


def supports_color() -> bool:
    """Detect whether the terminal supports ANSI color output.

    Respects NO_COLOR (https://no-color.org/) and FORCE_COLOR env vars.
    """
    if os.environ.get('NO_COLOR') is not None:
        return False
    if os.environ.get('FORCE_COLOR') is not None:
        return True
    if not hasattr(sys.stdout, 'isatty'):
        return False
    return sys.stdout.isatty()


# ── Box-drawing characters ──────────────────────────────────────────

_HEAVY_H = '═'
_LIGHT_H = '─'
_VL = '│'
_CORNERS = ('┌┬┐', '├┼┤', '└┴┘')


# ── Formatting primitives ──────────────────────────────────────────

def title(text: str, width: int = 60) -> str:
    """Prominent title with heavy-line borders.

    Example::

        ═══════════════ Jevons Paradox ═══════════════
    """
    padding = max(width - len(text) - 2, 4)
    left = padding // 2
    right = padding - left
    return f"{_HEAVY_H * left} {text} {_HEAVY_H * right}"


def heading(text: str) -> str:
    """Section heading with light-line underline."""
    return f"  {text}\n  {_LIGHT_H * len(text)}"


def kv_block(items: Sequence[Tuple[str, str]], indent: int = 2) -> str:
    """Aligned key-value pairs with dot leaders.

    Example::

        Strategy ····· power_law
        b ············ -1.4748
    """
    if not items:
        return ""
    max_key = max(len(k) for k, _ in items)
    prefix = ' ' * indent
    return "\n".join(
        f"{prefix}{key} {'·' * (max_key - len(key) + 2)} {value}" for key, value in items
    )


def table(headers: Sequence[str], rows: Sequence[Sequence[Any]],
          aligns: Optional[Sequence[str]] = None) -> str:
    """Box-drawing bordered table; aligns holds 'l' or 'r' per column."""
    if not headers:
        return ""
    n_cols = len(headers)
    aligns = list(aligns) if aligns else ['l'] * n_cols

    widths = [len(str(h)) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[:n_cols]):
            widths[i] = max(widths[i], len(str(cell)))

    def _row(cells: Sequence[Any]) -> str:
        parts = []
        for i in range(n_cols):
            text = str(cells[i]) if i < len(cells) else ''
            text = text.rjust(widths[i]) if aligns[i] == 'r' else text.ljust(widths[i])
            parts.append(f" {text} ")
        return _VL + _VL.join(parts) + _VL

    def _rule(chars: str) -> str:
        left, mid, right = chars
        return left + mid.join(_LIGHT_H * (w + 2) for w in widths) + right

    lines = [_rule(_CORNERS[0]), _row(headers), _rule(_CORNERS[1])]
    lines.extend(_row(r) for r in rows)
    lines.append(_rule(_CORNERS[2]))
    return "\n".join(lines)


def note_block(lines_list: Sequence[str], indent: int = 2) -> str:
    """Indented note section with dot markers."""
    prefix = ' ' * indent
    return "\n".join(f"{prefix}· {line}" for line in lines_list)


# ── Scene summary ──────────────────────────────────────────────────

def format_scene_summary(scene, name: Optional[str] = None) -> str:
    """Human-readable summary of a Scene: fit, range, points and diagnostics."""
    lines: List[str] = [title(name or "Jevons Paradox"), ""]

    lines.append(heading("Fit"))
    items = [("Strategy", scene.strategy.value)]
    for curve in scene.curves:
        params = f"a={curve.params.a:.6g}, b={curve.params.b:.4f}"
        if curve.fallback:
            params += " (fallback)"
        items.append((curve.name, params))
    lines.append(kv_block(items))
    lines.append("")

    r = scene.axis_range
    lines.append(heading("Range"))
    lines.append(kv_block([
        ("Usage", f"{format_number(r.min_x)} .. {format_number(r.max_x)}"),
        ("Cost", f"{format_currency(r.min_y)} .. {format_currency(r.max_y)}"),
    ]))
    lines.append("")

    rows = []
    for sp in scene.points:
        pos = f"({sp.position.x:.1f}, {sp.position.y:.1f})" if sp.position else "N/A"
        rows.append([sp.owner, sp.point.label, format_currency(sp.point.cost),
                     format_number(sp.point.usage), pos])
    lines.append(table(["", "Label", "Cost", "Usage", "Pixel"], rows,
                       aligns=['l', 'l', 'r', 'r', 'r']))

    if scene.annotations.arrow is not None:
        lines.append("")
        lines.append(f"  ▸ {scene.annotations.arrow.label}")

    if scene.diagnostics:
        lines.append("")
        lines.append(note_block(scene.diagnostics))

    return "\n".join(lines)


# ── ANSI Color Post-Processing ─────────────────────────────────────

_RESET = '\033[0m'
_BOLD = '\033[1m'
_DIM = '\033[2m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'


def colorize(text: str) -> str:
    """Apply ANSI colors to formatted text.

    - Title lines (═══) → bold cyan
    - Heading underlines, table borders and notes → dim
    - Badge markers (▸) and "(fallback)" → yellow
    """
    return '\n'.join(_colorize_line(line) for line in text.split('\n'))


def _colorize_line(line: str) -> str:
    stripped = line.strip()
    if not stripped:
        return line
    if _HEAVY_H in line:
        return f"{_BOLD}{_CYAN}{line}{_RESET}"
    if all(c == _LIGHT_H for c in stripped) or stripped[0] in '┌├└' or stripped.startswith('·'):
        return f"{_DIM}{line}{_RESET}"
    if '▸' in line:
        return line.replace('▸', f"{_YELLOW}▸{_RESET}")
    if '(fallback)' in line:
        return line.replace('(fallback)', f"{_YELLOW}(fallback){_RESET}")
    return line
