"""Deterministic color selection for chart series."""

from __future__ import annotations

from collections.abc import Sequence

from analysis.dto import MetricStyle

DEFAULT_CHART_COLORS: tuple[str, ...] = (
    "#6366f1",
    "#f59e42",
    "#10b981",
    "#ef4444",
    "#fbbf24",
    "#3b82f6",
    "#a21caf",
    "#14b8a6",
    "#eab308",
    "#f472b6",
)

# Theme palette emitted in the option object for renderer-assigned colors.
THEME_COLORS: tuple[str, ...] = (
    "#5470c6",
    "#91cc75",
    "#fac858",
    "#ee6666",
    "#73c0de",
    "#3ba272",
    "#fc8452",
    "#9a60b4",
    "#ea7ccc",
)


def color_for_index(index: int, palette: Sequence[str] = DEFAULT_CHART_COLORS) -> str:
    """Return the palette color for a series index, wrapping around.

    Args:
        index: Zero-based series (or slice) index.
        palette: Non-empty color list.

    Returns:
        A hex color string.
    """

    return palette[index % len(palette)]


def colors_for_labels(labels: Sequence[str]) -> tuple[str, ...]:
    """Return one palette color per label (pie slices)."""

    return tuple(color_for_index(index) for index in range(len(labels)))


def series_color(index: int, style: MetricStyle | None) -> str:
    """Return the explicit style color, else the palette color for `index`."""

    if style is not None:
        if style.color:
            return style.color
        if style.colors:
            return style.colors[0]
    return color_for_index(index)


def hex_to_rgba(color: str, opacity: float) -> str:
    """Convert `#rgb` / `#rrggbb` to an `rgba()` string.

    Non-hex colors (named colors, existing rgb() strings) are returned as-is.
    """

    text = color.strip()
    if not text.startswith("#"):
        return text
    digits = text[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        return text
    try:
        red, green, blue = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return text
    alpha = max(0.0, min(1.0, opacity))
    return f"rgba({red}, {green}, {blue}, {alpha:g})"
