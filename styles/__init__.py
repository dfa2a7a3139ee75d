"""Palette for vimplay widgets. Widget CSS repeats these hex values."""

COLORS = {
    "accent": "#cc5500",
    "primary": "#ff8c00",
    "highlight": "#ffb347",
    "background": "#1a1a1a",
    "surface": "#2d2d2d",
    "muted": "#888888",
    "dim": "#555555",
    "track": "#333333",
    "selection": "#3d2a14",
    "loop_mark": "#ffffff",
}

COLOR_ACCENT = COLORS["accent"]
COLOR_PRIMARY = COLORS["primary"]
COLOR_HIGHLIGHT = COLORS["highlight"]
COLOR_BACKGROUND = COLORS["background"]
COLOR_SURFACE = COLORS["surface"]
COLOR_MUTED = COLORS["muted"]
COLOR_DIM = COLORS["dim"]
# Unfilled part of progress and volume bars.
COLOR_TRACK = COLORS["track"]
# Rows inside a visual selection.
COLOR_SELECTION = COLORS["selection"]
COLOR_LOOP_MARK = COLORS["loop_mark"]


def bar_color(position: int, width: int) -> str:
    """Gradient for filled bar cells: accent, then primary, then highlight."""
    if position < width * 0.5:
        return COLOR_ACCENT
    if position < width * 0.75:
        return COLOR_PRIMARY
    return COLOR_HIGHLIGHT
