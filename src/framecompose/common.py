"""framecompose.common — shared utilities for frame evaluation.

Contains: numeric guards, clamped range mapping, CSS number formatting,
color parsing, path variable resolution, font loading and text rendering
for the preview renderer.
"""

import math
import re
from pathlib import Path

from PIL import ImageFont


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred for preview labels, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]


# ── Numeric utilities ──────────────────────────────────────────────

def is_finite_number(value) -> bool:
    """True for real int/float values that are finite. Booleans are not numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def interpolate(
    value: float,
    input_range: tuple[float, float],
    output_range: tuple[float, float],
) -> float:
    """Map value linearly from input_range onto output_range, clamped at both ends.

    A degenerate input range steps from start to end at that input.
    """
    in_start, in_end = input_range
    out_start, out_end = output_range
    if in_end == in_start:
        return out_start if value < in_end else out_end
    t = clamp((value - in_start) / (in_end - in_start), 0.0, 1.0)
    return out_start + (out_end - out_start) * t


def interpolate_points(
    value: float,
    input_points: list[float],
    output_points: list[float],
) -> float:
    """Piecewise-linear mapping through several points, clamped outside the range."""
    if not input_points:
        return 0.0
    if value <= input_points[0]:
        return output_points[0]
    if value >= input_points[-1]:
        return output_points[-1]
    for i in range(len(input_points) - 1):
        if input_points[i] <= value <= input_points[i + 1]:
            return interpolate(
                value,
                (input_points[i], input_points[i + 1]),
                (output_points[i], output_points[i + 1]),
            )
    return output_points[-1]


def css_number(value: float) -> str:
    """Format a number for inline CSS: at most 4 decimals, no trailing zeros."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


def resolve_color(
    value: str, palette: dict[str, tuple[int, int, int]],
) -> tuple[int, int, int]:
    """Resolve a color reference: palette key name or inline '#RRGGBB'.

    Palette keys are tried first. Values starting with '#' or made of 6 hex
    chars are parsed as inline hex. Anything else raises ValueError.
    """
    if value in palette:
        return palette[value]
    if value.startswith("#") or (
        len(value) == 6
        and all(c in "0123456789abcdefABCDEF" for c in value)
    ):
        return parse_hex_color(value)
    raise ValueError(
        f"Unknown color: '{value}'. Not in palette and not a hex value."
    )


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load Inter (or fallback) at the given size."""
    for font_path in FONT_PATHS:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=size, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default bitmap font.
    return ImageFont.load_default()
