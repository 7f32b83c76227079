"""
QuickColor Color Math

Pure colorspace conversions (HEX, RGB, HSV, HSL), WCAG contrast scoring,
color-blindness simulation and gradient interpolation. Every function here
is deterministic and free of I/O; input validation happens in
``quickcolor.services.colors.validation`` before these are called.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple

from quickcolor.schemas import ColorFormats
from quickcolor.services.results import ColorParseError

HEX_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class RGB(NamedTuple):
    """RGB triple, each channel in [0, 255]."""
    r: int
    g: int
    b: int


class HSV(NamedTuple):
    """HSV triple: hue in [0, 360), saturation and value in [0, 100]."""
    h: int
    s: int
    v: int


class HSL(NamedTuple):
    """HSL triple: hue in degrees [0, 360), saturation and lightness in [0, 1]."""
    h: float
    s: float
    l: float


class ColorBlindness(str, Enum):
    PROTANOPIA = "protanopia"
    DEUTERANOPIA = "deuteranopia"
    TRITANOPIA = "tritanopia"


@dataclass(frozen=True)
class WcagResult:
    """WCAG classification of a contrast ratio."""
    level: str  # "AAA", "AA", "A" or "Fail"
    large_text_ok: bool
    normal_text_ok: bool


# Dichromacy simulation matrices (Machado et al.), applied to normalized RGB
COLOR_BLINDNESS_MATRICES = {
    ColorBlindness.PROTANOPIA: (
        (0.56667, 0.43333, 0.0),
        (0.55833, 0.44167, 0.0),
        (0.0, 0.24167, 0.75833),
    ),
    ColorBlindness.DEUTERANOPIA: (
        (0.625, 0.375, 0.0),
        (0.70, 0.30, 0.0),
        (0.0, 0.30, 0.70),
    ),
    ColorBlindness.TRITANOPIA: (
        (0.95, 0.05, 0.0),
        (0.0, 0.43333, 0.56667),
        (0.0, 0.475, 0.525),
    ),
}


def round_half_up(value: float) -> int:
    """Round to nearest integer with halves going up (0.5 -> 1)."""
    return int(math.floor(value + 0.5))


def clamp_channel(value: float) -> int:
    """Round and clamp a channel value into [0, 255]."""
    return max(0, min(255, round_half_up(value)))


def is_valid_hex(value: str) -> bool:
    """Return True iff ``value`` is ``#`` followed by exactly 6 hex digits."""
    return isinstance(value, str) and HEX_PATTERN.match(value) is not None


def normalize_hex(value: str) -> str:
    """
    Trim whitespace, prepend ``#`` if absent and uppercase.

    Does not validate; pair with ``is_valid_hex``.
    """
    normalized = value.strip()
    if not normalized.startswith("#"):
        normalized = f"#{normalized}"
    return normalized.upper()


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Convert hex color string to RGB tuple.

    Args:
        hex_color: Color as ``RRGGBB`` or ``#RRGGBB`` (any case)

    Returns:
        RGB named tuple

    Raises:
        ColorParseError: If the string is not 6 hex digits
    """
    hex_clean = hex_color.strip().lstrip("#")
    if len(hex_clean) != 6:
        raise ColorParseError(f"Invalid hex color format: {hex_color}")

    try:
        return RGB(*(int(hex_clean[i:i + 2], 16) for i in (0, 2, 4)))
    except ValueError:
        raise ColorParseError(f"Invalid hex color format: {hex_color}")


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert RGB channels to an uppercase ``#RRGGBB`` string."""
    return f"#{clamp_channel(r):02X}{clamp_channel(g):02X}{clamp_channel(b):02X}"


def rgb_to_hsv_unrounded(r: float, g: float, b: float):
    """Unrounded HSV: hue in degrees [0, 360), saturation and value in [0, 1]."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0

    max_c = max(r, g, b)
    min_c = min(r, g, b)
    delta = max_c - min_c

    h = 0.0
    s = 0.0
    v = max_c

    if delta != 0:
        s = delta / max_c

        if max_c == r:
            h = ((g - b) / delta + (6 if g < b else 0)) / 6
        elif max_c == g:
            h = ((b - r) / delta + 2) / 6
        else:
            h = ((r - g) / delta + 4) / 6

    return (h * 360.0) % 360.0, s, v


def rgb_to_hsv(r: float, g: float, b: float) -> HSV:
    """
    Convert RGB to HSV.

    Hue is 0 for achromatic colors (including pure black).

    Returns:
        HSV with integer hue degrees and integer percentages
    """
    h, s, v = rgb_to_hsv_unrounded(r, g, b)
    return HSV(round_half_up(h) % 360, round_half_up(s * 100), round_half_up(v * 100))


def hsv_to_rgb_unrounded(h: float, s: float, v: float):
    """Sector decomposition with hue in degrees and s, v in [0, 1]."""
    h = (h % 360) / 360.0

    i = math.floor(h * 6)
    f = h * 6 - i
    p = v * (1 - s)
    q = v * (1 - f * s)
    t = v * (1 - (1 - f) * s)

    sector = i % 6
    if sector == 0:
        r, g, b = v, t, p
    elif sector == 1:
        r, g, b = q, v, p
    elif sector == 2:
        r, g, b = p, v, t
    elif sector == 3:
        r, g, b = p, q, v
    elif sector == 4:
        r, g, b = t, p, v
    else:
        r, g, b = v, p, q

    return r * 255, g * 255, b * 255


def hsv_to_rgb(h: float, s: float, v: float) -> RGB:
    """
    Convert HSV to RGB.

    Args:
        h: Hue in degrees (wraps modulo 360)
        s: Saturation percent [0, 100]
        v: Value percent [0, 100]
    """
    r, g, b = hsv_to_rgb_unrounded(h, s / 100.0, v / 100.0)
    return RGB(clamp_channel(r), clamp_channel(g), clamp_channel(b))


def get_color_formats(hex_color: str) -> ColorFormats:
    """Get every display representation of a color."""
    rgb = hex_to_rgb(hex_color)
    hsv = rgb_to_hsv(*rgb)

    return ColorFormats(
        hex=rgb_to_hex(*rgb),
        rgb=rgb,
        hsv=hsv,
        rgb_string=f"rgb({rgb.r}, {rgb.g}, {rgb.b})",
        hsv_string=f"hsv({hsv.h}°, {hsv.s}%, {hsv.v}%)",
    )


def rgb_to_hsl(r: float, g: float, b: float) -> HSL:
    """Convert RGB to HSL with hue in degrees and fractional s, l."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0

    max_c = max(r, g, b)
    min_c = min(r, g, b)
    lightness = (max_c + min_c) / 2

    if max_c == min_c:
        return HSL(0.0, 0.0, lightness)

    d = max_c - min_c
    saturation = d / (2 - max_c - min_c) if lightness > 0.5 else d / (max_c + min_c)

    if max_c == r:
        h = ((g - b) / d + (6 if g < b else 0)) / 6
    elif max_c == g:
        h = ((b - r) / d + 2) / 6
    else:
        h = ((r - g) / d + 4) / 6

    return HSL((h * 360.0) % 360.0, saturation, lightness)


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    """Convert HSL (hue degrees, fractional s and l) to RGB."""
    if s == 0:
        gray = clamp_channel(l * 255)
        return RGB(gray, gray, gray)

    def hue_to_channel(p: float, q: float, t: float) -> float:
        t %= 1.0
        if t < 1 / 6:
            return p + (q - p) * 6 * t
        if t < 1 / 2:
            return q
        if t < 2 / 3:
            return p + (q - p) * (2 / 3 - t) * 6
        return p

    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    hk = (h % 360) / 360.0

    return RGB(
        clamp_channel(hue_to_channel(p, q, hk + 1 / 3) * 255),
        clamp_channel(hue_to_channel(p, q, hk) * 255),
        clamp_channel(hue_to_channel(p, q, hk - 1 / 3) * 255),
    )


def rotate_hue(h: float, degrees: float) -> float:
    """Rotate a hue in degrees, wrapping into [0, 360)."""
    return ((h + degrees) % 360 + 360) % 360


def _linearize(channel: int) -> float:
    srgb = channel / 255.0
    return srgb / 12.92 if srgb <= 0.03928 else ((srgb + 0.055) / 1.055) ** 2.4


def relative_luminance(hex_color: str) -> float:
    """WCAG relative luminance of a hex color, in [0, 1]."""
    r, g, b = hex_to_rgb(hex_color)
    return 0.2126 * _linearize(r) + 0.7152 * _linearize(g) + 0.0722 * _linearize(b)


def get_contrast_ratio(hex_a: str, hex_b: str) -> float:
    """Return the WCAG contrast ratio between two colors, in [1, 21]."""
    lum_a = relative_luminance(hex_a)
    lum_b = relative_luminance(hex_b)
    lighter = max(lum_a, lum_b)
    darker = min(lum_a, lum_b)
    return (lighter + 0.05) / (darker + 0.05)


def get_wcag_level(ratio: float) -> WcagResult:
    """Classify a contrast ratio against WCAG 2.x thresholds."""
    if ratio >= 7:
        level = "AAA"
    elif ratio >= 4.5:
        level = "AA"
    elif ratio >= 3:
        level = "A"
    else:
        level = "Fail"

    return WcagResult(
        level=level,
        large_text_ok=ratio >= 3,
        normal_text_ok=ratio >= 4.5,
    )


def get_readable_text_color(background_hex: str) -> str:
    """Pick black or white text, whichever contrasts more with the background."""
    on_white = get_contrast_ratio(background_hex, "#FFFFFF")
    on_black = get_contrast_ratio(background_hex, "#000000")
    return "#FFFFFF" if on_white >= on_black else "#000000"


def simulate_color_blindness(hex_color: str, kind: ColorBlindness) -> str:
    """
    Simulate how a color appears under a dichromatic color vision deficiency.

    Args:
        hex_color: Source color
        kind: Deficiency type (protanopia, deuteranopia, tritanopia)

    Returns:
        Simulated color as uppercase hex
    """
    matrix = COLOR_BLINDNESS_MATRICES[ColorBlindness(kind)]
    rgb = [channel / 255.0 for channel in hex_to_rgb(hex_color)]

    simulated = [
        sum(row[i] * rgb[i] for i in range(3)) * 255
        for row in matrix
    ]
    return rgb_to_hex(*simulated)


def generate_gradient(start_hex: str, end_hex: str, steps: int) -> List[str]:
    """
    Linearly interpolate between two colors in RGB space.

    Both endpoints are included. ``steps == 1`` yields only the start color;
    ``steps <= 0`` yields an empty list.
    """
    if steps <= 0:
        return []

    start = hex_to_rgb(start_hex)
    if steps == 1:
        return [rgb_to_hex(*start)]

    end = hex_to_rgb(end_hex)
    gradient = []
    for i in range(steps):
        ratio = i / (steps - 1)
        gradient.append(rgb_to_hex(
            start.r + (end.r - start.r) * ratio,
            start.g + (end.g - start.g) * ratio,
            start.b + (end.b - start.b) * ratio,
        ))
    return gradient
