"""
QuickColor Color Validation Gate

Checked entry points in front of the unchecked color math. Callers hand in
raw user input (typed text, clipboard contents, slider values) and get a
ServiceResult back instead of an exception.
"""

import numbers
from typing import Optional

from quickcolor.schemas import ColorFormats
from quickcolor.services.results import ErrorCode, ServiceResult

from .color_math import (
    get_color_formats, hsv_to_rgb, is_valid_hex, normalize_hex, rgb_to_hex,
)


def _is_channel(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and 0 <= value <= 255


def _in_range(value, low: float, high: float) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and low <= value <= high


def validate_hex(value: str) -> ServiceResult[str]:
    """Normalize a user-typed hex color and check it is well formed."""
    if not isinstance(value, str):
        return ServiceResult.fail(ErrorCode.INVALID_COLOR, "Invalid hex color")

    normalized = normalize_hex(value)
    if not is_valid_hex(normalized):
        return ServiceResult.fail(ErrorCode.INVALID_COLOR, f"Invalid hex color: {value!r}")
    return ServiceResult.ok(normalized)


def checked_rgb_to_hex(r: int, g: int, b: int) -> ServiceResult[str]:
    """Convert RGB to hex after checking each channel is an integer in [0, 255]."""
    if not (_is_channel(r) and _is_channel(g) and _is_channel(b)):
        return ServiceResult.fail(ErrorCode.INVALID_COLOR, "Invalid RGB values (must be 0-255)")
    return ServiceResult.ok(rgb_to_hex(r, g, b))


def checked_hsv_to_hex(h: float, s: float, v: float) -> ServiceResult[str]:
    """Convert HSV to hex after range-checking h in [0, 360] and s, v in [0, 100]."""
    if not (_in_range(h, 0, 360) and _in_range(s, 0, 100) and _in_range(v, 0, 100)):
        return ServiceResult.fail(ErrorCode.INVALID_COLOR, "Invalid HSV values")
    return ServiceResult.ok(rgb_to_hex(*hsv_to_rgb(h, s, v)))


def checked_color_formats(value: str) -> ServiceResult[ColorFormats]:
    """Get all display formats for a user-supplied hex color."""
    validated = validate_hex(value)
    if not validated:
        return ServiceResult.fail(validated.code, validated.error)
    return ServiceResult.ok(get_color_formats(validated.data))


def parse_color_text(text: Optional[str]) -> ServiceResult[Optional[str]]:
    """
    Interpret free text (e.g. clipboard contents) as a hex color.

    Returns a successful result holding the normalized hex, or holding None
    when the text is empty or is not a color.
    """
    if not text or not text.strip():
        return ServiceResult.ok(None)

    normalized = normalize_hex(text.strip())
    if is_valid_hex(normalized):
        return ServiceResult.ok(normalized)
    return ServiceResult.ok(None)
