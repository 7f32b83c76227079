"""
QuickColor Color Harmony Engine

Generates related color sets (complementary, triadic, analogous,
split-complementary, tetradic) from a base color by rotating its hue in HSV
space while holding saturation and value constant.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .color_math import (
    hex_to_rgb, hsv_to_rgb_unrounded, normalize_hex, rgb_to_hex,
    rgb_to_hsv_unrounded, rotate_hue,
)


class HarmonyType(str, Enum):
    COMPLEMENTARY = "complementary"
    TRIADIC = "triadic"
    ANALOGOUS = "analogous"
    SPLIT_COMPLEMENTARY = "split-complementary"
    TETRADIC = "tetradic"


@dataclass(frozen=True)
class HarmonyRule:
    """Hue offsets and display metadata for one harmony kind."""
    offsets: Tuple[float, ...]  # Degrees; 0 marks the base color itself
    label: str
    description: str


HARMONY_RULES: Dict[HarmonyType, HarmonyRule] = {
    HarmonyType.COMPLEMENTARY: HarmonyRule((0, 180), "Complementary", "Opposite colors"),
    HarmonyType.TRIADIC: HarmonyRule((0, 120, 240), "Triadic", "3 equally spaced"),
    HarmonyType.ANALOGOUS: HarmonyRule((-30, -15, 0, 15, 30), "Analogous", "Adjacent colors"),
    HarmonyType.SPLIT_COMPLEMENTARY: HarmonyRule((0, 150, 210), "Split-Comp", "Comp + adjacent"),
    HarmonyType.TETRADIC: HarmonyRule((0, 90, 180, 270), "Tetradic", "4 equally spaced"),
}


def get_harmony_colors(base_hex: str, kind: HarmonyType) -> List[str]:
    """
    Generate the harmony set for a base color.

    Args:
        base_hex: Base color (``#RRGGBB``, any case)
        kind: Harmony kind

    Returns:
        Ordered list of uppercase hex colors. The base color appears verbatim
        at its 0° position.

    Raises:
        ColorParseError: If ``base_hex`` is malformed
    """
    rule = HARMONY_RULES[HarmonyType(kind)]
    base = normalize_hex(base_hex)
    h, s, v = rgb_to_hsv_unrounded(*hex_to_rgb(base))

    colors = []
    for offset in rule.offsets:
        if offset == 0:
            colors.append(base)
            continue
        colors.append(rgb_to_hex(*hsv_to_rgb_unrounded(rotate_hue(h, offset), s, v)))
    return colors


def get_complementary(base_hex: str) -> List[str]:
    return get_harmony_colors(base_hex, HarmonyType.COMPLEMENTARY)


def get_triadic(base_hex: str) -> List[str]:
    return get_harmony_colors(base_hex, HarmonyType.TRIADIC)


def get_analogous(base_hex: str) -> List[str]:
    return get_harmony_colors(base_hex, HarmonyType.ANALOGOUS)


def get_split_complementary(base_hex: str) -> List[str]:
    return get_harmony_colors(base_hex, HarmonyType.SPLIT_COMPLEMENTARY)


def get_tetradic(base_hex: str) -> List[str]:
    return get_harmony_colors(base_hex, HarmonyType.TETRADIC)


def generate_all_harmonies(base_hex: str) -> Dict[str, List[str]]:
    """Generate every harmony kind for a base color, keyed by kind value."""
    return {kind.value: get_harmony_colors(base_hex, kind) for kind in HarmonyType}


def describe_harmonies() -> List[Dict[str, str]]:
    """Labels and descriptions for harmony pickers, in display order."""
    return [
        {"type": kind.value, "label": rule.label, "description": rule.description}
        for kind, rule in HARMONY_RULES.items()
    ]
