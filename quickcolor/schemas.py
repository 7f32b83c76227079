"""
QuickColor Schemas
Pydantic models for extracted colors, palettes and user settings.
"""
from typing import List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool

HEX_PATTERN = r"^#[0-9A-F]{6}$"


class ColorFormats(BaseModel):
    """Every display representation of a single color."""
    hex: str = Field(..., pattern=HEX_PATTERN, description="Uppercase hex color #RRGGBB")
    rgb: Tuple[int, int, int] = Field(..., description="RGB channels 0-255")
    hsv: Tuple[int, int, int] = Field(..., description="Hue degrees, saturation and value percent")
    rgb_string: str = Field(..., description="CSS-like rgb(r, g, b) string")
    hsv_string: str = Field(..., description="Display string hsv(h°, s%, v%)")


# ============================================================================
# EXTRACTION SCHEMAS
# ============================================================================

class ExtractedColorSet(BaseModel):
    """Seven semantic color roles extracted from one image."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dominant: str = Field(..., pattern=HEX_PATTERN, description="Most frequent cluster")
    vibrant: str = Field(..., pattern=HEX_PATTERN, description="Strong, saturated accent")
    dark_vibrant: str = Field(..., alias="darkVibrant", pattern=HEX_PATTERN)
    light_vibrant: str = Field(..., alias="lightVibrant", pattern=HEX_PATTERN)
    muted: str = Field(..., pattern=HEX_PATTERN, description="Desaturated mid-tone")
    dark_muted: str = Field(..., alias="darkMuted", pattern=HEX_PATTERN)
    light_muted: str = Field(..., alias="lightMuted", pattern=HEX_PATTERN)

    def as_list(self) -> List[str]:
        """Slots in canonical order."""
        return [
            self.dominant, self.vibrant, self.dark_vibrant, self.light_vibrant,
            self.muted, self.dark_muted, self.light_muted,
        ]


DEFAULT_EXTRACTED_COLORS = ExtractedColorSet(
    dominant="#FF6B35",
    vibrant="#4ADE80",
    dark_vibrant="#F87171",
    light_vibrant="#FBBF24",
    muted="#0A7EA4",
    dark_muted="#E879F9",
    light_muted="#38BDF8",
)


# ============================================================================
# PALETTE SCHEMAS
# ============================================================================

class Palette(BaseModel):
    """A named, ordered, bounded set of colors persisted by the user."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Opaque unique palette id")
    name: str = Field(..., min_length=1, max_length=50, description="Trimmed display name")
    colors: List[str] = Field(..., min_length=1, description="Uppercase hex colors, ordered")
    created_at: int = Field(..., alias="createdAt", description="Creation time, epoch milliseconds")
    updated_at: int = Field(..., alias="updatedAt", description="Last update time, epoch milliseconds")


# ============================================================================
# SETTINGS SCHEMAS
# ============================================================================

ColorFormat = Literal["hex", "rgb", "hsv"]
ThemeOption = Literal["light", "dark", "system"]


class UserSettings(BaseModel):
    """User preferences and subscription tier flag."""
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True, extra="ignore")

    haptic_enabled: StrictBool = Field(True, alias="hapticEnabled")
    auto_save: StrictBool = Field(True, alias="autoSave")
    default_color_format: ColorFormat = Field("hex", alias="defaultColorFormat")
    theme: ThemeOption = Field("system")
    is_pro: StrictBool = Field(False, alias="isPro")
