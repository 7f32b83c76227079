"""
QuickColor Configuration
Manages environment variables and defaults for the color core services.
"""
import os
from typing import Literal

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Configuration class for QuickColor services."""

    # Logging
    LOG_LEVEL: str = os.environ.get("QUICKCOLOR_LOG_LEVEL", "INFO")

    # Persistence
    STORE_BACKEND: Literal["memory", "file", "redis"] = os.environ.get("QUICKCOLOR_STORE_BACKEND", "memory")
    STORE_NAMESPACE: str = os.environ.get("QUICKCOLOR_STORE_NAMESPACE", "@quickcolor")
    STORE_DIR: str = os.environ.get("QUICKCOLOR_STORE_DIR", os.path.expanduser("~/.quickcolor"))
    REDIS_URL: str = os.environ.get("QUICKCOLOR_REDIS_URL", "redis://localhost:6379/0")

    # Palette tier limits
    FREE_PALETTE_LIMIT: int = int(os.environ.get("QUICKCOLOR_FREE_PALETTE_LIMIT", "5"))
    PRO_PALETTE_LIMIT: int = int(os.environ.get("QUICKCOLOR_PRO_PALETTE_LIMIT", "100"))
    MAX_COLORS_PER_PALETTE: int = int(os.environ.get("QUICKCOLOR_MAX_COLORS_PER_PALETTE", "20"))
    MAX_PALETTE_NAME_LENGTH: int = 50

    # Recent colors
    MAX_RECENT_COLORS: int = int(os.environ.get("QUICKCOLOR_MAX_RECENT_COLORS", "20"))

    # Extraction defaults
    EXTRACTION_QUALITY: Literal["low", "medium", "high"] = os.environ.get("QUICKCOLOR_EXTRACTION_QUALITY", "medium")
    EXTRACTION_BACKEND: Literal["numpy", "python"] = os.environ.get("QUICKCOLOR_EXTRACTION_BACKEND", "numpy")
    EXTRACTION_MAX_SAMPLES: int = int(os.environ.get("QUICKCOLOR_EXTRACTION_MAX_SAMPLES", "40000"))

    # Pixel filter thresholds (0-255)
    EXTRACTION_MIN_ALPHA: int = 128
    EXTRACTION_MIN_BRIGHTNESS: int = 20
    EXTRACTION_MAX_BRIGHTNESS: int = 235

    @classmethod
    def validate_quality(cls, quality: str) -> bool:
        """Validate extraction quality tier."""
        return quality in ["low", "medium", "high"]

    @classmethod
    def validate_store_backend(cls, backend: str) -> bool:
        """Validate storage backend tag."""
        return backend in ["memory", "file", "redis"]

    @classmethod
    def validate_extraction_backend(cls, backend: str) -> bool:
        """Validate pixel extractor backend tag."""
        return backend in ["numpy", "python"]


# Global config instance
config = Config()
