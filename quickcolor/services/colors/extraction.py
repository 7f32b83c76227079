"""
Color extraction service for photos and screenshots.

This module implements the QuickColor extraction pipeline: downscale,
frequency-based bucket clustering and HSL classification of clusters into
seven semantic color roles. Extraction degrades to a fixed default set instead
of raising.
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
from loguru import logger

from quickcolor.config import Config
from quickcolor.schemas import DEFAULT_EXTRACTED_COLORS, ExtractedColorSet
from quickcolor.utils.metrics import get_metrics

from .color_math import rgb_to_hex, rgb_to_hsl
from .imaging import ImageSource, PixelBuffer, decode_image, downscale


class Quality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class QualitySettings:
    max_size: int  # Longest edge after downscale, px
    quantization: int  # Bucket width per channel


QUALITY_SETTINGS: Dict[Quality, QualitySettings] = {
    Quality.LOW: QualitySettings(max_size=50, quantization=32),
    Quality.MEDIUM: QualitySettings(max_size=100, quantization=24),
    Quality.HIGH: QualitySettings(max_size=200, quantization=16),
}


class ExtractorBackend(str, Enum):
    NUMPY = "numpy"
    PYTHON = "python"


@dataclass(frozen=True)
class ColorCluster:
    """Mean color of one quantization bucket."""
    key: int
    count: int
    r: int
    g: int
    b: int
    saturation: float
    lightness: float

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.r, self.g, self.b)

    @classmethod
    def from_sums(cls, key: int, count: int, r: int, g: int, b: int) -> "ColorCluster":
        mean_r = math.floor(r / count + 0.5)
        mean_g = math.floor(g / count + 0.5)
        mean_b = math.floor(b / count + 0.5)
        _, saturation, lightness = rgb_to_hsl(mean_r, mean_g, mean_b)
        return cls(key, count, mean_r, mean_g, mean_b, saturation, lightness)


# ============================================================================
# PIXEL EXTRACTORS
# ============================================================================

class PixelExtractor(ABC):
    """
    Clusters the pixels of an RGBA buffer into quantization buckets.

    Pixels below ``min_alpha`` and pixels whose average brightness lies
    outside [min_brightness, max_brightness] are skipped. Buffers with more
    than ``max_samples`` pixels are subsampled with a fixed stride.

    Implementations must return identical clusters for identical input,
    ordered by descending count and then ascending bucket key.
    """

    def __init__(self, min_alpha: int = Config.EXTRACTION_MIN_ALPHA,
                 min_brightness: int = Config.EXTRACTION_MIN_BRIGHTNESS,
                 max_brightness: int = Config.EXTRACTION_MAX_BRIGHTNESS,
                 max_samples: int = Config.EXTRACTION_MAX_SAMPLES):
        self.min_alpha = min_alpha
        self.min_brightness = min_brightness
        self.max_brightness = max_brightness
        self.max_samples = max(1, max_samples)

    def sample_step(self, buffer: PixelBuffer) -> int:
        return max(1, math.ceil(buffer.pixel_count / self.max_samples))

    @staticmethod
    def bucket_count(quantization: int) -> int:
        """Number of buckets per channel for a bucket width."""
        return 256 // quantization + 1

    @abstractmethod
    def cluster(self, buffer: PixelBuffer, quantization: int) -> List[ColorCluster]:
        """Cluster the buffer's usable pixels, most frequent first."""
        pass


class NumpyPixelExtractor(PixelExtractor):
    """Vectorized clustering over the whole buffer."""

    def cluster(self, buffer: PixelBuffer, quantization: int) -> List[ColorCluster]:
        step = self.sample_step(buffer)
        pixels = buffer.to_array().reshape(-1, 4)[::step].astype(np.int64)

        totals = pixels[:, :3].sum(axis=1)
        keep = (
            (pixels[:, 3] >= self.min_alpha)
            & (totals >= 3 * self.min_brightness)
            & (totals <= 3 * self.max_brightness)
        )
        rgb = pixels[keep, :3]
        if len(rgb) == 0:
            return []

        n = self.bucket_count(quantization)
        buckets = rgb // quantization
        keys = (buckets[:, 0] * n + buckets[:, 1]) * n + buckets[:, 2]

        unique_keys, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
        sums = np.zeros((len(unique_keys), 3), dtype=np.int64)
        np.add.at(sums, inverse.reshape(-1), rgb)

        # Primary key last for lexsort
        order = np.lexsort((unique_keys, -counts))
        return [
            ColorCluster.from_sums(
                int(unique_keys[i]), int(counts[i]),
                int(sums[i, 0]), int(sums[i, 1]), int(sums[i, 2]),
            )
            for i in order
        ]


class PythonPixelExtractor(PixelExtractor):
    """Pure-Python clustering, used where numpy is not wanted."""

    def cluster(self, buffer: PixelBuffer, quantization: int) -> List[ColorCluster]:
        step = self.sample_step(buffer)
        n = self.bucket_count(quantization)
        data = buffer.data
        low = 3 * self.min_brightness
        high = 3 * self.max_brightness

        accumulators: Dict[int, List[int]] = {}
        for index in range(0, buffer.pixel_count, step):
            offset = index * 4
            r, g, b, a = data[offset:offset + 4]
            if a < self.min_alpha:
                continue
            total = r + g + b
            if total < low or total > high:
                continue

            key = ((r // quantization) * n + g // quantization) * n + b // quantization
            acc = accumulators.get(key)
            if acc is None:
                accumulators[key] = [1, r, g, b]
            else:
                acc[0] += 1
                acc[1] += r
                acc[2] += g
                acc[3] += b

        clusters = [
            ColorCluster.from_sums(key, count, r, g, b)
            for key, (count, r, g, b) in accumulators.items()
        ]
        clusters.sort(key=lambda c: (-c.count, c.key))
        return clusters


def create_pixel_extractor(backend: Union[ExtractorBackend, str] = Config.EXTRACTION_BACKEND,
                           **filters) -> PixelExtractor:
    """Build the pixel extractor for a configured backend tag."""
    backend = ExtractorBackend(backend)
    if backend == ExtractorBackend.NUMPY:
        return NumpyPixelExtractor(**filters)
    return PythonPixelExtractor(**filters)


# ============================================================================
# CLASSIFICATION
# ============================================================================

def _find(clusters: Iterable[ColorCluster],
          predicate: Callable[[ColorCluster], bool],
          exclude: Sequence[str] = ()) -> Optional[str]:
    for cluster in clusters:
        hex_color = cluster.hex
        if hex_color not in exclude and predicate(cluster):
            return hex_color
    return None


def classify_clusters(clusters: List[ColorCluster]) -> ExtractedColorSet:
    """
    Assign frequency-ordered clusters to the seven semantic slots.

    Vibrant slots search a saturation-weighted order first and fall back to
    looser predicates in frequency order; unfilled slots fall back to
    ``dominant`` (muted variants to their vibrant counterparts).

    Raises:
        ValueError: If ``clusters`` is empty
    """
    if not clusters:
        raise ValueError("Cannot classify an empty cluster list")

    dominant = clusters[0].hex
    by_saturation = sorted(
        clusters, key=lambda c: c.saturation * math.sqrt(c.count), reverse=True
    )

    vibrant = (
        _find(by_saturation, lambda c: c.saturation > 0.4 and 0.25 < c.lightness < 0.75, [dominant])
        or _find(clusters, lambda c: c.saturation > 0.3 and 0.2 < c.lightness < 0.8, [dominant])
        or dominant
    )

    dark_vibrant = (
        _find(by_saturation, lambda c: c.saturation > 0.3 and c.lightness < 0.45, [dominant, vibrant])
        or _find(clusters, lambda c: c.lightness < 0.4, [dominant, vibrant])
        or dominant
    )

    light_vibrant = (
        _find(by_saturation, lambda c: c.saturation > 0.3 and c.lightness > 0.55,
              [dominant, vibrant, dark_vibrant])
        or _find(clusters, lambda c: c.lightness > 0.6, [dominant, vibrant, dark_vibrant])
        or dominant
    )

    muted = (
        _find(clusters, lambda c: c.saturation < 0.4 and 0.25 < c.lightness < 0.75, [dominant])
        or dominant
    )

    dark_muted = (
        _find(clusters, lambda c: c.saturation < 0.35 and c.lightness < 0.35, [dominant, muted])
        or dark_vibrant
    )

    light_muted = (
        _find(clusters, lambda c: c.saturation < 0.35 and c.lightness > 0.65,
              [dominant, muted, dark_muted])
        or light_vibrant
    )

    return ExtractedColorSet(
        dominant=dominant,
        vibrant=vibrant,
        dark_vibrant=dark_vibrant,
        light_vibrant=light_vibrant,
        muted=muted,
        dark_muted=dark_muted,
        light_muted=light_muted,
    )


# ============================================================================
# EXTRACTOR
# ============================================================================

class ColorExtractor:
    """Pixel buffer to ExtractedColorSet pipeline."""

    def __init__(self, pixel_extractor: Optional[PixelExtractor] = None,
                 default_quality: Union[Quality, str] = Config.EXTRACTION_QUALITY,
                 fallback_colors: ExtractedColorSet = DEFAULT_EXTRACTED_COLORS):
        self.pixel_extractor = pixel_extractor or NumpyPixelExtractor()
        self.default_quality = Quality(default_quality)
        self.fallback_colors = fallback_colors

    def cluster(self, buffer: PixelBuffer,
                quality: Union[Quality, str, None] = None) -> List[ColorCluster]:
        """Downscale for the quality tier and cluster the result."""
        settings = QUALITY_SETTINGS[Quality(quality or self.default_quality)]
        working = downscale(buffer, settings.max_size)
        return self.pixel_extractor.cluster(working, settings.quantization)

    def extract(self, buffer: PixelBuffer,
                quality: Union[Quality, str, None] = None) -> ExtractedColorSet:
        """
        Extract the seven-role color set from a pixel buffer.

        Never raises. Buffers without usable pixels (fully transparent,
        washed out) and unexpected failures both yield the fallback set.
        """
        metrics = get_metrics()
        metrics.increment_extraction_count()
        start_time = time.perf_counter()

        try:
            clusters = self.cluster(buffer, quality)
            if not clusters:
                logger.warning(
                    f"No usable clusters in {buffer.width}x{buffer.height} buffer, "
                    f"returning default colors"
                )
                metrics.increment_degraded_count()
                return self.fallback_colors

            colors = classify_clusters(clusters)
            logger.debug(f"Extracted {len(clusters)} clusters, dominant {colors.dominant}")
            return colors

        except Exception as e:
            logger.error(f"Color extraction failed: {e}")
            metrics.increment_extraction_failure_count()
            return self.fallback_colors

        finally:
            metrics.record_timing("extraction", (time.perf_counter() - start_time) * 1000)

    def extract_palette(self, buffer: PixelBuffer, color_count: int = 5,
                        quality: Union[Quality, str, None] = None) -> List[str]:
        """Top ``color_count`` cluster colors by frequency; empty if none are usable."""
        if color_count <= 0:
            return []
        return [cluster.hex for cluster in self.cluster(buffer, quality)[:color_count]]

    def extract_from_file(self, source: ImageSource,
                          quality: Union[Quality, str, None] = None) -> ExtractedColorSet:
        """Decode an image file with Pillow and extract its colors. Never raises."""
        try:
            buffer = decode_image(source)
        except Exception as e:
            logger.error(f"Failed to load image for color extraction: {e}")
            get_metrics().increment_extraction_failure_count()
            return self.fallback_colors
        return self.extract(buffer, quality)

    async def extract_async(self, buffer: PixelBuffer,
                            quality: Union[Quality, str, None] = None) -> ExtractedColorSet:
        """Run ``extract`` in a worker thread to keep the event loop responsive."""
        return await asyncio.to_thread(self.extract, buffer, quality)


def extract_colors_from_image(buffer: PixelBuffer,
                              quality: Union[Quality, str] = Quality.MEDIUM,
                              backend: Union[ExtractorBackend, str] = ExtractorBackend.NUMPY,
                              fallback_colors: ExtractedColorSet = DEFAULT_EXTRACTED_COLORS
                              ) -> ExtractedColorSet:
    """Extract the seven-role color set from an RGBA buffer. Never raises."""
    extractor = ColorExtractor(create_pixel_extractor(backend), fallback_colors=fallback_colors)
    return extractor.extract(buffer, quality)


def extract_palette(buffer: PixelBuffer, color_count: int = 5,
                    quality: Union[Quality, str] = Quality.MEDIUM,
                    backend: Union[ExtractorBackend, str] = ExtractorBackend.NUMPY) -> List[str]:
    return ColorExtractor(create_pixel_extractor(backend)).extract_palette(buffer, color_count, quality)


def extract_colors_from_file(source: ImageSource,
                             quality: Union[Quality, str] = Quality.MEDIUM,
                             backend: Union[ExtractorBackend, str] = ExtractorBackend.NUMPY
                             ) -> ExtractedColorSet:
    return ColorExtractor(create_pixel_extractor(backend)).extract_from_file(source, quality)


async def extract_colors_async(buffer: PixelBuffer,
                               quality: Union[Quality, str] = Quality.MEDIUM,
                               backend: Union[ExtractorBackend, str] = ExtractorBackend.NUMPY
                               ) -> ExtractedColorSet:
    return await ColorExtractor(create_pixel_extractor(backend)).extract_async(buffer, quality)
