"""
QuickColor Imaging Utilities
Pixel buffer container plus Pillow-based decoding and downscaling.
"""
import io
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from .color_math import rgb_to_hex

ImageSource = Union[str, Path, bytes, bytearray]


@dataclass(frozen=True)
class PixelBuffer:
    """Raw RGBA pixels, one byte per channel, row-major."""
    data: bytes
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid buffer dimensions: {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Pixel buffer size mismatch: got {len(self.data)} bytes, "
                f"expected {expected} for {self.width}x{self.height} RGBA"
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """
        Build a buffer from an (H, W, 4) RGBA or (H, W, 3) RGB uint8 array.

        RGB input is treated as fully opaque.
        """
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected (H, W, 3|4) array, got shape {array.shape}")

        rgba = np.asarray(array, dtype=np.uint8)
        if rgba.shape[2] == 3:
            alpha = np.full(rgba.shape[:2] + (1,), 255, dtype=np.uint8)
            rgba = np.concatenate([rgba, alpha], axis=2)

        height, width = rgba.shape[:2]
        return cls(np.ascontiguousarray(rgba).tobytes(), width, height)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """Build a buffer from any Pillow image, converting to RGBA."""
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return cls(rgba.tobytes(), rgba.width, rgba.height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def to_array(self) -> np.ndarray:
        """View the buffer as a read-only (H, W, 4) uint8 array."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.data)

    def get_color_at_pixel(self, x: int, y: int) -> str:
        """Hex color of the pixel at (x, y), ignoring alpha."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        index = (y * self.width + x) * 4
        r, g, b = self.data[index:index + 3]
        return rgb_to_hex(r, g, b)


def validate_magic_bytes(file_bytes: bytes) -> str:
    """
    Validate file magic bytes to ensure it's actually an image.

    Args:
        file_bytes: Raw file bytes

    Returns:
        Detected MIME type

    Raises:
        ValueError: For truncated or unsupported files
    """
    if len(file_bytes) < 12:
        raise ValueError("File too small or corrupt")

    if file_bytes.startswith(b'\xff\xd8\xff'):
        return "image/jpeg"
    elif file_bytes.startswith(b'\x89PNG\r\n\x1a\n'):
        return "image/png"
    elif file_bytes[:4] == b'RIFF' and file_bytes[8:12] == b'WEBP':
        return "image/webp"
    elif file_bytes[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"
    else:
        raise ValueError("Invalid image file. Magic bytes don't match supported formats.")


def decode_image(source: ImageSource) -> PixelBuffer:
    """
    Decode an image file (path or raw bytes) into an RGBA pixel buffer.

    Raises:
        ValueError: If the data is not a supported, decodable image
    """
    if isinstance(source, (bytes, bytearray)):
        file_bytes = bytes(source)
    else:
        file_bytes = Path(source).read_bytes()

    validate_magic_bytes(file_bytes)

    try:
        with Image.open(io.BytesIO(file_bytes)) as pil_image:
            pil_image.load()
            return PixelBuffer.from_image(pil_image)
    except (OSError, Image.DecompressionBombError) as e:
        raise ValueError(f"Failed to decode image: {e}")


def downscale(buffer: PixelBuffer, max_size: int) -> PixelBuffer:
    """
    Cap the longest edge at ``max_size`` while keeping the aspect ratio.

    Buffers already within bounds are returned unchanged. Resampling runs on
    premultiplied alpha so transparent pixels do not bleed their color.
    """
    scale = min(max_size / buffer.width, max_size / buffer.height, 1.0)
    if scale >= 1.0:
        return buffer

    new_width = max(1, math.floor(buffer.width * scale))
    new_height = max(1, math.floor(buffer.height * scale))

    resized = (
        buffer.to_image()
        .convert("RGBa")
        .resize((new_width, new_height), Image.Resampling.BILINEAR)
        .convert("RGBA")
    )
    return PixelBuffer.from_image(resized)
