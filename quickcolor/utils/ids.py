"""
QuickColor ID Utilities
Generate unique palette identifiers.
"""
import time
import uuid


def generate_palette_id() -> str:
    """
    Generate a unique palette ID.

    The ID combines the creation time in epoch milliseconds with a random
    suffix, so IDs created on one device never collide.

    Returns:
        Palette ID string such as ``palette_1718000000000_1a2b3c4d5``
    """
    timestamp_ms = int(time.time() * 1000)
    short_uuid = uuid.uuid4().hex[:9]
    return f"palette_{timestamp_ms}_{short_uuid}"


def extract_timestamp_from_palette_id(palette_id: str) -> int:
    """
    Extract creation timestamp from palette ID.

    Args:
        palette_id: Palette ID string

    Returns:
        Epoch milliseconds, or 0 if the ID has no timestamp part
    """
    parts = palette_id.split("_")
    if len(parts) >= 3 and parts[0] == "palette" and parts[1].isdigit():
        return int(parts[1])
    return 0
