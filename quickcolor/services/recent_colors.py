"""
QuickColor Recent Colors
Bounded, deduplicated, most-recent-first list of captured colors.
"""
from typing import List

from quickcolor.config import Config
from quickcolor.services.colors.color_math import normalize_hex
from quickcolor.services.colors.validation import validate_hex
from quickcolor.services.observable import ObservableService
from quickcolor.services.results import PersistenceError, ServiceResult
from quickcolor.services.storage import Store

STORAGE_KEY = "colors"

DEFAULT_RECENT_COLORS = ["#FF6B35", "#4ADE80", "#F87171", "#FBBF24", "#0A7EA4"]


class RecentColorsTracker(ObservableService[List[str]]):
    """
    Recently captured colors, newest first.

    Re-adding a color moves it to the front. The list starts as
    ``DEFAULT_RECENT_COLORS`` when nothing has been stored yet.
    """

    def __init__(self, store: Store, max_colors: int = Config.MAX_RECENT_COLORS):
        super().__init__(store, STORAGE_KEY)
        self.max_colors = max_colors
        self._colors: List[str] = list(DEFAULT_RECENT_COLORS)

    def current_value(self) -> List[str]:
        return list(self._colors)

    async def _load(self) -> None:
        stored = await self.store.get(self.storage_key)
        if stored is None:
            self._colors = list(DEFAULT_RECENT_COLORS)
            return
        if not isinstance(stored, list) or not all(isinstance(c, str) for c in stored):
            raise PersistenceError("Corrupt recent colors data: expected a list of strings")
        self._colors = stored[:self.max_colors]

    async def get_recent(self) -> ServiceResult[List[str]]:
        failure = await self._ensure_ready("get_recent")
        if failure is not None:
            return failure
        return ServiceResult.ok(self.current_value())

    async def add(self, hex_color: str) -> ServiceResult[List[str]]:
        """Validate and prepend a color, dropping any earlier occurrence."""
        validated = validate_hex(hex_color)
        if not validated:
            return validated

        async with self._lock:
            failure = await self._ensure_loaded("add_recent_color")
            if failure is not None:
                return failure

            color = validated.data
            remaining = [c for c in self._colors if c.upper() != color]
            updated = ([color] + remaining)[:self.max_colors]
            return await self._commit(updated, "add_recent_color")

    async def remove(self, hex_color: str) -> ServiceResult[List[str]]:
        async with self._lock:
            failure = await self._ensure_loaded("remove_recent_color")
            if failure is not None:
                return failure

            target = normalize_hex(hex_color) if isinstance(hex_color, str) else ""
            updated = [c for c in self._colors if c.upper() != target]
            return await self._commit(updated, "remove_recent_color")

    async def clear(self) -> ServiceResult[List[str]]:
        """Empty the list. The empty list is persisted so defaults do not return on reload."""
        async with self._lock:
            return await self._commit([], "clear_recent_colors")

    async def reset_to_defaults(self) -> ServiceResult[List[str]]:
        async with self._lock:
            return await self._commit(list(DEFAULT_RECENT_COLORS), "reset_recent_colors")

    async def _commit(self, colors: List[str], operation: str) -> ServiceResult[List[str]]:
        failure = await self._write(colors, operation)
        if failure is not None:
            return failure

        self._colors = colors
        self._initialized = True
        self._notify()
        return ServiceResult.ok(self.current_value())
