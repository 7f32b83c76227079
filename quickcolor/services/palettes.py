"""
QuickColor Palette Store

Palette CRUD with tier-dependent palette ceilings, a per-palette color cap,
name search and reverse lookup by color.
"""
import time
from typing import List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from quickcolor.config import Config
from quickcolor.schemas import Palette
from quickcolor.services.colors.color_math import normalize_hex
from quickcolor.services.colors.validation import validate_hex
from quickcolor.services.observable import ObservableService
from quickcolor.services.results import ErrorCode, PersistenceError, ServiceResult
from quickcolor.services.storage import Store
from quickcolor.utils.ids import generate_palette_id
from quickcolor.utils.logging import get_logger

STORAGE_KEY = "palettes"

_palette_list = TypeAdapter(List[Palette])


def _now_ms() -> int:
    return int(time.time() * 1000)


class PaletteStore(ObservableService[List[Palette]]):
    """Owns the user's palettes. Every mutation persists before it becomes visible."""

    def __init__(self, store: Store,
                 free_limit: int = Config.FREE_PALETTE_LIMIT,
                 pro_limit: int = Config.PRO_PALETTE_LIMIT,
                 max_colors: int = Config.MAX_COLORS_PER_PALETTE,
                 max_name_length: int = Config.MAX_PALETTE_NAME_LENGTH,
                 is_pro: bool = False):
        super().__init__(store, STORAGE_KEY)
        self.free_limit = free_limit
        self.pro_limit = pro_limit
        self.max_colors = max_colors
        self.max_name_length = max_name_length
        self.is_pro = is_pro
        self._palettes: List[Palette] = []

    # State

    def current_value(self) -> List[Palette]:
        return [palette.model_copy(deep=True) for palette in self._palettes]

    async def _load(self) -> None:
        stored = await self.store.get(self.storage_key)
        if stored is None:
            self._palettes = []
            return
        try:
            self._palettes = _palette_list.validate_python(stored)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt palette data: {e.error_count()} validation errors")
        get_logger().debug("Loaded palettes", {"count": len(self._palettes)})

    def _serialize(self, palettes: Sequence[Palette]) -> list:
        return [palette.model_dump(by_alias=True) for palette in palettes]

    def _index_of(self, palette_id: str) -> int:
        for index, palette in enumerate(self._palettes):
            if palette.id == palette_id:
                return index
        return -1

    # Tier

    def set_pro_status(self, is_pro: bool) -> None:
        """Switch the palette ceiling between the free and pro tiers."""
        self.is_pro = bool(is_pro)

    def palette_limit(self) -> int:
        return self.pro_limit if self.is_pro else self.free_limit

    async def can_create_palette(self) -> bool:
        """True while the palette count is below the current tier ceiling."""
        if await self._ensure_ready("can_create_palette") is not None:
            return False
        return len(self._palettes) < self.palette_limit()

    # Validation

    def _validate_name(self, name) -> ServiceResult[str]:
        if not isinstance(name, str) or not name.strip():
            return ServiceResult.fail(ErrorCode.INVALID_NAME, "Palette name is required")
        trimmed = name.strip()
        if len(trimmed) > self.max_name_length:
            return ServiceResult.fail(
                ErrorCode.INVALID_NAME,
                f"Palette name too long (max {self.max_name_length} chars)",
                max_length=self.max_name_length,
            )
        return ServiceResult.ok(trimmed)

    def _validate_colors(self, colors) -> ServiceResult[List[str]]:
        """Normalize to uppercase hex and truncate to the per-palette cap."""
        if isinstance(colors, str) or not isinstance(colors, (list, tuple)):
            return ServiceResult.fail(ErrorCode.INVALID_COLORS, "Colors must be a list")
        if not colors:
            return ServiceResult.fail(ErrorCode.INVALID_COLORS, "At least one color is required")

        normalized = []
        for color in colors:
            validated = validate_hex(color)
            if not validated:
                return ServiceResult.fail(validated.code, validated.error, color=color)
            normalized.append(validated.data)
        return ServiceResult.ok(normalized[:self.max_colors])

    # Reads

    async def list_palettes(self) -> ServiceResult[List[Palette]]:
        failure = await self._ensure_ready("list_palettes")
        if failure is not None:
            return failure
        return ServiceResult.ok(self.current_value())

    async def get_palette(self, palette_id: str) -> ServiceResult[Palette]:
        failure = await self._ensure_ready("get_palette")
        if failure is not None:
            return failure
        index = self._index_of(palette_id)
        if index == -1:
            return ServiceResult.fail(ErrorCode.NOT_FOUND, "Palette not found", id=palette_id)
        return ServiceResult.ok(self._palettes[index].model_copy(deep=True))

    async def search_palettes(self, query: str) -> ServiceResult[List[Palette]]:
        """Case-insensitive substring match on palette names."""
        failure = await self._ensure_ready("search_palettes")
        if failure is not None:
            return failure
        needle = (query or "").lower()
        return ServiceResult.ok([
            palette for palette in self.current_value()
            if needle in palette.name.lower()
        ])

    async def find_by_color(self, color: str) -> ServiceResult[List[Palette]]:
        """Palettes containing ``color``, compared case-insensitively."""
        failure = await self._ensure_ready("find_by_color")
        if failure is not None:
            return failure
        target = (color or "").strip().upper()
        if target and not target.startswith("#"):
            target = f"#{target}"
        return ServiceResult.ok([
            palette for palette in self.current_value()
            if any(c.upper() == target for c in palette.colors)
        ])

    # Mutations

    async def create_palette(self, name: str, colors: Sequence[str]) -> ServiceResult[Palette]:
        """
        Create a palette.

        Fails with INVALID_NAME / INVALID_COLORS / INVALID_COLOR on bad input,
        LIMIT_REACHED (``details["limit"]``) at the tier ceiling, or
        PERSISTENCE_FAILURE if the store rejects the write.
        """
        async with self._lock:
            failure = await self._ensure_loaded("create_palette")
            if failure is not None:
                return failure

            checked_name = self._validate_name(name)
            if not checked_name:
                return checked_name
            checked_colors = self._validate_colors(colors)
            if not checked_colors:
                return checked_colors

            limit = self.palette_limit()
            if len(self._palettes) >= limit:
                return ServiceResult.fail(
                    ErrorCode.LIMIT_REACHED,
                    f"Palette limit reached ({limit}). Upgrade to Pro for more.",
                    limit=limit,
                )

            now = _now_ms()
            palette = Palette(
                id=generate_palette_id(),
                name=checked_name.data,
                colors=checked_colors.data,
                created_at=now,
                updated_at=now,
            )
            updated = self._palettes + [palette]

            failure = await self._write(self._serialize(updated), "create_palette")
            if failure is not None:
                return failure

            self._palettes = updated
            get_logger().info("Palette created", {"id": palette.id, "colors": len(palette.colors)})
            self._notify()
            return ServiceResult.ok(palette.model_copy(deep=True))

    async def update_palette(self, palette_id: str, name: Optional[str] = None,
                             colors: Optional[Sequence[str]] = None) -> ServiceResult[Palette]:
        """Replace the name and/or color list of an existing palette."""
        async with self._lock:
            failure = await self._ensure_loaded("update_palette")
            if failure is not None:
                return failure
            return await self._update_locked(palette_id, name, colors, "update_palette")

    async def add_color_to_palette(self, palette_id: str, color: str) -> ServiceResult[Palette]:
        """Append a color; rejects duplicates and palettes already at the color cap."""
        async with self._lock:
            failure = await self._ensure_loaded("add_color_to_palette")
            if failure is not None:
                return failure

            validated = validate_hex(color)
            if not validated:
                return validated

            index = self._index_of(palette_id)
            if index == -1:
                return ServiceResult.fail(ErrorCode.NOT_FOUND, "Palette not found", id=palette_id)

            palette = self._palettes[index]
            if len(palette.colors) >= self.max_colors:
                return ServiceResult.fail(
                    ErrorCode.COLOR_LIMIT,
                    f"Maximum {self.max_colors} colors per palette",
                    limit=self.max_colors,
                )
            if validated.data in (c.upper() for c in palette.colors):
                return ServiceResult.fail(ErrorCode.DUPLICATE_COLOR, "Color already in palette")

            return await self._update_locked(
                palette_id, None, palette.colors + [validated.data], "add_color_to_palette"
            )

    async def remove_color_from_palette(self, palette_id: str, color: str) -> ServiceResult[Palette]:
        """
        Remove every case-insensitive occurrence of a color.

        Removing an absent color succeeds without writing. Removing the last
        color fails with INVALID_COLORS since a palette needs at least one.
        """
        async with self._lock:
            failure = await self._ensure_loaded("remove_color_from_palette")
            if failure is not None:
                return failure

            index = self._index_of(palette_id)
            if index == -1:
                return ServiceResult.fail(ErrorCode.NOT_FOUND, "Palette not found", id=palette_id)

            palette = self._palettes[index]
            target = normalize_hex(color) if isinstance(color, str) else ""
            remaining = [c for c in palette.colors if c.upper() != target]
            if len(remaining) == len(palette.colors):
                return ServiceResult.ok(palette.model_copy(deep=True))

            return await self._update_locked(palette_id, None, remaining, "remove_color_from_palette")

    async def _update_locked(self, palette_id: str, name: Optional[str],
                             colors: Optional[Sequence[str]], operation: str) -> ServiceResult[Palette]:
        index = self._index_of(palette_id)
        if index == -1:
            return ServiceResult.fail(ErrorCode.NOT_FOUND, "Palette not found", id=palette_id)

        changes = {"updated_at": max(_now_ms(), self._palettes[index].updated_at)}
        if name is not None:
            checked_name = self._validate_name(name)
            if not checked_name:
                return checked_name
            changes["name"] = checked_name.data
        if colors is not None:
            checked_colors = self._validate_colors(colors)
            if not checked_colors:
                return checked_colors
            changes["colors"] = checked_colors.data

        palette = self._palettes[index].model_copy(update=changes, deep=True)
        updated = list(self._palettes)
        updated[index] = palette

        failure = await self._write(self._serialize(updated), operation)
        if failure is not None:
            return failure

        self._palettes = updated
        self._notify()
        return ServiceResult.ok(palette.model_copy(deep=True))

    async def delete_palette(self, palette_id: str) -> ServiceResult[None]:
        async with self._lock:
            failure = await self._ensure_loaded("delete_palette")
            if failure is not None:
                return failure

            index = self._index_of(palette_id)
            if index == -1:
                return ServiceResult.fail(ErrorCode.NOT_FOUND, "Palette not found", id=palette_id)

            updated = self._palettes[:index] + self._palettes[index + 1:]
            failure = await self._write(self._serialize(updated), "delete_palette")
            if failure is not None:
                return failure

            self._palettes = updated
            get_logger().info("Palette deleted", {"id": palette_id})
            self._notify()
            return ServiceResult.ok()

    async def clear_all(self) -> ServiceResult[None]:
        """Remove every palette and the persisted collection."""
        async with self._lock:
            failure = await self._remove("clear_all")
            if failure is not None:
                return failure

            self._palettes = []
            self._initialized = True
            self._notify()
            return ServiceResult.ok()
