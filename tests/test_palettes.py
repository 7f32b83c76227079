"""
Tests for the palette store: CRUD, tier limits, search and failure handling.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from quickcolor.services.palettes import STORAGE_KEY, PaletteStore
from quickcolor.services.results import ErrorCode, PersistenceError
from quickcolor.services.storage import MemoryStore
from quickcolor.utils.ids import extract_timestamp_from_palette_id
from quickcolor.utils.metrics import get_metrics


async def create_many(store: PaletteStore, count: int):
    for i in range(count):
        result = await store.create_palette(f"Palette {i}", ["#FF6B35"])
        assert result.success, result.error


class TestCreatePalette:
    """Test palette creation and input validation."""

    @pytest.mark.asyncio
    async def test_create(self, palette_store, memory_store):
        result = await palette_store.create_palette("  Sunset  ", ["#ff6b35", "fbbf24"])

        assert result.success
        palette = result.data
        assert palette.name == "Sunset"
        assert palette.colors == ["#FF6B35", "#FBBF24"]
        assert palette.created_at == palette.updated_at
        assert palette.id.startswith("palette_")
        assert abs(extract_timestamp_from_palette_id(palette.id) - palette.created_at) < 1000

        stored = await memory_store.get(STORAGE_KEY)
        assert stored[0]["name"] == "Sunset"
        assert "createdAt" in stored[0]

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, palette_store):
        first = await palette_store.create_palette("A", ["#FF0000"])
        second = await palette_store.create_palette("B", ["#FF0000"])
        assert first.data.id != second.data.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None, "x" * 51])
    async def test_invalid_name(self, palette_store, name):
        result = await palette_store.create_palette(name, ["#FF0000"])
        assert result.code == ErrorCode.INVALID_NAME
        assert (await palette_store.list_palettes()).data == []

    @pytest.mark.asyncio
    async def test_name_at_max_length(self, palette_store):
        result = await palette_store.create_palette("x" * 50, ["#FF0000"])
        assert result.success

    @pytest.mark.asyncio
    @pytest.mark.parametrize("colors", [[], None, "#FF0000"])
    async def test_invalid_colors(self, palette_store, colors):
        result = await palette_store.create_palette("Name", colors)
        assert result.code == ErrorCode.INVALID_COLORS

    @pytest.mark.asyncio
    async def test_invalid_color_entry(self, palette_store):
        result = await palette_store.create_palette("Name", ["#FF0000", "#XYZXYZ"])
        assert result.code == ErrorCode.INVALID_COLOR
        assert result.details["color"] == "#XYZXYZ"

    @pytest.mark.asyncio
    async def test_colors_truncated_to_cap(self, palette_store):
        colors = [f"#0000{i:02X}" for i in range(25)]
        result = await palette_store.create_palette("Blues", colors)
        assert result.data.colors == colors[:20]


class TestPaletteLimits:
    """Test tier ceilings."""

    @pytest.mark.asyncio
    async def test_free_limit(self, palette_store, memory_store):
        await create_many(palette_store, 5)
        assert not await palette_store.can_create_palette()

        stored_before = await memory_store.get(STORAGE_KEY)
        result = await palette_store.create_palette("Sixth", ["#FF0000"])

        assert result.code == ErrorCode.LIMIT_REACHED
        assert result.details["limit"] == 5
        assert len((await palette_store.list_palettes()).data) == 5
        assert await memory_store.get(STORAGE_KEY) == stored_before

    @pytest.mark.asyncio
    async def test_can_create_below_limit(self, palette_store):
        assert await palette_store.can_create_palette()
        await create_many(palette_store, 4)
        assert await palette_store.can_create_palette()

    @pytest.mark.asyncio
    async def test_pro_limit(self, palette_store):
        await create_many(palette_store, 5)
        palette_store.set_pro_status(True)

        assert palette_store.palette_limit() == 100
        assert await palette_store.can_create_palette()
        assert (await palette_store.create_palette("Sixth", ["#FF0000"])).success

    @pytest.mark.asyncio
    async def test_validation_runs_before_limit(self, palette_store):
        await create_many(palette_store, 5)
        result = await palette_store.create_palette("", ["#FF0000"])
        assert result.code == ErrorCode.INVALID_NAME

    @pytest.mark.asyncio
    async def test_concurrent_creates_respect_limit(self, palette_store, memory_store):
        results = await asyncio.gather(*[
            palette_store.create_palette(f"P{i}", ["#FF0000"]) for i in range(8)
        ])

        assert sum(r.success for r in results) == 5
        assert sum(r.code == ErrorCode.LIMIT_REACHED for r in results) == 3
        assert len(await memory_store.get(STORAGE_KEY)) == 5


class TestUpdatePalette:
    """Test updates and color add/remove helpers."""

    @pytest.mark.asyncio
    async def test_update_name_and_colors(self, palette_store):
        created = (await palette_store.create_palette("Old", ["#FF0000"])).data
        result = await palette_store.update_palette(created.id, name=" New ", colors=["#00ff00"])

        assert result.data.name == "New"
        assert result.data.colors == ["#00FF00"]
        assert result.data.created_at == created.created_at
        assert result.data.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, palette_store):
        created = (await palette_store.create_palette("Keep", ["#FF0000", "#00FF00"])).data
        result = await palette_store.update_palette(created.id, name="Renamed")
        assert result.data.colors == ["#FF0000", "#00FF00"]

    @pytest.mark.asyncio
    async def test_update_missing(self, palette_store):
        result = await palette_store.update_palette("palette_0_missing", name="x")
        assert result.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_validates(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        assert (await palette_store.update_palette(created.id, colors=[])).code == ErrorCode.INVALID_COLORS
        assert (await palette_store.update_palette(created.id, name="  ")).code == ErrorCode.INVALID_NAME
        assert (await palette_store.get_palette(created.id)).data == created

    @pytest.mark.asyncio
    async def test_add_color(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        result = await palette_store.add_color_to_palette(created.id, "00ff00")
        assert result.data.colors == ["#FF0000", "#00FF00"]

    @pytest.mark.asyncio
    async def test_add_duplicate_is_rejected(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF6B35"])).data
        result = await palette_store.add_color_to_palette(created.id, "#ff6b35")

        assert result.code == ErrorCode.DUPLICATE_COLOR
        assert (await palette_store.get_palette(created.id)).data.colors == ["#FF6B35"]

    @pytest.mark.asyncio
    async def test_add_at_color_cap(self, palette_store):
        colors = [f"#0000{i:02X}" for i in range(20)]
        created = (await palette_store.create_palette("Full", colors)).data
        result = await palette_store.add_color_to_palette(created.id, "#FF0000")
        assert result.code == ErrorCode.COLOR_LIMIT

    @pytest.mark.asyncio
    async def test_add_invalid_color(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        result = await palette_store.add_color_to_palette(created.id, "red")
        assert result.code == ErrorCode.INVALID_COLOR

    @pytest.mark.asyncio
    async def test_add_to_missing_palette(self, palette_store):
        result = await palette_store.add_color_to_palette("nope", "#FF0000")
        assert result.code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_remove_color(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000", "#00FF00"])).data
        result = await palette_store.remove_color_from_palette(created.id, "#ff0000")
        assert result.data.colors == ["#00FF00"]

    @pytest.mark.asyncio
    async def test_remove_color_without_hash(self, palette_store):
        created = (await palette_store.create_palette("Name", ["ff0000", "00ff00"])).data
        result = await palette_store.remove_color_from_palette(created.id, " ff0000 ")
        assert result.data.colors == ["#00FF00"]

    @pytest.mark.asyncio
    async def test_remove_non_string_is_noop(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        result = await palette_store.remove_color_from_palette(created.id, None)
        assert result.data.colors == ["#FF0000"]

    @pytest.mark.asyncio
    async def test_remove_absent_color_is_noop(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        result = await palette_store.remove_color_from_palette(created.id, "#123456")
        assert result.success
        assert result.data == created

    @pytest.mark.asyncio
    async def test_remove_last_color_is_rejected(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        result = await palette_store.remove_color_from_palette(created.id, "#FF0000")
        assert result.code == ErrorCode.INVALID_COLORS


class TestDeleteAndClear:
    """Test deletion."""

    @pytest.mark.asyncio
    async def test_delete(self, palette_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        assert (await palette_store.delete_palette(created.id)).success
        assert (await palette_store.get_palette(created.id)).code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_missing(self, palette_store):
        assert (await palette_store.delete_palette("nope")).code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_clear_all(self, palette_store, memory_store):
        await create_many(palette_store, 3)
        assert (await palette_store.clear_all()).success

        assert (await palette_store.list_palettes()).data == []
        assert not await memory_store.exists(STORAGE_KEY)
        assert await palette_store.can_create_palette()


class TestSearch:
    """Test name search and color lookup."""

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, palette_store):
        await palette_store.create_palette("Ocean Breeze", ["#0A7EA4"])
        await palette_store.create_palette("Sunset", ["#FF6B35"])

        result = await palette_store.search_palettes("OCEAN")
        assert [p.name for p in result.data] == ["Ocean Breeze"]
        assert len((await palette_store.search_palettes("")).data) == 2

    @pytest.mark.asyncio
    async def test_find_by_color(self, palette_store):
        await palette_store.create_palette("Warm", ["#FF6B35", "#FBBF24"])
        await palette_store.create_palette("Cool", ["#0A7EA4"])
        await palette_store.create_palette("Mixed", ["#0A7EA4", "#FF6B35"])

        result = await palette_store.find_by_color("#ff6b35")
        assert [p.name for p in result.data] == ["Warm", "Mixed"]
        assert (await palette_store.find_by_color("0a7ea4")).data[0].name == "Cool"
        assert (await palette_store.find_by_color("#000000")).data == []


class TestPersistence:
    """Test loading and storage failures."""

    @pytest.mark.asyncio
    async def test_reload_from_store(self, memory_store):
        first = PaletteStore(memory_store)
        created = (await first.create_palette("Saved", ["#FF6B35"])).data

        second = PaletteStore(memory_store)
        assert (await second.list_palettes()).data == [created]

    @pytest.mark.asyncio
    async def test_failed_write_leaves_state_unchanged(self, palette_store, memory_store):
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data
        memory_store.set = AsyncMock(side_effect=PersistenceError("disk full"))

        result = await palette_store.create_palette("Other", ["#00FF00"])
        assert result.code == ErrorCode.PERSISTENCE_FAILURE
        assert (await palette_store.list_palettes()).data == [created]

        result = await palette_store.update_palette(created.id, name="Changed")
        assert result.code == ErrorCode.PERSISTENCE_FAILURE
        assert (await palette_store.get_palette(created.id)).data.name == "Name"

        counters = get_metrics().get_counters()
        assert counters["persistence_failures_total_create_palette"] == 1
        assert counters["persistence_failures_total_update_palette"] == 1

    @pytest.mark.asyncio
    async def test_rejected_write_after_initialize(self, palette_store, memory_store):
        await palette_store.initialize()
        memory_store.set = AsyncMock(side_effect=PersistenceError("disk full"))

        result = await palette_store.create_palette("X", ["#FF0000"])
        assert not result.success
        assert result.code == ErrorCode.PERSISTENCE_FAILURE
        assert palette_store.current_value() == []

    @pytest.mark.asyncio
    async def test_failed_clear_keeps_palettes(self, palette_store, memory_store):
        await create_many(palette_store, 2)
        memory_store.delete = AsyncMock(side_effect=PersistenceError("locked"))

        assert (await palette_store.clear_all()).code == ErrorCode.PERSISTENCE_FAILURE
        assert len((await palette_store.list_palettes()).data) == 2

    @pytest.mark.asyncio
    async def test_corrupt_data_is_reported(self, memory_store):
        await memory_store.set(STORAGE_KEY, [{"id": "x", "name": ""}])
        store = PaletteStore(memory_store)

        result = await store.list_palettes()
        assert result.code == ErrorCode.PERSISTENCE_FAILURE
        assert not await store.can_create_palette()

    @pytest.mark.asyncio
    async def test_initialize_raises_on_corrupt_data(self, memory_store):
        await memory_store.set(STORAGE_KEY, {"not": "a list"})
        with pytest.raises(PersistenceError):
            await PaletteStore(memory_store).initialize()

    @pytest.mark.asyncio
    async def test_dispose_forces_reload(self, palette_store, memory_store):
        await create_many(palette_store, 1)
        await memory_store.set(STORAGE_KEY, [])
        await palette_store.dispose()
        assert (await palette_store.list_palettes()).data == []


class TestSubscriptions:
    """Test observer notifications."""

    @pytest.mark.asyncio
    async def test_subscribe_receives_current_value(self, palette_store):
        received = []
        palette_store.subscribe(received.append)
        assert received == [[]]

    @pytest.mark.asyncio
    async def test_notified_after_mutation(self, palette_store):
        received = []
        palette_store.subscribe(received.append)
        created = (await palette_store.create_palette("Name", ["#FF0000"])).data

        assert received[-1] == [created]

    @pytest.mark.asyncio
    async def test_snapshots_are_isolated(self, palette_store):
        received = []
        palette_store.subscribe(received.append)
        await palette_store.create_palette("Name", ["#FF0000"])

        received[-1][0].colors.append("#000000")
        received[-1].clear()
        palette = (await palette_store.list_palettes()).data[0]
        assert palette.colors == ["#FF0000"]

    @pytest.mark.asyncio
    async def test_not_notified_on_failure(self, palette_store, memory_store):
        received = []
        palette_store.subscribe(received.append)
        memory_store.set = AsyncMock(side_effect=PersistenceError("disk full"))

        await palette_store.create_palette("Name", ["#FF0000"])
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, palette_store):
        received = []
        unsubscribe = palette_store.subscribe(received.append)
        unsubscribe()
        unsubscribe()
        await palette_store.create_palette("Name", ["#FF0000"])
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_listener_errors_do_not_break_mutations(self, palette_store):
        def broken(_):
            raise RuntimeError("listener bug")

        palette_store.subscribe(broken)
        assert (await palette_store.create_palette("Name", ["#FF0000"])).success
