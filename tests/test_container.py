"""
Tests for service wiring.
"""
import pytest

from quickcolor.config import Config
from quickcolor.container import create_services
from quickcolor.services.colors.extraction import PythonPixelExtractor, Quality
from quickcolor.services.storage import JsonFileStore, MemoryStore


class SmallConfig(Config):
    FREE_PALETTE_LIMIT = 2
    PRO_PALETTE_LIMIT = 3
    MAX_RECENT_COLORS = 3
    EXTRACTION_BACKEND = "python"
    EXTRACTION_QUALITY = "low"


class TestCreateServices:
    """Test the composition root."""

    def test_builds_from_config(self):
        services = create_services(SmallConfig(), store=MemoryStore())

        assert services.palettes.palette_limit() == 2
        assert services.recent_colors.max_colors == 3
        assert isinstance(services.extractor.pixel_extractor, PythonPixelExtractor)
        assert services.extractor.default_quality == Quality.LOW
        assert services.palettes.store is services.settings.store is services.recent_colors.store

    def test_configured_file_store(self, tmp_path):
        class FileConfig(Config):
            STORE_BACKEND = "file"
            STORE_DIR = str(tmp_path)

        services = create_services(FileConfig())
        assert isinstance(services.store, JsonFileStore)

    def test_rejects_unknown_backend(self):
        class BadConfig(Config):
            STORE_BACKEND = "secure-store"

        with pytest.raises(ValueError):
            create_services(BadConfig())

    @pytest.mark.asyncio
    async def test_pro_flag_raises_palette_ceiling(self):
        services = create_services(SmallConfig(), store=MemoryStore())
        await services.initialize()

        for name in ["A", "B"]:
            assert (await services.palettes.create_palette(name, ["#FF0000"])).success
        assert not await services.palettes.can_create_palette()

        await services.settings.set_pro_status(True)
        assert services.palettes.palette_limit() == 3
        assert await services.palettes.can_create_palette()

    @pytest.mark.asyncio
    async def test_initialize_applies_stored_pro_flag(self):
        store = MemoryStore()
        await store.set("settings", {"isPro": True})

        services = create_services(SmallConfig(), store=store)
        await services.initialize()
        assert services.palettes.palette_limit() == 3

    @pytest.mark.asyncio
    async def test_dispose_stops_wiring(self):
        services = create_services(SmallConfig(), store=MemoryStore())
        await services.dispose()

        await services.settings.set_pro_status(True)
        assert services.palettes.palette_limit() == 2

    @pytest.mark.asyncio
    async def test_shared_store_keys(self):
        store = MemoryStore()
        services = create_services(SmallConfig(), store=store)
        await services.recent_colors.add("#123456")
        await services.palettes.create_palette("A", ["#FF0000"])
        await services.settings.update_setting("theme", "dark")

        assert await store.exists("colors")
        assert await store.exists("palettes")
        assert await store.exists("settings")

    @pytest.mark.asyncio
    async def test_initialize_after_dispose_rewires_pro_flag(self):
        services = create_services(SmallConfig(), store=MemoryStore())
        await services.initialize()
        await services.dispose()
        await services.initialize()

        await services.settings.set_pro_status(True)
        assert services.palettes.palette_limit() == 3
