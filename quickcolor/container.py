"""
QuickColor Service Container
Builds the stateful services once at startup and wires them together.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional

from quickcolor.config import Config, config as default_config
from quickcolor.schemas import UserSettings
from quickcolor.services.colors.extraction import ColorExtractor, create_pixel_extractor
from quickcolor.services.palettes import PaletteStore
from quickcolor.services.recent_colors import RecentColorsTracker
from quickcolor.services.settings import SettingsService
from quickcolor.services.storage import Store, create_store
from quickcolor.utils.logging import get_logger


@dataclass
class QuickColorServices:
    """Every stateful component, sharing one store."""
    store: Store
    palettes: PaletteStore
    recent_colors: RecentColorsTracker
    settings: SettingsService
    extractor: ColorExtractor
    _unsubscribe: Optional[Callable[[], None]] = field(default=None, repr=False)

    async def initialize(self) -> None:
        """
        Load all persisted state and apply the stored tier flag.

        Raises:
            PersistenceError: If any component's state cannot be read
        """
        await self.settings.initialize()
        await self.palettes.initialize()
        await self.recent_colors.initialize()
        if self._unsubscribe is None:
            self._unsubscribe = self.settings.subscribe(self._apply_pro_status)
        self.palettes.set_pro_status(self.settings.current_value().is_pro)

    def _apply_pro_status(self, settings: UserSettings) -> None:
        self.palettes.set_pro_status(settings.is_pro)

    async def dispose(self) -> None:
        """Release the store and drop subscribers. A later initialize() rewires the tier flag."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.palettes.dispose()
        await self.recent_colors.dispose()
        await self.settings.dispose()
        await self.store.close()


def create_services(config: Config = default_config,
                    store: Optional[Store] = None) -> QuickColorServices:
    """
    Composition root.

    Args:
        config: Configuration to read limits and backend tags from
        store: Store to use instead of the configured backend

    Raises:
        ValueError: If a configured backend tag or quality tier is unknown
    """
    if not config.validate_store_backend(config.STORE_BACKEND):
        raise ValueError(f"Unknown store backend: {config.STORE_BACKEND}")
    if not config.validate_extraction_backend(config.EXTRACTION_BACKEND):
        raise ValueError(f"Unknown extraction backend: {config.EXTRACTION_BACKEND}")
    if not config.validate_quality(config.EXTRACTION_QUALITY):
        raise ValueError(f"Unknown extraction quality: {config.EXTRACTION_QUALITY}")

    if store is None:
        store = create_store(
            config.STORE_BACKEND,
            namespace=config.STORE_NAMESPACE,
            root=config.STORE_DIR,
            redis_url=config.REDIS_URL,
        )

    palettes = PaletteStore(
        store,
        free_limit=config.FREE_PALETTE_LIMIT,
        pro_limit=config.PRO_PALETTE_LIMIT,
        max_colors=config.MAX_COLORS_PER_PALETTE,
        max_name_length=config.MAX_PALETTE_NAME_LENGTH,
    )
    recent_colors = RecentColorsTracker(store, max_colors=config.MAX_RECENT_COLORS)
    settings = SettingsService(store)

    extractor = ColorExtractor(
        create_pixel_extractor(
            config.EXTRACTION_BACKEND,
            min_alpha=config.EXTRACTION_MIN_ALPHA,
            min_brightness=config.EXTRACTION_MIN_BRIGHTNESS,
            max_brightness=config.EXTRACTION_MAX_BRIGHTNESS,
            max_samples=config.EXTRACTION_MAX_SAMPLES,
        ),
        default_quality=config.EXTRACTION_QUALITY,
    )

    get_logger().info("QuickColor services created", {
        "store": type(store).__name__,
        "extractor": config.EXTRACTION_BACKEND,
    })

    services = QuickColorServices(
        store=store,
        palettes=palettes,
        recent_colors=recent_colors,
        settings=settings,
        extractor=extractor,
    )
    services._unsubscribe = settings.subscribe(services._apply_pro_status)
    return services
