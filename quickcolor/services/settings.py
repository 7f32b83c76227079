"""
QuickColor Settings Service
Persisted user preferences and the subscription tier flag.
"""
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from quickcolor.schemas import UserSettings
from quickcolor.services.observable import ObservableService
from quickcolor.services.results import ErrorCode, PersistenceError, ServiceResult
from quickcolor.services.storage import Store

STORAGE_KEY = "settings"

DEFAULT_SETTINGS = UserSettings()


def _setting_keys() -> Dict[str, str]:
    """Map both persisted camelCase names and Python field names to fields."""
    keys = {}
    for name, info in UserSettings.model_fields.items():
        keys[name] = name
        if info.alias:
            keys[info.alias] = name
    return keys


_FIELD_BY_KEY = _setting_keys()


class SettingsService(ObservableService[UserSettings]):
    """User settings, merged over defaults on load."""

    def __init__(self, store: Store):
        super().__init__(store, STORAGE_KEY)
        self._settings = DEFAULT_SETTINGS.model_copy()

    def current_value(self) -> UserSettings:
        return self._settings.model_copy()

    async def _load(self) -> None:
        stored = await self.store.get(self.storage_key)
        if stored is None:
            self._settings = DEFAULT_SETTINGS.model_copy()
            return
        if not isinstance(stored, dict):
            raise PersistenceError("Corrupt settings data: expected an object")
        try:
            merged = {**DEFAULT_SETTINGS.model_dump(by_alias=True), **stored}
            self._settings = UserSettings.model_validate(merged)
        except ValidationError as e:
            raise PersistenceError(f"Corrupt settings data: {e.error_count()} validation errors")

    def _apply(self, updates: Mapping[str, Any]) -> ServiceResult[UserSettings]:
        """Validate ``updates`` against the current settings without mutating them."""
        changes = {}
        for key, value in updates.items():
            field = _FIELD_BY_KEY.get(key)
            if field is None:
                return ServiceResult.fail(ErrorCode.INVALID_SETTING, f"Unknown setting: {key}", key=key)
            changes[field] = value

        candidate = {**self._settings.model_dump(), **changes}
        try:
            return ServiceResult.ok(UserSettings.model_validate(candidate))
        except ValidationError as e:
            first = e.errors()[0]
            return ServiceResult.fail(
                ErrorCode.INVALID_SETTING,
                f"Invalid value for {first['loc'][0]}: {first['msg']}",
            )

    async def _commit(self, settings: UserSettings, operation: str) -> ServiceResult[UserSettings]:
        failure = await self._write(settings.model_dump(by_alias=True), operation)
        if failure is not None:
            return failure

        self._settings = settings
        self._initialized = True
        self._notify()
        return ServiceResult.ok(self.current_value())

    async def get_settings(self) -> ServiceResult[UserSettings]:
        failure = await self._ensure_ready("get_settings")
        if failure is not None:
            return failure
        return ServiceResult.ok(self.current_value())

    async def get_setting(self, key: str) -> ServiceResult[Any]:
        field = _FIELD_BY_KEY.get(key)
        if field is None:
            return ServiceResult.fail(ErrorCode.INVALID_SETTING, f"Unknown setting: {key}", key=key)
        failure = await self._ensure_ready("get_setting")
        if failure is not None:
            return failure
        return ServiceResult.ok(getattr(self._settings, field))

    async def update_setting(self, key: str, value: Any) -> ServiceResult[UserSettings]:
        return await self.update_settings({key: value})

    async def update_settings(self, updates: Mapping[str, Any]) -> ServiceResult[UserSettings]:
        """Apply several settings at once; nothing changes if any value is invalid."""
        async with self._lock:
            failure = await self._ensure_loaded("update_settings")
            if failure is not None:
                return failure

            checked = self._apply(updates)
            if not checked:
                return checked
            return await self._commit(checked.data, "update_settings")

    async def reset_to_defaults(self) -> ServiceResult[UserSettings]:
        async with self._lock:
            return await self._commit(DEFAULT_SETTINGS.model_copy(), "reset_settings")

    async def toggle_haptic(self) -> ServiceResult[UserSettings]:
        async with self._lock:
            failure = await self._ensure_loaded("toggle_haptic")
            if failure is not None:
                return failure
            updated = self._settings.model_copy(update={"haptic_enabled": not self._settings.haptic_enabled})
            return await self._commit(updated, "toggle_haptic")

    async def toggle_auto_save(self) -> ServiceResult[UserSettings]:
        async with self._lock:
            failure = await self._ensure_loaded("toggle_auto_save")
            if failure is not None:
                return failure
            updated = self._settings.model_copy(update={"auto_save": not self._settings.auto_save})
            return await self._commit(updated, "toggle_auto_save")

    async def set_pro_status(self, is_pro: bool) -> ServiceResult[UserSettings]:
        return await self.update_settings({"isPro": is_pro})
