"""
QuickColor Observable Services
Base class for stateful services: one authoritative in-memory copy of state,
loaded lazily from a Store, mutated behind an async gate and published to
subscribers as snapshots.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, List, Optional, TypeVar

from quickcolor.services.results import ErrorCode, ServiceResult
from quickcolor.services.storage import Store
from quickcolor.utils.logging import get_logger
from quickcolor.utils.metrics import get_metrics

T = TypeVar("T")

Listener = Callable[[T], None]


class ObservableService(ABC, Generic[T]):
    """
    Subscribe/notify plumbing plus the serialization gate.

    Mutations run under ``self._lock`` for their whole load, validate,
    persist and notify sequence, so overlapping calls cannot drop writes.
    In-memory state is only replaced after the store accepted the new value.
    """

    def __init__(self, store: Store, storage_key: str):
        self.store = store
        self.storage_key = storage_key
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()
        self._initialized = False

    @abstractmethod
    def current_value(self) -> T:
        """Snapshot copy of the current state."""
        pass

    @abstractmethod
    async def _load(self) -> None:
        """Read state from the store. Raises PersistenceError on bad data."""
        pass

    # Lifecycle

    async def initialize(self) -> None:
        """
        Load persisted state. Safe to call multiple times.

        Raises:
            PersistenceError: If the store fails or holds corrupt data
        """
        async with self._lock:
            if not self._initialized:
                await self._load()
                self._initialized = True

    async def dispose(self) -> None:
        """Drop subscribers and forget loaded state; the next call reloads."""
        self._listeners.clear()
        self._initialized = False

    # Subscription

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener and immediately deliver the current value.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)
        self._deliver(listener, self.current_value())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            self._deliver(listener, self.current_value())

    def _deliver(self, listener: Listener, value: T) -> None:
        try:
            listener(value)
        except Exception as e:
            get_logger().error(
                f"{type(self).__name__} listener raised",
                {"listener": repr(listener), "error": str(e)}
            )

    # Persistence helpers, called with the gate held

    async def _ensure_loaded(self, operation: str) -> Optional[ServiceResult]:
        """Lazy load; returns a failure result if the store could not be read."""
        if self._initialized:
            return None
        try:
            await self._load()
        except Exception as e:
            return self._persistence_failure(operation, e)
        self._initialized = True
        return None

    async def _ensure_ready(self, operation: str) -> Optional[ServiceResult]:
        """``_ensure_loaded`` for read paths that do not hold the gate."""
        if self._initialized:
            return None
        async with self._lock:
            return await self._ensure_loaded(operation)

    async def _write(self, value: Any, operation: str) -> Optional[ServiceResult]:
        """Persist ``value`` under the storage key; returns a failure result on error."""
        try:
            await self.store.set(self.storage_key, value)
        except Exception as e:
            return self._persistence_failure(operation, e)
        return None

    async def _remove(self, operation: str) -> Optional[ServiceResult]:
        try:
            await self.store.delete(self.storage_key)
        except Exception as e:
            return self._persistence_failure(operation, e)
        return None

    def _persistence_failure(self, operation: str, error: Exception) -> ServiceResult:
        get_logger().error(
            f"{type(self).__name__}.{operation} persistence failure",
            {"key": self.storage_key, "error": str(error)}
        )
        get_metrics().increment_persistence_failure_count(operation)
        return ServiceResult.fail(
            ErrorCode.PERSISTENCE_FAILURE,
            f"Storage error during {operation}: {error}",
        )
