"""Booking Store selection.

Picks the store implementation named by configuration and keeps one
instance per backend for the life of the process.
"""

import logging

from servicebook.config import settings
from servicebook.stores.base import BookingStore, StoreBackend
from servicebook.stores.http import HttpBookingStore
from servicebook.stores.memory import InMemoryBookingStore

logger = logging.getLogger(__name__)


class StoreService:
    """Service for managing the Booking Store instance."""

    def __init__(self) -> None:
        self._stores: dict[StoreBackend, BookingStore] = {}

    def get_store(self, backend: str | StoreBackend | None = None) -> BookingStore:
        """Get or create the store for ``backend`` (configured backend by default)."""
        backend = StoreBackend(backend or settings.store_backend)
        if backend not in self._stores:
            if backend == StoreBackend.HTTP:
                self._stores[backend] = HttpBookingStore()
                logger.info(f"Using HTTP booking store at {settings.upstream_api_url}")
            else:
                self._stores[backend] = InMemoryBookingStore()
                logger.info("Using in-memory booking store")
        return self._stores[backend]

    async def close(self) -> None:
        """Close all open stores."""
        for store in self._stores.values():
            await store.close()
        self._stores.clear()


store_service = StoreService()
