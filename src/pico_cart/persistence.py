import logging
from typing import Iterable, Tuple
from pico_ioc import component
from .config import CartSettings
from .exceptions import CorruptPersistedState, PersistenceReadFailure, PersistenceWriteFailure
from .models import Product, decode_products, encode_products
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

@component
class PersistenceBridge:
    def __init__(self, store: KeyValueStore, settings: CartSettings):
        self.store = store
        self.key = settings.storage_key

    async def load(self) -> Tuple[Product, ...]:
        try:
            raw = await self.store.get(self.key)
        except Exception as e:
            raise PersistenceReadFailure(self.key) from e
        if raw is None:
            logger.debug("No persisted cart under %s", self.key)
            return ()
        try:
            products = decode_products(raw)
        except (ValueError, RecursionError) as e:
            raise CorruptPersistedState(self.key, str(e)) from e
        logger.debug("Loaded %d cart entries from %s", len(products), self.key)
        return products

    async def save(self, products: Iterable[Product]) -> None:
        payload = encode_products(products).encode("utf-8")
        try:
            await self.store.set(self.key, payload)
        except Exception as e:
            raise PersistenceWriteFailure(self.key) from e
        logger.debug("Saved cart to %s (%d bytes)", self.key, len(payload))
