from .config import CartApiSettings, CartListener, CartSettings
from .exceptions import (
    PicoCartError,
    UninitializedContext,
    CorruptPersistedState,
    PersistenceReadFailure,
    PersistenceWriteFailure,
    InvalidStorageBackendError,
)
from .factory import CartAppFactory
from .models import Product, ProductDescriptor, decode_products, encode_products
from .persistence import PersistenceBridge
from .storage import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore, StorageFactory
from .store import CartStore, WriteBehindQueue

__all__ = [
    "CartApiSettings",
    "CartListener",
    "CartSettings",
    "PicoCartError",
    "UninitializedContext",
    "CorruptPersistedState",
    "PersistenceReadFailure",
    "PersistenceWriteFailure",
    "InvalidStorageBackendError",
    "CartAppFactory",
    "Product",
    "ProductDescriptor",
    "decode_products",
    "encode_products",
    "PersistenceBridge",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "StorageFactory",
    "CartStore",
    "WriteBehindQueue",
]
