import asyncio
import json
import logging
import os
import tempfile
from typing import Dict, Optional, Protocol, runtime_checkable
from pico_ioc import factory, provides
from .config import CartSettings
from .exceptions import InvalidStorageBackendError

logger = logging.getLogger(__name__)

@runtime_checkable
class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[bytes]: ...
    async def set(self, key: str, value: bytes) -> None: ...

class MemoryKeyValueStore:
    def __init__(self):
        self._data: Dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

class FileKeyValueStore:
    """
    Keeps every key in a single JSON document on disk.

    Values are stored as UTF-8 text. Writes go to a temporary file in the same
    directory and are moved into place with ``os.replace``, so a crash mid-write
    leaves the previous document intact. File I/O runs in a worker thread.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()

    def _read_all(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return {}

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cart-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    async def get(self, key: str) -> Optional[bytes]:
        data = await asyncio.to_thread(self._read_all)
        value = data.get(key)
        return None if value is None else value.encode("utf-8")

    async def set(self, key: str, value: bytes) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read_all)
            data[key] = value.decode("utf-8")
            await asyncio.to_thread(self._write_all, data)

@factory
class StorageFactory:
    @provides(KeyValueStore, scope="singleton")
    def create_store(self, settings: CartSettings) -> KeyValueStore:
        backend = settings.storage_backend
        if backend == "memory":
            logger.debug("Using in-memory cart storage")
            return MemoryKeyValueStore()
        if backend == "file":
            logger.debug("Using file cart storage at %s", settings.storage_path)
            return FileKeyValueStore(settings.storage_path)
        raise InvalidStorageBackendError(backend)
