import asyncio
import logging
from collections import deque
from typing import Any, Callable, Deque, List, Optional, Tuple
from pico_ioc import component
from .config import CartListener, CartSettings
from .exceptions import (
    CorruptPersistedState,
    PersistenceReadFailure,
    PersistenceWriteFailure,
    UninitializedContext,
)
from .models import Product, ProductDescriptor
from .persistence import PersistenceBridge

logger = logging.getLogger(__name__)

Snapshot = Tuple[Product, ...]
Subscriber = Callable[[Snapshot], None]

def _priority_of(obj: Any) -> int:
    try:
        return int(getattr(obj, "priority", 0))
    except Exception:
        return 0

def _increment(products: Snapshot, product_id: str) -> Snapshot:
    return tuple(p.with_quantity(p.quantity + 1) if p.id == product_id else p for p in products)

def _decrement(products: Snapshot, product_id: str) -> Snapshot:
    result = []
    for p in products:
        if p.id != product_id:
            result.append(p)
        elif p.quantity > 1:
            result.append(p.with_quantity(p.quantity - 1))
    return tuple(result)

def _add_to_cart(products: Snapshot, item: ProductDescriptor) -> Snapshot:
    if any(p.id == item.id for p in products):
        return _increment(products, item.id)
    return products + (Product.from_descriptor(item),)

class WriteBehindQueue:
    """
    Persists snapshots in the background, one write at a time, in submission order.

    With ``coalesce`` enabled only the newest snapshot waiting to be written is
    kept; a snapshot already being written is never interrupted. Failed writes
    are logged and dropped.
    """

    def __init__(self, bridge: PersistenceBridge, coalesce: bool = True):
        self.bridge = bridge
        self.coalesce = coalesce
        self._queue: Deque[Snapshot] = deque()
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return bool(self._queue) or (self._task is not None and not self._task.done())

    def submit(self, snapshot: Snapshot) -> None:
        if self.coalesce:
            self._queue.clear()
        self._queue.append(snapshot)
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._queue:
            snapshot = self._queue.popleft()
            try:
                await self.bridge.save(snapshot)
            except PersistenceWriteFailure as e:
                logger.warning("%s; in-memory cart stays authoritative (cause: %r)", e, e.__cause__)

    async def flush(self) -> None:
        while self._task is not None and not self._task.done():
            await self._task

@component
class CartStore:
    """
    Sole owner of the cart state.

    The store starts closed. ``open()`` makes it usable and loads the persisted
    cart in the background; operations issued before that load finishes are
    replayed on top of the loaded entries, in call order. Mutations never
    suspend: each one swaps in a new immutable snapshot, hands it to the
    write-behind queue and notifies listeners. A failing listener or
    subscriber is logged and skipped.
    """

    def __init__(self, bridge: PersistenceBridge, settings: CartSettings, listeners: List[CartListener]):
        self.bridge = bridge
        self.settings = settings
        self.listeners = sorted(
            (listener for listener in listeners if isinstance(listener, CartListener)),
            key=_priority_of,
        )
        self._subscribers: List[Subscriber] = []
        self._products: Snapshot = ()
        self._open = False
        self._loaded = asyncio.Event()
        self._pending_ops: List[Tuple[Callable[[Snapshot, Any], Snapshot], Any]] = []
        self._load_task: Optional[asyncio.Task] = None
        self._writer = WriteBehindQueue(bridge, coalesce=settings.coalesce_writes)

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_loaded(self) -> bool:
        return self._open and self._loaded.is_set()

    @property
    def products(self) -> Snapshot:
        self._ensure_open("products")
        return self._products

    async def open(self) -> None:
        if self._open:
            return
        self._open = True
        self._products = ()
        self._pending_ops = []
        self._loaded = asyncio.Event()
        self._writer = WriteBehindQueue(self.bridge, coalesce=self.settings.coalesce_writes)
        self._load_task = asyncio.get_running_loop().create_task(self._initial_load())
        logger.debug("Cart store opened, loading persisted state")

    async def ready(self) -> None:
        self._ensure_open("ready")
        await self._loaded.wait()

    async def flush(self) -> None:
        self._ensure_open("flush")
        await self._writer.flush()

    async def close(self) -> None:
        if not self._open:
            return
        try:
            if self._load_task is not None:
                await self._load_task
            await self._writer.flush()
        finally:
            self._open = False
            self._load_task = None
            logger.debug("Cart store closed")

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def add_to_cart(self, item: ProductDescriptor) -> None:
        self._apply("add_to_cart", _add_to_cart, item)

    def increment(self, product_id: str) -> None:
        self._apply("increment", _increment, product_id)

    def decrement(self, product_id: str) -> None:
        self._apply("decrement", _decrement, product_id)

    def _ensure_open(self, operation: str) -> None:
        if not self._open:
            raise UninitializedContext(operation)

    def _apply(self, operation: str, transition: Callable[[Snapshot, Any], Snapshot], arg: Any) -> None:
        self._ensure_open(operation)
        if not self._loaded.is_set():
            # replayed by _initial_load
            self._pending_ops.append((transition, arg))
            logger.debug("Queued %s(%r) until the persisted cart is loaded", operation, arg)
            return
        self._commit(transition(self._products, arg))

    def _commit(self, products: Snapshot) -> None:
        self._products = products
        self._writer.submit(products)
        for callback in [listener.on_change for listener in self.listeners] + list(self._subscribers):
            try:
                callback(products)
            except Exception:
                logger.exception("Cart change callback %r failed", callback)

    async def _initial_load(self) -> None:
        loaded: Snapshot = ()
        try:
            loaded = await self.bridge.load()
        except (CorruptPersistedState, PersistenceReadFailure) as e:
            logger.warning("Starting with an empty cart: %s (cause: %r)", e, e.__cause__)
        except Exception:
            logger.exception("Unexpected error loading the persisted cart, starting with an empty cart")
        finally:
            # set even on cancellation so ready() never blocks forever
            pending, self._pending_ops = self._pending_ops, []
            self._products = loaded
            self._loaded.set()
        logger.debug("Cart loaded with %d entries, replaying %d queued operations", len(loaded), len(pending))
        if pending:
            state = loaded
            for transition, arg in pending:
                state = transition(state, arg)
            self._commit(state)
