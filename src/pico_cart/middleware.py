from pico_ioc import PicoContainer
from .store import CartStore

class CartReadyMiddleware:
    """Holds HTTP requests until the persisted cart has been loaded."""

    def __init__(self, app, container: PicoContainer):
        self.app = app
        self.container = container

    async def __call__(self, scope, receive, send):
        with self.container.as_current():
            if scope["type"] == "http":
                store = await self.container.aget(CartStore)
                if store.is_open:
                    await store.ready()
            await self.app(scope, receive, send)
