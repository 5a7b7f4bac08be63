import dataclasses
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from pico_ioc import factory, provides, component, PicoContainer, configure
from .config import CartApiSettings
from .controller import create_cart_router
from .exceptions import UninitializedContext
from .middleware import CartReadyMiddleware
from .store import CartStore

logger = logging.getLogger(__name__)

async def _uninitialized_context_handler(request: Request, exc: UninitializedContext) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": str(exc)})

async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # rejected input may hold NaN/Infinity, which JSONResponse cannot encode
    detail = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": detail})

@component
class CartLifespanConfigurer:
    @configure
    def setup_fastapi(
        self,
        container: PicoContainer,
        app: FastAPI,
        settings: CartApiSettings,
        store: CartStore,
    ) -> None:
        app.add_middleware(CartReadyMiddleware, container=container)
        app.add_exception_handler(UninitializedContext, _uninitialized_context_handler)
        app.add_exception_handler(RequestValidationError, _validation_error_handler)
        app.include_router(create_cart_router(container, prefix=settings.route_prefix))
        logger.debug("Cart routes mounted under %s", settings.route_prefix)

        @asynccontextmanager
        async def lifespan_manager(app_instance):
            await store.open()
            yield
            await store.close()
            await container.cleanup_all_async()
            container.shutdown()

        app.router.lifespan_context = lifespan_manager

@factory
class CartAppFactory:
    @provides(FastAPI, scope="singleton")
    def create_fastapi_app(
        self,
        settings: CartApiSettings,
    ) -> FastAPI:
        fields = dataclasses.asdict(settings)
        fields.pop("route_prefix")
        return FastAPI(**fields)
