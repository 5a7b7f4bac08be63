import math
from typing import Any, Dict, Iterable, Union
from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from pico_ioc import PicoContainer
from .models import Product, ProductDescriptor
from .store import CartStore

class ProductPayload(BaseModel):
    id: str
    title: str
    image_url: str
    price: Union[int, float]

    @field_validator("price")
    @classmethod
    def price_finite_non_negative(cls, value: Union[int, float]) -> Union[int, float]:
        if (isinstance(value, float) and not math.isfinite(value)) or value < 0:
            raise ValueError("price must be a finite non-negative number")
        return value

def _products_body(products: Iterable[Product]) -> Dict[str, Any]:
    return {"products": [p.to_dict() for p in products]}

def create_cart_router(container: PicoContainer, prefix: str = "/cart") -> APIRouter:
    """HTTP endpoints for a web view layer; every response carries the full snapshot."""
    router = APIRouter(prefix=prefix, tags=["Cart"])

    async def cart_store() -> CartStore:
        return await container.aget(CartStore)

    @router.get("")
    async def list_products(store: CartStore = Depends(cart_store)):
        return _products_body(store.products)

    @router.post("/products")
    async def add_to_cart(payload: ProductPayload, store: CartStore = Depends(cart_store)):
        store.add_to_cart(ProductDescriptor(id=payload.id, title=payload.title, image_url=payload.image_url, price=payload.price))
        return _products_body(store.products)

    @router.post("/products/{product_id}/increment")
    async def increment(product_id: str, store: CartStore = Depends(cart_store)):
        store.increment(product_id)
        return _products_body(store.products)

    @router.post("/products/{product_id}/decrement")
    async def decrement(product_id: str, store: CartStore = Depends(cart_store)):
        store.decrement(product_id)
        return _products_body(store.products)

    return router
