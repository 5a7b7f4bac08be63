from typing import Protocol, Tuple, runtime_checkable
from dataclasses import dataclass
from pico_ioc import configured
from .models import Product

@runtime_checkable
class CartListener(Protocol):
    @property
    def priority(self) -> int:
        return 0
    def on_change(self, products: Tuple[Product, ...]) -> None: ...

@configured(target="self", prefix="cart", mapping="tree")
@dataclass
class CartSettings:
    storage_key: str = "@AppGoMarket:products"
    storage_backend: str = "memory"
    storage_path: str = "cart-storage.json"
    coalesce_writes: bool = True

@configured(target="self", prefix="api", mapping="tree")
@dataclass
class CartApiSettings:
    title: str = "Pico-Cart API"
    version: str = "1.0.0"
    debug: bool = False
    route_prefix: str = "/cart"
