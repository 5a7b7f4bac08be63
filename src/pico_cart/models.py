import json
import math
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Iterable, Tuple, Union

Price = Union[int, float]

def _check_price(price: Any) -> None:
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise TypeError(f"'price' must be a number, got {type(price).__name__}")
    if (isinstance(price, float) and not math.isfinite(price)) or price < 0:
        raise ValueError(f"'price' must be a finite non-negative number, got {price!r}")

@dataclass(frozen=True)
class ProductDescriptor:
    id: str
    title: str
    image_url: str
    price: Price

    def __post_init__(self):
        _check_price(self.price)

@dataclass(frozen=True)
class Product:
    id: str
    title: str
    image_url: str
    price: Price
    quantity: int

    @classmethod
    def from_descriptor(cls, item: ProductDescriptor, quantity: int = 1) -> "Product":
        return cls(id=item.id, title=item.title, image_url=item.image_url, price=item.price, quantity=quantity)

    def with_quantity(self, quantity: int) -> "Product":
        return replace(self, quantity=quantity)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Build a Product from its wire form, rejecting anything that could not be a cart entry."""
        for name in ("id", "title", "image_url"):
            if not isinstance(data[name], str):
                raise TypeError(f"'{name}' must be a string, got {type(data[name]).__name__}")
        price = data["price"]
        _check_price(price)
        quantity = data["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise TypeError(f"'quantity' must be an integer, got {type(quantity).__name__}")
        if quantity < 1:
            raise ValueError(f"'quantity' must be at least 1, got {quantity!r}")
        return cls(id=data["id"], title=data["title"], image_url=data["image_url"], price=price, quantity=quantity)

def encode_products(products: Iterable[Product]) -> str:
    return json.dumps([p.to_dict() for p in products], ensure_ascii=False, allow_nan=False)

def decode_products(payload: Union[str, bytes]) -> Tuple[Product, ...]:
    """
    Decode the JSON array written by ``encode_products``, keeping cart order.

    Empty objects are placeholders that older clients left behind for products
    decremented to zero; they are skipped. Anything else that is not a valid
    entry, or a repeated id, invalidates the whole payload with ``ValueError``.
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    products = []
    seen = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"entry {index} is not an object")
        if not entry:
            continue
        try:
            product = Product.from_dict(entry)
        except KeyError as e:
            raise ValueError(f"entry {index} is missing field {e.args[0]!r}") from e
        except TypeError as e:
            raise ValueError(f"entry {index}: {e}") from e
        if product.id in seen:
            raise ValueError(f"duplicate product id {product.id!r}")
        seen.add(product.id)
        products.append(product)
    return tuple(products)
