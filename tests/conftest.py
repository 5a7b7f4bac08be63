import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient
from pico_ioc import init, configuration, YamlTreeSource, component
import pico_cart
from pico_cart import CartListener, ProductDescriptor

@component
class RecordingListener(CartListener):
    priority = 10
    def __init__(self):
        self.snapshots = []
    def on_change(self, products) -> None:
        self.snapshots.append(products)

class FailingStore:
    """Key-value store whose every call raises."""
    def __init__(self, exc: Exception):
        self.exc = exc
    async def get(self, key):
        raise self.exc
    async def set(self, key, value):
        raise self.exc

@pytest.fixture()
def rice():
    return ProductDescriptor(id="a", title="Rice", image_url="u", price=10)

@pytest.fixture()
def beans():
    return ProductDescriptor(id="b", title="Beans", image_url="https://img/beans.png", price=4.75)

@pytest.fixture()
def settings():
    return pico_cart.CartSettings()

@pytest.fixture()
def memory_store():
    return pico_cart.MemoryKeyValueStore()

@pytest.fixture()
def bridge(memory_store, settings):
    return pico_cart.PersistenceBridge(memory_store, settings)

@pytest.fixture()
def store(bridge, settings):
    return pico_cart.CartStore(bridge, settings, [])

CART_MODULES = [
    "pico_cart.config",
    "pico_cart.storage",
    "pico_cart.persistence",
    "pico_cart.store",
    "pico_cart.factory",
]

def build_container(config_path):
    cfg = configuration(YamlTreeSource(str(config_path)))
    return init(modules=CART_MODULES + [__name__], config=cfg)

@pytest.fixture()
def config_file(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "api:\n"
        "  title: 'Cart Test API'\n"
        "  version: '9.9.9'\n"
        "  debug: true\n"
        "cart:\n"
        "  storage_key: '@Test:products'\n"
        "  storage_backend: 'memory'\n",
        encoding="utf-8",
    )
    return cfg

@pytest.fixture()
def container(config_file):
    return build_container(config_file)

@pytest.fixture()
def app(container):
    return container.get(FastAPI)

@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
