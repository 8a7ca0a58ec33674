import pytest

from foodheaven_mcp.auth import MemoryAuthService
from foodheaven_mcp.config import BackendSettings, FoodHeavenConfig, StorageConfig
from foodheaven_mcp.local_store import LocalStore
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.remote import MemoryDocumentStore
from foodheaven_mcp.session import AppContext

MENU_SEED = {
    "items": {
        "biryani-1": {
            "name": "Chicken Biryani",
            "description": "Dum cooked with saffron rice",
            "price": 250.0,
            "category": "biryani",
            "imageUrl": "https://img.example/biryani.jpg",
            "isNew": True,
        },
        "pizza-1": {
            "name": "Margherita",
            "description": "Tomato, basil and mozzarella",
            "price": 199.0,
            "category": "pizza",
        },
        "cake-1": {
            "name": "Chocolate Cake",
            "description": "Rich dark chocolate",
            "price": 120.0,
            "category": "cake",
        },
        "water-1": {
            "name": "Mineral Water",
            "price": 0,
            "category": "beverage",
        },
    }
}


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "state.json")


@pytest.fixture
def local(state_path):
    return LocalStore(state_path)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def remote():
    return MemoryDocumentStore(seed=MENU_SEED)


@pytest.fixture
def config(tmp_path, state_path):
    return FoodHeavenConfig(
        backend=BackendSettings(kind="memory"),
        storage=StorageConfig(
            state_path=state_path,
            audit_log_path=str(tmp_path / "orders.log"),
        ),
    )


@pytest.fixture
def auth():
    return MemoryAuthService()


@pytest.fixture
def app(config, local, remote, auth):
    return AppContext(config, local, remote, auth)


async def make_admin(app, email="admin@foodheaven.in", password="admin-pass"):
    """Sign up an account and promote it the way an operator would, in the database."""
    result = await app.accounts.sign_up(email, password, "Head Chef")
    await app.remote.set("users", result.user.uid, {"role": "admin"}, merge=True)
    return result.user


async def add_order(remote, status="New", customer="Asha Rao", timestamp=None):
    from datetime import datetime, timezone

    return await remote.add(
        "orders",
        {
            "userId": "u-1",
            "customerName": customer,
            "customerEmail": "asha@example.com",
            "customerPhone": "9876543210",
            "orderItems": [{"id": "pizza-1", "name": "Margherita", "quantity": 2, "price": 199.0}],
            "total": 459.9,
            "service": "delivery",
            "details": {"address": "12 MG Road", "city": "Pune", "zip": "411001"},
            "paymentMethod": "card",
            "status": status,
            "timestamp": timestamp or datetime.now(timezone.utc),
        },
    )
