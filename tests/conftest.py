"""
Pytest configuration and shared fixtures.

Everything runs against the in-memory backend and a RAM-only session store
unless a test builds its own SQLite-backed repository.
"""
from datetime import date, datetime

import pytest
import pytz
from fastapi.testclient import TestClient

from app.application.auth_service import AuthService
from app.application.batch_service import BatchService
from app.application.order_service import OrderService
from app.core.config import Settings
from app.domain.models import Actor, Batch, Role
from app.infrastructure.repositories.memory_repository import InMemoryInventoryRepository
from app.infrastructure.session_store import SessionStore
from app.interfaces.INotifier import INotifier
from app.main import create_app

FIXED_NOW = datetime(2026, 10, 17, 9, 0, tzinfo=pytz.utc)
TODAY = FIXED_NOW.date()

ADMIN = Actor(username="admin", role=Role.ADMIN)
CUSTOMER = Actor(username="sari", role=Role.CUSTOMER)
GUEST = Actor.guest()


class RecordingNotifier(INotifier):
    def __init__(self, fail: bool = False):
        self.messages = []
        self.fail = fail

    def notify(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("notifier down")
        self.messages.append(text)


def make_batch(batch_id, stock=10, quantity=None, ready=True, plant_date=date(2026, 10, 1), name="Bibit Cabai"):
    return Batch(
        id=batch_id,
        name=name,
        plant_date=plant_date,
        quantity=quantity if quantity is not None else max(stock, 10),
        stock=stock,
        ready_for_sale=ready,
    )


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        STORAGE_BACKEND="memory",
        REDIS_URL=None,
        ADMIN_USERNAME=None,
        ADMIN_PASSWORD=None,
        TWILIO_ACCOUNT_SID=None,
        TWILIO_AUTH_TOKEN=None,
        UNIT_PRICE=5000,
        MATURATION_DAYS=14,
        STRICT_STATUS_TRANSITIONS=True,
        RESTOCK_ON_CANCEL=True,
    )


@pytest.fixture
def repo():
    repository = InMemoryInventoryRepository()
    repository.replace_all_batches([
        make_batch(1, stock=10, quantity=10, ready=True),
        make_batch(2, stock=5, quantity=8, ready=False, plant_date=date(2026, 10, 10)),
        make_batch(3, stock=0, quantity=6, ready=True),
    ])
    return repository


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def order_service(repo, notifier, settings, clock):
    return OrderService(order_repo=repo, notifier=notifier, settings=settings, clock=clock)


@pytest.fixture
def batch_service(repo, settings, clock):
    return BatchService(batch_repo=repo, settings=settings, clock=clock)


@pytest.fixture
def sessions():
    return SessionStore(redis_url=None, ttl=3600)


@pytest.fixture
def auth_service(repo, sessions):
    return AuthService(user_repo=repo, sessions=sessions)


@pytest.fixture
def app(settings, repo, notifier, sessions, clock):
    application = create_app(
        settings, repository=repo, notifier=notifier, session_store=sessions, clock=clock
    )
    application.state.auth_service.seed_admin("admin", "admin-pass-123")
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


def login(client, username="admin", password="admin-pass-123"):
    """Log in and return headers carrying the bearer token."""
    response = client.post("/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    # Forget the session cookie so later requests are authenticated only by the header
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client)


@pytest.fixture
def customer_headers(client):
    response = client.post("/register", json={"username": "sari", "password": "sari-pass"})
    assert response.status_code == 200, response.text
    # Forget the session cookie so later requests are authenticated only by the header
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}
