import os
import sys
from pathlib import Path
from typing import Iterator, List, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings() se instancia al importar app.core: el entorno va primero
os.environ.setdefault("URL_DATABASE_SQL", "sqlite://")
os.environ.setdefault("URL_DATABASE_REDIS", "redis://localhost:6379/0")
os.environ.setdefault("KEY_SECRET", "test-secret-key")
os.environ.setdefault("OAUTH_CLIENT_ID", "alexa-skill")
os.environ.setdefault("OAUTH_CLIENT_SECRET", "alexa-secret")
os.environ.setdefault("BREVO_API_KEY", "test-brevo-key")
os.environ.setdefault("BREVO_SENDER_EMAIL", "noreply@example.com")
os.environ.setdefault("MQTT_BROKER_HOST", "localhost")
os.environ["DISCORD_WEBHOOK_URL"] = ""

import paho.mqtt.client as mqtt
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import create_token
from app.core.exceptions import TransportError, TransportUnavailable
from app.core.mqtt_client import get_mqtt_client
from app.database import Base, get_db
from app.models import Device, DeviceType, User
from app.repositories import DeviceRepository, DeviceSpec


class FakeTransport:
    """Transporte en memoria: registra publicaciones y entrega mensajes a las suscripciones."""

    def __init__(self) -> None:
        self.is_connected = True
        self.fail_with: TransportError | None = None
        self.published: List[Tuple[str, str, int]] = []
        self.subscriptions = {}

    async def publish(self, topic: str, payload: str, qos: int = 1) -> None:
        if not self.is_connected:
            raise TransportUnavailable("MQTT backend disconnected", {"topic": topic})
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((topic, payload, qos))

    def subscribe(self, topic_filter: str, qos: int, callback) -> None:
        self.subscriptions[topic_filter] = (qos, callback)

    def deliver(self, topic: str, payload: bytes) -> None:
        for topic_filter, (_, callback) in self.subscriptions.items():
            if mqtt.topic_matches_sub(topic_filter, topic):
                callback(topic, payload)


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


def make_user(db: Session, user_id: str, email: str | None = None, verified: bool = True) -> User:
    user = User(
        user_id=user_id,
        user_email=email or f"{user_id}@example.com",
        user_password="not-a-real-hash",
        user_email_verified=verified,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_device(db: Session, owner: str, endpoint_id: str, name: str = "Lamp", **kwargs) -> Device:
    spec = DeviceSpec(name=name, endpoint_id=endpoint_id, type=kwargs.pop("type", DeviceType.LIGHT), **kwargs)
    return DeviceRepository(db).create(owner, spec)


def bearer(user_id: str) -> str:
    return create_token({"user_id": user_id})


@pytest.fixture()
def user_u1(db_session) -> User:
    return make_user(db_session, "u1")


@pytest.fixture()
def user_u2(db_session) -> User:
    return make_user(db_session, "u2")


@pytest.fixture()
def lamp(db_session, user_u1) -> Device:
    return make_device(db_session, "u1", "lamp1", name="Lamp")


@pytest.fixture()
def client(db_session, fake_transport) -> Iterator[TestClient]:
    from app.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mqtt_client] = lambda: fake_transport
    # Sin "with": no se ejecuta el lifespan (ni conexión MQTT real)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {bearer(user_id)}"}
    return _headers


@pytest.fixture()
def device_factory(db_session):
    def _make(owner: str, endpoint_id: str, name: str = "Lamp", **kwargs) -> Device:
        return make_device(db_session, owner, endpoint_id, name, **kwargs)
    return _make
