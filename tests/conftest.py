"""Fixtures compartidas.

SQLite en memoria (StaticPool) reemplaza a la BD real: una sola conexión
compartida entre el test y el threadpool de FastAPI.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from crag_api.main import create_app
from crag_api.storage import StorageGateway


T0 = datetime(2026, 3, 14, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Reloj determinista: cada lectura avanza ``step``."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def set(self, value: datetime) -> None:
        self.now = value


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def storage(engine) -> StorageGateway:
    gateway = StorageGateway(engine=engine)
    gateway.connect()
    yield gateway
    gateway.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app(engine, clock):
    return create_app(storage=StorageGateway(engine=engine), clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def valid_reading() -> Dict[str, Any]:
    """Lectura tal como la envía un gateway LoRa."""
    return {
        "wall_id": "wall-north-01",
        "device_count": 7,
        "timestamp": 1773478800000,
        "gateway_id": "gw-crag-02",
        "rssi": -97.5,
        "snr": 8.25,
        "received_at": 1773478800450,
    }
