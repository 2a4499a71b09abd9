import json
import os
from typing import Any, AsyncIterator, Callable, Dict

# Antes de importar la app: sin esperas simuladas ni rate limiting
os.environ["PAYMENT_CARD_DELAY_SECONDS"] = "0"
os.environ["PAYMENT_PSE_DELAY_SECONDS"] = "0"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PAYMENT_PROVIDER"] = "simulated"

import httpx
import pytest

from main import app
from shared.database.connection import get_routes_store, get_store
from shared.database.document_store import JSONDocumentStore
from services.payments.routes.payments import get_payment_processor
from services.payments.services.payment_processor import SimulatedPaymentProcessor

ROUTES = [
    {"id": 1, "origin": "Bogotá", "destination": "Medellín", "date": "2025-12-15", "schedule": "06:00", "price": 50000},
    {"id": 2, "origin": "Bogotá", "destination": "Cali", "date": "2025-12-15", "schedule": "08:30", "price": 65000},
    {"id": 3, "origin": "Bogotá", "destination": "Medellín", "date": "2025-12-16", "schedule": "14:00", "price": 99999},
    {"id": 4, "origin": "Medellín", "destination": "Cartagena", "date": "2025-12-16", "schedule": "19:00", "price": 90000},
]


@pytest.fixture
def store(tmp_path) -> JSONDocumentStore:
    return JSONDocumentStore(tmp_path / "data")


@pytest.fixture
def routes_store(tmp_path) -> JSONDocumentStore:
    assets = tmp_path / "assets"
    assets.mkdir()
    (assets / "routes.json").write_text(json.dumps(ROUTES, ensure_ascii=False), encoding="utf-8")
    return JSONDocumentStore(assets)


@pytest.fixture
async def client(store: JSONDocumentStore, routes_store: JSONDocumentStore) -> AsyncIterator[httpx.AsyncClient]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_routes_store] = lambda: routes_store
    app.dependency_overrides[get_payment_processor] = lambda: SimulatedPaymentProcessor(card_delay=0, pse_delay=0)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_passenger() -> Callable[..., Dict[str, Any]]:
    def factory(**overrides: Any) -> Dict[str, Any]:
        passenger = {
            "name": "Laura",
            "lastName": "Gómez",
            "documentType": "CC",
            "documentNumber": "1020304050",
            "birthDate": "1994-03-21",
            "hasMinors": False,
            "hasPets": False,
            "hasInsurance": False,
        }
        passenger.update(overrides)
        return passenger
    return factory


@pytest.fixture
def make_reservation(make_passenger) -> Callable[..., Dict[str, Any]]:
    def factory(passengers=None, seats=None, **overrides: Any) -> Dict[str, Any]:
        passengers = passengers if passengers is not None else [make_passenger()]
        payload = {
            "passengers": passengers,
            "trip": {"origin": "Bogotá", "destination": "Medellín", "date": "2025-12-15", "schedule": "06:00"},
            "seats": seats if seats is not None else [str(12 + i) for i in range(len(passengers))],
            "acceptedTerms": True,
            "billing": {
                "documentType": "CC",
                "documentNumber": "1020304050",
                "name": "Laura Gómez",
                "phone": "3001234567",
                "email": "laura@example.com",
            },
        }
        payload.update(overrides)
        return payload
    return factory
