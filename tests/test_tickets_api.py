import asyncio
from typing import Any, Dict

import httpx

from main import app
from shared.database.document_store import JSONDocumentStore
from shared.utils.locks import reservation_locks
from services.payments.routes.payments import get_payment_processor
from services.payments.services.payment_processor import SimulatedPaymentProcessor


def card_payment(ticket: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "reservation": ticket["id"],
        "amount": ticket["totalPrice"],
        "payment_method": "card",
        "card_data": {
            "card_number": "4111111111111111",
            "cardholder_name": "LAURA GOMEZ",
            "expiry_date": "12/28",
            "cvv": "123",
        },
    }


async def test_create_ticket_single_passenger(client: httpx.AsyncClient, make_reservation) -> None:
    resp = await client.post("/tickets", json=make_reservation())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    ticket = body["ticket"]
    assert ticket["status"] == "PENDING_PAYMENT"
    assert ticket["totalPrice"] == 50000
    assert ticket["routePrice"] == 50000
    assert ticket["passengers"] == 1
    assert ticket["mainPassenger"] == "Laura Gómez"
    assert ticket["trip"] == "Bogotá → Medellín"
    assert ticket["seats"] == ["12"]


async def test_ticket_round_trip_through_store(client: httpx.AsyncClient, make_reservation, make_passenger) -> None:
    passengers = [make_passenger(hasInsurance=True), make_passenger(name="Andrés", hasInsurance=False)]
    created = (await client.post("/tickets", json=make_reservation(passengers=passengers, seats=[3, "4"]))).json()

    resp = await client.get(f"/tickets/{created['ticket']['id']}")

    assert resp.status_code == 200
    ticket = resp.json()["data"]
    assert ticket["id"] == created["ticket"]["id"]
    assert ticket["status"] == "PENDING_PAYMENT"
    assert ticket["paymentStatus"] == "PENDING"
    assert ticket["paymentId"] is None
    assert ticket["totalPassengers"] == len(ticket["passengers"]) == len(ticket["seats"]) == 2
    assert ticket["seats"] == ["3", "4"]
    assert [p["seat"] for p in ticket["passengers"]] == ["3", "4"]
    assert ticket["totalPrice"] == 2 * 50000 + 2000
    assert ticket["createdAt"] == created["ticket"]["createdAt"]


async def test_ticket_fields_are_normalized(client: httpx.AsyncClient, make_reservation, make_passenger) -> None:
    payload = make_reservation(passengers=[make_passenger(name="  Laura ", documentNumber=" 123 ")])
    payload["billing"]["email"] = "  Laura@Example.COM "
    payload["billing"]["phone"] = " 3001234567 "

    created = (await client.post("/tickets", json=payload)).json()
    ticket = (await client.get(f"/tickets/{created['ticket']['id']}")).json()["data"]

    assert ticket["passengers"][0]["name"] == "Laura"
    assert ticket["passengers"][0]["documentNumber"] == "123"
    assert ticket["billing"]["email"] == "laura@example.com"
    assert ticket["billing"]["countryCode"] == "+57"
    assert ticket["billing"]["fullPhone"] == "+573001234567"


async def test_unknown_route_uses_default_price(client: httpx.AsyncClient, make_reservation) -> None:
    payload = make_reservation()
    payload["trip"].update(origin="Pasto", destination="Ipiales")

    resp = await client.post("/tickets", json=payload)

    assert resp.status_code == 200
    assert resp.json()["ticket"]["totalPrice"] == 45000


async def test_seat_mismatch_echoes_counts(client: httpx.AsyncClient, make_reservation, make_passenger, store: JSONDocumentStore) -> None:
    resp = await client.post("/tickets", json=make_reservation(passengers=[make_passenger()], seats=["1", "2"]))

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "SEATS_MISMATCH"
    assert body["passengersCount"] == 1
    assert body["seatsCount"] == 2
    assert await store.read("tickets") == []


async def test_terms_required(client: httpx.AsyncClient, make_reservation) -> None:
    resp = await client.post("/tickets", json=make_reservation(acceptedTerms=False))
    assert resp.status_code == 400
    assert resp.json()["code"] == "TERMS_NOT_ACCEPTED"

    payload = make_reservation()
    del payload["acceptedTerms"]
    resp = await client.post("/tickets", json=payload)
    assert resp.status_code == 400
    assert resp.json()["missingFields"] == ["acceptedTerms"]


async def test_body_must_be_a_json_object(client: httpx.AsyncClient) -> None:
    resp = await client.post("/tickets", content="[1, 2", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_JSON"


async def test_unknown_ticket_returns_404(client: httpx.AsyncClient) -> None:
    resp = await client.get("/tickets/no-existe")

    assert resp.status_code == 404
    assert resp.json()["success"] is False


async def test_list_tickets(client: httpx.AsyncClient, make_reservation) -> None:
    await asyncio.gather(*(client.post("/tickets", json=make_reservation()) for _ in range(5)))

    body = (await client.get("/tickets")).json()

    assert body["success"] is True
    assert body["count"] == 5
    assert len({t["id"] for t in body["data"]}) == 5


async def test_patch_reprices_ticket(client: httpx.AsyncClient, make_reservation, make_passenger) -> None:
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]

    resp = await client.patch(f"/tickets/{created['id']}", json={
        "passengers": [make_passenger(hasInsurance=True), make_passenger(name="Sofía")],
        "seats": ["20", "21"],
    })

    assert resp.status_code == 200
    ticket = resp.json()["data"]
    assert ticket["totalPassengers"] == 2
    assert ticket["seats"] == ["20", "21"]
    assert ticket["totalPrice"] == 2 * 50000 + 2000
    assert ticket["updatedAt"] >= ticket["createdAt"]


async def test_patch_change_trip_updates_route_price(client: httpx.AsyncClient, make_reservation) -> None:
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]

    resp = await client.patch(f"/tickets/{created['id']}", json={
        "trip": {"origin": "Bogotá", "destination": "Cali", "date": "2025-12-15", "schedule": "08:30"},
    })

    assert resp.status_code == 200
    assert resp.json()["data"]["routePrice"] == 65000
    assert resp.json()["data"]["totalPrice"] == 65000


async def test_patch_rejects_invariant_breaking_update(client: httpx.AsyncClient, make_reservation) -> None:
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]

    resp = await client.patch(f"/tickets/{created['id']}", json={"seats": ["1", "2"]})

    assert resp.status_code == 400
    assert resp.json()["code"] == "SEATS_MISMATCH"
    stored = (await client.get(f"/tickets/{created['id']}")).json()["data"]
    assert stored["seats"] == ["12"]


async def test_patch_rejects_immutable_fields(client: httpx.AsyncClient, make_reservation) -> None:
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]

    resp = await client.patch(f"/tickets/{created['id']}", json={"totalPrice": 1, "status": "CONFIRMED"})

    assert resp.status_code == 400
    assert resp.json()["code"] == "IMMUTABLE_FIELDS"


async def test_patch_unknown_ticket(client: httpx.AsyncClient) -> None:
    resp = await client.patch("/tickets/no-existe", json={"seats": ["1"]})
    assert resp.status_code == 404


async def test_paid_ticket_cannot_be_patched(client: httpx.AsyncClient, make_reservation, make_passenger) -> None:
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]
    paid = await client.post("/process-payment", json=card_payment(created))
    assert paid.status_code == 200

    resp = await client.patch(f"/tickets/{created['id']}", json={
        "passengers": [make_passenger(), make_passenger(name="Sofía"), make_passenger(name="Andrés")],
        "seats": ["20", "21", "22"],
    })

    assert resp.status_code == 409
    assert resp.json()["code"] == "RESERVATION_ALREADY_PAID"
    stored = (await client.get(f"/tickets/{created['id']}")).json()["data"]
    assert stored["status"] == "CONFIRMED"
    assert stored["totalPrice"] == 50000
    assert stored["seats"] == ["12"]


async def test_patch_waits_for_payment_in_flight(client: httpx.AsyncClient, make_reservation, make_passenger) -> None:
    app.dependency_overrides[get_payment_processor] = lambda: SimulatedPaymentProcessor(card_delay=0.3, pse_delay=0)
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]

    async def patch_during_charge() -> httpx.Response:
        await asyncio.sleep(0.1)
        return await client.patch(f"/tickets/{created['id']}", json={
            "passengers": [make_passenger(), make_passenger(name="Sofía")],
            "seats": ["20", "21"],
        })

    paid, patched = await asyncio.gather(
        client.post("/process-payment", json=card_payment(created)),
        patch_during_charge(),
    )

    assert paid.status_code == 200
    assert patched.status_code == 409
    stored = (await client.get(f"/tickets/{created['id']}")).json()["data"]
    assert stored["status"] == "CONFIRMED"
    assert stored["totalPrice"] == 50000
    assert stored["totalPassengers"] == 1


async def test_patch_releases_reservation_lock(client: httpx.AsyncClient, make_reservation) -> None:
    created = (await client.post("/tickets", json=make_reservation())).json()["ticket"]

    await client.patch(f"/tickets/{created['id']}", json={"seats": ["30"]})
    await client.patch("/tickets/no-existe", json={"seats": ["1"]})

    assert len(reservation_locks) == 0
