"""Rutas de reservas (tickets)"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from shared.database.document_store import JSONDocumentStore
from shared.database.session import get_routes_store, get_store
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from services.reservations.services.reservation_service import ReservationService

router = APIRouter()


def get_reservation_service(
    store: JSONDocumentStore = Depends(get_store),
    routes_store: JSONDocumentStore = Depends(get_routes_store)
) -> ReservationService:
    return ReservationService(store, routes_store)


@router.post("/tickets")
@limiter.limit(RATE_LIMITS["reservation"])
async def create_ticket(
    request: Request,  # Necesario para rate limiter
    payload: Dict[str, Any] = Body(...),
    service: ReservationService = Depends(get_reservation_service)
):
    """
    Crear reserva para uno o más pasajeros

    Body: {passengers, trip, seats, acceptedTerms, billing}. Cualquier error de
    validación responde 400 con el código de la primera regla que falla.
    """
    ticket = await service.create(payload)
    return {
        "success": True,
        "message": "Reserva creada exitosamente",
        "ticket": ticket.summary(),
    }


@router.get("/tickets")
async def list_tickets(service: ReservationService = Depends(get_reservation_service)):
    tickets = await service.list_tickets()
    return {"success": True, "data": tickets, "count": len(tickets)}


@router.get("/tickets/{ticket_id}")
async def get_ticket(ticket_id: str, service: ReservationService = Depends(get_reservation_service)):
    return {"success": True, "data": await service.get(ticket_id)}


@router.patch("/tickets/{ticket_id}")
async def update_ticket(
    ticket_id: str,
    payload: Dict[str, Any] = Body(...),
    service: ReservationService = Depends(get_reservation_service)
):
    """
    Actualizar pasajeros, asientos, facturación o viaje

    Estado, pago y precios no se aceptan en el body; el total se recalcula.
    """
    ticket = await service.update(ticket_id, payload)
    return {"success": True, "message": "Reserva actualizada", "data": ticket}
