"""Servicio principal de reservas de tickets de bus"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import copy
import logging
import uuid

from shared.database.connection import ROUTES_DOCUMENT, TICKETS_DOCUMENT
from shared.database.document_store import JSONDocumentStore
from shared.utils.errors import ConflictError, NotFoundError, ValidationError
from shared.utils.locks import reservation_locks
from services.reservations.models.reservation import (
    DEFAULT_COUNTRY_CODE,
    Billing,
    Passenger,
    Ticket,
    TicketPaymentStatus,
    TicketStatus,
    Trip,
)
from services.reservations.services.pricing_service import PricingService
from services.reservations.services.validation_service import (
    ValidationIssue,
    normalize_seat,
    validate_reservation,
    validate_ticket_update,
)

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_record_id(existing: List[Dict[str, Any]]) -> str:
    """UUID4 comprobado contra los ids ya guardados en el documento"""
    taken = {record.get("id") for record in existing}
    while True:
        candidate = str(uuid.uuid4())
        if candidate not in taken:
            return candidate


def raise_for_issue(issue: Optional[ValidationIssue]) -> None:
    if issue is not None:
        raise ValidationError(issue.message, code=issue.code, details=issue.details)


def _strip(value: Any) -> str:
    return str(value).strip()


class ReservationService:
    """Crear, consultar y actualizar reservas (tickets)"""

    def __init__(self, store: JSONDocumentStore, routes_store: JSONDocumentStore):
        self.store = store
        self.routes_store = routes_store
        self.pricing = PricingService()

    @staticmethod
    def _build_passengers(passengers: List[Dict[str, Any]], seats: List[Any]) -> List[Passenger]:
        return [
            Passenger(
                name=_strip(p["name"]),
                last_name=_strip(p["lastName"]),
                document_type=_strip(p["documentType"]),
                document_number=_strip(p["documentNumber"]),
                birth_date=_strip(p["birthDate"]),
                has_minors=p["hasMinors"],
                has_pets=p["hasPets"],
                has_insurance=p.get("hasInsurance", False),
                seat=normalize_seat(seat),
            )
            for p, seat in zip(passengers, seats)
        ]

    @staticmethod
    def _build_billing(billing: Dict[str, Any]) -> Billing:
        country_code = billing.get("countryCode")
        country_code = _strip(country_code) if country_code and _strip(country_code) else DEFAULT_COUNTRY_CODE
        phone = _strip(billing["phone"])
        return Billing(
            document_type=_strip(billing["documentType"]),
            document_number=_strip(billing["documentNumber"]),
            name=_strip(billing["name"]),
            phone=phone,
            email=_strip(billing["email"]).lower(),
            country_code=country_code,
            full_phone=f"{country_code}{phone}",
        )

    @staticmethod
    def _build_trip(trip: Dict[str, Any]) -> Trip:
        return Trip(
            origin=_strip(trip["origin"]),
            destination=_strip(trip["destination"]),
            date=_strip(trip["date"]),
            schedule=_strip(trip["schedule"]),
        )

    async def _price(self, trip: Trip, passengers: List[Passenger]):
        routes = await self.routes_store.read(ROUTES_DOCUMENT)
        return self.pricing.price_for(
            trip.model_dump(),
            [p.model_dump(by_alias=True) for p in passengers],
            routes,
        )

    async def create(self, payload: Dict[str, Any]) -> Ticket:
        """
        Crear una reserva en estado PENDING_PAYMENT

        Raises:
            ValidationError: si la solicitud no pasa la validación (no se escribe nada)
        """
        raise_for_issue(validate_reservation(payload))

        passengers = self._build_passengers(payload["passengers"], payload["seats"])
        trip = self._build_trip(payload["trip"])
        billing = self._build_billing(payload["billing"])
        total_price, route_price = await self._price(trip, passengers)

        async with self.store.transaction(TICKETS_DOCUMENT) as tickets:
            now = utc_now()
            ticket = Ticket(
                id=new_record_id(tickets),
                status=TicketStatus.PENDING_PAYMENT,
                payment_status=TicketPaymentStatus.PENDING,
                created_at=now,
                updated_at=now,
                passengers=passengers,
                trip=trip,
                seats=[p.seat for p in passengers],
                billing=billing,
                accepted_terms=True,
                total_passengers=len(passengers),
                total_price=total_price,
                route_price=route_price,
            )
            tickets.append(ticket.to_document())

        logger.info(
            f"Reserva {ticket.id} creada: {trip.origin} → {trip.destination}, "
            f"{ticket.total_passengers} pasajero(s), total {total_price}"
        )
        return ticket

    async def list_tickets(self) -> List[Dict[str, Any]]:
        return await self.store.read(TICKETS_DOCUMENT)

    async def get(self, ticket_id: str) -> Dict[str, Any]:
        """Raises NotFoundError si no existe"""
        for ticket in await self.store.read(TICKETS_DOCUMENT):
            if ticket.get("id") == ticket_id:
                return ticket
        raise NotFoundError("Reserva no encontrada", details={"id": ticket_id})

    @staticmethod
    def _index_of(tickets: List[Dict[str, Any]], ticket_id: str) -> int:
        for index, ticket in enumerate(tickets):
            if ticket.get("id") == ticket_id:
                return index
        raise NotFoundError("Reserva no encontrada", details={"id": ticket_id})

    async def update(self, ticket_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualizar pasajeros, asientos, facturación o viaje de una reserva.

        El resultado se valida completo y se recalcula el precio, de modo que
        totalPrice, totalPassengers y la relación asientos/pasajeros siguen
        siendo consistentes tras la actualización. Una reserva pagada ya no se
        modifica, y la actualización espera a cualquier pago en curso.

        Raises:
            ValidationError: campos no modificables o resultado inválido
            NotFoundError: la reserva no existe
            ConflictError: la reserva ya está pagada
        """
        raise_for_issue(validate_ticket_update(patch))

        routes = await self.routes_store.read(ROUTES_DOCUMENT)

        async with reservation_locks.hold(ticket_id), self.store.transaction(TICKETS_DOCUMENT) as tickets:
            index = self._index_of(tickets, ticket_id)
            current = Ticket.model_validate(tickets[index])
            if current.status == TicketStatus.CONFIRMED:
                raise ConflictError(
                    "La reserva ya fue pagada y no se puede modificar",
                    code="RESERVATION_ALREADY_PAID",
                    details={"id": ticket_id, "paymentId": current.payment_id},
                )

            merged = copy.deepcopy(current.to_document())
            merged.update(patch)
            # El asiento de cada pasajero se toma siempre de `seats`
            raise_for_issue(validate_reservation(merged))

            passengers = self._build_passengers(merged["passengers"], merged["seats"])
            trip = self._build_trip(merged["trip"])
            total_price, route_price = self.pricing.price_for(
                trip.model_dump(),
                [p.model_dump(by_alias=True) for p in passengers],
                routes,
            )

            updated = current.model_copy(update={
                "passengers": passengers,
                "seats": [p.seat for p in passengers],
                "trip": trip,
                "billing": self._build_billing(merged["billing"]),
                "total_passengers": len(passengers),
                "total_price": total_price,
                "route_price": route_price,
                "updated_at": utc_now(),
            })
            tickets[index] = updated.to_document()

        logger.info(f"Reserva {ticket_id} actualizada ({', '.join(sorted(patch))})")
        return tickets[index]

    async def mark_paid(self, ticket_id: str, payment_id: str, paid_at: str) -> Dict[str, Any]:
        """Transición PENDING_PAYMENT → CONFIRMED tras un pago aprobado"""
        async with self.store.transaction(TICKETS_DOCUMENT) as tickets:
            index = self._index_of(tickets, ticket_id)
            ticket = dict(tickets[index])
            ticket.update({
                "status": TicketStatus.CONFIRMED.value,
                "paymentStatus": TicketPaymentStatus.PAID.value,
                "paymentId": payment_id,
                "paidAt": paid_at,
                "updatedAt": utc_now(),
            })
            tickets[index] = ticket

        logger.info(f"Reserva {ticket_id} confirmada con el pago {payment_id}")
        return ticket
