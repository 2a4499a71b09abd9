"""Modelos Pydantic para reservas de tickets de bus"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

DEFAULT_COUNTRY_CODE = "+57"


class TicketStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    CONFIRMED = "CONFIRMED"


class TicketPaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class CamelModel(BaseModel):
    """Los documentos JSON y la API usan camelCase"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Passenger(CamelModel):
    name: str
    last_name: str
    document_type: str
    document_number: str
    birth_date: str
    has_minors: bool
    has_pets: bool
    has_insurance: bool = False
    seat: str


class Billing(CamelModel):
    document_type: str
    document_number: str
    name: str
    phone: str
    email: str
    country_code: str = DEFAULT_COUNTRY_CODE
    full_phone: str


class Trip(CamelModel):
    origin: str
    destination: str
    date: str
    schedule: str


class Ticket(CamelModel):
    id: str
    status: TicketStatus = TicketStatus.PENDING_PAYMENT
    payment_status: TicketPaymentStatus = TicketPaymentStatus.PENDING
    created_at: str
    updated_at: str
    paid_at: Optional[str] = None
    passengers: List[Passenger]
    trip: Trip
    seats: List[str]
    billing: Billing
    accepted_terms: bool
    total_passengers: int
    total_price: int
    route_price: int
    payment_id: Optional[str] = None

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def summary(self) -> dict:
        """Resumen devuelto al crear la reserva"""
        main = self.passengers[0]
        return {
            "id": self.id,
            "status": self.status.value,
            "passengers": self.total_passengers,
            "mainPassenger": f"{main.name} {main.last_name}",
            "trip": f"{self.trip.origin} → {self.trip.destination}",
            "date": self.trip.date,
            "schedule": self.trip.schedule,
            "seats": self.seats,
            "totalPrice": self.total_price,
            "routePrice": self.route_price,
            "createdAt": self.created_at,
        }
