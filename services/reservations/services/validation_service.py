"""
Validación de solicitudes de reserva, pago y actualización de tickets.

Funciones puras: reciben el cuerpo JSON ya decodificado y devuelven el primer
problema encontrado (o None). El orden de las reglas determina qué error ve el
cliente; no se acumulan errores de reglas distintas.
"""
from dataclasses import dataclass, field
import re
from typing import Any, Dict, List, Optional

REQUIRED_RESERVATION_FIELDS = ("passengers", "trip", "seats", "acceptedTerms", "billing")
REQUIRED_PASSENGER_FIELDS = ("name", "lastName", "documentType", "documentNumber", "birthDate")
BOOLEAN_PASSENGER_FIELDS = ("hasMinors", "hasPets")
REQUIRED_BILLING_FIELDS = ("documentType", "documentNumber", "name", "phone", "email")
REQUIRED_TRIP_FIELDS = ("origin", "destination", "date", "schedule")

REQUIRED_PAYMENT_FIELDS = ("reservation", "amount", "payment_method")
PAYMENT_METHOD_FIELDS = {
    "card": ("card_data", ("card_number", "cardholder_name", "expiry_date", "cvv")),
    "pse": ("pse_data", ("document_number", "email", "bank_id")),
}

UPDATABLE_TICKET_FIELDS = ("passengers", "seats", "billing", "trip")

# Dígitos separados opcionalmente por espacios o guiones; 12 a 19 dígitos
CARD_NUMBER_PATTERN = re.compile(r"^\d[\d -]*$")
CARD_NUMBER_LENGTHS = range(12, 20)


@dataclass
class ValidationIssue:
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _missing(data: Dict[str, Any], fields) -> List[str]:
    return [name for name in fields if _is_blank(data.get(name))]


def normalize_seat(seat: Any) -> Optional[str]:
    """Los asientos llegan como texto o número; se guardan como texto"""
    if isinstance(seat, bool) or not isinstance(seat, (str, int)):
        return None
    value = str(seat).strip()
    return value or None


def _check_passenger(index: int, passenger: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(passenger, dict):
        return {"index": index, "missingFields": list(REQUIRED_PASSENGER_FIELDS), "invalidTypes": []}

    missing = _missing(passenger, REQUIRED_PASSENGER_FIELDS)
    invalid_types = [
        name for name in BOOLEAN_PASSENGER_FIELDS
        if not isinstance(passenger.get(name), bool)
    ]
    if "hasInsurance" in passenger and not isinstance(passenger["hasInsurance"], bool):
        invalid_types.append("hasInsurance")

    if missing or invalid_types:
        return {"index": index, "missingFields": missing, "invalidTypes": invalid_types}
    return None


def validate_reservation(payload: Dict[str, Any]) -> Optional[ValidationIssue]:
    """Validar una solicitud de reserva (POST /tickets)"""
    missing = [name for name in REQUIRED_RESERVATION_FIELDS if name not in payload or payload[name] is None]
    if missing:
        return ValidationIssue(
            "MISSING_FIELDS",
            "Faltan campos requeridos",
            {"missingFields": missing, "received": sorted(payload.keys())},
        )

    passengers = payload["passengers"]
    if not isinstance(passengers, list) or not passengers:
        return ValidationIssue(
            "INVALID_PASSENGERS",
            "Debe incluir al menos un pasajero",
            {"received": passengers},
        )

    invalid_passengers = [
        problem for problem in (_check_passenger(i, p) for i, p in enumerate(passengers))
        if problem
    ]
    if invalid_passengers:
        return ValidationIssue(
            "INVALID_PASSENGER_DATA",
            "Datos de pasajeros incompletos o inválidos",
            {"invalidPassengers": invalid_passengers},
        )

    billing = payload["billing"]
    billing_missing = _missing(billing, REQUIRED_BILLING_FIELDS) if isinstance(billing, dict) else list(REQUIRED_BILLING_FIELDS)
    if billing_missing:
        return ValidationIssue(
            "INVALID_BILLING",
            "Datos de facturación incompletos",
            {"missingFields": billing_missing, "received": billing},
        )

    trip = payload["trip"]
    trip_missing = _missing(trip, REQUIRED_TRIP_FIELDS) if isinstance(trip, dict) else list(REQUIRED_TRIP_FIELDS)
    if trip_missing:
        return ValidationIssue(
            "INVALID_TRIP",
            "Datos del viaje incompletos",
            {"missingFields": trip_missing, "received": trip},
        )

    seats = payload["seats"]
    if not isinstance(seats, list) or not seats or any(normalize_seat(s) is None for s in seats):
        return ValidationIssue(
            "INVALID_SEATS",
            "Debe seleccionar al menos un asiento válido",
            {"received": seats},
        )

    if len(seats) != len(passengers):
        return ValidationIssue(
            "SEATS_MISMATCH",
            "El número de asientos no coincide con el número de pasajeros",
            {"passengersCount": len(passengers), "seatsCount": len(seats)},
        )

    normalized = [normalize_seat(s) for s in seats]
    duplicated = sorted({s for s in normalized if normalized.count(s) > 1})
    if duplicated:
        return ValidationIssue(
            "DUPLICATE_SEATS",
            "Hay asientos repetidos en la reserva",
            {"duplicatedSeats": duplicated},
        )

    if not payload["acceptedTerms"]:
        return ValidationIssue(
            "TERMS_NOT_ACCEPTED",
            "Debe aceptar los términos y condiciones",
            {"received": payload["acceptedTerms"]},
        )

    return None


def reservation_id_from(value: Any) -> Optional[str]:
    """`reservation` puede ser el id o el objeto de la reserva con su id"""
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def is_card_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return False
    text = str(value).strip()
    if not CARD_NUMBER_PATTERN.match(text):
        return False
    return len(re.sub(r"\D", "", text)) in CARD_NUMBER_LENGTHS


def validate_payment_request(payload: Dict[str, Any]) -> Optional[ValidationIssue]:
    """Validar una solicitud de pago (POST /process-payment)"""
    missing = [name for name in REQUIRED_PAYMENT_FIELDS if _is_blank(payload.get(name))]
    if missing:
        return ValidationIssue(
            "MISSING_FIELDS",
            "Faltan campos requeridos para procesar el pago",
            {"missingFields": missing},
        )

    if reservation_id_from(payload["reservation"]) is None:
        return ValidationIssue(
            "INVALID_RESERVATION",
            "La reserva debe ser un id o un objeto con id",
            {"received": payload["reservation"]},
        )

    amount = payload["amount"]
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        return ValidationIssue(
            "INVALID_AMOUNT",
            "El monto debe ser un entero positivo",
            {"received": amount},
        )

    method = payload["payment_method"]
    if method not in PAYMENT_METHOD_FIELDS:
        return ValidationIssue(
            "INVALID_PAYMENT_METHOD",
            "Método de pago no soportado",
            {"received": method, "allowedMethods": list(PAYMENT_METHOD_FIELDS)},
        )

    data_key, required = PAYMENT_METHOD_FIELDS[method]
    method_data = payload.get(data_key)
    data_missing = _missing(method_data, required) if isinstance(method_data, dict) else list(required)
    if data_missing:
        return ValidationIssue(
            "MISSING_PAYMENT_DATA",
            f"Datos de pago incompletos en {data_key}",
            {"paymentMethod": method, "missingFields": data_missing},
        )

    if method == "card" and not is_card_number(method_data["card_number"]):
        return ValidationIssue(
            "INVALID_CARD",
            "El número de tarjeta no es válido",
            {"paymentMethod": method, "field": "card_number"},
        )

    return None


def validate_ticket_update(patch: Dict[str, Any]) -> Optional[ValidationIssue]:
    """Solo los datos de la reserva son modificables; estado y precios no"""
    if not patch:
        return ValidationIssue("EMPTY_UPDATE", "No se enviaron campos para actualizar")

    rejected = sorted(name for name in patch if name not in UPDATABLE_TICKET_FIELDS)
    if rejected:
        return ValidationIssue(
            "IMMUTABLE_FIELDS",
            "Hay campos que no se pueden modificar",
            {"fields": rejected, "allowedFields": list(UPDATABLE_TICKET_FIELDS)},
        )
    return None
