"""Servicio de procesamiento de pagos de reservas"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from shared.utils.errors import ConflictError, ValidationError
from shared.utils.locks import reservation_locks
from services.payments.models.payment import ChargeResult, Payment, PaymentMethod, PaymentStatus
from services.payments.services.payment_processor import PaymentProcessor
from services.payments.services.payment_records import PaymentRecordService
from services.reservations.models.reservation import TicketStatus
from services.reservations.services.reservation_service import ReservationService, raise_for_issue, utc_now
from services.reservations.services.validation_service import (
    PAYMENT_METHOD_FIELDS,
    reservation_id_from,
    validate_payment_request,
)

logger = logging.getLogger(__name__)


@dataclass
class PaymentOutcome:
    payment: Payment
    ticket: Dict[str, Any]
    reason: Optional[str] = None

    @property
    def approved(self) -> bool:
        return self.payment.status == PaymentStatus.APPROVED


class PaymentService:
    """Valida la solicitud, cobra con el procesador y registra el resultado"""

    def __init__(
        self,
        processor: PaymentProcessor,
        reservations: ReservationService,
        records: PaymentRecordService
    ):
        self.processor = processor
        self.reservations = reservations
        self.records = records

    async def process(self, payload: Dict[str, Any]) -> PaymentOutcome:
        """
        Procesar un intento de pago

        Todo intento que llega al procesador queda registrado. Solo un pago
        aprobado confirma la reserva; rechazados y pendientes no la modifican.

        Raises:
            ValidationError: solicitud inválida o monto distinto al de la reserva
            NotFoundError: la reserva no existe
            ConflictError: la reserva ya está pagada
        """
        raise_for_issue(validate_payment_request(payload))

        reservation_id = reservation_id_from(payload["reservation"])
        method = PaymentMethod(payload["payment_method"])
        data_key, _ = PAYMENT_METHOD_FIELDS[method.value]
        amount = payload["amount"]

        # 404 antes de tomar el lock: ids inexistentes no crean entradas
        await self.reservations.get(reservation_id)

        async with reservation_locks.hold(reservation_id):
            ticket = await self.reservations.get(reservation_id)

            if ticket.get("status") == TicketStatus.CONFIRMED.value:
                raise ConflictError(
                    "La reserva ya fue pagada",
                    code="RESERVATION_ALREADY_PAID",
                    details={"reservation_id": reservation_id, "paymentId": ticket.get("paymentId")},
                )

            if amount != ticket.get("totalPrice"):
                raise ValidationError(
                    "El monto no coincide con el total de la reserva",
                    code="AMOUNT_MISMATCH",
                    details={"expectedAmount": ticket.get("totalPrice"), "received": amount},
                )

            logger.info(f"Procesando pago {method.value} de {amount} para reserva {reservation_id} ({self.processor.name})")
            result: ChargeResult = await self.processor.charge(method, amount, payload[data_key])

            payment = await self.records.record({
                "reservation_id": reservation_id,
                "amount": amount,
                "method": method,
                "status": result.status,
                "processed_at": None if result.status == PaymentStatus.PENDING else utc_now(),
                "details": result.details,
            })

            if result.status == PaymentStatus.APPROVED:
                ticket = await self.reservations.mark_paid(reservation_id, payment.id, payment.processed_at)
                logger.info(f"Pago {payment.id} aprobado para reserva {reservation_id}")
            else:
                logger.warning(
                    f"Pago {payment.id} para reserva {reservation_id} quedó {result.status.value}"
                    f"{f' ({result.reason})' if result.reason else ''}"
                )

        return PaymentOutcome(payment=payment, ticket=ticket, reason=result.reason)
