"""Rutas de pagos"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request, status
from starlette.responses import JSONResponse

from shared.database.document_store import JSONDocumentStore
from shared.database.session import get_routes_store, get_store
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from services.payments.models.payment import PaymentStatus
from services.payments.services.payment_processor import PaymentProcessor
from services.payments.services.payment_records import PaymentRecordService
from services.payments.services.payment_service import PaymentService
from services.reservations.services.reservation_service import ReservationService

router = APIRouter()


def get_payment_processor(request: Request) -> PaymentProcessor:
    """El procesador se crea una vez en el arranque (ver lifespan en main.py)"""
    return request.app.state.payment_processor


def get_payment_records(store: JSONDocumentStore = Depends(get_store)) -> PaymentRecordService:
    return PaymentRecordService(store)


def get_payment_service(
    processor: PaymentProcessor = Depends(get_payment_processor),
    store: JSONDocumentStore = Depends(get_store),
    routes_store: JSONDocumentStore = Depends(get_routes_store),
    records: PaymentRecordService = Depends(get_payment_records)
) -> PaymentService:
    return PaymentService(processor, ReservationService(store, routes_store), records)


def _ticket_summary(ticket: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": ticket.get("id"),
        "status": ticket.get("status"),
        "paymentStatus": ticket.get("paymentStatus"),
        "paymentId": ticket.get("paymentId"),
        "paidAt": ticket.get("paidAt"),
        "totalPrice": ticket.get("totalPrice"),
    }


@router.post("/process-payment")
@limiter.limit(RATE_LIMITS["payment"])
async def process_payment(
    request: Request,  # Necesario para rate limiter
    payload: Dict[str, Any] = Body(...),
    service: PaymentService = Depends(get_payment_service)
):
    """
    Procesar pago de una reserva

    Body: {reservation, amount, payment_method: card|pse, card_data|pse_data}.
    Aprobado → 200 y la reserva queda CONFIRMED. Rechazado → 400 con
    payment_status. Pendiente → 202.
    """
    outcome = await service.process(payload)
    payment = outcome.payment.to_document()
    body = {
        "payment_status": outcome.payment.status.value,
        "payment": payment,
        "ticket": _ticket_summary(outcome.ticket),
    }

    if outcome.payment.status == PaymentStatus.APPROVED:
        return {"success": True, "message": "Pago aprobado", **body}

    if outcome.payment.status == PaymentStatus.REJECTED:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "error": "Pago rechazado",
                "code": "PAYMENT_REJECTED",
                "reason": outcome.reason,
                **body,
            },
        )

    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"success": True, "message": "Pago en proceso de confirmación", **body},
    )


@router.get("/payment-status/{payment_id}")
async def get_payment_status(payment_id: str, records: PaymentRecordService = Depends(get_payment_records)):
    return {"success": True, "data": await records.get(payment_id)}


@router.get("/payments")
async def list_payments(records: PaymentRecordService = Depends(get_payment_records)):
    payments = await records.list_payments()
    return {"success": True, "data": payments, "count": len(payments)}
