"""Registro de intentos de pago (solo se agregan, nunca se modifican)"""
from typing import Any, Dict, List

from shared.database.connection import PAYMENTS_DOCUMENT
from shared.database.document_store import JSONDocumentStore
from shared.utils.errors import NotFoundError
from services.payments.models.payment import Payment
from services.reservations.services.reservation_service import new_record_id, utc_now


class PaymentRecordService:
    def __init__(self, store: JSONDocumentStore):
        self.store = store

    async def record(self, fields: Dict[str, Any]) -> Payment:
        """Agregar un pago al documento asignándole id y created_at"""
        async with self.store.transaction(PAYMENTS_DOCUMENT) as payments:
            payment = Payment(id=new_record_id(payments), created_at=utc_now(), **fields)
            payments.append(payment.to_document())
        return payment

    async def get(self, payment_id: str) -> Dict[str, Any]:
        for payment in await self.store.read(PAYMENTS_DOCUMENT):
            if payment.get("id") == payment_id:
                return payment
        raise NotFoundError("Pago no encontrado", details={"payment_id": payment_id})

    async def list_payments(self) -> List[Dict[str, Any]]:
        return await self.store.read(PAYMENTS_DOCUMENT)
