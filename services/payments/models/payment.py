"""Modelos Pydantic para pagos"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class PaymentMethod(str, Enum):
    CARD = "card"
    PSE = "pse"


class PaymentStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING = "pending"


class ChargeResult(BaseModel):
    """Respuesta de un procesador de pagos"""
    status: PaymentStatus
    details: Dict[str, Any] = {}
    reason: Optional[str] = None


class Payment(BaseModel):
    id: str
    reservation_id: str
    amount: int
    method: PaymentMethod
    status: PaymentStatus
    created_at: str
    processed_at: Optional[str] = None
    details: Dict[str, Any] = {}

    def to_document(self) -> dict:
        return self.model_dump(mode="json")
