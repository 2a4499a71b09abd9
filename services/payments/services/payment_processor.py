"""Procesadores de pago: simulado (por defecto) y gateway HTTP"""
import asyncio
import logging
import re
import uuid
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from services.payments.models.payment import ChargeResult, PaymentMethod, PaymentStatus
from shared.utils.errors import PaymentProviderError
from shared.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

APPROVED_CARD_PREFIXES = ("4111", "5555")
REJECTED_CARD_PREFIXES = ("4000",)

CARD_BRANDS = {"4": "visa", "5": "mastercard", "3": "amex"}


def card_digits(card_number: Any) -> str:
    return re.sub(r"\D", "", str(card_number))


def mask_card(digits: str) -> str:
    return f"**** **** **** {digits[-4:]}"


class PaymentProcessor:
    """Interfaz común: cobrar un monto con un método y sus datos"""

    name = "base"

    async def charge(self, method: PaymentMethod, amount: int, method_data: Dict[str, Any]) -> ChargeResult:
        raise NotImplementedError


class SimulatedPaymentProcessor(PaymentProcessor):
    """
    Pasarela simulada con resultados fijos para pruebas.

    Tarjeta: prefijos 4111/5555 aprobados, 4000 rechazado por fondos
    insuficientes, el resto aprobado. PSE: siempre aprobado tras una espera
    más larga.
    """

    name = "simulated"

    def __init__(self, card_delay: float = 2.0, pse_delay: float = 3.0):
        self.card_delay = card_delay
        self.pse_delay = pse_delay

    async def charge(self, method: PaymentMethod, amount: int, method_data: Dict[str, Any]) -> ChargeResult:
        if method == PaymentMethod.CARD:
            return await self._charge_card(amount, method_data)
        return await self._charge_pse(amount, method_data)

    async def _charge_card(self, amount: int, card_data: Dict[str, Any]) -> ChargeResult:
        await asyncio.sleep(self.card_delay)

        digits = card_digits(card_data["card_number"])
        details = {
            "card_last4": digits[-4:],
            "masked_card": mask_card(digits),
            "card_brand": CARD_BRANDS.get(digits[:1], "unknown"),
            "cardholder_name": str(card_data["cardholder_name"]).strip(),
        }

        if digits.startswith(REJECTED_CARD_PREFIXES):
            logger.warning(f"Pago simulado con tarjeta {details['masked_card']} rechazado: fondos insuficientes")
            return ChargeResult(
                status=PaymentStatus.REJECTED,
                reason="insufficient_funds",
                details={**details, "reason": "insufficient_funds"},
            )

        if not digits.startswith(APPROVED_CARD_PREFIXES):
            logger.info(f"Tarjeta {details['masked_card']} sin prefijo de prueba conocido, se aprueba por defecto")

        details["authorization_code"] = uuid.uuid4().hex[:8].upper()
        return ChargeResult(status=PaymentStatus.APPROVED, details=details)

    async def _charge_pse(self, amount: int, pse_data: Dict[str, Any]) -> ChargeResult:
        await asyncio.sleep(self.pse_delay)
        return ChargeResult(
            status=PaymentStatus.APPROVED,
            details={
                "bank_id": str(pse_data["bank_id"]).strip(),
                "document_number": str(pse_data["document_number"]).strip(),
                "email": str(pse_data["email"]).strip().lower(),
                "transaction_reference": f"PSE-{uuid.uuid4().hex[:12].upper()}",
            },
        )


class GatewayPaymentProcessor(PaymentProcessor):
    """Integración HTTP con un proveedor de pagos externo"""

    name = "gateway"

    # Mapear estados del proveedor a estados internos
    STATUS_MAPPING = {
        "approved": PaymentStatus.APPROVED,
        "success": PaymentStatus.APPROVED,
        "completed": PaymentStatus.APPROVED,
        "aprobado": PaymentStatus.APPROVED,
        "rejected": PaymentStatus.REJECTED,
        "failed": PaymentStatus.REJECTED,
        "declined": PaymentStatus.REJECTED,
        "rechazado": PaymentStatus.REJECTED,
        "pending": PaymentStatus.PENDING,
        "pendiente": PaymentStatus.PENDING,
    }

    def __init__(
        self,
        token: Optional[str],
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not token:
            raise ValueError(
                "PAYMENT_PROVIDER_TOKEN no configurado. "
                "Por favor, configura esta variable en tu archivo .env para usar el gateway de pagos."
            )
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def charge(self, method: PaymentMethod, amount: int, method_data: Dict[str, Any]) -> ChargeResult:
        body = {
            "amount": amount,
            "currency": "COP",
            "method": method.value,
            "payment_data": method_data,
        }

        async def send() -> httpx.Response:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                return await client.post("/charges", json=body, headers=self._headers())

        try:
            response = await retry_with_backoff(
                send, max_retries=self.max_retries, exceptions=(httpx.TransportError,)
            )
        except httpx.TransportError as e:
            logger.error(f"Error de conexión con el proveedor de pagos: {e}")
            raise PaymentProviderError(f"Error de conexión con el proveedor de pagos: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Proveedor de pagos respondió {response.status_code}: {response.text[:200]}")
            raise PaymentProviderError(
                "El proveedor de pagos rechazó la solicitud",
                details={"provider_status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PaymentProviderError("Respuesta inválida del proveedor de pagos") from e

        raw_status = str(data.get("status", "")).lower()
        status = self.STATUS_MAPPING.get(raw_status, PaymentStatus.PENDING)
        reason = data.get("reason") or data.get("status_detail")

        details = {
            "provider_transaction_id": data.get("id") or data.get("transaction_id"),
            "provider_status": raw_status,
        }
        if method == PaymentMethod.CARD:
            digits = card_digits(method_data.get("card_number", ""))
            details["card_last4"] = digits[-4:]
            details["masked_card"] = mask_card(digits)
        if reason:
            details["reason"] = reason

        return ChargeResult(status=status, reason=reason, details=details)


def build_payment_processor(settings: Settings) -> PaymentProcessor:
    """Crear el procesador configurado; falla si el gateway no tiene credencial"""
    provider = settings.PAYMENT_PROVIDER.lower()
    if provider == "simulated":
        logger.info("Usando procesador de pagos SIMULADO")
        return SimulatedPaymentProcessor(
            card_delay=settings.PAYMENT_CARD_DELAY_SECONDS,
            pse_delay=settings.PAYMENT_PSE_DELAY_SECONDS,
        )
    if provider == "gateway":
        logger.info(f"Usando gateway de pagos {settings.PAYMENT_GATEWAY_URL}")
        return GatewayPaymentProcessor(settings.PAYMENT_PROVIDER_TOKEN, settings.PAYMENT_GATEWAY_URL)
    raise ValueError(f"PAYMENT_PROVIDER desconocido: {settings.PAYMENT_PROVIDER!r} (use 'simulated' o 'gateway')")
