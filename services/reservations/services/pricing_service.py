"""Cálculo de precios de reservas"""
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

# Montos en pesos colombianos (sin decimales)
DEFAULT_ROUTE_PRICE = 45000
INSURANCE_PRICE = 2000


class PricingService:
    """Precio base por ruta y total por pasajeros"""

    @staticmethod
    def parse_price(value: Any) -> Optional[int]:
        """Precio entero no negativo; decimales no exactos y textos no numéricos son inválidos"""
        if isinstance(value, bool):
            return None
        if isinstance(value, float):
            if not value.is_integer():
                return None
            value = int(value)
        elif isinstance(value, str):
            if not value.strip().isdigit():
                return None
            value = int(value)
        if not isinstance(value, int) or value < 0:
            return None
        return value

    @staticmethod
    def find_route(routes: Sequence[Dict[str, Any]], origin: str, destination: str) -> Optional[Dict[str, Any]]:
        """Primera ruta con origen y destino exactos (distingue mayúsculas)"""
        for route in routes:
            if route.get("origin") == origin and route.get("destination") == destination:
                return route
        return None

    @classmethod
    def route_price(cls, routes: Sequence[Dict[str, Any]], origin: str, destination: str) -> int:
        route = cls.find_route(routes, origin, destination)
        if route is None:
            logger.warning(
                f"Ruta {origin} → {destination} no encontrada, usando precio por defecto {DEFAULT_ROUTE_PRICE}"
            )
            return DEFAULT_ROUTE_PRICE

        price = cls.parse_price(route.get("price"))
        if price is None:
            logger.warning(
                f"Ruta {origin} → {destination} sin precio válido ({route.get('price')!r}), "
                f"usando precio por defecto {DEFAULT_ROUTE_PRICE}"
            )
            return DEFAULT_ROUTE_PRICE
        return price

    @classmethod
    def price_for(
        cls,
        trip: Dict[str, Any],
        passengers: List[Dict[str, Any]],
        routes: Sequence[Dict[str, Any]]
    ) -> Tuple[int, int]:
        """
        Calcular (total_price, route_price)

        total = Σ (route_price + INSURANCE_PRICE si el pasajero tiene seguro)
        """
        route_price = cls.route_price(routes, trip["origin"], trip["destination"])
        total = sum(
            route_price + (INSURANCE_PRICE if passenger.get("hasInsurance") is True else 0)
            for passenger in passengers
        )
        return total, route_price
