"""Consulta del catálogo de rutas de bus"""
from typing import Any, Dict, List, Optional

from shared.database.connection import ROUTES_DOCUMENT
from shared.database.document_store import JSONDocumentStore


def _matches(value: Any, expected: Optional[str]) -> bool:
    if not expected:
        return True
    return str(value or "").strip().casefold() == expected.strip().casefold()


class RouteCatalogService:
    """Las rutas son datos de referencia de solo lectura"""

    def __init__(self, routes_store: JSONDocumentStore):
        self.routes_store = routes_store

    async def list_routes(self, origin: Optional[str] = None, destination: Optional[str] = None) -> List[Dict[str, Any]]:
        """Filtros opcionales por origen/destino, exactos sin distinguir mayúsculas"""
        routes = await self.routes_store.read(ROUTES_DOCUMENT)
        return [
            route for route in routes
            if _matches(route.get("origin"), origin) and _matches(route.get("destination"), destination)
        ]
