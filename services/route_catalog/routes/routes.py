"""Rutas HTTP del catálogo de rutas de bus"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from shared.database.document_store import JSONDocumentStore
from shared.database.session import get_routes_store
from services.route_catalog.services.route_service import RouteCatalogService

router = APIRouter()


@router.get("/routes")
async def list_routes(
    origin: Optional[str] = Query(None, description="Ciudad de origen"),
    destination: Optional[str] = Query(None, description="Ciudad de destino"),
    routes_store: JSONDocumentStore = Depends(get_routes_store)
):
    """Listar rutas disponibles, opcionalmente filtradas por origen y destino"""
    service = RouteCatalogService(routes_store)
    routes = await service.list_routes(origin=origin, destination=destination)
    return {"success": True, "data": routes, "count": len(routes)}
