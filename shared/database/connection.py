"""Inicialización de los almacenes de documentos JSON"""
from pathlib import Path
from typing import Optional
import logging

from app.core.config import settings
from shared.database.document_store import JSONDocumentStore

logger = logging.getLogger(__name__)

TICKETS_DOCUMENT = "tickets"
PAYMENTS_DOCUMENT = "payments"
ROUTES_DOCUMENT = "routes"

# Almacén de escritura (tickets, payments) y almacén de solo lectura (routes)
document_store: Optional[JSONDocumentStore] = None
routes_store: Optional[JSONDocumentStore] = None


async def init_db():
    """Inicializar almacenes según DATA_DIR y ASSETS_DIR"""
    global document_store, routes_store

    if document_store is not None:
        logger.warning("Document store already initialized, skipping...")
        return

    data_dir = Path(settings.DATA_DIR)
    data_dir.mkdir(parents=True, exist_ok=True)
    document_store = JSONDocumentStore(data_dir)
    routes_store = JSONDocumentStore(settings.ASSETS_DIR)

    routes_path = routes_store.path_for(ROUTES_DOCUMENT)
    if not routes_path.exists():
        logger.warning(f"No existe el archivo de rutas {routes_path}; /routes devolverá una lista vacía")

    logger.info(f"Document store initialized at {data_dir.resolve()}")


def get_store() -> JSONDocumentStore:
    """Dependency para obtener el almacén de tickets y pagos"""
    if document_store is None:
        logger.error("Document store not initialized! Call init_db() first.")
        raise RuntimeError("Document store not initialized. Please check application startup.")
    return document_store


def get_routes_store() -> JSONDocumentStore:
    """Dependency para obtener el almacén de rutas"""
    if routes_store is None:
        logger.error("Routes store not initialized! Call init_db() first.")
        raise RuntimeError("Routes store not initialized. Please check application startup.")
    return routes_store


async def close_db():
    """Liberar referencias a los almacenes"""
    global document_store, routes_store
    document_store = None
    routes_store = None
    logger.info("Document stores closed")
