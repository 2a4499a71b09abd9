"""Dependencies de almacenamiento"""
from shared.database.connection import get_store, get_routes_store

__all__ = ["get_store", "get_routes_store"]
