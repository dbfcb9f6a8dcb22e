"""Módulo de endpoints HTTP.

Contiene los endpoints de la API de monitorización organizados por función.
"""

from .health import router as health_router
from .monitor import router as monitor_router
from .admin_ingest import router as admin_ingest_router

__all__ = [
    "health_router",
    "monitor_router",
    "admin_ingest_router",
]
