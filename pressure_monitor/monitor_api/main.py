from __future__ import annotations

from fastapi import FastAPI

from .endpoints import admin_ingest_router, health_router, monitor_router

app = FastAPI(title="Pressure Monitor Service", version="0.1.0")

app.include_router(health_router)
app.include_router(monitor_router)
app.include_router(admin_ingest_router)
