"""Módulo de endpoints HTTP."""

from .health import router as health_router
from .sensor_data import router as sensor_data_router

__all__ = [
    "health_router",
    "sensor_data_router",
]
