"""Handlers de lecturas.

- ingestion: alta de una lectura (append-only)
- query: consulta filtrada y acotada
- summary: resumen por muro
"""

from .ingestion import IngestionHandler, IngestResult
from .query import QueryHandler
from .summary import SummaryHandler

__all__ = [
    "IngestionHandler",
    "IngestResult",
    "QueryHandler",
    "SummaryHandler",
]
