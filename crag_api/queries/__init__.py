"""Queries sobre el log de lecturas.

Funciones puras: construyen sentencias, no las ejecutan.
"""

from .builder import ReadingQuery, build_reading_query, clamp_limit
from .walls import walls_summary_statement

__all__ = [
    "ReadingQuery",
    "build_reading_query",
    "clamp_limit",
    "walls_summary_statement",
]
