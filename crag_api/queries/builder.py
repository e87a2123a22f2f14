"""Construcción de la consulta de lecturas.

Maps validated query parameters onto a bounded SQL statement. Clause text is
taken from a fixed set of column names; every user-supplied value travels as
a bind parameter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, DateTime, Float, Integer, String, bindparam, text
from sqlalchemy.sql.elements import TextClause

from ..clock import to_naive_utc
from ..schemas import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, ReadingQueryIn
from ..storage.tables import SENSOR_READINGS

MIN_QUERY_LIMIT = 1

# Orden fijo: más reciente primero
ORDER_BY = "server_timestamp DESC, id DESC"

READING_COLUMNS = {
    "id": Integer,
    "wall_id": String,
    "device_count": BigInteger,
    "timestamp": BigInteger,
    "gateway_id": String,
    "rssi": Float,
    "snr": Float,
    "received_at": BigInteger,
    "server_timestamp": DateTime,
    "created_at": DateTime,
}


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_QUERY_LIMIT
    return max(MIN_QUERY_LIMIT, min(int(limit), MAX_QUERY_LIMIT))


@dataclass(frozen=True)
class ReadingQuery:
    """Filter, order and limit for one read of the reading log."""

    conditions: List[str] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)
    limit: int = DEFAULT_QUERY_LIMIT
    order_by: str = ORDER_BY

    @property
    def matches_all(self) -> bool:
        return not self.conditions

    def statement(self) -> TextClause:
        where = ""
        if self.conditions:
            where = "WHERE " + " AND ".join(self.conditions)

        sql = (
            f"SELECT {', '.join(READING_COLUMNS)} "
            f"FROM {SENSOR_READINGS} "
            f"{where} "
            f"ORDER BY {self.order_by} "
            "LIMIT :limit"
        )

        binds = [bindparam("limit", type_=Integer())]
        if "wall_id" in self.params:
            binds.append(bindparam("wall_id", type_=String()))
        for name in ("start_time", "end_time"):
            if name in self.params:
                binds.append(bindparam(name, type_=DateTime()))

        return text(sql).bindparams(*binds).columns(**READING_COLUMNS)

    def bind_values(self) -> Dict[str, Any]:
        return {**self.params, "limit": self.limit}


def build_reading_query(params: ReadingQueryIn) -> ReadingQuery:
    """Traduce los filtros validados a un ReadingQuery.

    Args:
        params: Filtros normalizados (wall_id, start_time, end_time, limit)

    Returns:
        ReadingQuery acotado; sin filtros equivale a "match all" con límite
    """
    conditions: List[str] = []
    values: Dict[str, Any] = {}

    # Vacío (?wall_id=) equivale a ausente
    if params.wall_id:
        conditions.append("wall_id = :wall_id")
        values["wall_id"] = params.wall_id

    # Rango inclusivo. start > end no se trata aparte: devuelve 0 filas.
    if params.start_time is not None:
        conditions.append("server_timestamp >= :start_time")
        values["start_time"] = to_naive_utc(params.start_time)

    if params.end_time is not None:
        conditions.append("server_timestamp <= :end_time")
        values["end_time"] = to_naive_utc(params.end_time)

    return ReadingQuery(
        conditions=conditions,
        params=values,
        limit=clamp_limit(params.limit),
    )
