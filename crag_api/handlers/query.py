"""Handler de consulta de lecturas."""

from __future__ import annotations

import logging
from typing import List

from ..clock import to_aware_utc
from ..queries import build_reading_query
from ..schemas import ReadingQueryIn, StoredReading
from ..storage import StorageGateway

logger = logging.getLogger(__name__)


def row_to_reading(row) -> StoredReading:
    data = dict(row._mapping)
    data["server_timestamp"] = to_aware_utc(data["server_timestamp"])
    data["created_at"] = to_aware_utc(data["created_at"])
    return StoredReading(**data)


class QueryHandler:
    def __init__(self, storage: StorageGateway) -> None:
        self._storage = storage

    def query(self, params: ReadingQueryIn) -> List[StoredReading]:
        """Readings matching ``params``, newest first, at most ``limit`` of them."""
        query = build_reading_query(params)

        with self._storage.transaction("find", wall_id=params.wall_id) as conn:
            rows = conn.execute(query.statement(), query.bind_values()).fetchall()

        logger.debug(
            "[QUERY] wall_id=%s filters=%d limit=%d returned=%d",
            params.wall_id,
            len(query.conditions),
            query.limit,
            len(rows),
        )
        return [row_to_reading(row) for row in rows]
