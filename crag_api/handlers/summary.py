"""Handler del resumen por muro."""

from __future__ import annotations

import logging
from typing import List

from ..clock import to_aware_utc
from ..queries import walls_summary_statement
from ..schemas import WallSummary
from ..storage import StorageGateway

logger = logging.getLogger(__name__)


class SummaryHandler:
    """Computes one WallSummary per distinct wall over the whole log.

    Read-only; nothing is cached between calls.
    """

    def __init__(self, storage: StorageGateway) -> None:
        self._storage = storage

    def walls(self) -> List[WallSummary]:
        with self._storage.transaction("aggregate") as conn:
            rows = conn.execute(walls_summary_statement()).fetchall()

        logger.debug("[WALLS] %d walls", len(rows))
        return [
            WallSummary(
                wall_id=str(row.wall_id),
                latest_reading=to_aware_utc(row.latest_reading),
                device_count=int(row.device_count),
            )
            for row in rows
        ]
