"""Handler para ingesta de una lectura."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import insert

from ..clock import Clock, to_aware_utc, to_naive_utc, utc_now
from ..schemas import SensorReadingIn
from ..storage import SensorReadingRow, StorageGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    id: int
    server_timestamp: datetime


class IngestionHandler:
    """Appends validated readings to the reading log.

    Pure append: no existing row is read, matched or updated.
    """

    def __init__(self, storage: StorageGateway, clock: Clock = utc_now) -> None:
        self._storage = storage
        self._clock = clock

    def ingest(self, reading: SensorReadingIn) -> IngestResult:
        """Persiste una lectura validada.

        Args:
            reading: Lectura ya normalizada por el validador

        Returns:
            IngestResult con el id generado

        Raises:
            StorageUnavailable: sin conexión a la BD
            StorageOperationFailure: falló el INSERT
        """
        # Hora del servidor, no la del sensor
        now = to_naive_utc(self._clock())
        row = {
            **reading.model_dump(),
            "server_timestamp": now,
            "created_at": now,
        }

        with self._storage.transaction("insert", wall_id=reading.wall_id) as conn:
            result = conn.execute(insert(SensorReadingRow.__table__).values(**row))
            new_id = int(result.inserted_primary_key[0])

        logger.info(
            "[INGEST] Sensor data received wall_id=%s device_count=%s id=%s",
            reading.wall_id,
            reading.device_count,
            new_id,
        )
        return IngestResult(id=new_id, server_timestamp=to_aware_utc(now))
