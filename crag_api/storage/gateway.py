"""Storage gateway: único dueño del engine SQLAlchemy.

The engine (and its connection pool) is created once by ``connect()`` at
process start and released by ``close()``. Handlers receive the gateway at
construction time and fail with ``StorageUnavailable`` when it is used before
``connect()``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from common.config import Settings
from common.db import create_db_engine, ping

from ..errors import StorageOperationFailure, StorageUnavailable
from .tables import SENSOR_READINGS, Base

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


class StorageGateway:
    """Gestiona la conexión a la base de datos."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        engine: Optional[Engine] = None,
    ) -> None:
        self._settings = settings
        self._engine_override = engine
        self._engine: Optional[Engine] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageUnavailable()
        return self._engine

    def connect(self) -> None:
        """Create the engine, check it answers and ensure the table exists."""
        if self._engine is not None:
            return

        engine = self._engine_override
        if engine is None:
            if self._settings is None:
                raise StorageUnavailable("No database settings provided")
            engine = create_db_engine(self._settings)

        try:
            ping(engine)
            Base.metadata.create_all(engine)
        except SQLAlchemyError as e:
            logger.error("[DB] Connection test FAILED err=%s", type(e).__name__)
            if self._engine_override is None:
                engine.dispose()
            raise StorageUnavailable("Failed to connect to database") from e

        self._engine = engine
        logger.info("[DB] Connected url=%s", engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is None:
            return
        # Un engine inyectado pertenece a quien lo creó
        if self._engine_override is None:
            self._engine.dispose()
        self._engine = None
        logger.info("[DB] Database connection closed")

    def ping(self) -> None:
        """Raises ``StorageUnavailable`` unless the database answers."""
        try:
            ping(self.engine)
        except SQLAlchemyError as e:
            logger.error("[DB] Ping failed err=%s", type(e).__name__)
            raise StorageUnavailable("Database ping failed") from e

    @contextmanager
    def transaction(
        self,
        operation: str,
        *,
        wall_id: Optional[str] = None,
    ) -> Iterator[Connection]:
        """Short transaction for a single statement against ``sensor_readings``.

        Driver errors are translated: connection-level faults become
        ``StorageUnavailable``, anything else ``StorageOperationFailure``.
        Neither is retried here.
        """
        engine = self.engine
        try:
            with engine.begin() as conn:
                yield conn
        except _CONNECTION_ERRORS as e:
            logger.error(
                "[DB] %s on %s failed: connection unavailable wall_id=%s err=%s",
                operation,
                SENSOR_READINGS,
                wall_id,
                type(e).__name__,
            )
            raise StorageUnavailable("Database connection unavailable") from e
        except SQLAlchemyError as e:
            logger.exception(
                "[DB] %s on %s failed wall_id=%s err=%s",
                operation,
                SENSOR_READINGS,
                wall_id,
                type(e).__name__,
            )
            raise StorageOperationFailure(operation, SENSOR_READINGS, wall_id) from e
