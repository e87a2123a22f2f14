from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL, make_url

from .config import Settings


logger = logging.getLogger(__name__)


def build_sqlalchemy_url(settings: Settings) -> URL:
    # DATABASE_URL may point at a server without naming a database;
    # DB_NAME fills the gap.
    url = make_url(settings.database_url)
    if not url.database:
        url = url.set(database=settings.db_name)
    return url


def create_db_engine(settings: Settings) -> Engine:
    url = build_sqlalchemy_url(settings)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Creating engine url=%s db=%s",
        url.render_as_string(hide_password=True),
        url.database,
    )

    # hide_parameters: los valores de las lecturas no llegan a los logs de error
    kwargs = {"pool_pre_ping": True, "future": True, "hide_parameters": True}
    if url.get_backend_name() != "sqlite":
        kwargs["pool_timeout"] = settings.db_pool_timeout
        kwargs["pool_recycle"] = 300

    return create_engine(url, **kwargs)


def ping(engine: Engine) -> None:
    """Round trip to the database. Raises on failure."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
