"""Query del resumen por muro."""

from __future__ import annotations

from sqlalchemy import BigInteger, DateTime, String, text
from sqlalchemy.sql.elements import TextClause

from ..storage.tables import SENSOR_READINGS


def walls_summary_statement() -> TextClause:
    """One row per wall_id: MAX(server_timestamp) plus the device_count of the
    last-inserted row (greatest id), which is not necessarily the row holding
    the latest server_timestamp.
    """
    return text(
        f"""
        SELECT
          g.wall_id AS wall_id,
          g.latest_reading AS latest_reading,
          r.device_count AS device_count
        FROM (
          SELECT wall_id, MAX(server_timestamp) AS latest_reading, MAX(id) AS last_id
          FROM {SENSOR_READINGS}
          GROUP BY wall_id
        ) AS g
        JOIN {SENSOR_READINGS} AS r ON r.id = g.last_id
        ORDER BY g.latest_reading DESC, g.wall_id ASC
        """
    ).columns(
        wall_id=String,
        latest_reading=DateTime,
        device_count=BigInteger,
    )
