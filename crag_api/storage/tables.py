__all__ = ["Base", "SensorReadingRow", "SENSOR_READINGS"]

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SENSOR_READINGS = "sensor_readings"


class Base(DeclarativeBase):
    pass


class SensorReadingRow(Base):
    __tablename__ = SENSOR_READINGS
    __table_args__ = (
        Index("ix_sensor_readings_wall_server_ts", "wall_id", "server_timestamp"),
    )

    # INTEGER PRIMARY KEY on SQLite so ids keep following insertion order
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    wall_id: Mapped[str] = mapped_column(String(255), nullable=False)
    device_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    gateway_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    rssi: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    snr: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    received_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # Naive UTC
    server_timestamp: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
