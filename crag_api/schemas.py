from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from .clock import to_aware_utc

MAX_QUERY_LIMIT = 1000
DEFAULT_QUERY_LIMIT = 100

# Límites de las columnas de sensor_readings (BigInteger, String(255))
MAX_BIGINT = 2**63 - 1
MAX_ID_LENGTH = 255

_INTEGER_RE = re.compile(r"[+-]?\d+")


class SensorReadingIn(BaseModel):
    """Reading relayed by a gateway.

    Types are strict: ``"5"`` is not an integer and ``true`` is not a count.
    Unknown keys are dropped.
    """

    model_config = ConfigDict(extra="ignore")

    wall_id: StrictStr = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    device_count: StrictInt = Field(..., ge=0, le=MAX_BIGINT)
    timestamp: StrictInt = Field(..., gt=0, le=MAX_BIGINT)

    gateway_id: Optional[StrictStr] = Field(default=None, max_length=MAX_ID_LENGTH)
    rssi: Optional[float] = Field(default=None, strict=True, allow_inf_nan=False)
    snr: Optional[float] = Field(default=None, strict=True, allow_inf_nan=False)
    received_at: Optional[StrictInt] = Field(default=None, gt=0, le=MAX_BIGINT)


class ReadingQueryIn(BaseModel):
    """Filters accepted by ``GET /sensor-data``.

    Values arrive as query-string text. ``limit`` has no default here; the
    query builder applies it.
    """

    model_config = ConfigDict(extra="ignore")

    wall_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    limit: Optional[int] = Field(default=None, ge=1, le=MAX_QUERY_LIMIT)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_iso_datetime(cls, v):
        if v is None or isinstance(v, datetime):
            return v
        if not isinstance(v, str):
            raise ValueError("must be an ISO-8601 datetime string")
        try:
            return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"invalid ISO-8601 datetime: {v!r}")

    @field_validator("start_time", "end_time")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        # Naive values are read as UTC
        try:
            return to_aware_utc(v)
        except OverflowError:
            raise ValueError("datetime out of range")

    @field_validator("limit", mode="before")
    @classmethod
    def parse_limit(cls, v):
        if v is None:
            return v
        if isinstance(v, bool):
            raise ValueError("limit must be an integer")
        if isinstance(v, int):
            return v
        if isinstance(v, str) and _INTEGER_RE.fullmatch(v.strip()):
            return int(v.strip())
        if isinstance(v, str):
            raise ValueError(f"limit must be an integer, got: {v!r}")
        raise ValueError("limit must be an integer")


class StoredReading(BaseModel):
    id: int
    wall_id: str
    device_count: int
    timestamp: int
    gateway_id: Optional[str] = None
    rssi: Optional[float] = None
    snr: Optional[float] = None
    received_at: Optional[int] = None
    server_timestamp: datetime
    created_at: datetime


class WallSummary(BaseModel):
    wall_id: str
    latest_reading: datetime
    device_count: int


class FieldViolationOut(BaseModel):
    path: str
    message: str


class IngestResponse(BaseModel):
    success: bool = True
    id: int
    message: str = "Sensor data received successfully"


class ReadingsResponse(BaseModel):
    success: bool = True
    count: int
    data: List[StoredReading] = Field(default_factory=list)


class WallsResponse(BaseModel):
    success: bool = True
    count: int
    walls: List[WallSummary] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class ValidationErrorResponse(ErrorResponse):
    error: str = "Validation failed"
    details: List[FieldViolationOut] = Field(default_factory=list)
