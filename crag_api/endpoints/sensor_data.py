"""Endpoints de lecturas: alta, consulta y resumen por muro."""

from __future__ import annotations

import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from ..errors import CragApiError
from ..handlers import IngestionHandler, QueryHandler, SummaryHandler
from ..schemas import (
    ErrorResponse,
    IngestResponse,
    ReadingsResponse,
    ValidationErrorResponse,
    WallsResponse,
)
from ..validation import FieldViolation, validate_query, validate_reading

router = APIRouter(prefix="/sensor-data", tags=["sensor-data"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse},
    500: {"model": ErrorResponse},
}


def get_ingestion_handler(request: Request) -> IngestionHandler:
    return request.app.state.ingestion_handler


def get_query_handler(request: Request) -> QueryHandler:
    return request.app.state.query_handler


def get_summary_handler(request: Request) -> SummaryHandler:
    return request.app.state.summary_handler


def validation_failed(errors: List[FieldViolation]) -> JSONResponse:
    body = ValidationErrorResponse(details=[v.to_dict() for v in errors])
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


def storage_failed(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=IngestResponse,
    responses=_ERROR_RESPONSES,
)
def create_reading(
    payload: Any = Body(...),
    handler: IngestionHandler = Depends(get_ingestion_handler),
):
    """Recibe una lectura desde un gateway."""
    result = validate_reading(payload)
    if not result.valid:
        return validation_failed(result.errors)

    try:
        ingested = handler.ingest(result.payload)
    except CragApiError as e:
        logger.error("[INGEST] Error saving sensor data wall_id=%s err=%s", result.payload.wall_id, e)
        return storage_failed("Failed to save sensor data")

    return IngestResponse(id=ingested.id)


@router.get(
    "",
    response_model=ReadingsResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
def list_readings(
    request: Request,
    handler: QueryHandler = Depends(get_query_handler),
):
    """Consulta lecturas por wall_id y rango de server_timestamp."""
    result = validate_query(request.query_params)
    if not result.valid:
        return validation_failed(result.errors)

    try:
        data = handler.query(result.payload)
    except CragApiError as e:
        logger.error("[QUERY] Error querying sensor data wall_id=%s err=%s", result.payload.wall_id, e)
        return storage_failed("Failed to query sensor data")

    return ReadingsResponse(count=len(data), data=data)


@router.get(
    "/walls",
    response_model=WallsResponse,
    responses={500: {"model": ErrorResponse}},
)
def list_walls(handler: SummaryHandler = Depends(get_summary_handler)):
    """Un registro por muro con su última lectura."""
    try:
        walls = handler.walls()
    except CragApiError as e:
        logger.error("[WALLS] Error getting walls data err=%s", e)
        return storage_failed("Failed to get walls data")

    return WallsResponse(count=len(walls), walls=walls)
