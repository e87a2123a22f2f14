"""Validación de payloads entrantes.

Turns untyped wire input (a decoded JSON body or a query-string mapping) into
either a normalized pydantic model or the complete list of field violations.
Nothing here raises on bad input and nothing here does I/O.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .schemas import ReadingQueryIn, SensorReadingIn

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class FieldViolation:
    """One rejected field. ``path`` is dotted; empty for the payload itself."""

    path: str
    message: str

    def to_dict(self) -> dict:
        return {"path": self.path, "message": self.message}


@dataclass
class ValidationResult(Generic[ModelT]):
    """Resultado de validación: ``payload`` when valid, ``errors`` otherwise."""

    valid: bool
    payload: Optional[ModelT] = None
    errors: List[FieldViolation] = field(default_factory=list)


def violations_from_pydantic(exc: ValidationError) -> List[FieldViolation]:
    return [
        FieldViolation(
            path=".".join(str(part) for part in err.get("loc", ())),
            message=str(err.get("msg", "Invalid value")),
        )
        for err in exc.errors()
    ]


def validate_payload(schema: Type[ModelT], data: Any, *, target: str = "body") -> ValidationResult[ModelT]:
    """Valida ``data`` contra ``schema``.

    Args:
        schema: Modelo pydantic a aplicar
        data: Input ya decodificado (dict para body/query)
        target: Etiqueta para logs ("body" o "query")

    Returns:
        ValidationResult con el modelo normalizado o todas las violaciones
    """
    if isinstance(data, Mapping):
        data = dict(data)

    try:
        payload = schema.model_validate(data)
    except ValidationError as e:
        errors = violations_from_pydantic(e)
        # Solo rutas de campo; el payload crudo no se loguea
        logger.warning(
            "[VALIDATION] %s rejected target=%s fields=%s",
            schema.__name__,
            target,
            [v.path for v in errors],
        )
        return ValidationResult(valid=False, errors=errors)

    return ValidationResult(valid=True, payload=payload)


def validate_reading(data: Any) -> ValidationResult[SensorReadingIn]:
    return validate_payload(SensorReadingIn, data, target="body")


def validate_query(params: Mapping[str, Any]) -> ValidationResult[ReadingQueryIn]:
    return validate_payload(ReadingQueryIn, params, target="query")
