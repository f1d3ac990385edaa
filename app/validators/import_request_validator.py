"""
app/validators/import_request_validator.py

Whole-request validation for mass imports.

Validation never partially succeeds: every structural error is collected and
raised together before any catalog access happens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from pydantic import ValidationError

from app.config import MassImportSettings
from app.schemas.mass_import import MassImportRequest


class ValidationCode:
    INVALID_JSON = "INVALID_JSON"
    REQUIRED_FIELD = "REQUIRED_FIELD"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_RANGE = "INVALID_RANGE"
    COORDINATES_OUT_OF_RANGE = "COORDINATES_OUT_OF_RANGE"
    COORDINATES_NULL_ISLAND = "COORDINATES_NULL_ISLAND"
    FIELD_TOO_LONG = "FIELD_TOO_LONG"
    TOO_MANY_PHOTOS = "TOO_MANY_PHOTOS"
    INVALID_URL = "INVALID_URL"
    EMPTY_DATA = "EMPTY_DATA"
    BATCH_TOO_LARGE = "BATCH_TOO_LARGE"


_RANGE_ERROR_TYPES = {"greater_than", "greater_than_equal", "less_than", "less_than_equal"}
_COORDINATE_FIELDS = {"lat", "lon"}
_TYPE_TO_CODE = {
    "missing": ValidationCode.REQUIRED_FIELD,
    "string_too_short": ValidationCode.REQUIRED_FIELD,
    "string_too_long": ValidationCode.FIELD_TOO_LONG,
    "invalid_url": ValidationCode.INVALID_URL,
    "null_island": ValidationCode.COORDINATES_NULL_ISLAND,
    "empty_data": ValidationCode.EMPTY_DATA,
    "batch_too_large": ValidationCode.BATCH_TOO_LARGE,
    "json_invalid": ValidationCode.INVALID_JSON,
}


@dataclass(frozen=True)
class ValidationErrorDetail:
    """
    One field-level validation error.
    """

    field: str
    message: str
    code: str


class ImportValidationError(ValueError):
    """
    Raised when an import request is rejected outright.
    """

    def __init__(self, *, message: str, errors: Sequence[ValidationErrorDetail]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [
                {
                    "field": error.field,
                    "message": error.message,
                    "code": error.code,
                }
                for error in self.errors
            ],
        }


def format_location(loc: Sequence[str | int]) -> str:
    """
    Render a pydantic error location as `data.artworks[0].lat`.
    """

    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path or "body"


def _code_for(error_type: str, loc: Sequence[str | int]) -> str:
    last = loc[-1] if loc else None
    if error_type in _RANGE_ERROR_TYPES:
        if last in _COORDINATE_FIELDS:
            return ValidationCode.COORDINATES_OUT_OF_RANGE
        return ValidationCode.INVALID_RANGE
    if error_type == "too_long":
        return ValidationCode.TOO_MANY_PHOTOS if last == "photos" else ValidationCode.INVALID_RANGE
    return _TYPE_TO_CODE.get(error_type, ValidationCode.INVALID_TYPE)


def translate_validation_error(exc: ValidationError) -> list[ValidationErrorDetail]:
    """
    Map pydantic errors onto field/message/code details, preserving order.
    """

    details: list[ValidationErrorDetail] = []
    for error in exc.errors(include_url=False):
        loc = tuple(error.get("loc", ()))
        details.append(
            ValidationErrorDetail(
                field=format_location(loc),
                message=str(error.get("msg", "Invalid value")),
                code=_code_for(str(error.get("type", "")), loc),
            )
        )
    return details


class ImportRequestValidator:
    """
    Validates a raw request body into a typed MassImportRequest.
    """

    def __init__(self, settings: MassImportSettings) -> None:
        self._context = {
            "max_batch_size": settings.max_batch_size,
            "max_records": settings.max_records_per_request,
        }

    def validate(self, payload: Any) -> MassImportRequest:
        if not isinstance(payload, dict):
            raise ImportValidationError(
                message="Import request validation failed.",
                errors=[
                    ValidationErrorDetail(
                        field="body",
                        message="Request body must be a JSON object.",
                        code=ValidationCode.INVALID_JSON,
                    )
                ],
            )

        try:
            return MassImportRequest.model_validate(payload, context=self._context)
        except ValidationError as exc:
            errors = translate_validation_error(exc)
            fields = ", ".join(sorted({error.field for error in errors}))
            raise ImportValidationError(
                message=f"Import request validation failed. Invalid fields: {fields}.",
                errors=errors,
            ) from exc
