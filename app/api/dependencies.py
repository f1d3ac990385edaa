"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and service wiring.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from fastapi import HTTPException, Request, status

from app import failure_codes
from app.config import get_mass_import_settings
from app.services.mass_import_service import MassImportService, get_mass_import_service
from app.validators.import_request_validator import (
    ImportRequestValidator,
    ImportValidationError,
    ValidationCode,
    ValidationErrorDetail,
)


async def get_json_payload(request: Request) -> Any:
    """
    Parse the raw request body as JSON, rejecting malformed input with 400.
    """

    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        error = ImportValidationError(
            message="Request body is not valid JSON.",
            errors=[
                ValidationErrorDetail(
                    field="body",
                    message=str(exc),
                    code=ValidationCode.INVALID_JSON,
                )
            ],
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": failure_codes.VALIDATION_ERROR, **error.to_dict()},
        ) from exc


@lru_cache(maxsize=1)
def get_import_request_validator() -> ImportRequestValidator:
    """
    Build and cache the request validator.
    """

    return ImportRequestValidator(get_mass_import_settings())


def get_mass_import_service_factory() -> Callable[[], MassImportService]:
    """
    Hand the router a builder rather than a built service.

    The production stack is assembled only after the request passes validation.
    """

    return get_mass_import_service
