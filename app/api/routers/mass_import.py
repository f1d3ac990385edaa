"""
app/api/routers/mass_import.py

Mass-import HTTP endpoint.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from app import failure_codes
from app.api.dependencies import (
    get_import_request_validator,
    get_json_payload,
    get_mass_import_service_factory,
)
from app.schemas.mass_import import MassImportResponse
from app.services.mass_import_service import (
    ImportCatalogUnavailableError,
    ImportTimeoutError,
    MassImportError,
    MassImportService,
)
from app.validators.import_request_validator import ImportRequestValidator, ImportValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mass-import"])


def _partial_results(exc: MassImportError) -> dict[str, Any] | None:
    if exc.report is None:
        return None
    return MassImportResponse.from_report(exc.report).model_dump(mode="json", by_alias=True)


@router.post(
    "/mass-import",
    response_model=MassImportResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
def run_mass_import(
    payload: Any = Depends(get_json_payload),
    validator: ImportRequestValidator = Depends(get_import_request_validator),
    service_factory: Callable[[], MassImportService] = Depends(get_mass_import_service_factory),
) -> MassImportResponse:
    """
    Validate and import one batch of artwork and creator records.

    Validation is all-or-nothing and happens before any catalog access.
    Once records are processing, per-record problems are reported in the
    response body and never change the status code.
    """

    try:
        request = validator.validate(payload)
    except ImportValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": failure_codes.VALIDATION_ERROR, **exc.to_dict()},
        ) from exc

    try:
        report = service_factory().run(request)
    except ImportTimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            detail={
                "code": exc.code,
                "message": exc.message,
                "partialResults": _partial_results(exc),
            },
        ) from exc
    except ImportCatalogUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "code": exc.code,
                "message": "Catalog is unavailable. Retry the import later.",
                "partialResults": _partial_results(exc),
            },
        ) from exc
    except Exception as exc:
        logger.exception("Mass import failed import_id=%s", request.metadata.import_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "code": failure_codes.MASS_IMPORT_ERROR,
                "message": "Mass import failed unexpectedly.",
            },
        ) from exc

    return MassImportResponse.from_report(report)
