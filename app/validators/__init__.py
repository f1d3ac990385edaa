"""
app/validators package marker.
"""

from app.validators.import_request_validator import (
    ImportRequestValidator,
    ImportValidationError,
    ValidationCode,
    ValidationErrorDetail,
)

__all__ = [
    "ImportRequestValidator",
    "ImportValidationError",
    "ValidationCode",
    "ValidationErrorDetail",
]
