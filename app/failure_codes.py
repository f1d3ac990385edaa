"""Shared result and error code constants for mass-import outcomes."""

# Per-record outcomes reported inside a 2xx response body.
DUPLICATE_DETECTED = "DUPLICATE_DETECTED"
DUPLICATE_DETECTED_BIO_UPDATED = "DUPLICATE_DETECTED_BIO_UPDATED"
RECORD_PROCESSING_FAILED = "RECORD_PROCESSING_FAILED"
CATALOG_WRITE_FAILED = "CATALOG_WRITE_FAILED"

# Request-level outcomes surfaced as non-2xx responses.
VALIDATION_ERROR = "VALIDATION_ERROR"
IMPORT_TIMEOUT = "IMPORT_TIMEOUT"
CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"
MASS_IMPORT_ERROR = "MASS_IMPORT_ERROR"

RECORD_LEVEL_CODES = [
    DUPLICATE_DETECTED,
    DUPLICATE_DETECTED_BIO_UPDATED,
    RECORD_PROCESSING_FAILED,
    CATALOG_WRITE_FAILED,
]

FATAL_CODES = [
    IMPORT_TIMEOUT,
    CATALOG_UNAVAILABLE,
    MASS_IMPORT_ERROR,
]
