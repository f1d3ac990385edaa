"""
Run a mass import from a request JSON file.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from app.schemas.mass_import import MassImportResponse
from app.services.mass_import_service import MassImportError, get_mass_import_service
from app.validators.import_request_validator import ImportValidationError


def main() -> int:
    parser = argparse.ArgumentParser(description="Import artworks and creators from a mass-import request file.")
    parser.add_argument("request_file", type=Path, help="Path to a mass-import request JSON document.")
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the request and exit without touching the catalog.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        payload = json.loads(args.request_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Could not read request file: {exc}", file=sys.stderr)
        return 2

    service = get_mass_import_service()
    try:
        if args.validate_only:
            request = service.validator.validate(payload)
            print(json.dumps({"valid": True, "totalRecords": request.data.total_records}, indent=2))
            return 0
        report = service.run_payload(payload)
    except ImportValidationError as exc:
        print(json.dumps(exc.to_dict(), indent=2))
        return 1
    except MassImportError as exc:
        body = {"code": exc.code, "message": exc.message}
        if exc.report is not None:
            body["partialResults"] = MassImportResponse.from_report(exc.report).model_dump(mode="json", by_alias=True)
        print(json.dumps(body, indent=2))
        return 1

    print(json.dumps(MassImportResponse.from_report(report).model_dump(mode="json", by_alias=True), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
