"""
app/schemas/health.py

Liveness response schema.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HealthResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Literal["ok"] = "ok"
    service: str
    version: str
    max_batch_size: int
    max_records_per_request: int
