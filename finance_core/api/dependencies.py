"""Dependency injection and shared helpers for FastAPI endpoints"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request

from finance_core.domain.exceptions import DomainException
from finance_core.infrastructure.observability.logging import log_computation
from finance_core.infrastructure.observability.metrics import record_computation


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@contextmanager
def track_computation(engine: str, request: Request) -> Iterator[None]:
    """
    Time an engine call, record metrics and log the outcome.

    Domain validation errors become 422 responses carrying the error message.
    """
    request_id = get_request_id(request)
    start_time = time.time()
    try:
        yield
    except DomainException as e:
        record_computation(engine, ok=False, duration_seconds=time.time() - start_time)
        logging.warning(f"Invalid input for {engine}: {e}", extra={"request_id": request_id, "engine": engine})
        raise HTTPException(status_code=422, detail=str(e)) from e

    duration = time.time() - start_time
    record_computation(engine, ok=True, duration_seconds=duration)
    log_computation(request_id, engine, "ok", duration * 1000)
