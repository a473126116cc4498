"""
Result Analytics API

JSON surface over the result analytics service.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..core.exceptions import MalformedInputError, NotFoundError, RecordStoreError
from .routes import courses, groups, health, students

settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Result Analytics API",
    version=settings.app_version,
    description="GPA/CGPA/YGPA, improvement reconciliation, cohort ranking and course analytics",
)

app.include_router(health.router)
app.include_router(students.router)
app.include_router(groups.router)
app.include_router(courses.router)


@app.exception_handler(MalformedInputError)
async def malformed_input_handler(request: Request, exc: MalformedInputError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(RecordStoreError)
async def record_store_handler(request: Request, exc: RecordStoreError):
    logger.error(f"❌ Record store unavailable: {exc}")
    return JSONResponse(status_code=502, content={"detail": "Record store unavailable"})
