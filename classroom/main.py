"""
Classroom backend: courses, enrollments, assignments and submissions.
FastAPI entry point.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException

from classroom.core.config import settings
from classroom.core.database import get_supabase
from classroom.core.errors import ServiceError
from classroom.core.middleware import RequestLoggingMiddleware
from classroom.routers import agent, assignments, courses, students, submissions
from classroom.services.blob_store import BlobStore
from classroom.utils import timeutil
from classroom.utils.response import error_response

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        BlobStore(get_supabase()).ensure_bucket()
    except Exception:
        logger.exception("Blob storage initialization failed; file uploads will not work")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Courses, enrollments, assignments, submissions and grading",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(courses.router)
app.include_router(students.router)
app.include_router(assignments.router)
app.include_router(submissions.router)
app.include_router(agent.router)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------
def _validation_details(errors: list) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_response(str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=error_response("Validation error", data=_validation_details(exc.errors())),
    )


@app.exception_handler(ValidationError)
async def body_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content=error_response("Validation error", data=_validation_details(exc.errors())),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_response("Internal server error"))


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/health")
async def health():
    return {"status": "OK", "timestamp": timeutil.now_iso()}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
