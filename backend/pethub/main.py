"""FastAPI application entrypoint.

This module wires the PetHub backend together: logging, CORS, the
request-context middleware, global error handlers, the uploads static
mount and the feature routers in `pethub.routers`. Controllers are thin:
they accept requests, delegate to services, and return JSON.

Every error leaves the API as `{"message": "..."}` with a matching
status code.
"""

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .database import create_db_and_tables
from .errors import PetHubError
from .routers import admin, auth, pets, posts, shops, system, tasks, users, vaccinations
from .schemas import error_message

logger = logging.getLogger("pethub.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="PetHub API", version=system.VERSION)

# Outside production every origin is accepted so Expo dev clients work.
_allow_all = settings.ALLOWED_ORIGINS == ["*"] or not settings.is_production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if _allow_all else settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=86400,
)

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception("request_failed %s", _context(request, req_id, elapsed_ms))
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if request.url.path.startswith("/api"):
        logger.info(
            "request_done %s",
            _context(request, req_id, elapsed_ms, status_code=response.status_code),
        )
    return response


def _context(request: Request, req_id: str, elapsed_ms: float, **extra) -> str:
    data = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "duration_ms": elapsed_ms,
        "client": request.client.host if request.client else "unknown",
    }
    data.update(extra)
    return json.dumps(data, ensure_ascii=True)


@app.exception_handler(PetHubError)
async def pethub_error_handler(request: Request, exc: PetHubError):
    if exc.status_code >= 500:
        logger.error("domain_error path=%s message=%s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message}, headers=exc.headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info("validation_error path=%s errors=%d", request.url.path, len(errors))
    return JSONResponse(
        status_code=400,
        content={
            "message": error_message(errors),
            "errors": [
                {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg", "")}
                for e in errors
            ],
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Catch-all; details go to the log, never to the client."""
    logger.exception("unhandled_error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


for module in (system, auth, users, pets, tasks, vaccinations, posts, shops, admin):
    app.include_router(module.router)

settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
