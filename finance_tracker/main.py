import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models, schemas
from .auth import get_optional_user
from .config import get_settings
from .database import engine
from .errors import AppError
from .mailer import LogMailer
from .ratelimit import limiter
from .routers import auth, budget, goals, transactions
from .telemetry import ErrorReporter

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finance-tracker")

API_TITLE = "Finance Tracker API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    models.Base.metadata.create_all(bind=engine)
    reporter = ErrorReporter()
    reporter.start()
    app.state.reporter = reporter
    app.state.mailer = LogMailer(settings.frontend_url)
    logger.info("%s %s started, api prefix %s", API_TITLE, API_VERSION, settings.api_prefix)
    yield
    reporter.flush()
    logger.info("%s stopped", API_TITLE)


app = FastAPI(title=API_TITLE, version=API_VERSION, lifespan=lifespan)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    logger.info(
        "%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms
    )
    return response


# Error handling
def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    body = schemas.ErrorEnvelope(error=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(location) or "request", "message": error.get("msg", "")})
    summary = ", ".join(f"{d['field']}: {d['message']}" for d in details)
    return error_response(status.HTTP_400_BAD_REQUEST, f"Validation error: {summary}", details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = f"Route {request.url.path} not found"
    return error_response(exc.status_code, message)


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit on %s from %s", request.url.path, request.client.host if request.client else "?")
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests from this IP, please try again later"
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    reporter = getattr(request.app.state, "reporter", None)
    if reporter is not None:
        reporter.capture(exc, method=request.method, path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# Routes
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(transactions.router, prefix=settings.api_prefix)
app.include_router(budget.router, prefix=settings.api_prefix)
app.include_router(goals.router, prefix=settings.api_prefix)


@app.get(f"{settings.api_prefix}/health", response_model=schemas.Envelope[schemas.Health])
def health(current_user: Optional[models.User] = Depends(get_optional_user)):
    return {
        "data": {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc),
            "authenticated": current_user is not None,
        },
        "message": f"{API_TITLE} is running",
    }


@app.get("/")
def root():
    return {
        "success": True,
        "message": API_TITLE,
        "version": API_VERSION,
        "documentation": f"{settings.api_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
