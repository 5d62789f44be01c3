import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finledger import config
from finledger.database import create_db_engine, init_db
from finledger.errors import ConflictError, NotFoundError, StorageError, ValidationError
from finledger.logging_config import configure_logging
from finledger.routers import insights_router, transactions_router
from finledger.services.ledger_service import Ledger
from finledger.services.seed_data import seed_sample_activity

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid {field}: {first.get('msg')}" if field else f"Invalid request: {first.get('msg')}"


def register_error_handlers(app: FastAPI) -> None:
    """Every failure leaves as {"error": "..."} with a non-2xx status."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(400, _describe_validation(exc))

    @app.exception_handler(ValidationError)
    async def ledger_validation_handler(request: Request, exc: ValidationError):
        return _error(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _error(409, "Duplicate ledger record")

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError):
        logger.error("Unhandled storage failure on %s %s: %s", request.method, request.url.path, exc)
        return _error(500, "Storage failure")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))


def create_app(ledger: Optional[Ledger] = None, prefix: Optional[str] = None) -> FastAPI:
    """
    Build the API around a Ledger handle.

    Without an explicit ledger, one is created over config.DATABASE_URL and
    its tables are created at startup (use Alembic for managed databases).
    """
    engine = None
    if ledger is None:
        engine = create_db_engine()
        ledger = Ledger.from_engine(engine, limit=config.RECENT_ACTIVITY_LIMIT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None:
            init_db(engine)
        if config.SEED_SAMPLE_DATA:
            seed_sample_activity(app.state.ledger)
            logger.info("Seeded sample activity")
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title="Personal Finance Ledger API",
        description="Transaction ledger and aggregation core",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.ledger = ledger

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials="*" not in config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    register_error_handlers(app)

    api_prefix = config.API_PREFIX if prefix is None else prefix.rstrip("/")

    @app.get(f"{api_prefix}/health", tags=["health"])
    def health_check():
        return {"status": "ok"}

    app.include_router(transactions_router, prefix=api_prefix)
    app.include_router(insights_router, prefix=api_prefix)
    return app


def run() -> None:
    configure_logging(config.LOG_LEVEL)
    uvicorn.run(create_app(), host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
