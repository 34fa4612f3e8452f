from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.core.config import Settings, settings as default_settings
from app.core.errors import AppError, StoreBusy
from app.core.logging import get_logger, setup_logging
from app.db.session import build_engine, create_db_and_tables, is_lock_timeout

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables(app.state.engine)
    yield
    app.state.engine.dispose()


async def app_error_handler(request: Request, exc: AppError):
    headers = {"Retry-After": "1"} if exc.retryable and exc.status_code >= 500 else None
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message}, headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Missing or invalid fields", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def store_error_handler(request: Request, exc: OperationalError):
    # Waiting on the store lock ran out: retryable, unlike other store failures
    if is_lock_timeout(exc):
        logger.warning("%s %s gave up waiting for the store lock", request.method, request.url.path)
        return await app_error_handler(request, StoreBusy())
    return await unhandled_error_handler(request, exc)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        lifespan=lifespan,
        description="API for a small storefront: users, catalog and orders"
    )
    # One engine per process, handed to requests through get_session
    app.state.settings = settings
    busy_timeout = min(settings.SQLITE_BUSY_TIMEOUT_SECONDS, settings.ORDER_TIMEOUT_SECONDS)
    app.state.engine = build_engine(settings.DATABASE_URL, busy_timeout)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}. Visit /docs for Swagger UI."}

    from app.routers import auth, products, orders, users

    app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(products.router, prefix="/api/v1/products", tags=["products"])
    app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["users"])

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(OperationalError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], # Allow all for demo
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
