import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

import pytz
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import Settings, settings as default_settings
from app.core.logger import setup_logging

# 1. Infrastructure & Domain Imports
from app.application.auth_service import AuthService
from app.application.batch_service import BatchService
from app.application.order_service import OrderService, utc_now
from app.domain.errors import DependencyUnavailable, LeafyError
from app.infrastructure.notification_service import NotificationService
from app.infrastructure.repositories.factory import build_repository, prepare_storage
from app.infrastructure.session_store import SessionStore
from app.interfaces import auth_api, batches_api, orders_api
from app.interfaces.IInventoryRepository import IInventoryRepository
from app.interfaces.INotifier import INotifier

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[IInventoryRepository] = None,
    notifier: Optional[INotifier] = None,
    session_store: Optional[SessionStore] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    # ---------------------------------------------------------
    # COMPOSITION ROOT
    # ---------------------------------------------------------
    repository = repository or build_repository(settings)
    notifier = notifier or NotificationService(settings)
    session_store = session_store or SessionStore(settings.REDIS_URL, settings.SESSION_TTL_SECONDS)

    order_service = OrderService(
        order_repo=repository, notifier=notifier, settings=settings, clock=clock or utc_now
    )
    batch_service = BatchService(batch_repo=repository, settings=settings, clock=clock)
    auth_service = AuthService(user_repo=repository, sessions=session_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # ---------------------------------------------------------
        # DATABASE CONNECTION (With Retry Logic)
        # ---------------------------------------------------------
        if prepare_storage(repository, settings):
            try:
                auth_service.seed_admin(settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)
            except DependencyUnavailable as e:
                logger.error(f"❌ Could not seed admin account: {e}")
        else:
            logger.warning("⚠️ Starting with limited functionality, database unavailable.")
        logger.info(f"🎉 {settings.PROJECT_NAME} is ready!")
        yield
        if isinstance(notifier, NotificationService):
            notifier.shutdown(wait=False)

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.repository = repository
    app.state.order_service = order_service
    app.state.batch_service = batch_service
    app.state.auth_service = auth_service

    # Include Routers
    app.include_router(auth_api.router)
    app.include_router(batches_api.router)
    app.include_router(orders_api.router)

    # ---------------------------------------------------------
    # ERROR MAPPING
    # ---------------------------------------------------------
    @app.exception_handler(LeafyError)
    async def leafy_error_handler(request: Request, exc: LeafyError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"⚠️ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message, "code": exc.__class__.__name__},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        detail = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": detail or "Invalid request", "code": "ValidationError"},
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.debug(f"Request: {request.method} {request.url.path} from {request.headers.get('origin', 'no origin')}")
        return await call_next(request)

    @app.get("/")
    def health_check():
        return {
            "status": "healthy",
            "system": settings.PROJECT_NAME,
            "timestamp": datetime.now(pytz.utc).isoformat(),
        }

    @app.get("/status")
    def status_check():
        db_ok = repository.ping()
        return {
            "status": "healthy" if db_ok else "degraded",
            "database": "connected" if db_ok else "disconnected",
            "storage": settings.STORAGE_BACKEND,
            "timestamp": datetime.now(pytz.utc).isoformat(),
        }

    return app


app = create_app()
