"""
Application assembly.

``create_app`` reads Settings, wires services onto ``app.state`` and mounts
the routers under ``/api``. The Stripe gateway can be injected (tests pass a
fake); otherwise one is built from STRIPE_SECRET_KEY, which must be set.
"""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from zenshift.core.config import Settings, get_settings
from zenshift.core.errors import AppError
from zenshift.core.log_config import configure_logging
from zenshift.core.utils import ensure_absolute_url
from zenshift.db.create_tables import create_all
from zenshift.domain.plans import PlanCatalog
from zenshift.routers import auth as auth_router
from zenshift.routers import email as email_router
from zenshift.routers import files as files_router
from zenshift.routers import subscription as subscription_router
from zenshift.routers import users as users_router
from zenshift.routers.resources import blogposts_router, journals_router, products_router, reviews_router
from zenshift.services.auth_service import AuthService
from zenshift.services.billing_gateway import BillingGateway, StripeGateway
from zenshift.services.file_service import FileService
from zenshift.services.resource_service import BLOG_POSTS, JOURNALS, PRODUCTS, ResourceService, ReviewService
from zenshift.services.social_service import SocialAuthService, build_providers
from zenshift.services.subscription_service import SubscriptionService
from zenshift.services.user_service import UserService

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    msg = first.get("msg") or "Invalid value"
    return f'"{loc[-1]}" {msg}' if loc else msg


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"message": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": _first_error(exc)}, status_code=400)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse({"message": "Resource already exists"}, status_code=409)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse({"message": "Internal server error"}, status_code=500)


def _cors_origins(settings: Settings) -> list[str]:
    origins = {ensure_absolute_url(settings.frontend_url)}
    if settings.app_env != "prod":
        origins.update(
            {
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            }
        )
    return sorted(origin for origin in origins if origin)


def _mount_frontend(app: FastAPI, settings: Settings) -> None:
    os.makedirs(settings.uploads_dir, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.uploads_dir), name="uploads")

    static_dir = settings.static_dir
    if os.path.isdir(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    index_file = os.path.join(static_dir, "index.html")

    # Registered last so API routes always win.
    @app.get("/{full_path:path}", include_in_schema=False)
    def spa_fallback(full_path: str):
        if full_path == "api" or full_path.startswith("api/") or not os.path.isfile(index_file):
            return JSONResponse({"message": "Not found"}, status_code=404)
        return FileResponse(index_file)


def create_app(settings: Settings | None = None, gateway: BillingGateway | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    create_all()

    if gateway is None:
        gateway = StripeGateway.from_settings(settings)

    app = FastAPI(title="Zenshift API")
    app.state.settings = settings
    app.state.subscription_service = SubscriptionService(
        gateway,
        PlanCatalog.from_settings(settings),
        frontend_url=settings.frontend_url,
        webhook_secret=settings.stripe_webhook_secret,
    )
    app.state.auth_service = AuthService()
    app.state.user_service = UserService()
    app.state.social_auth_service = SocialAuthService()
    app.state.oauth_providers = build_providers(settings)
    app.state.file_service = FileService(settings.uploads_dir, settings.max_upload_bytes)
    app.state.resources = {
        "products": ResourceService(PRODUCTS),
        "journals": ResourceService(JOURNALS),
        "blogposts": ResourceService(BLOG_POSTS),
        "reviews": ReviewService(),
    }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"ok": True}

    for router in (
        auth_router.router,
        users_router.router,
        subscription_router.router,
        products_router,
        journals_router,
        blogposts_router,
        reviews_router,
        files_router.router,
        email_router.router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    _mount_frontend(app, settings)
    logger.info("Zenshift API ready (env=%s)", settings.app_env)
    return app
