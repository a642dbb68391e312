"""
Application entry point.

Run locally:
    uvicorn app.main:app --reload --port 8000

API docs available at:
    http://localhost:8000/docs   (Swagger UI)
    http://localhost:8000/redoc  (ReDoc)
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.rate_limiter import limiter
from app.routers import auth, profiles, payments, orders, store_settings
from app.services.store_settings_service import StoreSettingsCache

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

API_VERSION = "1.0.0"


def create_app() -> FastAPI:
    app = FastAPI(
        title="WOW! Organics Storefront API",
        description=(
            "Backend for the WOW! Organics storefront: accounts and profiles, "
            "email-OTP password reset, phone OTP, Razorpay payments, orders, "
            "and transactional email."
        ),
        version=API_VERSION,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    # ── Rate Limiter ──────────────────────────────────────────────────────────
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # ── Store settings cache ──────────────────────────────────────────────────
    # One instance per app; handlers get it through get_store_settings_cache
    app.state.store_settings_cache = StoreSettingsCache(settings.store_settings_ttl_seconds)

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
    app.include_router(payments.router, prefix="/payments", tags=["Payments"])
    app.include_router(orders.router, prefix="/orders", tags=["Orders"])
    app.include_router(store_settings.router, prefix="/settings", tags=["Settings"])

    # ── Health Check ──────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health_check():
        """Returns 200 if the application is running."""
        return {"status": "ok", "version": API_VERSION}

    return app


app = create_app()
