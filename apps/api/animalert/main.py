"""FastAPI application for AnimAlert petition intake."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from animalert.core.config import settings
from animalert.core.rate_limit import limiter
from animalert.db.session import engine
from animalert.routers import complaints, uploads

logger = logging.getLogger(__name__)


def _init_sentry() -> None:
    """Report unhandled errors to Sentry outside local development."""
    if not settings.SENTRY_DSN or settings.ENV == "dev":
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        release=settings.VERSION,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        # Petitions carry citizen contact details.
        send_default_pii=False,
    )
    logger.info("Sentry enabled env=%s", settings.ENV)


def create_app() -> FastAPI:
    _init_sentry()

    is_dev = settings.ENV == "dev"
    application = FastAPI(
        title="AnimAlert API",
        description="Citizen petitions for wildlife and animal welfare incidents",
        version=settings.VERSION,
        docs_url="/docs" if is_dev else None,
        redoc_url="/redoc" if is_dev else None,
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Public, cookie-less API: the browser client only posts JSON and uploads.
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With"],
    )

    application.include_router(complaints.router, tags=["complaints"])
    application.include_router(uploads.router)
    application.add_api_route("/health", health, methods=["GET"], tags=["health"])
    return application


def health() -> dict:
    """Liveness plus database reachability."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}


app = create_app()
