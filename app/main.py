import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.api import api_router
from app.core.config import Settings
from app.core.errors import register_error_handlers
from app.core.logging_config import setup_logging
from app.db.session import make_engine, make_session_factory
from app.middleware.tracing import RequestTracingMiddleware
from app.repos.base import Storage
from app.repos.memory import MemoryStorage
from app.services.email_service import MailSender, build_mail_sender
from app.services.payment_service import build_payment_gateway

logger = logging.getLogger(__name__)

_default_origins = [
    "http://127.0.0.1:5173", "http://localhost:5173",
    "http://127.0.0.1:5000", "http://localhost:5000",
]


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
    mailer: MailSender | None = None,
    payments=None,
) -> FastAPI:
    """Build the application. Collaborators not passed in are built from settings."""
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.session_factory = None
    app.state.storage = None

    if storage is not None:
        app.state.storage = storage
    elif settings.STORAGE_BACKEND == "memory":
        app.state.storage = MemoryStorage()
        if settings.SEED_SAMPLE_DATA:
            from app.seed import run as run_seed
            run_seed(app.state.storage)
    else:
        app.state.session_factory = make_session_factory(make_engine(settings.DATABASE_URL))

    app.state.mailer = mailer or build_mail_sender(settings)
    app.state.payments = payments or build_payment_gateway(settings)

    # CORS: use CORS_ORIGINS from env in production; default to localhost for dev
    _origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] if settings.CORS_ORIGINS else _default_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie="cruise_voyager_session",
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(RequestTracingMiddleware)

    register_error_handlers(app)
    app.include_router(api_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("application configured", extra={"storage_backend": settings.STORAGE_BACKEND, "env": settings.ENV})
    return app


app = create_app()
