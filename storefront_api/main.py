import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings, load_settings
from .domain.payments import PaymentIntentGateway
from .domain.payments import router as payments_router
from .email_service import EmailService, select_transport_config
from .errors import ConfigurationError, ValidationError
from .routes.email import router as email_router

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Reduce verbosity of third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(
    settings: Optional[Settings] = None,
    payment_gateway: Optional[PaymentIntentGateway] = None,
    email_service: Optional[EmailService] = None,
) -> FastAPI:
    """
    Build the API. Settings are loaded from the environment when not given,
    which raises ConfigurationError if STRIPE_SECRET_KEY is missing.
    """
    if settings is None:
        settings = load_settings()
        configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        logger.info(f"📧 Email transport: {select_transport_config(settings).name}")
        logger.info(f"✅ Server running on {settings.base_url} ({settings.environment})")
        logger.info(f"🏥 Health check: {settings.base_url}/health")
        yield
        logger.info("Application shutting down...")

    app = FastAPI(title="Storefront Payments API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.payment_gateway = payment_gateway or PaymentIntentGateway(
        settings.stripe_secret_key, timeout=settings.stripe_timeout_seconds
    )
    app.state.email_service = email_service or EmailService(settings)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed or wrongly typed request bodies are client errors: 400 with the failing fields"""
        details = [
            {"loc": ".".join(str(part) for part in error.get("loc", ())), "msg": error.get("msg")}
            for error in exc.errors()
        ]
        logger.warning(f"Validation error for {request.url.path}: {details}")
        message = details[0]["msg"] if details else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message, "details": details})

    @app.exception_handler(ValidationError)
    async def missing_fields_handler(request: Request, exc: ValidationError):
        logger.warning(f"Rejected {request.url.path}: {exc}")
        return JSONResponse(
            status_code=400, content={"error": str(exc), "missingFields": exc.missing_fields}
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    app.include_router(payments_router)
    app.include_router(email_router)

    # Static files (logo used by the emails) are served from the web root, so mount last
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning(f"Static directory {static_dir.resolve()} not found; email logo will not load")

    return app


def run() -> None:
    """Console entry point: load configuration, fail fast without Stripe, then serve"""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"❌ {e}")
        sys.exit(1)

    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
