"""
EduQuest daily practice API
Registration, child profiles, daily question emails and Stripe billing.
"""
from dotenv import load_dotenv
load_dotenv()

import logging
import sys
import time
from pathlib import Path

from alembic import command
from alembic.config import Config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True  # Override any existing configuration
)

logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eduquest.api.routes import auth, billing, profile, questions, webhooks
from eduquest.core.config import settings
from eduquest.db.base import Base
from eduquest.db.session import engine
# Import all models to ensure they're registered with Base
from eduquest.models import User, StudentSubject  # noqa: F401
from eduquest.services.delivery_scheduler import create_delivery_scheduler


def run_migrations() -> None:
    """Run Alembic migrations on startup. Uses alembic.ini and DATABASE_URL.
    Fails startup if migrations fail, so the DB is never left out of sync."""
    project_root = Path(__file__).resolve().parent.parent
    alembic_ini = project_root / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found, skipping Alembic migrations")
        return
    try:
        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
        # configparser treats % as interpolation (URL-encoded passwords)
        alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL.replace("%", "%%"))
        alembic_cfg.attributes["configure_logger"] = False
        command.upgrade(alembic_cfg, "head")
        logger.info("Alembic migrations completed successfully")
    except Exception as e:
        logger.exception("Alembic migration failed: %s", e)
        raise


app = FastAPI(title="EduQuest Learning")


@app.on_event("startup")
def startup_event():
    """Validate configuration, prepare the schema, then start the delivery scheduler.
    Any failure here stops the server from starting."""
    settings.validate()

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    logger.info("Running Alembic migrations...")
    run_migrations()

    if settings.SCHEDULER_ENABLED:
        scheduler = create_delivery_scheduler()
        scheduler.start()
        app.state.delivery_scheduler = scheduler
    else:
        logger.info("Delivery scheduler disabled (SCHEDULER_ENABLED=false)")


@app.on_event("shutdown")
def shutdown_event():
    scheduler = getattr(app.state, "delivery_scheduler", None)
    if scheduler is not None:
        scheduler.stop()


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %s in %.0fms",
            request.method, request.url.path, response.status_code, duration_ms,
        )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Form errors are 400s for the frontend, not FastAPI's default 422
    message = "Invalid profile data" if request.url.path == "/api/profile" else "Invalid request data"
    errors = [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message, "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,  # Session cookie
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/api", tags=["Auth"])
app.include_router(profile.router, prefix="/api", tags=["Profile"])
app.include_router(questions.router, prefix="/api", tags=["Questions"])
app.include_router(billing.router, prefix="/api", tags=["Billing"])
app.include_router(webhooks.router, prefix="/api", tags=["Webhooks"])


@app.get("/health")
def health():
    scheduler = getattr(app.state, "delivery_scheduler", None)
    return {
        "status": "ok",
        "scheduler_running": bool(scheduler and scheduler.running),
    }
