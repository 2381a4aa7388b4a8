import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from app.api.sessions import router as sessions_router
from app.api.pipeline import router as pipeline_router
from app.api.history import router as history_router
from app.config import settings
from app.db.database import engine, Base
from app.errors import EstimatorError
from app.models.db_models import EstimateDB  # noqa: F401  registers the table on Base
from app.services.estimate_store import STORAGE_ERRORS
from app.services.orchestrator import get_inference_invoker, get_policy

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not (settings.app_pin or "").strip():
        logger.warning("APP_PIN is not set. Nobody will be able to log in.")
    if settings.session_secret == "dev-session-secret" and not settings.is_development:
        logger.warning("SESSION_SECRET is not set. Session cookies are signed with the development key.")

    # Fail fast on a bad policy profile; a missing API key only fails estimate calls.
    policy = get_policy()
    invoker = get_inference_invoker()
    logger.info(f"Inference: provider={settings.llm_provider} model={invoker.model} policy={policy.version}")

    # Initialize DB tables on startup. The service still starts if the database
    # is down: estimates are returned unsaved and history answers 503.
    try:
        async with engine.begin() as conn:
            logger.info("Initializing database tables...")
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database initialization complete.")
    except STORAGE_ERRORS as e:
        logger.error(f"Database unavailable at startup: {e}")
    yield
    await engine.dispose()


app = FastAPI(
    title="Junk Volume Estimator API",
    description="Estimates discarded-material volume from job-site photos using a hosted vision model",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(EstimatorError)
async def estimator_error_handler(request: Request, exc: EstimatorError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie="estimator_session",
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.cookie_secure,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(sessions_router)
app.include_router(pipeline_router)
app.include_router(history_router)


@app.get("/")
async def root():
    return {
        "service": "Junk Volume Estimator API",
        "version": "0.1.0",
        "status": "online",
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}
