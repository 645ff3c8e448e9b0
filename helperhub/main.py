from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from helperhub.routers import auth, session, profiles, providers, requests

from helperhub.utils.logging_config import configure_for_environment, get_logger
from helperhub.middleware.error_handlers import PerformanceMiddleware, install_error_handling
from helperhub.services.blob_store import blob_store

API_VERSION = "1.0.0"

configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("HelperHub API starting up...")
    logger.info("Initializing database indexes...")

    try:
        from helperhub.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - provider and request lookups may be slower without indexes")

    logger.info("HelperHub API startup completed")

    yield

    logger.info("HelperHub API shutting down...")
    from helperhub.services.db import client
    client.close()
    logger.info("HelperHub API shutdown completed")


app = FastAPI(title="HelperHub API", version=API_VERSION, lifespan=lifespan)

app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
# Added after timing so the error envelope wraps it
install_error_handling(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

blob_store.setup()
app.mount(blob_store.url_prefix, StaticFiles(directory=str(blob_store.root)), name="media")


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    logger.debug("Root endpoint accessed")
    return {"message": "Welcome to the HelperHub API", "version": API_VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


app.include_router(auth.router, prefix="/api")
app.include_router(session.router, prefix="/api")
app.include_router(profiles.router, prefix="/api")
app.include_router(providers.router, prefix="/api")
app.include_router(requests.router, prefix="/api")

logger.info("HelperHub API initialized successfully")
