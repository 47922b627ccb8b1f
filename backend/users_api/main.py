# users_api/main.py
import logging
import psutil
import time
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from typing import Dict, Any
from datetime import timedelta
from fastapi import status
from pymongo.errors import OperationFailure

from users_api.core.config import settings
from users_api.db.database import connect_to_mongo, close_mongo_connection, check_database_health, get_database
from users_api.db.user_store import UserStore
from users_api.services.user_service import UserService

from users_api.api.v1.endpoints.users import router as users_router

logger = logging.getLogger(__name__)

APP_START_TIME = time.time()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="CRUD API for user records with soft delete and bulk CSV import",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Event Handlers for DB Connection ---
@app.on_event("startup")
async def startup_event():
    """Connect to MongoDB, ensure indexes and build the user service."""
    logger.info("Executing startup event: Connecting to database...")
    app.state.user_service = None
    connected = await connect_to_mongo()
    if not connected:
        logger.critical("FATAL: Database connection failed on startup. Application might not function correctly.")
        return

    db_instance = get_database()
    if db_instance is None:
        logger.error("Could not get database instance to build the user service.")
        return

    store = UserStore(db_instance[settings.USERS_COLLECTION])
    try:
        logger.info("Ensuring database indexes...")
        await store.ensure_indexes()
    except OperationFailure as e:
        # Existing duplicates block a unique index; the service pre-check still applies
        logger.error(f"Could not create unique user indexes: {e.details}", exc_info=True)

    app.state.user_service = UserService(store)
    logger.info("Startup event: user service ready.")

@app.on_event("shutdown")
async def shutdown_event():
    """Disconnect from MongoDB on application shutdown."""
    logger.info("Executing shutdown event: Disconnecting from database...")
    app.state.user_service = None
    await close_mongo_connection()

# --- Health Endpoints ---
@app.get("/health", tags=["Health Check"])
async def health_check() -> Dict[str, Any]:
    """Process uptime and memory next to the database check."""
    process = psutil.Process()
    db_health = await check_database_health()
    return {
        "status": db_health["status"],
        "version": settings.VERSION,
        "uptime": str(timedelta(seconds=int(time.time() - APP_START_TIME))),
        "rss_bytes": process.memory_info().rss,
        "database": db_health,
    }

@app.get("/healthz", tags=["Probes"], status_code=status.HTTP_200_OK)
async def liveness_probe():
    """Liveness probe: the process is up and responding."""
    return {"status": "live"}

@app.get("/readyz", tags=["Probes"])
async def readiness_probe(response: Response):
    """Readiness probe: the database answers a ping."""
    db_health = await check_database_health()
    if db_health.get("connected"):
        response.status_code = status.HTTP_200_OK
        return {"status": "ready", "database": db_health}
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "not_ready", "database": db_health}

# --- Include API Routers ---
app.include_router(users_router, prefix=settings.API_PREFIX)
