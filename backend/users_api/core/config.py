# users_api/core/config.py
import os
import logging
from dotenv import load_dotenv
from pathlib import Path
from typing import Optional, List
from pydantic_settings import BaseSettings

# --- Path Setup & .env Loading ---
# .env lives in the backend root, two levels up from core
BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_PATH = BASE_DIR / '.env'

if ENV_PATH.is_file():
    load_dotenv(dotenv_path=ENV_PATH)
else:
    # Logger is not configured yet at this point
    print(f"Warning: .env file not found at {ENV_PATH}. Relying on system environment variables.")

# --- Pydantic Settings Class ---
class Settings(BaseSettings):
    PROJECT_NAME: str = "Users API"
    DEBUG: bool = False
    VERSION: str = "0.1.0"
    # Routes are served at /users unless a prefix is configured (e.g. "/api/v1")
    API_PREFIX: str = ""

    # Database Settings
    MONGODB_URL: Optional[str] = None
    DB_NAME: str = "users_dev"
    USERS_COLLECTION: str = "users"
    MONGODB_TLS: bool = False
    MONGODB_MAX_POOL_SIZE: int = 10

    # CSV uploads are spooled here before import; None means the system temp dir
    UPLOAD_DIR: Optional[str] = None

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

settings = Settings()

# --- Logging Setup ---
LOG_LEVEL_NAME: str = os.getenv("LOG_LEVEL", "WARNING").upper()
if settings.DEBUG:
    LOG_LEVEL_NAME = "DEBUG"

ACTUAL_LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.WARNING)

logging.basicConfig(
    level=ACTUAL_LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logging.getLogger('uvicorn').setLevel(logging.WARNING)
logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
logging.getLogger('fastapi').setLevel(logging.INFO if settings.DEBUG else logging.WARNING)
logging.getLogger('motor').setLevel(logging.WARNING)
logging.getLogger('pymongo').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# --- Validate critical settings after loading ---
if not settings.MONGODB_URL:
    logger.critical("CRITICAL: MONGODB_URL environment variable is not set and no default provided.")

if settings.DEBUG:
    logger.debug(f"PROJECT_NAME: {settings.PROJECT_NAME}")
    logger.debug(f"API_PREFIX: {settings.API_PREFIX!r}")
    logger.debug(f"DB_NAME: {settings.DB_NAME}")
    logger.debug(f"USERS_COLLECTION: {settings.USERS_COLLECTION}")
    logger.debug(f"UPLOAD_DIR: {settings.UPLOAD_DIR or '(system temp dir)'}")
    logger.debug(f"MONGODB_URL Set: {'Yes' if settings.MONGODB_URL else 'No - CRITICAL'}")
