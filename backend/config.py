import os
import logging
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)

DEV_JWT_SECRET = "blood-connect-dev-secret"


class Settings(BaseModel):
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "blood_connect"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 7
    request_ttl_days: int = 7
    expiry_sweep_seconds: int = 300
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def load_settings() -> Settings:
    values = {
        "mongo_url": os.environ.get("MONGO_URL"),
        "db_name": os.environ.get("DB_NAME"),
        "jwt_secret": os.environ.get("JWT_SECRET"),
        "jwt_algorithm": os.environ.get("JWT_ALGORITHM"),
        "jwt_expire_days": os.environ.get("JWT_EXPIRE_DAYS"),
        "request_ttl_days": os.environ.get("REQUEST_TTL_DAYS"),
        "expiry_sweep_seconds": os.environ.get("EXPIRY_SWEEP_SECONDS"),
        "environment": os.environ.get("ENVIRONMENT"),
        "log_level": os.environ.get("LOG_LEVEL"),
    }
    settings = Settings(**{key: value for key, value in values.items() if value is not None})
    if settings.jwt_secret == DEV_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; using the development signing secret")
    return settings


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
