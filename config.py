"""
Application Settings

Values are read from environment variables. A .env file in the working
directory is loaded first, so local development only needs that file.
"""

import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    port: int = 5000
    database_url: Optional[str] = None
    database_name: str = "canteen"
    database_timeout_ms: int = 5000
    stripe_secret_key: Optional[str] = None
    payment_currency: str = "bdt"
    require_db_on_startup: bool = False
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"


def get_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        port=int(os.getenv("PORT", 5000)),
        # MONGO_URI is the older name, still honoured
        database_url=os.getenv("DATABASE_URL") or os.getenv("MONGO_URI"),
        database_name=os.getenv("DATABASE_NAME", "canteen"),
        database_timeout_ms=int(os.getenv("DATABASE_TIMEOUT_MS", 5000)),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
        payment_currency=os.getenv("PAYMENT_CURRENCY", "bdt"),
        require_db_on_startup=_as_bool(os.getenv("REQUIRE_DB_ON_STARTUP")),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
