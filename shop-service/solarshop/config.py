# solarshop/config.py
import os
import logging
from typing import List
from dotenv import load_dotenv

# load .env for local runs
load_dotenv()


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


class Config:
    """Settings read from the environment"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is not set")

    # Sessions
    SECRET_KEY: str = os.getenv("SECRET_KEY", "devsecret")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

    # Admin allow-list, compared case-insensitively against the session email
    ADMIN_EMAILS: List[str] = [e.lower() for e in _split(os.getenv("ADMIN_EMAILS", ""))]

    # CORS
    ALLOW_ORIGINS: List[str] = [
        o.rstrip("/") for o in _split(os.getenv("ALLOW_ORIGINS", "http://localhost:3000"))
    ]

    # Paystack
    PAYSTACK_SECRET_KEY: str = os.getenv("PAYSTACK_SECRET_KEY", "")
    # Paystack signs webhooks with the secret key unless a separate one is configured
    PAYSTACK_WEBHOOK_SECRET: str = os.getenv("PAYSTACK_WEBHOOK_SECRET", PAYSTACK_SECRET_KEY)
    PAYSTACK_BASE_URL: str = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co").rstrip("/")
    PAYSTACK_CURRENCY: str = os.getenv("PAYSTACK_CURRENCY", "KES")
    PAYSTACK_TIMEOUT: float = float(os.getenv("PAYSTACK_TIMEOUT", 30))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


def setup_logging():
    """Configure logging settings"""
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
