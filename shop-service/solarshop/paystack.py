# solarshop/paystack.py
import hashlib
import hmac
import logging
import uuid
from typing import Any, Dict, Optional

import requests

from .config import Config
from .errors import Internal, InvalidRequest

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


def to_minor_units(amount: float) -> int:
    """Paystack expects the smallest currency unit (cents, kobo, pesewas)."""
    return int(round(amount * 100))


def make_reference(db_order_id: Optional[Any] = None) -> str:
    return f"BOS_{db_order_id or 'ORDER'}_{uuid.uuid4()}"


def sign(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature or not secret:
        return False
    return hmac.compare_digest(sign(body, secret), signature)


def initialize_transaction(amount: float, email: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Start a Paystack transaction and return its ``data`` object.

    The response carries ``authorization_url``, ``access_code`` and
    ``reference``. Failures are not retried.
    """
    if not amount or amount <= 0 or not email:
        raise InvalidRequest("Valid amount and email are required.")

    metadata = metadata or {}
    payload = {
        "amount": to_minor_units(amount),
        "email": email,
        "currency": Config.PAYSTACK_CURRENCY,
        "reference": make_reference(metadata.get("db_order_id")),
        "metadata": metadata,
    }

    try:
        response = requests.post(
            f"{Config.PAYSTACK_BASE_URL}/transaction/initialize",
            json=payload,
            headers={
                "Authorization": f"Bearer {Config.PAYSTACK_SECRET_KEY}",
                "Content-Type": "application/json",
            },
            timeout=Config.PAYSTACK_TIMEOUT,
        )
        body = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error(f"Paystack initialize request failed: {exc}")
        raise Internal("Paystack initialization failed.")

    if not isinstance(body, dict):
        logger.error(f"Paystack initialize returned an unexpected body: {body!r}")
        raise Internal("Paystack initialization failed.")

    data = body.get("data") or {}
    if not isinstance(data, dict):
        data = {}
    if not response.ok or not body.get("status") or not data.get("authorization_url"):
        logger.error(f"Paystack initialization was not successful: {body.get('message')}")
        raise Internal("Paystack initialization failed.")

    return data
