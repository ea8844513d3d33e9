from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Mapping


logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"


def verify_get_request(params: Mapping[str, str | None], expected_token: str) -> str | None:
    """Return the challenge to echo when the subscription handshake matches, else None."""
    mode = params.get("hub.mode")
    token = params.get("hub.verify_token")
    if mode != "subscribe" or not expected_token or not token:
        return None
    if not hmac.compare_digest(token, expected_token):
        return None
    return params.get("hub.challenge") or ""


def sign_body(body: bytes, app_secret: str) -> str:
    return "sha256=" + hmac.new(app_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_post_signature(
    body: bytes,
    signature_header: str | None,
    app_secret: str | None,
    allow_unsigned: bool = False,
) -> bool:
    """
    Check the platform's HMAC-SHA256 body signature.

    allow_unsigned lets local runs through when there is no header or no
    secret configured; a present but wrong signature is always rejected.
    """
    if not signature_header or not app_secret:
        if allow_unsigned:
            logger.warning("Unsigned webhook accepted (dev mode)")
            return True
        if not app_secret:
            logger.error("Missing app secret for signature verification")
        return False

    algo, _, signature = signature_header.partition("=")
    if algo.lower() != "sha256" or not signature:
        return False
    expected = sign_body(body, app_secret).split("=", 1)[1]
    return hmac.compare_digest(expected, signature)
