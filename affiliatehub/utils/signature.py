"""
Webhook signature verification.
"""

import hashlib
import hmac


def sign_payload(payload: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of a request body."""
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_webhook_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify the HMAC signature sent with a conversion webhook.

    Prevents fake conversion events from being credited to partners.
    """
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(payload, secret), signature.strip().lower())
