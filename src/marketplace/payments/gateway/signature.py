"""Callback signature scheme shared by all gateway adapters."""

import hashlib
import hmac


def sign(secret: str, intent_id: str, payment_id: str) -> str:
    message = f"{intent_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def signature_matches(secret: str, intent_id: str, payment_id: str, signature: str | None) -> bool:
    """Constant-time comparison of ``signature`` against the expected digest."""
    if not secret or not signature:
        return False
    expected = sign(secret, intent_id or "", payment_id or "")
    return hmac.compare_digest(expected.encode(), signature.encode())
