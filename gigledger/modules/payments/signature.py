"""HMAC-SHA512 signatures over raw webhook bodies."""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(secret: str, raw_body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(secret: str, raw_body: bytes, provided: str | None) -> bool:
    """Compare the provided header value with our digest, byte for byte."""
    if not provided:
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode("ascii"), provided.encode("utf-8"))
