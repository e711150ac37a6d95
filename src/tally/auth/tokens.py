from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Any

from tally.core.errors import TokenError

HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _encode_part(payload: dict[str, Any]) -> str:
    return _b64encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))


class TokenSigner:
    """HS256 tokens in JWT compact form, bound to a subject (the order email)."""

    def __init__(self, secret: str, ttl_sec: int = 3600):
        if not secret:
            raise TokenError("Token secret is empty")
        self._key = secret.encode("utf-8")
        self.ttl_sec = ttl_sec

    def _signature(self, signing_input: str) -> str:
        digest = hmac.new(self._key, signing_input.encode("ascii"), hashlib.sha256).digest()
        return _b64encode(digest)

    def sign(self, subject: str, now: float | None = None) -> str:
        issued_at = int(now if now is not None else time.time())
        claims = {"sub": subject, "iat": issued_at, "exp": issued_at + self.ttl_sec}
        signing_input = f"{_encode_part(HEADER)}.{_encode_part(claims)}"
        return f"{signing_input}.{self._signature(signing_input)}"

    def verify(self, token: str, now: float | None = None) -> dict[str, Any]:
        try:
            header_part, claims_part, signature = token.split(".")
        except ValueError as exc:
            raise TokenError("Malformed token") from exc

        expected = self._signature(f"{header_part}.{claims_part}")
        if not hmac.compare_digest(expected, signature):
            raise TokenError("Bad token signature")

        try:
            claims = json.loads(_b64decode(claims_part))
        except ValueError as exc:
            raise TokenError("Malformed token claims") from exc

        current = now if now is not None else time.time()
        if claims.get("exp", 0) < current:
            raise TokenError("Token expired")
        return claims
