import hashlib
import hmac
from typing import Mapping

SIGNATURE_HEADERS = ("x-webhook-signature", "x-hub-signature-256")


def compute_signature(secret: str, body: bytes | str) -> str:
    """Hex HMAC-SHA256 of the raw body."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def _strip_scheme(header: str) -> str:
    # "sha256=<hex>" as sent by GitHub-style senders
    return header.split("=", 1)[1] if "=" in header else header


def verify_signature(secret: str, body: bytes | str, header: str) -> bool:
    expected = compute_signature(secret, body)
    received = _strip_scheme(header.strip()).encode("utf-8")
    return hmac.compare_digest(received, expected.encode("ascii"))


def extract_signature(headers: Mapping[str, str]) -> str | None:
    """Signature sent with an incoming request, if any."""
    lowered = {k.lower(): v for k, v in headers.items()}
    for name in SIGNATURE_HEADERS:
        if lowered.get(name):
            return lowered[name]
    auth = lowered.get("authorization")
    if auth and auth.startswith("Bearer "):
        return auth[len("Bearer "):]
    return None
