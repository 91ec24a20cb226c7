from typing import Any


def items(payload: Any) -> list[Any]:
    """ActivePieces list endpoints answer either a bare list or ``{"data": [...]}``."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return []
