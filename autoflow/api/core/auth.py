from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> CurrentUser:
    """Caller identity as forwarded by the gateway in front of this service."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return CurrentUser(id=x_user_id, email=x_user_email)
