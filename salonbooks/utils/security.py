"""
Bearer token handling.

Tokens are issued by the external auth service; this module only verifies
them and turns the claims into the acting user passed to every posting call.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from salonbooks.config import settings
from salonbooks.constants import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActingUser:
    """Identity of the caller, recorded as creator on every ledger write"""
    id: str
    role: str = Role.STAFF.value

    def has_role(self, *roles: str) -> bool:
        # Owners have full access
        return self.role == Role.OWNER.value or self.role in roles


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str) -> Optional[dict]:
    """Return the token claims, or None when the token is invalid or expired"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        return None

    if not payload.get("sub"):
        return None
    return payload
