"""
Shared route dependencies: unit of work, acting user and role checks.
"""

import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from salonbooks.constants import Role
from salonbooks.database import get_db
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.security import ActingUser, verify_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> ActingUser:
    """Get the acting user from the bearer token issued by the auth service"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return ActingUser(id=str(payload["sub"]), role=payload.get("role") or Role.STAFF.value)


def require_role(*roles: str):
    """Dependency factory allowing only the given roles (owners always pass)"""

    def checker(current_user: ActingUser = Depends(get_current_user)) -> ActingUser:
        if not current_user.has_role(*roles):
            logger.warning(f"User {current_user.id} with role {current_user.role} denied; needs {roles}")
            raise HTTPException(status_code=403, detail="You do not have permission to perform this action")
        return current_user

    return checker
