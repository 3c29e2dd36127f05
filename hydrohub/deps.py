from typing import NamedTuple

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from hydrohub.util.security import decode_token

auth_scheme = HTTPBearer(auto_error=False)

ADMIN = "admin"
OWNER = "owner"
ONSITE = "onsite"
DELIVERY = "delivery"
CUSTOMER = "customer"
STAFF_ROLES = (ONSITE, DELIVERY)


class Principal(NamedTuple):
    id: str
    role: str


def require_auth(creds: HTTPAuthorizationCredentials | None = Depends(auth_scheme)) -> Principal:
    if not creds:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        data = decode_token(creds.credentials)
        return Principal(id=data["sub"], role=data["role"])
    except (jwt.PyJWTError, KeyError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def require_role(*roles: str):
    def _dep(me: Principal = Depends(require_auth)) -> Principal:
        # Admin shortcut: administrators pass every role gate
        if me.role == ADMIN or me.role in roles:
            return me
        raise HTTPException(status_code=403, detail=f"Role not allowed: {me.role}")
    return _dep


require_admin = require_role()
