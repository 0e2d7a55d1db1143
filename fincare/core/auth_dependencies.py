from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from fincare.core.config import settings
from fincare.core.security import decode_token
from fincare.services.auth_service import auth_service, ADMIN_ROLES
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# Extracts and validates the bearer token to retrieve the current customer
async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> Dict:
    if not token:
        raise _credentials_exception("Not authenticated")

    payload = decode_token(token)
    if payload is None:
        logger.warning("Token validation failed")
        raise _credentials_exception()

    email = payload.get("sub")
    if email is None or payload.get("type") == "admin":
        logger.debug("Token has no customer subject")
        raise _credentials_exception()

    user = await auth_service.get_user_by_email(email)
    if user is None:
        raise _credentials_exception()

    return user


# Reads the admin token from the Authorization header or the session cookie
async def get_current_admin(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Dict:
    token = token or request.cookies.get(settings.ADMIN_SESSION_COOKIE)
    if not token:
        raise _credentials_exception("Not authenticated")

    payload = decode_token(token)
    if payload is None or payload.get("type") != "admin":
        logger.warning("Admin token validation failed")
        raise _credentials_exception()

    if payload.get("role") not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")

    admin = await auth_service.get_admin_by_email(payload.get("sub"))
    if admin is None or not admin.get("is_active", True):
        raise _credentials_exception()
    if admin.get("role") not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")

    return admin


async def get_super_admin(current_admin: Dict = Depends(get_current_admin)) -> Dict:
    if current_admin.get("role") != "super_admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin privileges required")
    return current_admin
