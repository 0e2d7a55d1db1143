from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import Dict, List

from fincare.core.config import settings
from fincare.core.auth_dependencies import get_current_admin, get_super_admin
from fincare.schemas import AdminLogin, AdminCreate, AdminUpdate, AccountAction
from fincare.services.auth_service import auth_service
from fincare.services.audit_service import audit_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Authentication"])


# Authenticates a back-office user and sets the admin session cookie
@router.post("/auth/login", status_code=status.HTTP_200_OK)
async def admin_login(credentials: AdminLogin, response: Response) -> Dict:
    try:
        token_data = await auth_service.login_admin(credentials.email, credentials.password)
    except HTTPException:
        await audit_service.record("admin_login", actor=credentials.email, status="failed")
        raise
    except Exception as e:
        logger.error("Unexpected error during admin login: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during login"
        )

    response.set_cookie(
        key=settings.ADMIN_SESSION_COOKIE,
        value=token_data["access_token"],
        httponly=True,
        samesite="lax",
        max_age=settings.ADMIN_TOKEN_EXPIRE_MINUTES * 60,
    )
    await audit_service.record("admin_login", actor=credentials.email)
    return token_data


@router.post("/auth/logout", status_code=status.HTTP_200_OK)
async def admin_logout(response: Response, current_admin: Dict = Depends(get_current_admin)) -> Dict:
    response.delete_cookie(settings.ADMIN_SESSION_COOKIE)
    await audit_service.record("admin_logout", actor=current_admin.get("email"))
    return {"message": "Logged out"}


@router.get("/auth/me", status_code=status.HTTP_200_OK)
async def admin_me(current_admin: Dict = Depends(get_current_admin)) -> Dict:
    return current_admin


# Creates another back-office account; super admins only
@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_admin_user(admin_data: AdminCreate, current_admin: Dict = Depends(get_super_admin)) -> Dict:
    try:
        created = await auth_service.create_admin(admin_data, created_by=current_admin.get("email"))
        await audit_service.record("create_admin", actor=current_admin.get("email"), acted=created.get("email"))
        return created
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error creating admin user: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create admin user")


@router.get("/users", status_code=status.HTTP_200_OK)
async def list_admin_users(current_admin: Dict = Depends(get_current_admin)) -> List[Dict]:
    try:
        return await auth_service.list_admins()
    except Exception as e:
        logger.error("Error listing admin users: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch admin users")


@router.put("/users/{admin_id}", status_code=status.HTTP_200_OK)
async def update_admin_user(admin_id: str, admin_data: AdminUpdate, current_admin: Dict = Depends(get_super_admin)) -> Dict:
    try:
        updated = await auth_service.update_admin(admin_id, admin_data)
        await audit_service.record("update_admin", actor=current_admin.get("email"), acted=admin_id)
        return {"message": "User updated successfully", "user": updated}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating admin user %s: %s", admin_id, e)
        raise HTTPException(status_code=500, detail="Failed to update admin user")


@router.delete("/users/{admin_id}", status_code=status.HTTP_200_OK)
async def delete_admin_user(admin_id: str, current_admin: Dict = Depends(get_super_admin)) -> Dict:
    try:
        result = await auth_service.delete_admin(admin_id, current_admin.get("email"))
        await audit_service.record("delete_admin", actor=current_admin.get("email"), acted=admin_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error deleting admin user %s: %s", admin_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete admin user")


# Suspend or reactivate a back-office account through is_active
@router.patch("/users/{admin_id}", status_code=status.HTTP_200_OK)
async def set_admin_user_status(admin_id: str, payload: AccountAction, current_admin: Dict = Depends(get_super_admin)) -> Dict:
    try:
        result = await auth_service.set_admin_active(admin_id, payload.action, current_admin.get("email"))
        await audit_service.record(f"{payload.action}_admin", actor=current_admin.get("email"), acted=admin_id)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error changing status of admin user %s: %s", admin_id, e)
        raise HTTPException(status_code=500, detail="Failed to update admin user")
