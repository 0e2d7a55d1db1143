from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, Any
import logging

from fincare.schemas import ProfileUpdate
from fincare.services.customer_service import customer_service
from fincare.core.auth_dependencies import get_current_user

router = APIRouter(prefix="/profile", tags=["Profile"])

logger = logging.getLogger(__name__)


def _ensure_self(profile_id: str, current_user: Dict) -> None:
    if profile_id != current_user["id"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only access your own profile")


# The caller's account with savings, investments, loans and auctions
@router.get("")
async def my_profile(current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return await customer_service.get_profile(current_user["id"])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching profile for %s: %s", current_user["id"], e)
        raise HTTPException(status_code=500, detail="Failed to fetch profile")


@router.get("/{profile_id}")
async def get_profile(profile_id: str, current_user: Dict = Depends(get_current_user)) -> Dict[str, Any]:
    _ensure_self(profile_id, current_user)
    try:
        profile = await customer_service.get_profile(profile_id)
        return {"user": profile["user"]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching profile %s: %s", profile_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch profile")


@router.put("/{profile_id}")
async def update_profile(
    profile_id: str,
    data: ProfileUpdate,
    current_user: Dict = Depends(get_current_user),
) -> Dict[str, Any]:
    _ensure_self(profile_id, current_user)
    try:
        return await customer_service.update_profile(profile_id, data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error updating profile %s: %s", profile_id, e)
        raise HTTPException(status_code=500, detail="Failed to update profile")
