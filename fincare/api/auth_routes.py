from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict

from fincare.services.auth_service import auth_service
from fincare.schemas import UserCreate, UserLogin, UserResponse, Token, LoginResponse
from fincare.core.auth_dependencies import get_current_user
from fincare.services.audit_service import audit_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)


# Registers a new customer account
@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user_data: UserCreate) -> UserResponse:
    try:
        created_user = await auth_service.register_user(user_data)
        await audit_service.record("signup", actor=created_user.get("email"), acted=created_user.get("id"))
        return UserResponse(**created_user)
    except HTTPException:
        await audit_service.record("signup", actor=user_data.email, status="failed")
        raise
    except Exception as e:
        logger.error("Unexpected error during registration: %s", e)
        await audit_service.record("signup", actor=user_data.email, status="failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during registration"
        )


# Authenticates customer credentials and returns an access token
@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login_user(credentials: UserLogin) -> LoginResponse:
    try:
        token_data = await auth_service.login_user(credentials.email, credentials.password)
        await audit_service.record("login", actor=credentials.email)
        return LoginResponse(**token_data)
    except HTTPException:
        await audit_service.record("login", actor=credentials.email, status="failed")
        raise
    except Exception as e:
        logger.error("Unexpected error during login: %s", e)
        await audit_service.record("login", actor=credentials.email, status="failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during login"
        )


# Retrieves the authenticated customer's profile and balances
@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_current_user_info(current_user: Dict = Depends(get_current_user)) -> UserResponse:
    return UserResponse(**current_user)


# Generates a new access token for the authenticated customer
@router.post("/refresh", response_model=Token, status_code=status.HTTP_200_OK)
async def refresh_token(current_user: Dict = Depends(get_current_user)) -> Token:
    try:
        token_data = await auth_service.refresh_user_token(current_user["email"])
        return Token(**token_data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Unexpected error during token refresh: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during token refresh"
        )
