from fastapi import HTTPException, status
from fincare.database.models import User, AdminUser
from fincare.schemas import UserCreate, AdminCreate, AdminUpdate
from fincare.helpers.validators import parse_object_id
from fincare.core import hash_password, verify_password, create_access_token, create_admin_token, is_valid_password
from fincare.helpers.response_builder import serialize_document
from typing import Dict, List, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "super_admin")


def public_user(user: User) -> Dict:
    return serialize_document(user, exclude={"hashed_password"})


def public_admin(admin: AdminUser) -> Dict:
    return serialize_document(admin, exclude={"hashed_password"})


class AuthService:
    # Register a new customer after password and uniqueness checks
    @staticmethod
    async def register_user(user_data: UserCreate) -> Dict:
        if user_data.password != user_data.confirm_password:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Passwords do not match"
            )

        if not is_valid_password(user_data.password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password must be at least 8 characters long"
            )

        email = user_data.email.lower()
        existing_user = await User.find_one(User.email == email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists"
            )

        try:
            hashed_password = hash_password(user_data.password)
        except ValueError:
            logger.warning("Password hashing failed")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid password format"
            )

        new_user = User(
            email=email,
            first_name=user_data.first_name.strip(),
            last_name=user_data.last_name.strip(),
            other_name=(user_data.other_name or "").strip(),
            phone=user_data.phone.strip(),
            hashed_password=hashed_password,
            created_at=datetime.utcnow()
        )

        try:
            await new_user.insert()
            logger.debug("User saved with ID: %s", new_user.id)
        except Exception as e:
            logger.error("User save failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="User registration failed"
            )

        result = public_user(new_user)
        result["message"] = "User registered successfully"
        return result

    # Authenticate a customer and issue a bearer token
    @staticmethod
    async def login_user(email: str, password: str) -> Dict:
        user = await User.find_one(User.email == email.lower())

        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Failed login for email: %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        try:
            access_token = create_access_token(
                data={"sub": user.email, "user_id": str(user.id), "type": "customer"}
            )
        except ValueError as e:
            logger.error("Token creation failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not create access token"
            )

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": public_user(user)
        }

    @staticmethod
    async def get_user_by_email(email: str) -> Optional[Dict]:
        user = await User.find_one(User.email == email)
        if not user:
            return None
        return public_user(user)

    @staticmethod
    async def refresh_user_token(email: str) -> Dict:
        user = await User.find_one(User.email == email)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        try:
            access_token = create_access_token(
                data={"sub": user.email, "user_id": str(user.id), "type": "customer"}
            )
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not create access token"
            )

        return {
            "access_token": access_token,
            "token_type": "bearer"
        }

    # Authenticate a back-office user against admin_users
    @staticmethod
    async def login_admin(email: str, password: str) -> Dict:
        admin = await AdminUser.find_one(AdminUser.email == email.lower())

        if not admin or not verify_password(password, admin.hashed_password):
            logger.warning("Failed admin login for email: %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        if not admin.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        try:
            access_token = create_admin_token(
                data={"sub": admin.email, "admin_id": str(admin.id), "role": admin.role}
            )
        except ValueError as e:
            logger.error("Admin token creation failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not create access token"
            )

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": public_admin(admin)
        }

    @staticmethod
    async def get_admin_by_email(email: str) -> Optional[Dict]:
        admin = await AdminUser.find_one(AdminUser.email == email)
        if not admin:
            return None
        return public_admin(admin)

    @staticmethod
    async def create_admin(admin_data: AdminCreate, created_by: Optional[str] = None) -> Dict:
        if not is_valid_password(admin_data.password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password must be at least 8 characters long"
            )

        email = admin_data.email.lower()
        if await AdminUser.find_one(AdminUser.email == email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Admin with this email already exists"
            )

        admin = AdminUser(
            email=email,
            full_name=admin_data.full_name,
            hashed_password=hash_password(admin_data.password),
            role=admin_data.role,
            permissions=admin_data.permissions,
            created_by=created_by,
        )
        await admin.insert()
        logger.info("Admin %s created with role %s", email, admin.role)
        return public_admin(admin)

    @staticmethod
    async def list_admins() -> List[Dict]:
        admins = await AdminUser.find({}).sort("-created_at").to_list()
        return [public_admin(a) for a in admins]

    @staticmethod
    async def _get_admin(admin_id: str) -> AdminUser:
        admin = await AdminUser.find_one({"_id": parse_object_id(admin_id, "user ID")})
        if not admin:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )
        return admin

    @staticmethod
    async def update_admin(admin_id: str, admin_data: AdminUpdate) -> Dict:
        admin = await AuthService._get_admin(admin_id)
        changes = admin_data.model_dump(exclude_unset=True)

        if changes.get("email"):
            changes["email"] = changes["email"].lower()
            clash = await AdminUser.find_one({"email": changes["email"], "_id": {"$ne": admin.id}})
            if clash:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Admin with this email already exists"
                )

        for field, value in changes.items():
            if value is not None:
                setattr(admin, field, value)
        admin.updated_at = datetime.utcnow()
        await admin.save()
        return public_admin(admin)

    # An admin cannot delete or deactivate their own account
    @staticmethod
    async def delete_admin(admin_id: str, acting_email: str) -> Dict:
        admin = await AuthService._get_admin(admin_id)
        if admin.email == acting_email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot delete your own account"
            )
        await admin.delete()
        logger.info("Admin %s deleted by %s", admin.email, acting_email)
        return {"message": "User deleted successfully"}

    @staticmethod
    async def set_admin_active(admin_id: str, action: str, acting_email: str) -> Dict:
        if action not in ("suspend", "reactivate"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid action. Use 'suspend' or 'reactivate'"
            )
        admin = await AuthService._get_admin(admin_id)
        if admin.email == acting_email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot suspend your own account"
            )

        admin.is_active = action == "reactivate"
        admin.updated_at = datetime.utcnow()
        await admin.save()
        past = "reactivated" if admin.is_active else "suspended"
        return {"message": f"User {past} successfully", "user": public_admin(admin)}


auth_service = AuthService()
