"""
Authentication API routes.

Provides endpoints for organization registration, login, password reset
and change, and token management.
"""
import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...database.models import User, Organization, PasswordResetToken, UserRole
from ...schemas.auth import (
    UserRegistrationRequest, UserLoginRequest, PasswordResetRequest,
    PasswordResetConfirm, ChangePasswordRequest,
    AuthResponse, RegistrationResponse, TokenRefreshResponse,
    UserInfo, OrganizationInfo
)
from ...schemas.common import StandardResponse
from ...auth.dependencies import get_current_user, CurrentUser
from ...auth.jwt_handler import JWTHandler, PasswordHandler, PASSWORD_RESET_EXPIRE_HOURS
from ...services.timeutils import as_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role.value,
        active=user.active,
        organization_id=user.organization_id
    )


# PUBLIC_INTERFACE
@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED,
            summary="Register new organization",
            description="Create a building-management organization together with its first administrator.")
async def register_user(
    request: UserRegistrationRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new organization and its administrator.

    The user becomes the ADMIN of the newly created organization and
    receives an access token straight away.
    """
    email = request.email.lower()
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    existing_org = db.query(Organization).filter(Organization.name == request.organization_name).first()
    if existing_org:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Organization with this name already exists"
        )

    organization = Organization(
        name=request.organization_name,
        settings={"timezone": "UTC", "currency": "AED"}
    )
    db.add(organization)
    db.flush()

    user = User(
        organization_id=organization.id,
        email=email,
        password_hash=PasswordHandler.hash_password(request.password),
        first_name=request.first_name,
        last_name=request.last_name,
        role=UserRole.ADMIN
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered organization '%s' with admin %s", organization.name, user.email)

    access_token = JWTHandler.create_user_token(
        user.id, organization.id, user.email, user.role.value
    )

    return RegistrationResponse(
        user=_user_info(user),
        organization=OrganizationInfo(id=organization.id, name=organization.name),
        access_token=access_token
    )


# PUBLIC_INTERFACE
@router.post("/login", response_model=AuthResponse,
            summary="User login",
            description="Authenticate user with email and password, returning an access token.")
async def login_user(
    request: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return an access token.
    """
    user = db.query(User).filter(User.email == request.email.lower(), User.active == True).first()
    if not user or not PasswordHandler.verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    organization = db.query(Organization).filter(
        Organization.id == user.organization_id,
        Organization.active == True
    ).first()
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User's organization is not active"
        )

    user.last_login = datetime.now(timezone.utc)
    db.commit()

    access_token = JWTHandler.create_user_token(
        user.id, organization.id, user.email, user.role.value
    )

    return AuthResponse(
        access_token=access_token,
        user=_user_info(user),
        organizations=[OrganizationInfo(id=organization.id, name=organization.name)]
    )


# PUBLIC_INTERFACE
@router.post("/refresh", response_model=TokenRefreshResponse,
            summary="Refresh access token",
            description="Issue a fresh access token for the authenticated user.")
async def refresh_token(
    current_user: CurrentUser = Depends(get_current_user)
):
    """
    Refresh the current access token.
    """
    access_token = JWTHandler.create_user_token(
        current_user.user_id, current_user.organization_id,
        current_user.email, current_user.role
    )
    return TokenRefreshResponse(access_token=access_token)


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserInfo,
           summary="Get current user",
           description="Get information about the currently authenticated user.")
async def get_current_user_info(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get current authenticated user information.
    """
    user = db.query(User).filter(User.id == current_user.user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return _user_info(user)


# PUBLIC_INTERFACE
@router.post("/change-password", response_model=StandardResponse,
            summary="Change password",
            description="Change the authenticated user's password.")
async def change_password(
    request: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Change password after checking the current one.
    """
    user = db.query(User).filter(User.id == current_user.user_id).first()
    if not user or not PasswordHandler.verify_password(request.current_password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    user.password_hash = PasswordHandler.hash_password(request.new_password)
    db.commit()
    return StandardResponse(message="Password changed successfully")


# PUBLIC_INTERFACE
@router.post("/password-reset-request", response_model=StandardResponse,
            summary="Request password reset",
            description="Create a single-use password reset token for the given email.")
async def request_password_reset(
    request: PasswordResetRequest,
    db: Session = Depends(get_db)
):
    """
    Request password reset for user.

    Always returns success to prevent email enumeration.
    """
    user = db.query(User).filter(User.email == request.email.lower(), User.active == True).first()
    if user:
        reset_token = PasswordResetToken(
            user_id=user.id,
            token=JWTHandler.generate_reset_token(),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=PASSWORD_RESET_EXPIRE_HOURS)
        )
        db.add(reset_token)
        db.commit()
        logger.info("Password reset requested for user %s", user.id)

    return StandardResponse(message="Password reset email sent")


# PUBLIC_INTERFACE
@router.post("/password-reset-confirm", response_model=StandardResponse,
            summary="Confirm password reset",
            description="Confirm password reset with token and set new password.")
async def confirm_password_reset(
    request: PasswordResetConfirm,
    db: Session = Depends(get_db)
):
    """
    Confirm password reset and set new password.
    """
    reset_token = db.query(PasswordResetToken).filter(
        PasswordResetToken.token == request.token,
        PasswordResetToken.used == False
    ).first()

    if not reset_token or as_utc(reset_token.expires_at) <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    user = db.query(User).filter(User.id == reset_token.user_id).first()
    user.password_hash = PasswordHandler.hash_password(request.new_password)
    reset_token.used = True
    db.commit()

    return StandardResponse(message="Password reset successful")
