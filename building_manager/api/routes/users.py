"""
User management API routes.

Provides endpoints for staff user CRUD operations and role management
within the caller's organization.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import func
from uuid import UUID

from ...database.connection import get_db
from ...database.models import User, UserRole
from ...schemas.user import (
    UserCreateRequest, UserUpdateRequest, UserRoleUpdateRequest,
    UserResponse, UsersListResponse
)
from ...auth.dependencies import (
    get_current_user, get_current_admin_user, get_org_filter, CurrentUser, OrganizationFilter
)
from ...auth.jwt_handler import PasswordHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _get_org_user(db: Session, org_filter: OrganizationFilter, user_id: UUID) -> User:
    user = db.query(User).filter(
        User.id == user_id,
        User.organization_id == org_filter.organization_id
    ).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


# PUBLIC_INTERFACE
@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
            summary="Create new user",
            description="Create a staff user within the current organization (admin only).")
async def create_user(
    request: UserCreateRequest,
    current_user: CurrentUser = Depends(get_current_admin_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a new staff user.

    Emails are unique across the whole system since they identify the
    login.
    """
    email = request.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    if not PasswordHandler.validate_password_strength(request.password):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Password does not meet requirements"
        )

    user = User(
        organization_id=org_filter.organization_id,
        email=email,
        password_hash=PasswordHandler.hash_password(request.password),
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s with role %s", user.email, user.role.value)

    return UserResponse.model_validate(user)


# PUBLIC_INTERFACE
@router.get("/", response_model=UsersListResponse,
           summary="List users",
           description="Get a paginated list of users in the current organization (admin only).")
async def list_users(
    active: Optional[bool] = Query(None, description="Filter by active status"),
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    q: Optional[str] = Query(None, description="Search query for name or email"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_admin_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List users in the current organization.
    """
    query = org_filter.filter_query(db.query(User), User)

    if active is not None:
        query = query.filter(User.active == active)

    if role:
        query = query.filter(User.role == role)

    if q:
        query = query.filter(
            (User.first_name.ilike(f"%{q}%")) |
            (User.last_name.ilike(f"%{q}%")) |
            (User.email.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    users = query.order_by(User.created_at).offset(offset).limit(per_page).all()

    active_count = db.query(func.count(User.id)).filter(
        User.organization_id == org_filter.organization_id,
        User.active == True
    ).scalar() or 0

    admin_count = db.query(func.count(User.id)).filter(
        User.organization_id == org_filter.organization_id,
        User.role == UserRole.ADMIN
    ).scalar() or 0

    return UsersListResponse(
        items=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        per_page=per_page,
        active_count=active_count,
        admin_count=admin_count
    )


# PUBLIC_INTERFACE
@router.get("/{user_id}", response_model=UserResponse,
           summary="Get user details",
           description="Get detailed information about a specific user.")
async def get_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get user details.

    Users can view their own profile, admins can view any user in the organization.
    """
    if user_id != current_user.user_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot view other user's profile"
        )

    return UserResponse.model_validate(_get_org_user(db, org_filter, user_id))


# PUBLIC_INTERFACE
@router.put("/{user_id}", response_model=UserResponse,
           summary="Update user",
           description="Update user information (admin only or own profile).")
async def update_user(
    user_id: UUID,
    request: UserUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update user information.
    """
    if user_id != current_user.user_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot modify other user's profile"
        )

    user = _get_org_user(db, org_filter, user_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return UserResponse.model_validate(user)


# PUBLIC_INTERFACE
@router.put("/{user_id}/role", response_model=UserResponse,
           summary="Update user role",
           description="Update a user's role within the organization (admin only).")
async def update_user_role(
    user_id: UUID,
    request: UserRoleUpdateRequest,
    current_user: CurrentUser = Depends(get_current_admin_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update user role.

    Administrators cannot demote themselves so the organization always
    keeps an admin.
    """
    user = _get_org_user(db, org_filter, user_id)
    if user.id == current_user.user_id and request.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove your own admin role"
        )

    user.role = request.role
    db.commit()
    db.refresh(user)
    logger.info("Changed role of user %s to %s", user.email, user.role.value)
    return UserResponse.model_validate(user)


# PUBLIC_INTERFACE
@router.post("/{user_id}/deactivate", response_model=UserResponse,
            summary="Deactivate user",
            description="Deactivate a user account (admin only).")
async def deactivate_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_admin_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Deactivate a user.

    Deactivated users can no longer log in or use existing tokens.
    """
    if user_id == current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate your own account"
        )

    user = _get_org_user(db, org_filter, user_id)
    user.active = False
    user.deactivated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info("Deactivated user %s", user.email)
    return UserResponse.model_validate(user)
