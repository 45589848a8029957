"""
Authentication dependencies for FastAPI endpoints.

Provides dependency functions for extracting user information, organization
context, and enforcing authentication/authorization requirements.
"""
from typing import Optional
from fastapi import Depends, HTTPException, status, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from uuid import UUID

from ..database.connection import get_db
from ..database.models import Organization, User, UserRole
from .jwt_handler import JWTHandler

security = HTTPBearer()


class CurrentUser:
    """Current user information from JWT token."""

    def __init__(self, user_id: UUID, organization_id: UUID, email: str, role: str):
        self.user_id = user_id
        self.organization_id = organization_id
        self.email = email
        self.role = role
        self.is_admin = role == UserRole.ADMIN.value


# PUBLIC_INTERFACE
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP authorization credentials
        db: Database session

    Returns:
        CurrentUser: Current user information

    Raises:
        HTTPException: If token is invalid or user not found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = JWTHandler.verify_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    organization_id = payload.get("organization_id")
    if user_id is None or organization_id is None:
        raise credentials_exception

    try:
        user_uuid = UUID(user_id)
        organization_uuid = UUID(organization_id)
    except (TypeError, ValueError):
        raise credentials_exception

    # Deactivated users lose access even with an unexpired token
    user = db.query(User).filter(User.id == user_uuid, User.active == True).first()
    if not user:
        raise credentials_exception

    return CurrentUser(
        user_id=user_uuid,
        organization_id=organization_uuid,
        email=payload.get("email"),
        role=user.role.value
    )


# PUBLIC_INTERFACE
async def get_current_admin_user(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Get current user and ensure they have admin role.

    Raises:
        HTTPException: If user is not admin
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )
    return current_user


# PUBLIC_INTERFACE
async def get_organization_context(
    x_organization_id: Optional[str] = Header(None, alias="X-Organization-ID"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Organization:
    """
    Get organization context from header or current user.

    Args:
        x_organization_id: Organization ID from header
        current_user: Current authenticated user
        db: Database session

    Returns:
        Organization: Organization object

    Raises:
        HTTPException: If organization not found or access denied
    """
    if x_organization_id:
        try:
            organization_id = UUID(x_organization_id)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid X-Organization-ID header"
            )
    else:
        organization_id = current_user.organization_id

    # Users belong to exactly one organization
    if organization_id != current_user.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access to this organization is not allowed"
        )

    organization = db.query(Organization).filter(
        Organization.id == organization_id,
        Organization.active == True
    ).first()
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )

    return organization


class OrganizationFilter:
    """Helper class for applying organization-based filtering to database queries."""

    def __init__(self, organization_id: UUID):
        self.organization_id = organization_id

    def filter_query(self, query, model_class):
        """Apply organization filter to a SQLAlchemy query."""
        return query.filter(model_class.organization_id == self.organization_id)


# PUBLIC_INTERFACE
async def get_org_filter(
    organization: Organization = Depends(get_organization_context)
) -> OrganizationFilter:
    """
    Get organization filter for database queries.

    Args:
        organization: Current organization context

    Returns:
        OrganizationFilter: Organization filter utility
    """
    return OrganizationFilter(organization.id)
