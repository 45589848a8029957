"""
JWT token handling for authentication and authorization.

Provides utilities for creating, validating, and decoding JWT tokens
with organization and user information, plus password hashing.
"""
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from uuid import UUID

# Configuration
SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours default
PASSWORD_RESET_EXPIRE_HOURS = 1

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class JWTHandler:
    """JWT token handler for authentication."""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Args:
            data: Token payload data
            expires_delta: Token expiration delta

        Returns:
            str: Encoded JWT token
        """
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token to verify

        Returns:
            Optional[Dict[str, Any]]: Token payload if valid, None if invalid
        """
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if payload.get("type") != "access":
            return None
        return payload

    @staticmethod
    def create_user_token(user_id: UUID, organization_id: UUID, email: str, role: str) -> str:
        """
        Create a JWT token for a user.

        Args:
            user_id: User ID
            organization_id: Organization the user works in
            email: User email
            role: User role

        Returns:
            str: JWT token
        """
        data = {
            "sub": str(user_id),
            "organization_id": str(organization_id),
            "email": email,
            "role": role,
            "type": "access"
        }
        return JWTHandler.create_access_token(data)

    @staticmethod
    def generate_reset_token() -> str:
        """Random opaque token stored server side for password resets."""
        return secrets.token_urlsafe(32)


class PasswordHandler:
    """Password handling utilities."""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password."""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> bool:
        """
        Validate password strength.

        Passwords need at least 8 characters with at least one letter and one digit.
        """
        if len(password) < 8:
            return False
        return any(c.isalpha() for c in password) and any(c.isdigit() for c in password)
