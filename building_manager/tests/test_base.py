"""
Base test utilities and common patterns for backend testing.

Provides assertion helpers shared by the endpoint tests.
"""
from decimal import Decimal
from typing import Optional
from fastapi import status
from httpx import Response


class BaseAPITest:
    """Base class for API endpoint tests."""

    def assert_success_response(self, response: Response, expected_status: int = status.HTTP_200_OK):
        """Assert that response indicates success."""
        assert response.status_code == expected_status, response.text
        assert response.json() is not None

    def assert_error_response(self, response: Response, expected_status: int, expected_error: Optional[str] = None):
        """Assert that response indicates an error."""
        assert response.status_code == expected_status, response.text
        if expected_error:
            error_message = response.json().get("detail")
            assert expected_error in error_message

    def assert_validation_error(self, response: Response, field_name: Optional[str] = None):
        """Assert that response indicates a validation error."""
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY, response.text
        if field_name:
            errors = response.json()["detail"]
            field_errors = [error for error in errors if error.get("loc") and field_name in error["loc"]]
            assert len(field_errors) > 0

    def assert_unauthenticated(self, response: Response):
        """Missing credentials are refused with 401 or 403 depending on the FastAPI release."""
        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    def assert_unauthorized(self, response: Response):
        self.assert_error_response(response, status.HTTP_401_UNAUTHORIZED)

    def assert_forbidden(self, response: Response):
        self.assert_error_response(response, status.HTTP_403_FORBIDDEN)

    def assert_not_found(self, response: Response):
        self.assert_error_response(response, status.HTTP_404_NOT_FOUND)

    def assert_conflict(self, response: Response):
        self.assert_error_response(response, status.HTTP_409_CONFLICT)

    def assert_business_rule(self, response: Response, expected_error: Optional[str] = None):
        """Assert that a domain rule rejected the request."""
        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, expected_error)

    @staticmethod
    def assert_money(value, expected: str):
        """Decimal fields are serialized as strings."""
        assert Decimal(str(value)) == Decimal(expected)
