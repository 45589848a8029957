"""
Business logic layer.

Services take a SQLAlchemy session and an organization id, enforce the
domain rules, and raise ServiceError subclasses that the API layer maps
to HTTP responses.
"""
