"""
Pydantic schemas for API request/response validation.

Provides data models for all API endpoints including authentication,
properties, tenant onboarding, leases, invoicing, vendors, assets,
work orders, preventive maintenance, compliance, and announcements.
"""
