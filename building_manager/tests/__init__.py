"""
Test package for the building manager backend application.

This package contains test suites for:
- Authentication, roles and organization isolation
- Properties, units and tenant onboarding
- Lease extensions, renewals and invoicing
- Vendors, work orders, assets and preventive maintenance
- Compliance, announcements and the daily jobs
"""
