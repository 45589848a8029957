"""
Pytest configuration and fixtures for backend testing.

Provides an in-memory database, the FastAPI test client, authenticated
headers for two separate organizations, and sample property, unit, tenant
and vendor data.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from typing import Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from building_manager.api.main import app
from building_manager.database.connection import build_engine, create_tables, drop_tables, get_db

API = "/api/v1"


@pytest.fixture(scope="session")
def engine():
    """In-memory SQLite engine shared by every connection."""
    return build_engine("sqlite://")


@pytest.fixture(scope="function")
def session_factory(engine):
    """Fresh schema for each test."""
    create_tables(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    drop_tables(engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Session for setting up or inspecting data directly."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """Create FastAPI test client with database dependency override."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client: TestClient, email: str, organization_name: str,
             password: str = "AdminPass123") -> Dict:
    response = client.post(f"{API}/auth/register", json={
        "email": email,
        "password": password,
        "first_name": "Admin",
        "last_name": "User",
        "organization_name": organization_name,
    })
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def registration(client) -> Dict:
    """Registered administrator of the main test organization."""
    return register(client, "admin@example.com", "Acme Properties")


@pytest.fixture
def auth_headers(registration) -> Dict[str, str]:
    """Authentication headers for the main organization's admin."""
    return bearer(registration["access_token"])


@pytest.fixture
def other_org_headers(client) -> Dict[str, str]:
    """Authentication headers for an unrelated organization."""
    return bearer(register(client, "owner@other.example.com", "Other Estates")["access_token"])


@pytest.fixture
def manager_headers(client, auth_headers) -> Dict[str, str]:
    """Authentication headers for a property manager in the main organization."""
    response = client.post(f"{API}/users/", headers=auth_headers, json={
        "email": "manager@example.com",
        "password": "Manager123",
        "first_name": "Pat",
        "last_name": "Manager",
        "role": "PROPERTY_MANAGER",
    })
    assert response.status_code == 201, response.text
    login = client.post(f"{API}/auth/login", json={"email": "manager@example.com", "password": "Manager123"})
    return bearer(login.json()["access_token"])


@pytest.fixture
def sample_property(client, auth_headers) -> Dict:
    response = client.post(f"{API}/properties/", headers=auth_headers, json={
        "name": "Marina Heights",
        "address": "1 Harbour Road",
        "property_type": "Residential",
        "total_units": 40,
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def sample_unit(client, auth_headers, sample_property) -> Dict:
    response = client.post(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers, json={
        "unit_number": "101",
        "floor": 1,
        "bedrooms": 2,
        "bathrooms": 2,
        "monthly_rent": "5000.00",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def tenant_payload(sample_property, sample_unit) -> Dict:
    """Merged onboarding payload for a one-year lease starting today."""
    today = date.today()
    return {
        "first_name": "Layla",
        "last_name": "Hassan",
        "email": "layla.hassan@example.com",
        "phone": "+971500000001",
        "date_of_birth": (today - timedelta(days=30 * 365)).isoformat(),
        "national_id": "784-1990-1234567-1",
        "nationality": "Emirati",
        "property_id": sample_property["id"],
        "unit_id": sample_unit["id"],
        "lease_start_date": today.isoformat(),
        "lease_end_date": (today + relativedelta(years=1)).isoformat(),
        "base_rent": "5000.00",
        "admin_fee": "250.00",
        "service_charge": "300.00",
        "security_deposit": "5000.00",
        "parking_spots": 2,
        "parking_fee_per_spot": "150.00",
        "payment_frequency": "MONTHLY",
        "payment_due_date": 5,
        "payment_method": "BANK_TRANSFER",
    }


@pytest.fixture
def sample_tenant(client, auth_headers, tenant_payload) -> Dict:
    response = client.post(f"{API}/tenants/", headers=auth_headers, json=tenant_payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def vendor_payload() -> Dict:
    return {
        "company_name": "CoolAir Services",
        "contact_person_name": "Omar Khan",
        "email": "jobs@coolair.example.com",
        "phone": "+971500000099",
        "service_categories": ["HVAC", "ELECTRICAL"],
        "service_areas": ["Dubai Marina"],
        "hourly_rate": "120.00",
        "payment_terms": "NET_30",
    }


@pytest.fixture
def sample_vendor(client, auth_headers, vendor_payload) -> Dict:
    response = client.post(f"{API}/vendors/", headers=auth_headers, json=vendor_payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def sample_work_order(client, auth_headers, sample_property, sample_unit) -> Dict:
    response = client.post(f"{API}/work-orders/", headers=auth_headers, json={
        "property_id": sample_property["id"],
        "unit_id": sample_unit["id"],
        "category": "HVAC",
        "priority": "HIGH",
        "title": "AC not cooling",
        "description": "Living room unit blows warm air",
    })
    assert response.status_code == 201, response.text
    return response.json()


def complete_work_order(client: TestClient, headers: Dict[str, str], work_order_id: str, vendor_id: str,
                        total_cost: str = "450.00") -> Dict:
    """Drive a work order through assign, start and complete."""
    base = f"{API}/work-orders/{work_order_id}"
    assert client.post(f"{base}/assign", headers=headers, json={"vendor_id": vendor_id}).status_code == 200
    assert client.post(f"{base}/start", headers=headers).status_code == 200
    response = client.post(f"{base}/complete", headers=headers, json={
        "completion_notes": "Replaced faulty part",
        "hours_spent": "3.5",
        "total_cost": total_cost,
    })
    assert response.status_code == 200, response.text
    return response.json()
