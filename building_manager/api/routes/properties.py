"""
Property and unit API routes.

Provides endpoints for managing buildings and the units inside them.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Property, Unit, UnitStatus
from ...schemas.property import (
    PropertyCreateRequest, PropertyUpdateRequest, PropertyResponse, PropertiesListResponse,
    UnitCreateRequest, UnitStatusUpdateRequest, UnitResponse, UnitsListResponse
)
from ...auth.dependencies import get_current_user, get_org_filter, CurrentUser, OrganizationFilter

router = APIRouter(prefix="/properties", tags=["Properties"])


def _get_property(db: Session, org_filter: OrganizationFilter, property_id: UUID) -> Property:
    prop = db.query(Property).filter(
        Property.id == property_id,
        Property.organization_id == org_filter.organization_id
    ).first()
    if not prop:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found"
        )
    return prop


def _get_unit(db: Session, org_filter: OrganizationFilter, unit_id: UUID) -> Unit:
    unit = db.query(Unit).filter(
        Unit.id == unit_id,
        Unit.organization_id == org_filter.organization_id
    ).first()
    if not unit:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unit not found"
        )
    return unit


# PUBLIC_INTERFACE
@router.post("/", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED,
            summary="Create property",
            description="Create a new property within the current organization.")
async def create_property(
    request: PropertyCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a new property.

    Property names must be unique within the organization.
    """
    existing = db.query(Property).filter(
        Property.organization_id == org_filter.organization_id,
        Property.name == request.name
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Property with this name already exists"
        )

    prop = Property(organization_id=org_filter.organization_id, **request.model_dump())
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


# PUBLIC_INTERFACE
@router.get("/", response_model=PropertiesListResponse,
           summary="List properties",
           description="Get a paginated list of properties with optional filtering.")
async def list_properties(
    active: Optional[bool] = Query(None, description="Filter by active status"),
    q: Optional[str] = Query(None, description="Search query for name or address"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List properties in the current organization.
    """
    query = org_filter.filter_query(db.query(Property), Property)
    if active is not None:
        query = query.filter(Property.active == active)
    if q:
        query = query.filter(
            (Property.name.ilike(f"%{q}%")) |
            (Property.address.ilike(f"%{q}%"))
        )

    total = query.count()
    offset = (page - 1) * per_page
    properties = query.order_by(Property.name).offset(offset).limit(per_page).all()

    return PropertiesListResponse(items=properties, total=total, page=page, per_page=per_page)


# PUBLIC_INTERFACE
@router.get("/{property_id}", response_model=PropertyResponse,
           summary="Get property details",
           description="Get information about a specific property.")
async def get_property(
    property_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get property details.
    """
    return _get_property(db, org_filter, property_id)


# PUBLIC_INTERFACE
@router.put("/{property_id}", response_model=PropertyResponse,
           summary="Update property",
           description="Update property information.")
async def update_property(
    property_id: UUID,
    request: PropertyUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update property information.

    Only provided fields will be updated.
    """
    prop = _get_property(db, org_filter, property_id)

    if request.name and request.name != prop.name:
        existing = db.query(Property).filter(
            Property.organization_id == org_filter.organization_id,
            Property.name == request.name,
            Property.id != property_id
        ).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Property with this name already exists"
            )

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(prop, field, value)

    db.commit()
    db.refresh(prop)
    return prop


# PUBLIC_INTERFACE
@router.post("/{property_id}/units", response_model=UnitResponse, status_code=status.HTTP_201_CREATED,
            summary="Create unit",
            description="Add a unit to a property.")
async def create_unit(
    property_id: UUID,
    request: UnitCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Create a unit inside a property.

    Unit numbers must be unique within the property.
    """
    prop = _get_property(db, org_filter, property_id)
    existing = db.query(Unit).filter(
        Unit.property_id == prop.id,
        Unit.unit_number == request.unit_number
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Unit with this number already exists in this property"
        )

    unit = Unit(organization_id=org_filter.organization_id, property_id=prop.id, **request.model_dump())
    db.add(unit)
    db.commit()
    db.refresh(unit)
    return unit


# PUBLIC_INTERFACE
@router.get("/{property_id}/units", response_model=UnitsListResponse,
           summary="List units",
           description="List the units of a property, optionally by status.")
async def list_units(
    property_id: UUID,
    unit_status: Optional[UnitStatus] = Query(None, alias="status", description="Filter by unit status"),
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    List units of a property.
    """
    prop = _get_property(db, org_filter, property_id)
    query = db.query(Unit).filter(Unit.property_id == prop.id)
    if unit_status:
        query = query.filter(Unit.status == unit_status)
    units = query.order_by(Unit.unit_number).all()
    return UnitsListResponse(items=units, total=len(units))


# PUBLIC_INTERFACE
@router.get("/units/{unit_id}", response_model=UnitResponse,
           summary="Get unit details",
           description="Get information about a specific unit.")
async def get_unit(
    unit_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Get unit details.
    """
    return _get_unit(db, org_filter, unit_id)


# PUBLIC_INTERFACE
@router.patch("/units/{unit_id}/status", response_model=UnitResponse,
             summary="Update unit status",
             description="Change a unit's availability status.")
async def update_unit_status(
    unit_id: UUID,
    request: UnitStatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    org_filter: OrganizationFilter = Depends(get_org_filter),
    db: Session = Depends(get_db)
):
    """
    Update unit status.
    """
    unit = _get_unit(db, org_filter, unit_id)
    unit.status = request.status
    db.commit()
    db.refresh(unit)
    return unit
