"""
SQLAlchemy database models for the building manager.

Defines all database tables and relationships for organizations, users,
properties, tenants, leases, invoices, post-dated cheques, vendors, assets,
work orders, preventive maintenance, compliance, and announcements.
"""
import uuid
from datetime import date, datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Date, Text, Numeric,
    ForeignKey, JSON, UniqueConstraint, Index, Enum, Uuid
)
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    """User roles within an organization."""
    ADMIN = "ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    MAINTENANCE_SUPERVISOR = "MAINTENANCE_SUPERVISOR"
    FINANCE_MANAGER = "FINANCE_MANAGER"


class UnitStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    OCCUPIED = "OCCUPIED"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"


class TenantStatus(str, enum.Enum):
    """Lifecycle of a renter's lease."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CARD = "CARD"
    CHEQUE = "CHEQUE"
    PDC = "PDC"
    ONLINE = "ONLINE"


class RentAdjustmentType(str, enum.Enum):
    NO_CHANGE = "NO_CHANGE"
    PERCENTAGE = "PERCENTAGE"
    FLAT = "FLAT"
    CUSTOM = "CUSTOM"


class RenewalType(str, enum.Enum):
    FIXED_TERM = "FIXED_TERM"
    MONTH_TO_MONTH = "MONTH_TO_MONTH"
    YEARLY = "YEARLY"


class RenewalTerm(str, enum.Enum):
    TWELVE_MONTHS = "12_MONTHS"
    TWENTY_FOUR_MONTHS = "24_MONTHS"
    OTHER = "OTHER"


class RenewalRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PDCStatus(str, enum.Enum):
    """Post-dated cheque lifecycle from receipt to clearance or bounce."""
    RECEIVED = "RECEIVED"
    DUE = "DUE"
    DEPOSITED = "DEPOSITED"
    CLEARED = "CLEARED"
    BOUNCED = "BOUNCED"
    REPLACED = "REPLACED"
    WITHDRAWN = "WITHDRAWN"
    CANCELLED = "CANCELLED"


class VendorStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class VendorDocumentType(str, enum.Enum):
    TRADE_LICENSE = "TRADE_LICENSE"
    INSURANCE = "INSURANCE"
    CERTIFICATION = "CERTIFICATION"
    ID_COPY = "ID_COPY"


class AssetCategory(str, enum.Enum):
    HVAC = "HVAC"
    ELEVATOR = "ELEVATOR"
    GENERATOR = "GENERATOR"
    WATER_PUMP = "WATER_PUMP"
    FIRE_SYSTEM = "FIRE_SYSTEM"
    SECURITY_SYSTEM = "SECURITY_SYSTEM"
    ELECTRICAL_PANEL = "ELECTRICAL_PANEL"
    PLUMBING_FIXTURE = "PLUMBING_FIXTURE"
    APPLIANCE = "APPLIANCE"
    OTHER = "OTHER"


class AssetStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    DISPOSED = "DISPOSED"


class WorkOrderCategory(str, enum.Enum):
    PLUMBING = "PLUMBING"
    ELECTRICAL = "ELECTRICAL"
    HVAC = "HVAC"
    APPLIANCE = "APPLIANCE"
    CARPENTRY = "CARPENTRY"
    PEST_CONTROL = "PEST_CONTROL"
    CLEANING = "CLEANING"
    PAINTING = "PAINTING"
    LANDSCAPING = "LANDSCAPING"
    INSPECTION = "INSPECTION"
    OTHER = "OTHER"


class WorkOrderPriority(str, enum.Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class WorkOrderStatus(str, enum.Enum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"


class RecurrenceType(str, enum.Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUALLY = "SEMI_ANNUALLY"
    ANNUALLY = "ANNUALLY"


class PMScheduleStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"


class ComplianceCategory(str, enum.Enum):
    SAFETY = "SAFETY"
    FIRE = "FIRE"
    ELECTRICAL = "ELECTRICAL"
    PLUMBING = "PLUMBING"
    STRUCTURAL = "STRUCTURAL"
    ENVIRONMENTAL = "ENVIRONMENTAL"
    LICENSING = "LICENSING"
    OTHER = "OTHER"


class ComplianceFrequency(str, enum.Enum):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMI_ANNUALLY = "SEMI_ANNUALLY"
    ANNUALLY = "ANNUALLY"
    BIANNUALLY = "BIANNUALLY"


class RequirementStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ComplianceScheduleStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    DUE = "DUE"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"
    EXEMPT = "EXEMPT"


class InspectionStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    PASSED = "PASSED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class InspectionResult(str, enum.Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    PARTIAL_PASS = "PARTIAL_PASS"


class FineStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    APPEALED = "APPEALED"
    WAIVED = "WAIVED"


class AnnouncementStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    EXPIRED = "EXPIRED"
    ARCHIVED = "ARCHIVED"


class Organization(Base):
    """Building-management company owning all other records."""
    __tablename__ = "organizations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    settings = Column(JSON, nullable=False, default=dict)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    users = relationship("User", back_populates="organization", cascade="all, delete-orphan")
    properties = relationship("Property", back_populates="organization", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}')>"


class User(Base):
    """Staff user with organization association."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.PROPERTY_MANAGER)
    active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    organization = relationship("Organization", back_populates="users")
    password_reset_tokens = relationship("PasswordResetToken", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_user_org_email', 'organization_id', 'email'),
        Index('idx_user_active', 'active'),
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', organization_id={self.organization_id})>"


class PasswordResetToken(Base):
    """Password reset tokens for user authentication."""
    __tablename__ = "password_reset_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    token = Column(String(255), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user = relationship("User", back_populates="password_reset_tokens")

    def __repr__(self):
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id})>"


class Property(Base):
    """A managed building."""
    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    name = Column(String(200), nullable=False)
    address = Column(String(500), nullable=False)
    property_type = Column(String(50), nullable=True)
    total_units = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    organization = relationship("Organization", back_populates="properties")
    units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('organization_id', 'name', name='uq_property_name_per_org'),
    )

    def __repr__(self):
        return f"<Property(id={self.id}, name='{self.name}')>"


class Unit(Base):
    """A rentable unit inside a property."""
    __tablename__ = "units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    unit_number = Column(String(50), nullable=False)
    floor = Column(Integer, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    square_feet = Column(Integer, nullable=True)
    monthly_rent = Column(Numeric(12, 2), nullable=True)
    status = Column(Enum(UnitStatus), nullable=False, default=UnitStatus.AVAILABLE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    property = relationship("Property", back_populates="units")

    __table_args__ = (
        UniqueConstraint('property_id', 'unit_number', name='uq_unit_number_per_property'),
        Index('idx_unit_status', 'property_id', 'status'),
    )

    def __repr__(self):
        return f"<Unit(id={self.id}, unit_number='{self.unit_number}')>"


class Tenant(Base):
    """Renter occupying a unit under a lease."""
    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    tenant_number = Column(String(20), nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    national_id = Column(String(50), nullable=False)
    nationality = Column(String(100), nullable=True)
    emergency_contact_name = Column(String(200), nullable=True)
    emergency_contact_phone = Column(String(30), nullable=True)

    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    unit_id = Column(Uuid, ForeignKey("units.id"), nullable=False)
    lease_start_date = Column(Date, nullable=False)
    lease_end_date = Column(Date, nullable=False)
    lease_duration = Column(Integer, nullable=False, default=0)
    lease_type = Column(String(50), nullable=True)
    renewal_option = Column(Boolean, nullable=False, default=False)

    base_rent = Column(Numeric(12, 2), nullable=False)
    admin_fee = Column(Numeric(12, 2), nullable=False, default=0)
    service_charge = Column(Numeric(12, 2), nullable=False, default=0)
    security_deposit = Column(Numeric(12, 2), nullable=False, default=0)
    total_monthly_rent = Column(Numeric(12, 2), nullable=False)
    parking_spots = Column(Integer, nullable=False, default=0)
    parking_fee_per_spot = Column(Numeric(12, 2), nullable=False, default=0)

    payment_frequency = Column(String(20), nullable=False, default="MONTHLY")
    payment_due_date = Column(Integer, nullable=False, default=1)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.BANK_TRANSFER)
    pdc_cheque_count = Column(Integer, nullable=True)

    status = Column(Enum(TenantStatus), nullable=False, default=TenantStatus.ACTIVE)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def parking_fee(self):
        return (self.parking_fee_per_spot or 0) * (self.parking_spots or 0)

    # Declared after the computed attributes above so it does not shadow the builtin
    property = relationship("Property")
    unit = relationship("Unit")
    extensions = relationship("LeaseExtension", back_populates="tenant", cascade="all, delete-orphan",
                              order_by="LeaseExtension.created_at")
    invoices = relationship("Invoice", back_populates="tenant")

    __table_args__ = (
        UniqueConstraint('organization_id', 'tenant_number', name='uq_tenant_number_per_org'),
        UniqueConstraint('organization_id', 'email', name='uq_tenant_email_per_org'),
        Index('idx_tenant_status', 'organization_id', 'status'),
    )

    def __repr__(self):
        return f"<Tenant(id={self.id}, tenant_number='{self.tenant_number}')>"


class LeaseExtension(Base):
    """A recorded extension of a tenant's lease term and rent."""
    __tablename__ = "lease_extensions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    extension_number = Column(String(20), nullable=False)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False)
    previous_end_date = Column(Date, nullable=False)
    new_end_date = Column(Date, nullable=False)
    effective_date = Column(Date, nullable=False)
    previous_rent = Column(Numeric(12, 2), nullable=False)
    new_rent = Column(Numeric(12, 2), nullable=False)
    adjustment_type = Column(Enum(RentAdjustmentType), nullable=False)
    adjustment_value = Column(Numeric(12, 2), nullable=True)
    rent_adjustment_percentage = Column(Numeric(7, 2), nullable=False, default=0)
    renewal_type = Column(Enum(RenewalType), nullable=True)
    auto_renewal = Column(Boolean, nullable=False, default=False)
    special_terms = Column(Text, nullable=True)
    payment_due_date = Column(Integer, nullable=True)
    extended_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    tenant = relationship("Tenant", back_populates="extensions")

    __table_args__ = (
        UniqueConstraint('organization_id', 'extension_number', name='uq_extension_number_per_org'),
    )


class RenewalRequest(Base):
    """Tenant-initiated request to renew a lease."""
    __tablename__ = "renewal_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False)
    preferred_term = Column(Enum(RenewalTerm), nullable=False)
    comments = Column(String(500), nullable=True)
    status = Column(Enum(RenewalRequestStatus), nullable=False, default=RenewalRequestStatus.PENDING)
    rejection_reason = Column(String(500), nullable=True)
    processed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    tenant = relationship("Tenant")


class Invoice(Base):
    """Rent invoice issued to a tenant."""
    __tablename__ = "invoices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    invoice_number = Column(String(20), nullable=False)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    unit_id = Column(Uuid, ForeignKey("units.id"), nullable=False)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    base_rent = Column(Numeric(12, 2), nullable=False, default=0)
    service_charges = Column(Numeric(12, 2), nullable=False, default=0)
    parking_fees = Column(Numeric(12, 2), nullable=False, default=0)
    late_fee = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    balance_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.DRAFT)
    late_fee_applied = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    tenant = relationship("Tenant", back_populates="invoices")
    additional_charges = relationship("InvoiceCharge", back_populates="invoice", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="invoice", cascade="all, delete-orphan",
                            order_by="Payment.payment_date")

    __table_args__ = (
        UniqueConstraint('organization_id', 'invoice_number', name='uq_invoice_number_per_org'),
        Index('idx_invoice_status_due', 'organization_id', 'status', 'due_date'),
    )

    def __repr__(self):
        return f"<Invoice(id={self.id}, invoice_number='{self.invoice_number}', status={self.status})>"


class InvoiceCharge(Base):
    """Additional line item on an invoice."""
    __tablename__ = "invoice_charges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id = Column(Uuid, ForeignKey("invoices.id"), nullable=False)
    description = Column(String(200), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="additional_charges")


class Payment(Base):
    """Payment recorded against an invoice."""
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    payment_number = Column(String(20), nullable=False)
    invoice_id = Column(Uuid, ForeignKey("invoices.id"), nullable=False)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    payment_date = Column(Date, nullable=False)
    transaction_reference = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    recorded_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    invoice = relationship("Invoice", back_populates="payments")

    __table_args__ = (
        UniqueConstraint('organization_id', 'payment_number', name='uq_payment_number_per_org'),
    )


class PostDatedCheque(Base):
    """Post-dated cheque handed over by a tenant, optionally settling an invoice."""
    __tablename__ = "post_dated_cheques"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False)
    invoice_id = Column(Uuid, ForeignKey("invoices.id"), nullable=True)
    cheque_number = Column(String(50), nullable=False)
    bank_name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    cheque_date = Column(Date, nullable=False)
    status = Column(Enum(PDCStatus), nullable=False, default=PDCStatus.RECEIVED)
    deposit_date = Column(Date, nullable=True)
    cleared_date = Column(Date, nullable=True)
    bounced_date = Column(Date, nullable=True)
    bounce_reason = Column(String(255), nullable=True)
    withdrawal_date = Column(Date, nullable=True)
    withdrawal_reason = Column(String(255), nullable=True)
    new_payment_method = Column(Enum(PaymentMethod), nullable=True)
    transaction_id = Column(String(100), nullable=True)
    replacement_cheque_id = Column(Uuid, ForeignKey("post_dated_cheques.id"), nullable=True)
    original_cheque_id = Column(Uuid, ForeignKey("post_dated_cheques.id"), nullable=True)
    payment_id = Column(Uuid, ForeignKey("payments.id"), nullable=True)
    notes = Column(String(500), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    tenant = relationship("Tenant")
    invoice = relationship("Invoice")

    __table_args__ = (
        UniqueConstraint('tenant_id', 'cheque_number', name='uq_cheque_number_per_tenant'),
        Index('idx_pdc_status_date', 'organization_id', 'status', 'cheque_date'),
    )

    def __repr__(self):
        return f"<PostDatedCheque(id={self.id}, cheque_number='{self.cheque_number}', status={self.status})>"


class Vendor(Base):
    """Maintenance service provider."""
    __tablename__ = "vendors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    vendor_number = Column(String(20), nullable=False)
    company_name = Column(String(200), nullable=False)
    contact_person_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    trade_license_number = Column(String(100), nullable=True)
    service_categories = Column(JSON, nullable=False, default=list)
    service_areas = Column(JSON, nullable=False, default=list)
    hourly_rate = Column(Numeric(12, 2), nullable=False, default=0)
    emergency_callout_fee = Column(Numeric(12, 2), nullable=True)
    payment_terms = Column(String(20), nullable=True)
    status = Column(Enum(VendorStatus), nullable=False, default=VendorStatus.ACTIVE)
    rating = Column(Numeric(3, 2), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    documents = relationship("VendorDocument", back_populates="vendor", cascade="all, delete-orphan")
    ratings = relationship("VendorRating", back_populates="vendor", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('organization_id', 'vendor_number', name='uq_vendor_number_per_org'),
        UniqueConstraint('organization_id', 'email', name='uq_vendor_email_per_org'),
    )

    def __repr__(self):
        return f"<Vendor(id={self.id}, company_name='{self.company_name}')>"


class VendorDocument(Base):
    """Licence, insurance or certification on file for a vendor."""
    __tablename__ = "vendor_documents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=False)
    document_type = Column(Enum(VendorDocumentType), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=True)
    expiry_date = Column(Date, nullable=True)
    notes = Column(String(500), nullable=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    vendor = relationship("Vendor", back_populates="documents")


class VendorRating(Base):
    """Score given to a vendor for one completed work order."""
    __tablename__ = "vendor_ratings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=False)
    work_order_id = Column(Uuid, ForeignKey("work_orders.id"), nullable=False, unique=True)
    quality_score = Column(Integer, nullable=False)
    timeliness_score = Column(Integer, nullable=False)
    communication_score = Column(Integer, nullable=False)
    professionalism_score = Column(Integer, nullable=False)
    overall_score = Column(Numeric(3, 2), nullable=False)
    comments = Column(String(1000), nullable=True)
    rated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    rated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    vendor = relationship("Vendor", back_populates="ratings")


class Asset(Base):
    """Tracked building equipment."""
    __tablename__ = "assets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    asset_number = Column(String(20), nullable=False)
    asset_name = Column(String(200), nullable=False)
    category = Column(Enum(AssetCategory), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    location = Column(String(200), nullable=True)
    manufacturer = Column(String(100), nullable=True)
    model_number = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    installation_date = Column(Date, nullable=True)
    purchase_date = Column(Date, nullable=True)
    purchase_cost = Column(Numeric(12, 2), nullable=True)
    warranty_expiry_date = Column(Date, nullable=True)
    status = Column(Enum(AssetStatus), nullable=False, default=AssetStatus.ACTIVE)
    status_reason = Column(String(500), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    @property
    def warranty_status(self):
        """NO_WARRANTY, EXPIRED, EXPIRING_SOON (30 days) or ACTIVE."""
        if self.warranty_expiry_date is None:
            return "NO_WARRANTY"
        days_left = (self.warranty_expiry_date - date.today()).days
        if days_left < 0:
            return "EXPIRED"
        if days_left <= 30:
            return "EXPIRING_SOON"
        return "ACTIVE"

    property = relationship("Property")

    __table_args__ = (
        UniqueConstraint('organization_id', 'asset_number', name='uq_asset_number_per_org'),
        Index('idx_asset_property', 'property_id'),
    )


class WorkOrder(Base):
    """Maintenance task, optionally assigned to a vendor."""
    __tablename__ = "work_orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    work_order_number = Column(String(20), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    unit_id = Column(Uuid, ForeignKey("units.id"), nullable=True)
    asset_id = Column(Uuid, ForeignKey("assets.id"), nullable=True)
    pm_schedule_id = Column(Uuid, ForeignKey("pm_schedules.id"), nullable=True)
    requested_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    assigned_to = Column(Uuid, ForeignKey("vendors.id"), nullable=True)
    category = Column(Enum(WorkOrderCategory), nullable=False)
    priority = Column(Enum(WorkOrderPriority), nullable=False, default=WorkOrderPriority.MEDIUM)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Enum(WorkOrderStatus), nullable=False, default=WorkOrderStatus.OPEN)
    scheduled_date = Column(Date, nullable=True)
    access_instructions = Column(String(500), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    estimated_cost = Column(Numeric(12, 2), nullable=True)
    actual_cost = Column(Numeric(12, 2), nullable=True)
    total_hours_spent = Column(Numeric(7, 2), nullable=True)
    completion_notes = Column(Text, nullable=True)
    recommendations = Column(String(1000), nullable=True)
    follow_up_required = Column(Boolean, nullable=False, default=False)
    follow_up_description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    vendor = relationship("Vendor")
    comments = relationship("WorkOrderComment", back_populates="work_order",
                            cascade="all, delete-orphan", order_by="WorkOrderComment.created_at")
    assignments = relationship("WorkOrderAssignment", back_populates="work_order",
                               cascade="all, delete-orphan", order_by="WorkOrderAssignment.assigned_at")
    progress_updates = relationship("WorkOrderProgress", back_populates="work_order",
                                    cascade="all, delete-orphan", order_by="WorkOrderProgress.created_at")

    __table_args__ = (
        UniqueConstraint('organization_id', 'work_order_number', name='uq_work_order_number_per_org'),
        Index('idx_work_order_status', 'organization_id', 'status'),
        Index('idx_work_order_vendor', 'assigned_to'),
    )

    def __repr__(self):
        return f"<WorkOrder(id={self.id}, number='{self.work_order_number}', status={self.status})>"


class WorkOrderComment(Base):
    """Comment on a work order; status changes are recorded as flagged comments."""
    __tablename__ = "work_order_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id = Column(Uuid, ForeignKey("work_orders.id"), nullable=False)
    comment_text = Column(String(2000), nullable=False)
    is_status_change = Column(Boolean, nullable=False, default=False)
    previous_status = Column(Enum(WorkOrderStatus), nullable=True)
    new_status = Column(Enum(WorkOrderStatus), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    work_order = relationship("WorkOrder", back_populates="comments")


class WorkOrderAssignment(Base):
    """Assignment history row for a work order."""
    __tablename__ = "work_order_assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id = Column(Uuid, ForeignKey("work_orders.id"), nullable=False)
    vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=False)
    previous_vendor_id = Column(Uuid, ForeignKey("vendors.id"), nullable=True)
    reason = Column(String(500), nullable=True)
    notes = Column(String(1000), nullable=True)
    assigned_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    work_order = relationship("WorkOrder", back_populates="assignments")


class WorkOrderProgress(Base):
    """Progress note logged while a work order is in progress."""
    __tablename__ = "work_order_progress"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    work_order_id = Column(Uuid, ForeignKey("work_orders.id"), nullable=False)
    progress_notes = Column(String(1000), nullable=False)
    estimated_completion_date = Column(Date, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    work_order = relationship("WorkOrder", back_populates="progress_updates")


class PMSchedule(Base):
    """Preventive maintenance recurrence rule."""
    __tablename__ = "pm_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    schedule_name = Column(String(100), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=True)
    category = Column(Enum(WorkOrderCategory), nullable=False)
    description = Column(Text, nullable=False)
    recurrence_type = Column(Enum(RecurrenceType), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    default_priority = Column(Enum(WorkOrderPriority), nullable=False, default=WorkOrderPriority.MEDIUM)
    default_assignee_id = Column(Uuid, ForeignKey("vendors.id"), nullable=True)
    status = Column(Enum(PMScheduleStatus), nullable=False, default=PMScheduleStatus.ACTIVE)
    next_generation_date = Column(Date, nullable=True)
    last_generated_date = Column(Date, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    property = relationship("Property")
    default_assignee = relationship("Vendor")

    __table_args__ = (
        Index('idx_pm_schedule_due', 'status', 'next_generation_date'),
    )


class ComplianceRequirement(Base):
    """Regulatory obligation that applies to some or all properties."""
    __tablename__ = "compliance_requirements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    requirement_number = Column(String(20), nullable=False)
    requirement_name = Column(String(200), nullable=False)
    category = Column(Enum(ComplianceCategory), nullable=False)
    description = Column(String(1000), nullable=True)
    applicable_properties = Column(JSON, nullable=True)
    frequency = Column(Enum(ComplianceFrequency), nullable=False)
    authority_agency = Column(String(200), nullable=True)
    penalty_description = Column(String(500), nullable=True)
    status = Column(Enum(RequirementStatus), nullable=False, default=RequirementStatus.ACTIVE)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint('organization_id', 'requirement_number', name='uq_requirement_number_per_org'),
    )

    def applies_to(self, property_id):
        """True when the requirement covers the given property."""
        if not self.applicable_properties:
            return True
        return str(property_id) in {str(p) for p in self.applicable_properties}


class ComplianceSchedule(Base):
    """One due instance of a requirement at a property."""
    __tablename__ = "compliance_schedules"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    schedule_number = Column(String(20), nullable=False)
    requirement_id = Column(Uuid, ForeignKey("compliance_requirements.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Enum(ComplianceScheduleStatus), nullable=False, default=ComplianceScheduleStatus.UPCOMING)
    completed_date = Column(Date, nullable=True)
    completed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    notes = Column(String(1000), nullable=True)
    certificate_number = Column(String(100), nullable=True)
    certificate_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    requirement = relationship("ComplianceRequirement")
    property = relationship("Property")

    __table_args__ = (
        UniqueConstraint('organization_id', 'schedule_number', name='uq_compliance_schedule_number_per_org'),
        Index('idx_compliance_schedule_due', 'status', 'due_date'),
    )


class Inspection(Base):
    """Inspection carried out against a compliance schedule."""
    __tablename__ = "inspections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    schedule_id = Column(Uuid, ForeignKey("compliance_schedules.id"), nullable=False)
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False)
    inspector_name = Column(String(200), nullable=False)
    inspector_company = Column(String(200), nullable=True)
    scheduled_date = Column(Date, nullable=False)
    inspection_date = Column(Date, nullable=True)
    status = Column(Enum(InspectionStatus), nullable=False, default=InspectionStatus.SCHEDULED)
    result = Column(Enum(InspectionResult), nullable=True)
    issues_found = Column(String(1000), nullable=True)
    recommendations = Column(String(1000), nullable=True)
    next_inspection_date = Column(Date, nullable=True)
    notes = Column(String(1000), nullable=True)
    remediation_work_order_id = Column(Uuid, ForeignKey("work_orders.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    schedule = relationship("ComplianceSchedule")


class Violation(Base):
    """Regulatory violation and its fine."""
    __tablename__ = "violations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    violation_number = Column(String(20), nullable=False)
    schedule_id = Column(Uuid, ForeignKey("compliance_schedules.id"), nullable=False)
    violation_date = Column(Date, nullable=False)
    description = Column(String(1000), nullable=False)
    fine_amount = Column(Numeric(12, 2), nullable=False, default=0)
    fine_status = Column(Enum(FineStatus), nullable=False, default=FineStatus.PENDING)
    remediation_work_order_id = Column(Uuid, ForeignKey("work_orders.id"), nullable=True)
    resolution_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    schedule = relationship("ComplianceSchedule")

    __table_args__ = (
        UniqueConstraint('organization_id', 'violation_number', name='uq_violation_number_per_org'),
    )


class Announcement(Base):
    """Notice broadcast to tenants."""
    __tablename__ = "announcements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False)
    announcement_number = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    template_used = Column(String(50), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(Enum(AnnouncementStatus), nullable=False, default=AnnouncementStatus.DRAFT)
    attachment_url = Column(String(1000), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint('organization_id', 'announcement_number', name='uq_announcement_number_per_org'),
        Index('idx_announcement_status_expiry', 'status', 'expires_at'),
    )

    def __repr__(self):
        return f"<Announcement(id={self.id}, title='{self.title}', status={self.status})>"
