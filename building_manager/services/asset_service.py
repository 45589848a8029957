"""
Asset Service - equipment register and its maintenance history.
"""
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database.models import Asset, AssetStatus, Property, WorkOrder
from ..schemas.asset import AssetCreateRequest, AssetUpdateRequest
from . import numbering
from .exceptions import NotFoundError, BusinessRuleError
from .lease_calculations import round_money

logger = logging.getLogger(__name__)

WARRANTY_WARNING_DAYS = 30


class AssetService:
    """Service class for asset business logic."""

    @staticmethod
    def get_asset(db: Session, organization_id: UUID, asset_id: UUID) -> Asset:
        asset = db.query(Asset).filter(
            Asset.id == asset_id,
            Asset.organization_id == organization_id,
            Asset.is_deleted == False
        ).first()
        if not asset:
            raise NotFoundError("Asset", asset_id)
        return asset

    @staticmethod
    def create_asset(db: Session, organization_id: UUID, request: AssetCreateRequest,
                     user_id: Optional[UUID] = None) -> Asset:
        prop = db.query(Property).filter(
            Property.id == request.property_id,
            Property.organization_id == organization_id
        ).first()
        if not prop:
            raise NotFoundError("Property", request.property_id)

        data = request.model_dump()
        if data.get("purchase_cost") is not None:
            data["purchase_cost"] = round_money(data["purchase_cost"])
        asset = Asset(
            organization_id=organization_id,
            asset_number=numbering.next_number(db, Asset, "asset_number", organization_id, numbering.ASSET),
            status=AssetStatus.ACTIVE,
            created_by=user_id,
            **data,
        )
        db.add(asset)
        db.flush()
        logger.info("Registered asset %s at property %s", asset.asset_number, prop.name)
        return asset

    @staticmethod
    def update_asset(db: Session, organization_id: UUID, asset_id: UUID, request: AssetUpdateRequest) -> Asset:
        asset = AssetService.get_asset(db, organization_id, asset_id)
        if asset.status == AssetStatus.DISPOSED:
            raise BusinessRuleError("Disposed assets cannot be edited")

        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("purchase_cost") is not None:
            update_data["purchase_cost"] = round_money(update_data["purchase_cost"])
        purchase_date = update_data.get("purchase_date", asset.purchase_date)
        warranty_expiry_date = update_data.get("warranty_expiry_date", asset.warranty_expiry_date)
        if purchase_date and warranty_expiry_date and warranty_expiry_date < purchase_date:
            raise BusinessRuleError("Warranty expiry date must be after the purchase date")
        for field, value in update_data.items():
            setattr(asset, field, value)
        db.flush()
        return asset

    @staticmethod
    def update_status(db: Session, organization_id: UUID, asset_id: UUID, new_status: AssetStatus,
                      reason: Optional[str] = None) -> Asset:
        asset = AssetService.get_asset(db, organization_id, asset_id)
        if asset.status == AssetStatus.DISPOSED:
            raise BusinessRuleError("Disposed assets cannot be edited")
        if asset.status == new_status:
            raise BusinessRuleError(f"Asset already has status {new_status.value}")
        previous = asset.status
        asset.status = new_status
        asset.status_reason = reason
        db.flush()
        logger.info("Asset %s status %s -> %s", asset.asset_number, previous.value, new_status.value)
        return asset

    @staticmethod
    def delete_asset(db: Session, organization_id: UUID, asset_id: UUID) -> None:
        asset = AssetService.get_asset(db, organization_id, asset_id)
        asset.is_deleted = True
        db.flush()
        logger.info("Deleted asset %s", asset.asset_number)

    @staticmethod
    def maintenance_summary(db: Session, asset: Asset) -> Dict:
        count, total = db.query(
            func.count(WorkOrder.id), func.coalesce(func.sum(WorkOrder.actual_cost), 0)
        ).filter(WorkOrder.asset_id == asset.id).one()
        return {"work_order_count": count, "total_maintenance_cost": round_money(total or 0)}

    @staticmethod
    def maintenance_history(db: Session, organization_id: UUID, asset_id: UUID) -> List[WorkOrder]:
        asset = AssetService.get_asset(db, organization_id, asset_id)
        return db.query(WorkOrder).filter(
            WorkOrder.asset_id == asset.id
        ).order_by(WorkOrder.created_at.desc()).all()

    @staticmethod
    def expiring_warranties(db: Session, organization_id: UUID, days: int = WARRANTY_WARNING_DAYS,
                            today: Optional[date] = None) -> List[Dict]:
        """Assets whose warranty runs out between today and ``days`` from now."""
        today = today or date.today()
        assets = db.query(Asset).filter(
            Asset.organization_id == organization_id,
            Asset.is_deleted == False,
            Asset.status != AssetStatus.DISPOSED,
            Asset.warranty_expiry_date.isnot(None),
            Asset.warranty_expiry_date >= today,
            Asset.warranty_expiry_date <= today + timedelta(days=days)
        ).order_by(Asset.warranty_expiry_date).all()
        return [
            {
                "asset_id": asset.id,
                "asset_number": asset.asset_number,
                "asset_name": asset.asset_name,
                "property_id": asset.property_id,
                "warranty_expiry_date": asset.warranty_expiry_date,
                "days_until_expiry": (asset.warranty_expiry_date - today).days,
            }
            for asset in assets
        ]

    @staticmethod
    def dropdown_options(db: Session, organization_id: UUID, property_id: UUID) -> List[Asset]:
        return db.query(Asset).filter(
            Asset.organization_id == organization_id,
            Asset.property_id == property_id,
            Asset.is_deleted == False,
            Asset.status != AssetStatus.DISPOSED
        ).order_by(Asset.asset_name).all()
