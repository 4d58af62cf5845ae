from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from attribute_engine.api import deps
from attribute_engine.db.session import get_db
from attribute_engine.models.product import Product
from attribute_engine.schemas.attribute_value import (
    AttributeValue, AttributeValuesSync, AttributeValueWrite, CleanupRequest, InheritRequest, MarkSyncedRequest,
    RefreshRequest,
)
from attribute_engine.schemas.operations import (
    AttributeStatistics, CleanupReport, InheritanceConflicts, InheritanceStatistics, OrphanCleanupResult,
    ProductInheritanceResult, RefreshResult, RepairResult, SyncResult, ValidationReport,
)
from attribute_engine.schemas.resolution import EffectiveValue
from attribute_engine.services import bookkeeping, inheritance, resolver

router = APIRouter()

@router.get("/{product_id}/attributes", response_model=Dict[str, Any])
async def get_product_attributes(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    """
    Effective value of every attribute that resolves on the product.
    """
    return resolver.get_typed_attributes(db, product)

@router.post("/{product_id}/attributes/sync", response_model=SyncResult)
async def sync_product_attributes(
    payload: AttributeValuesSync,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.sync_attributes(db, product, payload.values, payload.source)

@router.post("/{product_id}/attributes/validate", response_model=ValidationReport)
async def validate_product_attributes(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.validate_all_attributes(db, product)

@router.post("/{product_id}/attributes/cleanup", response_model=CleanupReport)
async def clean_up_product_attributes(
    payload: CleanupRequest,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.clean_up_invalid_attributes(db, product, payload.action)

@router.get("/{product_id}/attributes/sync-status")
async def get_product_sync_status(
    channel: Optional[str] = None,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.get_attributes_sync_status(db, product, channel)

@router.post("/{product_id}/attributes/sync-status/{channel}", response_model=List[str])
async def mark_product_attributes_synced(
    channel: str,
    payload: MarkSyncedRequest,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    """
    Record a successful push of the product's attributes to a channel.
    """
    return bookkeeping.mark_attributes_synced(db, product, channel, payload.keys)

@router.get("/{product_id}/attributes/statistics", response_model=AttributeStatistics)
async def get_product_attribute_statistics(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.get_attributes_statistics(db, product)

@router.post("/{product_id}/attributes/refresh-variants", response_model=Dict[int, RefreshResult])
async def refresh_variant_inheritance(
    payload: RefreshRequest,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    """
    Push the product's current values down to every variant's inherited rows.
    """
    return inheritance.refresh_inheritance_for_product(db, product, payload.keys)

@router.post("/{product_id}/attributes/inherit-variants", response_model=ProductInheritanceResult)
async def inherit_variant_attributes(
    payload: InheritRequest,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    """
    Inherit every inheritable attribute onto each of the product's variants.
    """
    return inheritance.inherit_attributes_for_product(db, product, force=payload.force)

@router.post("/{product_id}/attributes/cleanup-orphans", response_model=OrphanCleanupResult)
async def clean_up_orphaned_inheritance(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.cleanup_orphaned_inheritance(db, product)

@router.get("/{product_id}/attributes/inheritance-conflicts", response_model=InheritanceConflicts)
async def get_inheritance_conflicts(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.find_inheritance_conflicts(db, product)

@router.post("/{product_id}/attributes/inheritance-conflicts/repair", response_model=RepairResult)
async def repair_inheritance_conflicts(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    """
    Find the inheritance conflicts on the product's variants and repair them.
    """
    conflicts = inheritance.find_inheritance_conflicts(db, product)
    return inheritance.repair_inheritance_conflicts(db, conflicts)

@router.get("/{product_id}/attributes/inheritance-statistics", response_model=InheritanceStatistics)
async def get_inheritance_statistics(
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.get_inheritance_statistics(db, product)

@router.get("/{product_id}/attributes/{key}", response_model=EffectiveValue)
async def get_product_attribute(
    key: str,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    deps.definition_or_404(db, key)
    return EffectiveValue(key=key, value=resolver.get_effective_attribute_value(db, product, key))

@router.put("/{product_id}/attributes/{key}", response_model=AttributeValue)
async def set_product_attribute(
    key: str,
    payload: AttributeValueWrite,
    product: Product = Depends(deps.get_product_or_404),
    db: Session = Depends(get_db)
):
    """
    Explicitly set one attribute on the product.
    """
    definition = deps.definition_or_404(db, key)
    result = inheritance.set_attribute_value(db, product, key, payload.value, payload.source)
    if not result:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.errors)
    return product.attribute_for(definition)
