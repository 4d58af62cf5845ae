from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from attribute_engine.api import deps
from attribute_engine.db.session import get_db
from attribute_engine.models.variant import ProductVariant
from attribute_engine.schemas.attribute_value import (
    AttributeValue, AttributeValuesSync, AttributeValueWrite, BulkInheritRequest, CleanupRequest, InheritRequest,
    RefreshRequest, VariantsInheritRequest,
)
from attribute_engine.schemas.operations import (
    CleanupReport, InheritanceResult, InheritanceSummary, RefreshResult, SyncResult, ValidationReport,
)
from attribute_engine.schemas.resolution import EffectiveValue, ResolutionPath
from attribute_engine.services import bookkeeping, inheritance, resolver

router = APIRouter()

@router.post("/inherit", response_model=Dict[int, InheritanceResult])
async def inherit_for_variants(
    payload: VariantsInheritRequest,
    db: Session = Depends(get_db)
):
    """
    Inherit all attributes for an explicit list of variants.
    """
    return inheritance.inherit_attributes_for_variants(db, payload.variant_ids, payload.force)

@router.get("/{variant_id}/attributes", response_model=Dict[str, Any])
async def get_variant_attributes(
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    """
    Effective value of every attribute that resolves on the variant.
    """
    return resolver.get_typed_attributes(db, variant)

@router.post("/{variant_id}/attributes/inherit", response_model=InheritanceResult)
async def inherit_variant_attributes(
    payload: InheritRequest,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.inherit_all_attributes(db, variant, force=payload.force)

@router.post("/{variant_id}/attributes/bulk-inherit", response_model=InheritanceResult)
async def bulk_inherit_variant_attributes(
    payload: BulkInheritRequest,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.bulk_inherit_attributes(db, variant, payload.keys)

@router.post("/{variant_id}/attributes/refresh", response_model=RefreshResult)
async def refresh_variant_attributes(
    payload: RefreshRequest,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    """
    Re-synchronize inherited values with the product's current values.
    """
    return inheritance.refresh_inheritance(db, variant, payload.keys)

@router.get("/{variant_id}/attributes/inheritance-summary", response_model=InheritanceSummary)
async def get_variant_inheritance_summary(
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.get_inheritance_summary(db, variant)

@router.post("/{variant_id}/attributes/sync", response_model=SyncResult)
async def sync_variant_attributes(
    payload: AttributeValuesSync,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return inheritance.sync_attributes(db, variant, payload.values, payload.source)

@router.post("/{variant_id}/attributes/validate", response_model=ValidationReport)
async def validate_variant_attributes(
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.validate_all_attributes(db, variant)

@router.post("/{variant_id}/attributes/cleanup", response_model=CleanupReport)
async def clean_up_variant_attributes(
    payload: CleanupRequest,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.clean_up_invalid_attributes(db, variant, payload.action)

@router.get("/{variant_id}/attributes/sync-status")
async def get_variant_sync_status(
    channel: Optional[str] = None,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    return bookkeeping.get_attributes_sync_status(db, variant, channel)

@router.get("/{variant_id}/attributes/{key}", response_model=EffectiveValue)
async def get_variant_attribute(
    key: str,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    deps.definition_or_404(db, key)
    return EffectiveValue(key=key, value=resolver.get_effective_attribute_value(db, variant, key))

@router.get("/{variant_id}/attributes/{key}/path", response_model=ResolutionPath)
async def get_variant_attribute_path(
    key: str,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    """
    Every level that holds a candidate value for the key, in precedence order.
    """
    deps.definition_or_404(db, key)
    return resolver.get_attribute_with_inheritance_path(db, variant, key)

@router.put("/{variant_id}/attributes/{key}", response_model=AttributeValue)
async def set_variant_attribute(
    key: str,
    payload: AttributeValueWrite,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    definition = deps.definition_or_404(db, key)
    result = inheritance.set_attribute_value(db, variant, key, payload.value, payload.source)
    if not result:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.errors)
    return variant.attribute_for(definition)

@router.put("/{variant_id}/attributes/{key}/override", response_model=AttributeValue)
async def override_variant_attribute(
    key: str,
    payload: AttributeValueWrite,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    """
    Pin an explicit value that wins over the product's value until cleared.
    """
    definition = deps.definition_or_404(db, key)
    result = inheritance.override_attribute(db, variant, key, payload.value, payload.source)
    if not result:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.errors)
    return variant.attribute_for(definition)

@router.delete("/{variant_id}/attributes/{key}/override", response_model=EffectiveValue)
async def clear_variant_override(
    key: str,
    variant: ProductVariant = Depends(deps.get_variant_or_404),
    db: Session = Depends(get_db)
):
    deps.definition_or_404(db, key)
    if not inheritance.clear_attribute_override(db, variant, key):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No override set for '{key}'")
    return EffectiveValue(key=key, value=resolver.get_effective_attribute_value(db, variant, key))
