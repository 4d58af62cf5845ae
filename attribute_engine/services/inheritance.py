"""
Write side of the attribute engine: materializing inherited values,
overrides and explicit writes.

Every public operation runs in one transaction. Expected failures (unknown
key, bad value, nothing to inherit from) come back as ``False``, a failed
WriteResult or an entry in a batch report; storage failures roll back the
whole operation and propagate as StorageError.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from sqlalchemy.orm import Session
from attribute_engine.core.errors import AttributeValidationError, InheritanceError, SchemaError
from attribute_engine.db.session import transaction
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.attribute_value import AttributeValue
from attribute_engine.models.enums import AttributeSource, OwnerKind
from attribute_engine.models.product import Product
from attribute_engine.models.variant import ProductVariant
from attribute_engine.schemas.attribute_value import WriteResult
from attribute_engine.schemas.operations import (
    AttributeInheritanceCounts, ConflictRepair, InheritanceConflict, InheritanceConflicts, InheritanceDetail,
    InheritanceResult, InheritanceStatistics, InheritanceSummary, OrphanCleanupResult, ProductInheritanceResult,
    RefreshedAttribute, RefreshResult, RepairResult, SkippedAttribute, SyncResult, VariantAttributeRef,
)
from attribute_engine.services.definitions import get_definition, get_inheritable_definitions, require_definition

logger = logging.getLogger(__name__)

SKIP_PARENT_MISSING = "product does not have this attribute"
SKIP_ALREADY_INHERITED = "already inherited"
SKIP_EXPLICITLY_SET = "explicitly set"

def _parent_row(owner, definition: AttributeDefinition) -> Optional[AttributeValue]:
    parent = owner.parent
    if parent is None:
        return None
    return parent.attribute_for(definition)

def _ensure_inheritable(owner, definition: AttributeDefinition) -> None:
    if owner.parent is None:
        raise InheritanceError(f"{owner.owner_kind.value} {owner.id} has no parent to inherit from", definition.key)
    if not definition.supports_inheritance():
        raise InheritanceError(f"Attribute '{definition.key}' is not inheritable", definition.key)
    if not definition.applies_to_owner(owner.owner_kind):
        raise InheritanceError(
            f"Attribute '{definition.key}' does not apply to {owner.owner_kind.value}s", definition.key
        )

def _inherit(owner, definition: AttributeDefinition) -> bool:
    """
    Materialize the parent's value on ``owner``.

    Returns False when the owner already holds the same inherited snapshot.
    Raises InheritanceError or AttributeValidationError without touching
    the owner's row.
    """
    _ensure_inheritable(owner, definition)
    parent_row = _parent_row(owner, definition)
    if parent_row is None:
        raise InheritanceError(SKIP_PARENT_MISSING, definition.key)

    check = definition.validate_value(parent_row.raw)
    if not check.valid:
        raise AttributeValidationError(check.errors, parent_row.raw)

    row = owner.attribute_for(definition)
    if row is None:
        row = AttributeValue.for_definition(definition)
        row.inherit_from(parent_row)
        owner.attach_attribute(row)
        return True
    if row.is_inherited and row.raw == parent_row.raw and row.is_valid:
        return False
    row.inherit_from(parent_row)
    return True

def _write(owner, definition: AttributeDefinition, value: Any, source: AttributeSource, override: bool) -> bool:
    """
    Validate then write ``value``. Returns True when a new row was created.

    A rejected value raises before anything is written, so the previous
    row (or its absence) is left exactly as it was.
    """
    if not definition.applies_to_owner(owner.owner_kind):
        raise InheritanceError(
            f"Attribute '{definition.key}' does not apply to {owner.owner_kind.value}s", definition.key
        )
    if override and owner.parent is None:
        raise InheritanceError(f"Attribute '{definition.key}' can only be overridden on variants", definition.key)

    check = definition.validate_value(value)
    if not check.valid:
        raise AttributeValidationError(check.errors, value)

    row = owner.attribute_for(definition)
    created = row is None
    if created:
        row = AttributeValue.for_definition(definition)
    if override:
        row.override_inherited_value(value, source)
    else:
        row.set_value(value, source)
    if created:
        owner.attach_attribute(row)
    return created

def _failed(e: Exception) -> WriteResult:
    if isinstance(e, AttributeValidationError):
        return WriteResult(success=False, errors=e.errors)
    return WriteResult(success=False, errors=[str(e)])

def inherit_attribute(db: Session, owner, key: str) -> bool:
    """
    Copy the parent's value for ``key`` onto ``owner`` as an inherited row.

    No-op returning False when the key is unknown, not inheritable or the
    parent has no value. Calling it again with an unchanged parent value
    changes nothing.
    """
    definition = get_definition(db, key)
    if definition is None:
        logger.info("Cannot inherit %s: no such attribute definition", key)
        return False

    with transaction(db):
        try:
            changed = _inherit(owner, definition)
        except (InheritanceError, AttributeValidationError) as e:
            logger.info("Cannot inherit %s on %s %s: %s", key, owner.owner_kind.value, owner.id, e)
            return False

    if changed:
        logger.debug("Inherited %s on %s %s", key, owner.owner_kind.value, owner.id)
    return True

def inherit_all_attributes(db: Session, owner, force: bool = False) -> InheritanceResult:
    """
    Inherit every inheritable definition the parent holds a value for.

    Rows the owner already has are skipped unless ``force`` is set.
    Definitions are visited in (sort_order, key) order.
    """
    result = InheritanceResult()
    if owner.parent is None:
        logger.info("%s %s has no parent; nothing to inherit", owner.owner_kind.value, owner.id)
        return result

    definitions = get_inheritable_definitions(db)
    with transaction(db):
        for definition in definitions:
            result.total_processed += 1
            key = definition.key

            if _parent_row(owner, definition) is None:
                result.skipped.append(SkippedAttribute(key=key, reason=SKIP_PARENT_MISSING))
                continue

            row = owner.attribute_for(definition)
            if row is not None and not force:
                reason = SKIP_ALREADY_INHERITED if row.is_inherited else SKIP_EXPLICITLY_SET
                result.skipped.append(SkippedAttribute(key=key, reason=reason))
                continue

            try:
                _inherit(owner, definition)
                result.inherited.append(key)
            except (InheritanceError, AttributeValidationError) as e:
                logger.warning("Failed to inherit %s on %s %s: %s", key, owner.owner_kind.value, owner.id, e)
                result.errors[key] = str(e)

    logger.info(
        "Inheritance completed for %s %s: %d inherited, %d skipped, %d errors",
        owner.owner_kind.value, owner.id, len(result.inherited), len(result.skipped), len(result.errors),
    )
    return result

def bulk_inherit_attributes(db: Session, owner, keys: Iterable[str]) -> InheritanceResult:
    """Inherit each key independently; one key failing does not stop the rest."""
    result = InheritanceResult()
    with transaction(db):
        for key in dict.fromkeys(keys):
            result.total_processed += 1
            try:
                definition = require_definition(db, key)
                if owner.parent is not None and _parent_row(owner, definition) is None:
                    result.skipped.append(SkippedAttribute(key=key, reason=SKIP_PARENT_MISSING))
                    continue
                _inherit(owner, definition)
                result.inherited.append(key)
            except (SchemaError, InheritanceError, AttributeValidationError) as e:
                result.errors[key] = str(e)

    logger.info(
        "Bulk inheritance for %s %s: %d inherited, %d skipped, %d errors",
        owner.owner_kind.value, owner.id, len(result.inherited), len(result.skipped), len(result.errors),
    )
    return result

def refresh_inheritance(db: Session, owner, keys: Optional[Iterable[str]] = None) -> RefreshResult:
    """
    Re-synchronize the owner's inherited rows with the parent's current values.

    Rows whose parent value vanished are deleted; rows whose parent value
    changed are updated; overrides and explicit rows are never touched.
    """
    result = RefreshResult()
    if owner.parent is None:
        return result

    wanted = set(keys) if keys is not None else None
    rows = [
        row for row in owner.attribute_values
        if row.is_inherited and (wanted is None or row.key in wanted)
    ]
    rows.sort(key=lambda row: (row.definition.sort_order or 0, row.key))

    with transaction(db):
        for row in rows:
            definition = row.definition
            key = definition.key
            parent_row = _parent_row(owner, definition)

            if parent_row is None:
                owner.detach_attribute(row)
                result.removed.append(key)
                continue

            if parent_row.raw == row.raw:
                result.unchanged.append(key)
                continue

            if not definition.supports_inheritance():
                result.errors[key] = f"Attribute '{key}' is no longer inheritable"
                continue
            check = definition.validate_value(parent_row.raw)
            if not check.valid:
                result.errors[key] = "; ".join(check.errors)
                continue

            old = row.raw
            row.inherit_from(parent_row)
            result.updated.append(RefreshedAttribute(key=key, old=old, new=row.raw))

    logger.info(
        "Refreshed inheritance for %s %s: %d updated, %d removed, %d unchanged, %d errors",
        owner.owner_kind.value, owner.id, len(result.updated), len(result.removed),
        len(result.unchanged), len(result.errors),
    )
    return result

def override_attribute(db: Session, owner, key: str, value: Any,
                       source: AttributeSource = AttributeSource.MANUAL) -> WriteResult:
    """Set an explicit override on a variant, creating the row if needed."""
    definition = get_definition(db, key)
    if definition is None:
        return _failed(SchemaError(key))

    with transaction(db):
        try:
            _write(owner, definition, value, source, override=True)
        except (InheritanceError, AttributeValidationError) as e:
            logger.info("Override of %s on %s %s rejected: %s", key, owner.owner_kind.value, owner.id, e)
            return _failed(e)
    return WriteResult(success=True)

def clear_attribute_override(db: Session, owner, key: str) -> bool:
    """
    Drop an override. The row reverts to an inherited snapshot when the
    parent still has a value and the attribute is inheritable, otherwise it
    is deleted. Returns False when there is no override to clear.
    """
    definition = get_definition(db, key)
    if definition is None:
        return False
    row = owner.attribute_for(definition)
    if row is None or not row.is_override:
        return False

    with transaction(db):
        parent_row = _parent_row(owner, definition)
        can_revert = (
            parent_row is not None
            and definition.supports_inheritance()
            and definition.applies_to_owner(owner.owner_kind)
            and definition.validate_value(parent_row.raw).valid
        )
        if can_revert:
            row.inherit_from(parent_row)
        else:
            owner.detach_attribute(row)
    return True

def set_attribute_value(db: Session, owner, key: str, value: Any,
                        source: AttributeSource = AttributeSource.MANUAL) -> WriteResult:
    """Explicitly set ``key`` on a product or variant."""
    definition = get_definition(db, key)
    if definition is None:
        return _failed(SchemaError(key))

    with transaction(db):
        try:
            _write(owner, definition, value, source, override=False)
        except (InheritanceError, AttributeValidationError) as e:
            logger.info("Write of %s on %s %s rejected: %s", key, owner.owner_kind.value, owner.id, e)
            return _failed(e)
    return WriteResult(success=True)

def sync_attributes(db: Session, owner, values: Mapping[str, Any],
                    source: AttributeSource = AttributeSource.MANUAL) -> SyncResult:
    """Write several explicit values in one transaction, reporting per key."""
    result = SyncResult()
    with transaction(db):
        for key, value in values.items():
            try:
                definition = require_definition(db, key)
                created = _write(owner, definition, value, source, override=False)
            except (SchemaError, InheritanceError) as e:
                result.errors[key] = [str(e)]
                continue
            except AttributeValidationError as e:
                result.errors[key] = e.errors
                continue
            (result.created if created else result.updated).append(key)

    logger.info(
        "Synced attributes on %s %s: %d created, %d updated, %d errors",
        owner.owner_kind.value, owner.id, len(result.created), len(result.updated), len(result.errors),
    )
    return result

def inherit_attributes_for_variants(db: Session, variant_ids: Sequence[int],
                                    force: bool = False) -> Dict[int, InheritanceResult]:
    """Run inherit_all_attributes for an explicit list of variant ids."""
    ids = tuple(dict.fromkeys(variant_ids))
    variants = {
        variant.id: variant
        for variant in db.query(ProductVariant).filter(ProductVariant.id.in_(ids)).all()
    } if ids else {}

    results = {}
    for variant_id in ids:
        variant = variants.get(variant_id)
        if variant is None:
            results[variant_id] = InheritanceResult(errors={"variant": f"Variant {variant_id} not found"})
            continue
        results[variant_id] = inherit_all_attributes(db, variant, force=force)
    return results

def refresh_inheritance_for_product(db: Session, product,
                                    keys: Optional[Iterable[str]] = None) -> Dict[int, RefreshResult]:
    keys = list(keys) if keys is not None else None
    return {variant.id: refresh_inheritance(db, variant, keys) for variant in product.variants}

def get_inheritance_summary(db: Session, owner) -> InheritanceSummary:
    summary = InheritanceSummary()
    rows: List[AttributeValue] = list(owner.attribute_values)
    summary.total_attributes = len(rows)

    for row in rows:
        definition = row.definition
        if row.is_inherited:
            summary.inherited += 1
            status = "inherited"
        elif row.is_override:
            summary.overridden += 1
            status = "overridden"
        else:
            summary.explicit += 1
            status = "explicit"
        summary.details[definition.key] = InheritanceDetail(
            status=status,
            value=row.typed_value,
            can_inherit=definition.supports_inheritance(),
            inheritance_strategy=definition.inheritance_strategy.value if definition.inheritance_strategy else None,
        )

    if owner.parent is None:
        return summary

    for definition in get_inheritable_definitions(db):
        if definition.key in summary.details:
            continue
        if _parent_row(owner, definition) is not None:
            summary.inheritable_available += 1
            summary.details[definition.key] = InheritanceDetail(
                status="available_for_inheritance",
                can_inherit=True,
                inheritance_strategy=definition.inheritance_strategy.value,
            )
    return summary

# Product level maintenance

def _variants_in_scope(db: Session, product=None) -> List[ProductVariant]:
    if product is not None:
        return sorted(product.variants, key=lambda variant: variant.id)
    return db.query(ProductVariant).order_by(ProductVariant.id).all()

def _inherited_rows(variant) -> List[AttributeValue]:
    rows = [row for row in variant.attribute_values if row.is_inherited]
    return sorted(rows, key=lambda row: (row.definition.sort_order or 0, row.key))

def inherit_attributes_for_product(db: Session, product, force: bool = False) -> ProductInheritanceResult:
    """Run inherit_all_attributes for every variant of ``product``."""
    result = ProductInheritanceResult(product_id=product.id)
    variants = _variants_in_scope(db, product)
    if not variants:
        result.summary.append("Product has no variants")
        return result

    for variant in variants:
        variant_result = inherit_all_attributes(db, variant, force=force)
        result.variant_results[variant.id] = variant_result
        result.variants_processed += 1
        result.total_inherited += len(variant_result.inherited)
        if variant_result.errors:
            result.variants_with_errors += 1
        else:
            result.variants_succeeded += 1

    result.summary.append(
        f"{result.variants_succeeded} of {result.variants_processed} variants inherited without errors"
    )
    result.summary.append(f"{result.total_inherited} attributes inherited")
    logger.info(
        "Product %s inheritance: %d variants, %d succeeded, %d with errors, %d attributes inherited",
        product.id, result.variants_processed, result.variants_succeeded,
        result.variants_with_errors, result.total_inherited,
    )
    return result

def cleanup_orphaned_inheritance(db: Session, product=None) -> OrphanCleanupResult:
    """
    Delete inherited variant rows whose product no longer holds a value for
    the attribute. Scoped to one product when given, otherwise every variant.
    """
    result = OrphanCleanupResult()
    with transaction(db):
        for variant in _variants_in_scope(db, product):
            for row in _inherited_rows(variant):
                result.total_checked += 1
                if _parent_row(variant, row.definition) is not None:
                    continue
                result.orphans_found += 1
                result.removed.append(VariantAttributeRef(variant_id=variant.id, key=row.key))
                variant.detach_attribute(row)
                result.orphans_removed += 1

    logger.info(
        "Orphaned inheritance cleanup: %d checked, %d found, %d removed",
        result.total_checked, result.orphans_found, result.orphans_removed,
    )
    return result

def find_inheritance_conflicts(db: Session, product=None) -> InheritanceConflicts:
    """
    Classify inherited variant rows that no longer line up with their
    definition or parent. Each row lands in the first matching bucket:
    inactive definition, definition no longer inheritable, parent value
    gone, stored value invalid.
    """
    conflicts = InheritanceConflicts()
    for variant in _variants_in_scope(db, product):
        for row in _inherited_rows(variant):
            definition = row.definition
            conflict = InheritanceConflict(variant_id=variant.id, key=row.key)
            if not definition.is_active:
                conflicts.inactive_definitions.append(conflict)
            elif not definition.supports_inheritance() or not definition.applies_to_owner(OwnerKind.VARIANT):
                conflicts.invalid_strategies.append(conflict)
            elif _parent_row(variant, definition) is None:
                conflicts.orphaned_inheritance.append(conflict)
            elif not row.is_valid:
                conflict.errors = list(row.validation_errors or [])
                conflicts.validation_failures.append(conflict)
    return conflicts

def _repair(variant, row: AttributeValue, kind: str) -> str:
    """Apply the fix for one conflict and return the action taken."""
    if kind == "inactive_definitions":
        variant.detach_attribute(row)
        return "removed_inactive_attribute"
    if kind == "orphaned_inheritance":
        variant.detach_attribute(row)
        return "removed_orphaned_inheritance"
    if kind == "invalid_strategies":
        check = row.definition.validate_value(row.raw)
        if not check.valid:
            raise AttributeValidationError(check.errors, row.raw)
        row.set_value(row.raw, AttributeSource.SYSTEM)
        return "kept_as_explicit"
    _inherit(variant, row.definition)
    return "re_inherited"

def repair_inheritance_conflicts(db: Session, conflicts: InheritanceConflicts) -> RepairResult:
    """
    Repair what find_inheritance_conflicts reported: rows on inactive
    definitions or with a vanished parent value are deleted, rows whose
    definition stopped being inheritable keep their value as an explicit
    system row, and invalid rows are re-inherited from the parent.
    """
    result = RepairResult()
    buckets = ("inactive_definitions", "invalid_strategies", "orphaned_inheritance", "validation_failures")
    with transaction(db):
        for kind in buckets:
            for conflict in getattr(conflicts, kind):
                entry = ConflictRepair(variant_id=conflict.variant_id, key=conflict.key, kind=kind)
                variant = db.get(ProductVariant, conflict.variant_id)
                row = None
                if variant is not None:
                    row = next((r for r in variant.attribute_values if r.key == conflict.key), None)
                if row is None or not row.is_inherited:
                    entry.error = "inherited attribute not found"
                    result.failed.append(entry)
                    continue
                try:
                    entry.action = _repair(variant, row, kind)
                except (InheritanceError, AttributeValidationError) as e:
                    entry.error = str(e)
                    result.failed.append(entry)
                    continue
                result.repaired.append(entry)

    logger.info("Repaired %d inheritance conflicts, %d failed", len(result.repaired), len(result.failed))
    return result

def get_inheritance_statistics(db: Session, product=None) -> InheritanceStatistics:
    variants = _variants_in_scope(db, product)
    stats = InheritanceStatistics(
        products=1 if product is not None else db.query(Product).count(),
        variants=len(variants),
    )
    for variant in variants:
        for row in variant.attribute_values:
            counts = stats.by_attribute.setdefault(row.key, AttributeInheritanceCounts())
            counts.total += 1
            stats.total_variant_attributes += 1
            if row.is_inherited:
                counts.inherited += 1
                stats.inherited_attributes += 1
            elif row.is_override:
                counts.overrides += 1
                stats.override_attributes += 1
            else:
                counts.explicit += 1
                stats.explicit_attributes += 1

    if stats.total_variant_attributes:
        stats.inheritance_percentage = round(
            stats.inherited_attributes / stats.total_variant_attributes * 100, 1
        )
    return stats
