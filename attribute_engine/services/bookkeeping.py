import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union
from sqlalchemy.orm import Session
from attribute_engine.core.config import settings
from attribute_engine.db.session import transaction
from attribute_engine.models.attribute_value import AttributeValue
from attribute_engine.models.enums import AttributeSource, CleanupAction
from attribute_engine.schemas.operations import (
    AttributeStatistics, ChannelSyncStatus, CleanupReport, ValidationReport,
)
from attribute_engine.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

def _rows(owner, keys: Optional[Iterable[str]] = None) -> List[AttributeValue]:
    wanted = set(keys) if keys is not None else None
    rows = [row for row in owner.attribute_values if wanted is None or row.key in wanted]
    return sorted(rows, key=lambda row: (row.definition.sort_order or 0, row.key))

def validate_all_attributes(db: Session, owner) -> ValidationReport:
    """
    Revalidate every stored value against its current definition and
    persist the outcome.
    """
    report = ValidationReport()
    with transaction(db):
        for row in _rows(owner):
            report.validated_count += 1
            if not row.revalidate():
                report.errors[row.key] = list(row.validation_errors)
    report.valid = not report.errors

    logger.info(
        "Validated %d attributes on %s %s: %d invalid",
        report.validated_count, owner.owner_kind.value, owner.id, len(report.errors),
    )
    return report

def _channel_status(row: AttributeValue, channel: str) -> ChannelSyncStatus:
    if channel not in settings.SYNC_CHANNELS:
        return ChannelSyncStatus(should_sync=False, status="disabled", needs_sync=False, is_valid=row.is_valid)
    return ChannelSyncStatus(
        should_sync=row.definition.should_sync_to(channel),
        status=row.channel_status(channel),
        needs_sync=row.needs_sync_to(channel) and row.is_valid,
        is_valid=row.is_valid,
        last_synced_at=row.synced_at(channel),
    )

def get_attributes_sync_status(
    db: Session, owner, channel: Optional[str] = None
) -> Dict[str, Union[ChannelSyncStatus, Dict[str, ChannelSyncStatus]]]:
    """
    Per key readiness for marketplace sync. With ``channel`` each key maps to
    one status, otherwise to a map over every configured channel.
    """
    status = {}
    for row in _rows(owner):
        if channel is not None:
            status[row.key] = _channel_status(row, channel)
        else:
            status[row.key] = {name: _channel_status(row, name) for name in settings.SYNC_CHANNELS}
    return status

def mark_attributes_synced(db: Session, owner, channel: str,
                           keys: Optional[Iterable[str]] = None, at: Optional[datetime] = None) -> List[str]:
    """Record a successful push to ``channel``; returns the keys marked."""
    at = at or utcnow()
    marked = []
    with transaction(db):
        for row in _rows(owner, keys):
            if not row.definition.should_sync_to(channel):
                continue
            row.mark_synced(channel, at)
            marked.append(row.key)
    logger.info("Marked %d attributes synced to %s on %s %s", len(marked), channel, owner.owner_kind.value, owner.id)
    return marked

def mark_attributes_sync_failed(db: Session, owner, channel: str, error: str,
                                keys: Optional[Iterable[str]] = None) -> List[str]:
    marked = []
    with transaction(db):
        for row in _rows(owner, keys):
            if not row.definition.should_sync_to(channel):
                continue
            row.mark_sync_failed(channel, error)
            marked.append(row.key)
    logger.warning("Sync to %s failed for %d attributes on %s %s: %s",
                   channel, len(marked), owner.owner_kind.value, owner.id, error)
    return marked

def clean_up_invalid_attributes(db: Session, owner, action: Union[CleanupAction, str] = CleanupAction.FIX) -> CleanupReport:
    """
    Deal with every invalid row on the owner.

    ``fix`` revalidates and then falls back to the definition default; rows
    that still fail stay invalid and are reported as unfixable. ``remove``
    deletes them. ``report`` only lists them.
    """
    action = CleanupAction(action)
    report = CleanupReport(action=action.value)
    invalid = [row for row in _rows(owner) if not row.is_valid]

    if action == CleanupAction.REPORT:
        for row in invalid:
            report.processed += 1
            report.errors[row.key] = list(row.validation_errors or [])
        return report

    with transaction(db):
        for row in invalid:
            report.processed += 1
            key = row.key

            if action == CleanupAction.REMOVE:
                owner.detach_attribute(row)
                report.removed += 1
                continue

            if row.revalidate():
                report.fixed += 1
                continue

            errors = list(row.validation_errors or [])
            default = row.definition.default_value
            if default is not None and row.definition.validate_value(default).valid:
                row.set_value(default, AttributeSource.SYSTEM)
                report.fixed += 1
                continue

            # left invalid
            report.unfixable += 1
            report.unfixable_keys.append(key)
            report.errors[key] = errors

    logger.info(
        "Cleanup (%s) on %s %s: %d processed, %d fixed, %d removed, %d unfixable",
        action.value, owner.owner_kind.value, owner.id,
        report.processed, report.fixed, report.removed, report.unfixable,
    )
    return report

def get_attributes_statistics(db: Session, owner) -> AttributeStatistics:
    rows = _rows(owner)
    stats = AttributeStatistics(total_attributes=len(rows))
    for row in rows:
        if row.is_valid:
            stats.valid_attributes += 1
        else:
            stats.invalid_attributes += 1
        source = row.source.value
        stats.by_source[source] = stats.by_source.get(source, 0) + 1
        group = row.definition.group or "general"
        stats.by_group[group] = stats.by_group.get(group, 0) + 1

    if rows:
        stats.completion_percentage = round(stats.valid_attributes / len(rows) * 100, 1)
    return stats
