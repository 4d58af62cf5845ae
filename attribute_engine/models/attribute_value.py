from datetime import datetime
from typing import Any, Optional
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, JSON, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from attribute_engine.db.session import Base
from attribute_engine.models.enums import AttributeSource, OwnerKind
from attribute_engine.utils.timestamps import parse_timestamp, utcnow

class AttributeValue(Base):
    """
    One stored value for one owner (a product or a variant, never both) and
    one attribute definition.

    ``raw`` is the serialized value; the typed value is always derived through
    the definition. Inherited rows are snapshots of the parent's raw value
    taken at ``inherited_at`` and only change through an explicit refresh.
    """
    __tablename__ = "attribute_values"
    # owned by a product or a variant; orphaned only when detached from both
    __mapper_args__ = {"legacy_is_orphan": True}
    __table_args__ = (
        UniqueConstraint("product_id", "attribute_definition_id", name="uq_attribute_values_product_definition"),
        UniqueConstraint("variant_id", "attribute_definition_id", name="uq_attribute_values_variant_definition"),
        CheckConstraint("(product_id IS NULL) <> (variant_id IS NULL)", name="ck_attribute_values_single_owner"),
        CheckConstraint("NOT (is_inherited AND is_override)", name="ck_attribute_values_inherited_or_override"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=True, index=True)
    attribute_definition_id = Column(Integer, ForeignKey("attribute_definitions.id"), nullable=False, index=True)

    raw = Column(Text)
    previous_raw = Column(Text)
    is_inherited = Column(Boolean, default=False, nullable=False)
    is_override = Column(Boolean, default=False, nullable=False)
    source = Column(Enum(AttributeSource), default=AttributeSource.MANUAL, nullable=False)
    inherited_at = Column(DateTime, nullable=True)
    inherited_from_value_id = Column(Integer, nullable=True)

    validation_errors = Column(JSON, default=list)
    is_valid = Column(Boolean, default=True, nullable=False)
    last_validated_at = Column(DateTime)
    value_changed_at = Column(DateTime)
    version = Column(Integer, default=0, nullable=False)

    # Per channel bookkeeping, keyed by channel name
    sync_status = Column(JSON, default=dict)
    last_synced_at = Column(JSON, default=dict)
    sync_errors = Column(JSON, default=dict)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    product = relationship("Product", back_populates="attribute_values")
    variant = relationship("ProductVariant", back_populates="attribute_values")
    definition = relationship("AttributeDefinition", lazy="joined")

    @classmethod
    def for_definition(cls, definition) -> "AttributeValue":
        """Blank, unattached row; callers attach it to an owner once written."""
        return cls(
            definition=definition,
            attribute_definition_id=definition.id,
            is_inherited=False,
            is_override=False,
            source=AttributeSource.MANUAL,
            validation_errors=[],
            is_valid=True,
            version=0,
            sync_status={},
            last_synced_at={},
            sync_errors={},
        )

    def __repr__(self) -> str:
        return f"<AttributeValue {self.key}={self.raw!r} inherited={self.is_inherited} override={self.is_override}>"

    @property
    def key(self) -> str:
        return self.definition.key

    @property
    def owner_kind(self) -> OwnerKind:
        return OwnerKind.VARIANT if self.variant_id is not None or self.variant is not None else OwnerKind.PRODUCT

    @property
    def typed_value(self) -> Any:
        cache_key = (self.raw, self.definition.data_type)
        cached = getattr(self, "_typed_cache", None)
        if cached is not None and cached[0] == cache_key:
            return cached[1]
        value = self.definition.parse_value(self.raw)
        self._typed_cache = (cache_key, value)
        return value

    # Writing values

    def set_value(self, value: Any, source: AttributeSource = AttributeSource.MANUAL) -> bool:
        return self._assign(value, source, is_override=False)

    def override_inherited_value(self, value: Any, source: AttributeSource = AttributeSource.MANUAL) -> bool:
        return self._assign(value, source, is_override=True)

    def inherit_from(self, parent_row: "AttributeValue") -> bool:
        definition = self.definition
        if not definition.supports_inheritance() or not definition.applies_to_owner(OwnerKind.VARIANT):
            return False

        if self.is_inherited and self.raw == parent_row.raw and self.is_valid:
            return True

        check = definition.validate_value(parent_row.raw)
        self.last_validated_at = utcnow()
        if not check.valid:
            self._mark_invalid(check.errors)
            return False

        self._store(parent_row.raw, AttributeSource.INHERITED)
        self.is_inherited = True
        self.is_override = False
        self.inherited_at = utcnow()
        self.inherited_from_value_id = parent_row.id
        return True

    def revalidate(self) -> bool:
        """Re-run validation of the stored raw value against the current definition."""
        check = self.definition.validate_value(self.raw)
        self.last_validated_at = utcnow()
        if check.valid:
            self.is_valid = True
            self.validation_errors = []
        else:
            self._mark_invalid(check.errors)
        return self.is_valid

    def _assign(self, value: Any, source: AttributeSource, is_override: bool) -> bool:
        definition = self.definition
        check = definition.validate_value(value)
        self.last_validated_at = utcnow()
        if not check.valid:
            self._mark_invalid(check.errors)
            return False

        self._store(definition.serialize_value(check.value), AttributeSource(source))
        self.is_inherited = False
        self.is_override = is_override
        self.inherited_at = None
        self.inherited_from_value_id = None
        return True

    def _store(self, raw: str, source: AttributeSource) -> None:
        if raw != self.raw:
            self.previous_raw = self.raw
            self.raw = raw
            self.value_changed_at = utcnow()
            self.version = (self.version or 0) + 1
        self.source = source
        self.is_valid = True
        self.validation_errors = []

    def _mark_invalid(self, errors) -> None:
        self.is_valid = False
        self.validation_errors = list(errors)

    # Marketplace sync bookkeeping

    def synced_at(self, channel: str) -> Optional[datetime]:
        return parse_timestamp((self.last_synced_at or {}).get(channel))

    def channel_status(self, channel: str) -> str:
        if not self.definition.should_sync_to(channel):
            return "disabled"
        return (self.sync_status or {}).get(channel, "pending")

    def needs_sync_to(self, channel: str) -> bool:
        if not self.definition.should_sync_to(channel):
            return False
        if self.channel_status(channel) != "synced":
            return True
        synced_at = self.synced_at(channel)
        if synced_at is None:
            return True
        return self.value_changed_at is not None and self.value_changed_at > synced_at

    def mark_synced(self, channel: str, at: Optional[datetime] = None) -> None:
        at = at or utcnow()
        self.sync_status = {**(self.sync_status or {}), channel: "synced"}
        self.last_synced_at = {**(self.last_synced_at or {}), channel: at.isoformat()}
        self.sync_errors = {k: v for k, v in (self.sync_errors or {}).items() if k != channel}

    def mark_sync_failed(self, channel: str, error: str) -> None:
        self.sync_status = {**(self.sync_status or {}), channel: "failed"}
        self.sync_errors = {**(self.sync_errors or {}), channel: error}
