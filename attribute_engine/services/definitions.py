from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from attribute_engine.core.errors import SchemaError
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.enums import AppliesTo, InheritanceStrategy, OwnerKind

def get_definition(db: Session, key: str) -> Optional[AttributeDefinition]:
    """Active definition for ``key``, or None."""
    return db.query(AttributeDefinition)\
        .filter(AttributeDefinition.key == key, AttributeDefinition.is_active.is_(True))\
        .first()

def require_definition(db: Session, key: str) -> AttributeDefinition:
    definition = get_definition(db, key)
    if definition is None:
        raise SchemaError(key)
    return definition

def _applicable_to(query, owner_kind: OwnerKind):
    return query.filter(or_(
        AttributeDefinition.applies_to == AppliesTo.BOTH,
        AttributeDefinition.applies_to == AppliesTo(OwnerKind(owner_kind).value),
    ))

def list_definitions(db: Session, owner_kind: Optional[OwnerKind] = None) -> List[AttributeDefinition]:
    query = db.query(AttributeDefinition).filter(AttributeDefinition.is_active.is_(True))
    if owner_kind is not None:
        query = _applicable_to(query, owner_kind)
    return query.order_by(AttributeDefinition.sort_order, AttributeDefinition.key).all()

def get_inheritable_definitions(db: Session) -> List[AttributeDefinition]:
    """Active definitions a variant can inherit, in (sort_order, key) order."""
    query = db.query(AttributeDefinition).filter(
        AttributeDefinition.is_active.is_(True),
        AttributeDefinition.is_inheritable.is_(True),
        AttributeDefinition.inheritance_strategy != InheritanceStrategy.NEVER,
    )
    query = _applicable_to(query, OwnerKind.VARIANT)
    return query.order_by(AttributeDefinition.sort_order, AttributeDefinition.key).all()
