"""
Read side of the attribute engine.

The effective value of an attribute on an owner is the first candidate found
in this order:

1. an explicit (non-inherited) row on the owner, overrides included
2. a materialized inherited row on the owner (a snapshot of the parent)
3. the parent's own row, when the definition is inheritable with an
   ``always`` or ``fallback`` strategy
4. the definition's default value
5. None

Nothing here writes. Inherited snapshots are returned as stored even when
the parent has since changed; only ``refresh_inheritance`` moves them.
"""
import logging
from typing import Any, Dict, Iterator, Optional
from sqlalchemy.orm import Session
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.schemas.resolution import ResolutionPath, ResolutionStep
from attribute_engine.services.definitions import get_definition, list_definitions

logger = logging.getLogger(__name__)

LEVEL_EXPLICIT = "explicit"
LEVEL_INHERITED = "inherited"
LEVEL_PARENT = "parent"
LEVEL_DEFAULT = "default"

def _candidates(owner, definition: AttributeDefinition) -> Iterator[ResolutionStep]:
    row = owner.attribute_for(definition)

    if row is not None and not row.is_inherited:
        yield ResolutionStep(
            level=LEVEL_EXPLICIT,
            value=row.typed_value,
            provenance="override" if row.is_override else row.source.value,
            owner_kind=owner.owner_kind.value,
            owner_id=owner.id,
            recorded_at=row.value_changed_at,
        )

    if row is not None and row.is_inherited:
        yield ResolutionStep(
            level=LEVEL_INHERITED,
            value=row.typed_value,
            provenance=row.source.value,
            owner_kind=owner.owner_kind.value,
            owner_id=owner.id,
            recorded_at=row.inherited_at,
        )

    parent = owner.parent
    if parent is not None and definition.consults_parent():
        parent_row = parent.attribute_for(definition)
        if parent_row is not None:
            yield ResolutionStep(
                level=LEVEL_PARENT,
                value=parent_row.typed_value,
                provenance=parent_row.source.value,
                owner_kind=parent.owner_kind.value,
                owner_id=parent.id,
                recorded_at=parent_row.value_changed_at,
            )

    default = definition.default_typed_value()
    if default is not None:
        yield ResolutionStep(
            level=LEVEL_DEFAULT,
            value=default,
            provenance="attribute_definition",
        )

def get_effective_attribute_value(db: Session, owner, key: str) -> Any:
    definition = get_definition(db, key)
    if definition is None:
        logger.debug("No definition for %s; resolving to None", key)
        return None
    step = next(_candidates(owner, definition), None)
    return step.value if step is not None else None

def get_attribute_with_inheritance_path(db: Session, owner, key: str) -> Optional[ResolutionPath]:
    """
    Same precedence as get_effective_attribute_value, reporting every level
    that holds a candidate. The first one is marked ``selected``.
    """
    definition = get_definition(db, key)
    if definition is None:
        return None

    path = ResolutionPath(key=key)
    for step in _candidates(owner, definition):
        if not path.path:
            step.selected = True
            path.final_value = step.value
            path.resolved_level = step.level
        path.path.append(step)
    return path

def get_typed_attributes(db: Session, owner) -> Dict[str, Any]:
    """Effective value of every definition applicable to the owner that resolves to something."""
    values = {}
    for definition in list_definitions(db, owner.owner_kind):
        step = next(_candidates(owner, definition), None)
        if step is not None:
            values[definition.key] = step.value
    return values
