from typing import Optional
from sqlalchemy import inspect
from sqlalchemy.orm import object_session

class AttributeOwnerMixin:
    """
    Capability shared by every entity that carries attribute values.

    Implementers provide an ``attribute_values`` relationship and set
    ``owner_kind``; variants additionally expose their product as ``parent``.
    """

    @property
    def parent(self) -> Optional["AttributeOwnerMixin"]:
        return None

    def attribute_for(self, definition):
        for row in self.attribute_values:
            if row.attribute_definition_id == definition.id:
                return row
        return None

    def attach_attribute(self, row) -> None:
        self.attribute_values.append(row)

    def detach_attribute(self, row) -> None:
        self.attribute_values.remove(row)
        # a row never outlives its owner link
        if inspect(row).persistent:
            object_session(row).delete(row)
