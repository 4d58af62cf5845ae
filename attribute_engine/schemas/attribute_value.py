from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from attribute_engine.models.enums import AttributeSource, CleanupAction

class AttributeValue(BaseModel):
    id: int
    attribute_definition_id: int
    raw: Optional[str] = None
    is_inherited: bool
    is_override: bool
    source: AttributeSource
    inherited_at: Optional[datetime] = None
    validation_errors: Optional[List[str]] = None
    is_valid: bool
    value_changed_at: Optional[datetime] = None
    version: int = 0

    class Config:
        from_attributes = True

class AttributeValueWrite(BaseModel):
    value: Any
    source: AttributeSource = AttributeSource.MANUAL

class AttributeValuesSync(BaseModel):
    values: Dict[str, Any]
    source: AttributeSource = AttributeSource.MANUAL

class InheritRequest(BaseModel):
    force: bool = False

class BulkInheritRequest(BaseModel):
    keys: List[str]

class RefreshRequest(BaseModel):
    keys: Optional[List[str]] = None

class VariantsInheritRequest(BaseModel):
    variant_ids: List[int]
    force: bool = False

class CleanupRequest(BaseModel):
    action: CleanupAction = CleanupAction.FIX

class MarkSyncedRequest(BaseModel):
    keys: Optional[List[str]] = None

class WriteResult(BaseModel):
    """Outcome of a single-value write; truthy when the write happened."""
    success: bool
    errors: List[str] = []

    def __bool__(self) -> bool:
        return self.success
