from datetime import date
from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict
from attribute_engine.models.enums import AppliesTo, DataType, InheritanceStrategy

class ValidationRules(BaseModel):
    """Rule set stored in AttributeDefinition.validation_rules."""
    model_config = ConfigDict(extra="ignore")

    min: Optional[Union[float, date]] = None
    max: Optional[Union[float, date]] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    options: Optional[List[str]] = None

class ValueCheck(BaseModel):
    valid: bool
    value: Any = None
    errors: List[str] = []

class AttributeDefinitionBase(BaseModel):
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    data_type: DataType = DataType.STRING
    enum_values: Optional[List[str]] = None
    validation_rules: ValidationRules = ValidationRules()
    default_value: Optional[str] = None
    is_inheritable: bool = False
    inheritance_strategy: InheritanceStrategy = InheritanceStrategy.NEVER
    applies_to: AppliesTo = AppliesTo.BOTH
    sync_to_shopify: bool = False
    sync_to_ebay: bool = False
    sync_to_mirakl: bool = False
    group: Optional[str] = "general"
    sort_order: int = 0

class AttributeDefinitionCreate(AttributeDefinitionBase):
    pass

class AttributeDefinition(AttributeDefinitionBase):
    id: int
    is_active: bool = True

    class Config:
        from_attributes = True
