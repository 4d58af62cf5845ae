import logging
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, JSON, String, Text
from sqlalchemy.orm import validates
from attribute_engine.core.errors import AttributeValidationError
from attribute_engine.db.session import Base
from attribute_engine.models.enums import AppliesTo, DataType, InheritanceStrategy, OwnerKind
from attribute_engine.schemas.attribute_definition import ValidationRules, ValueCheck
from attribute_engine.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}

# Each caster turns a raw or user supplied value into the typed value for its
# data type, raising ValueError with the tail of a user facing message.

def _to_string(value: Any) -> str:
    if isinstance(value, (dict, list, tuple, set)):
        raise ValueError("must be a text value")
    return str(value)

def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("must be a number")
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValueError("must be a number") from None
    except OverflowError:
        raise ValueError("must be a finite number") from None
    if math.isnan(number) or math.isinf(number):
        raise ValueError("must be a finite number")
    return number

def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError("must be true or false")

def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValueError("must be a valid date") from None

CASTERS: Dict[DataType, Callable[[Any], Any]] = {
    DataType.STRING: _to_string,
    DataType.NUMBER: _to_number,
    DataType.BOOLEAN: _to_boolean,
    DataType.ENUM: _to_string,
    DataType.DATE: _to_date,
}

def format_number(number: float) -> str:
    if float(number).is_integer():
        return str(int(number))
    return repr(float(number))

class AttributeDefinition(Base):
    __tablename__ = "attribute_definitions"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    description = Column(Text)
    data_type = Column(Enum(DataType), default=DataType.STRING, nullable=False)
    enum_values = Column(JSON, default=list)
    validation_rules = Column(JSON, default=dict)
    default_value = Column(String, nullable=True)
    is_inheritable = Column(Boolean, default=False)
    inheritance_strategy = Column(Enum(InheritanceStrategy), default=InheritanceStrategy.NEVER)
    applies_to = Column(Enum(AppliesTo), default=AppliesTo.BOTH)
    sync_to_shopify = Column(Boolean, default=False)
    sync_to_ebay = Column(Boolean, default=False)
    sync_to_mirakl = Column(Boolean, default=False)
    group = Column(String, default="general")
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Column defaults only apply on INSERT; unsaved definitions need them too.
    DEFAULTS = {
        "data_type": DataType.STRING,
        "enum_values": list,
        "validation_rules": dict,
        "is_inheritable": False,
        "inheritance_strategy": InheritanceStrategy.NEVER,
        "applies_to": AppliesTo.BOTH,
        "sync_to_shopify": False,
        "sync_to_ebay": False,
        "sync_to_mirakl": False,
        "group": "general",
        "sort_order": 0,
        "is_active": True,
    }

    def __init__(self, **kwargs):
        for field, default in self.DEFAULTS.items():
            if kwargs.get(field) is None:
                kwargs[field] = default() if callable(default) else default
        super().__init__(**kwargs)

    @validates("data_type")
    def _coerce_data_type(self, _, value):
        return DataType(value) if value is not None else value

    @validates("inheritance_strategy")
    def _coerce_strategy(self, _, value):
        return InheritanceStrategy(value) if value is not None else value

    @validates("applies_to")
    def _coerce_applies_to(self, _, value):
        return AppliesTo(value) if value is not None else value

    @validates("validation_rules")
    def _coerce_rules(self, _, value):
        if isinstance(value, ValidationRules):
            return value.model_dump(mode="json", exclude_none=True)
        return value or {}

    def __repr__(self) -> str:
        return f"<AttributeDefinition {self.key} ({self.data_type})>"

    @property
    def label(self) -> str:
        return self.name or self.key

    @property
    def rules(self) -> ValidationRules:
        return ValidationRules.model_validate(self.validation_rules or {})

    # Typing and validation

    def cast_value(self, raw: Any) -> Any:
        """
        Convert ``raw`` to this definition's type and enforce its rules.

        Raises AttributeValidationError carrying every violated rule.
        """
        if raw is None or (isinstance(raw, str) and raw.strip() == ""):
            raise AttributeValidationError([f"The {self.label} field is required."], raw)

        try:
            typed = CASTERS[self.data_type or DataType.STRING](raw)
        except ValueError as e:
            raise AttributeValidationError([f"The {self.label} {e}."], raw) from None

        errors = self._rule_violations(typed)
        if errors:
            raise AttributeValidationError(errors, raw)
        return typed

    def validate_value(self, value: Any) -> ValueCheck:
        try:
            return ValueCheck(valid=True, value=self.cast_value(value))
        except AttributeValidationError as e:
            return ValueCheck(valid=False, value=value, errors=e.errors)

    def parse_value(self, raw: Optional[str]) -> Any:
        """Type-only conversion for stored values; rules are not checked."""
        if raw is None:
            return None
        try:
            return CASTERS[self.data_type or DataType.STRING](raw)
        except ValueError:
            return raw

    def serialize_value(self, typed: Any) -> str:
        if self.data_type == DataType.BOOLEAN:
            return "1" if typed else "0"
        if self.data_type == DataType.NUMBER:
            return format_number(typed)
        if self.data_type == DataType.DATE:
            return typed.isoformat()
        return str(typed)

    def default_typed_value(self) -> Any:
        if self.default_value is None:
            return None
        try:
            return self.cast_value(self.default_value)
        except AttributeValidationError as e:
            logger.warning("Default value of %s is invalid: %s", self.key, e)
            return None

    def allowed_options(self) -> List[str]:
        if self.data_type == DataType.ENUM:
            return list(self.enum_values or [])
        return list(self.rules.options or [])

    def _rule_violations(self, typed: Any) -> List[str]:
        # Rules are free-form JSON; a broken rule set rejects the value instead of raising.
        try:
            return self._check_rules(typed)
        except (TypeError, ValueError, OverflowError, re.error) as e:
            logger.warning("Validation rules of %s could not be applied: %s", self.key, e)
            return [f"The {self.label} has invalid validation rules ({e})."]

    def _check_rules(self, typed: Any) -> List[str]:
        rules = self.rules
        errors = []

        if self.data_type == DataType.NUMBER:
            if rules.min is not None and typed < float(rules.min):
                errors.append(f"The {self.label} must be at least {format_number(rules.min)}.")
            if rules.max is not None and typed > float(rules.max):
                errors.append(f"The {self.label} may not be greater than {format_number(rules.max)}.")

        elif self.data_type == DataType.DATE:
            if rules.min is not None and typed < _to_date(rules.min):
                errors.append(f"The {self.label} must be a date on or after {_to_date(rules.min)}.")
            if rules.max is not None and typed > _to_date(rules.max):
                errors.append(f"The {self.label} must be a date on or before {_to_date(rules.max)}.")

        elif self.data_type in (DataType.STRING, DataType.ENUM):
            if rules.max_length is not None and len(typed) > rules.max_length:
                errors.append(f"The {self.label} may not be greater than {rules.max_length} characters.")
            if rules.pattern and re.search(rules.pattern, typed) is None:
                errors.append(f"The {self.label} format is invalid.")

        if self.data_type == DataType.ENUM and not self.enum_values:
            errors.append(f"The {self.label} has no allowed values configured.")
        elif self.data_type in (DataType.ENUM, DataType.STRING):
            options = self.allowed_options()
            if options and typed not in options:
                errors.append(f"The {self.label} must be one of: {', '.join(options)}.")

        return errors

    # Inheritance policy

    def supports_inheritance(self) -> bool:
        return bool(self.is_inheritable) and self.inheritance_strategy not in (None, InheritanceStrategy.NEVER)

    def consults_parent(self) -> bool:
        return self.supports_inheritance() and self.inheritance_strategy in (
            InheritanceStrategy.ALWAYS,
            InheritanceStrategy.FALLBACK,
        )

    def applies_to_owner(self, kind: OwnerKind) -> bool:
        applies_to = self.applies_to or AppliesTo.BOTH
        return applies_to == AppliesTo.BOTH or applies_to.value == OwnerKind(kind).value

    # Marketplace channels

    def should_sync_to(self, channel: str) -> bool:
        return bool(getattr(self, f"sync_to_{channel.lower()}", False))
