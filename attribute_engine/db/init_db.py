import logging
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from attribute_engine.core.cache import clear_cache_pattern
from attribute_engine.db.base import Base
from attribute_engine.db.session import transaction
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.enums import AppliesTo, DataType, InheritanceStrategy
from attribute_engine.schemas.attribute_definition import AttributeDefinitionCreate, ValidationRules

logger = logging.getLogger(__name__)

CORE_DEFINITIONS: List[AttributeDefinitionCreate] = [
    AttributeDefinitionCreate(
        key="brand", name="Brand", data_type=DataType.STRING,
        validation_rules=ValidationRules(max_length=100),
        is_inheritable=True, inheritance_strategy=InheritanceStrategy.ALWAYS,
        sync_to_shopify=True, sync_to_ebay=True, sync_to_mirakl=True,
        group="general", sort_order=10,
    ),
    AttributeDefinitionCreate(
        key="material", name="Material", data_type=DataType.STRING,
        validation_rules=ValidationRules(max_length=255),
        is_inheritable=True, inheritance_strategy=InheritanceStrategy.FALLBACK,
        sync_to_shopify=True, sync_to_ebay=True,
        group="physical", sort_order=20,
    ),
    AttributeDefinitionCreate(
        key="color", name="Color", data_type=DataType.STRING,
        validation_rules=ValidationRules(max_length=50),
        applies_to=AppliesTo.VARIANT,
        sync_to_shopify=True, sync_to_ebay=True, sync_to_mirakl=True,
        group="physical", sort_order=30,
    ),
    AttributeDefinitionCreate(
        key="light_filtering", name="Light Filtering", data_type=DataType.ENUM,
        enum_values=["Blackout", "Sheer"],
        is_inheritable=True, inheritance_strategy=InheritanceStrategy.ALWAYS,
        sync_to_shopify=True, sync_to_mirakl=True,
        group="window_treatment", sort_order=40,
    ),
    AttributeDefinitionCreate(
        key="cordless", name="Cordless", data_type=DataType.BOOLEAN,
        default_value="0",
        is_inheritable=True, inheritance_strategy=InheritanceStrategy.FALLBACK,
        sync_to_shopify=True, sync_to_ebay=True,
        group="window_treatment", sort_order=50,
    ),
    AttributeDefinitionCreate(
        key="warranty_years", name="Warranty (years)", data_type=DataType.NUMBER,
        validation_rules=ValidationRules(min=0, max=25),
        default_value="1",
        is_inheritable=True, inheritance_strategy=InheritanceStrategy.FALLBACK,
        applies_to=AppliesTo.BOTH,
        sync_to_ebay=True,
        group="general", sort_order=60,
    ),
    AttributeDefinitionCreate(
        key="width_cm", name="Width (cm)", data_type=DataType.NUMBER,
        validation_rules=ValidationRules(min=1, max=1000),
        applies_to=AppliesTo.VARIANT,
        sync_to_shopify=True, sync_to_ebay=True, sync_to_mirakl=True,
        group="dimensions", sort_order=70,
    ),
    AttributeDefinitionCreate(
        key="release_date", name="Release Date", data_type=DataType.DATE,
        validation_rules=ValidationRules(min=date(2000, 1, 1)),
        applies_to=AppliesTo.PRODUCT,
        group="general", sort_order=80,
    ),
]

def init_db(db: Session) -> List[str]:
    """
    Create tables and seed the core attribute definitions. Existing keys are
    left alone; returns the keys created.
    """
    Base.metadata.create_all(bind=db.get_bind())

    existing = {key for (key,) in db.query(AttributeDefinition.key).all()}
    created = []
    with transaction(db):
        for definition in CORE_DEFINITIONS:
            if definition.key in existing:
                continue
            db.add(AttributeDefinition(**definition.model_dump(mode="json", exclude_none=True)))
            created.append(definition.key)

    if created:
        clear_cache_pattern("attribute_definitions:*")
        logger.info("Seeded %d attribute definitions: %s", len(created), ", ".join(created))
    return created
