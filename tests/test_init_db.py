from attribute_engine.db.init_db import CORE_DEFINITIONS, init_db
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.enums import DataType, InheritanceStrategy


def test_seeds_core_definitions(db):
    created = init_db(db)
    assert created == [definition.key for definition in CORE_DEFINITIONS]

    light = db.query(AttributeDefinition).filter(AttributeDefinition.key == "light_filtering").one()
    assert light.data_type is DataType.ENUM
    assert light.enum_values == ["Blackout", "Sheer"]
    assert light.inheritance_strategy is InheritanceStrategy.ALWAYS


def test_is_idempotent(db):
    init_db(db)
    assert init_db(db) == []
    assert db.query(AttributeDefinition).count() == len(CORE_DEFINITIONS)


def test_seeded_defaults_are_valid(db):
    init_db(db)
    for definition in db.query(AttributeDefinition).all():
        if definition.default_value is not None:
            assert definition.default_typed_value() is not None


def test_seeded_rules_are_stored_as_json(db):
    init_db(db)
    db.expire_all()
    release = db.query(AttributeDefinition).filter(AttributeDefinition.key == "release_date").one()
    assert release.validation_rules == {"min": "2000-01-01"}
    assert release.validate_value("2024-05-01").valid
    assert not release.validate_value("1999-12-31").valid
