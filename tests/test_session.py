import pytest
from attribute_engine.core.config import settings
from attribute_engine.core.errors import StorageError
from attribute_engine.db.session import transaction
from attribute_engine.models.attribute_value import AttributeValue
from attribute_engine.models.enums import AttributeSource
from attribute_engine.models.product import Product
from attribute_engine.services import resolver
from attribute_engine.services.inheritance import inherit_all_attributes, set_attribute_value, sync_attributes


def test_storage_failure_rolls_back(db, product):
    with pytest.raises(StorageError):
        with transaction(db):
            db.add(Product(name="Duplicate", sku=product.sku))
            db.flush()
    assert db.query(Product).count() == 1


def test_other_errors_propagate_after_rollback(db):
    with pytest.raises(KeyError):
        with transaction(db):
            db.add(Product(name="Draft", sku="DRAFT-1"))
            raise KeyError("boom")
    assert db.query(Product).count() == 0


def insert_unseen_row(db, definition, **owner):
    """Insert a value with plain SQL so the owner's loaded collection does not see it."""
    db.execute(AttributeValue.__table__.insert().values(
        attribute_definition_id=definition.id, raw="Wool", is_inherited=False, is_override=False,
        source=AttributeSource.MANUAL, is_valid=True, version=0, **owner,
    ))


def test_batch_write_rolls_back_every_key_on_commit_failure(db, product, make_definition):
    make_definition("brand")
    material = make_definition("material")
    assert product.attribute_values == []
    insert_unseen_row(db, material, product_id=product.id)

    with pytest.raises(StorageError):
        sync_attributes(db, product, {"brand": "Acme", "material": "Linen"})

    db.expire_all()
    assert db.query(AttributeValue).count() == 0
    assert product.attribute_values == []


def test_inherit_all_rolls_back_every_key_on_commit_failure(db, product, variant, inheritable):
    inheritable("brand", sort_order=1)
    material = inheritable("material", sort_order=2)
    set_attribute_value(db, product, "brand", "Acme")
    set_attribute_value(db, product, "material", "Linen")
    assert variant.attribute_values == []
    insert_unseen_row(db, material, variant_id=variant.id)

    with pytest.raises(StorageError):
        inherit_all_attributes(db, variant)

    db.expire_all()
    assert db.query(AttributeValue).filter(AttributeValue.variant_id == variant.id).count() == 0
    assert db.query(AttributeValue).filter(AttributeValue.product_id == product.id).count() == 2


def test_storage_error_maps_to_503(client, product, monkeypatch):
    def unavailable(db, owner):
        raise StorageError("database is locked")

    monkeypatch.setattr(resolver, "get_typed_attributes", unavailable)
    response = client.get(f"{settings.API_V1_STR}/products/{product.id}/attributes")
    assert response.status_code == 503
