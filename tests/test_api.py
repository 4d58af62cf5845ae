from attribute_engine.core.config import settings
from attribute_engine.models.enums import DataType, InheritanceStrategy
from attribute_engine.services.inheritance import set_attribute_value

API = settings.API_V1_STR


def test_root(client):
    assert client.get("/").status_code == 200


def test_list_definitions(client, make_definition, inheritable):
    make_definition("gtin", sort_order=2)
    inheritable("brand", sort_order=1)
    response = client.get(f"{API}/attributes/definitions")
    assert response.status_code == 200
    assert [d["key"] for d in response.json()] == ["brand", "gtin"]
    assert response.json()[0]["inheritance_strategy"] == "always"


def test_get_definition(client, make_definition):
    make_definition("width_cm", data_type=DataType.NUMBER, validation_rules={"min": 1})
    response = client.get(f"{API}/attributes/definitions/width_cm")
    assert response.status_code == 200
    assert response.json()["validation_rules"]["min"] == 1
    assert client.get(f"{API}/attributes/definitions/nope").status_code == 404


def test_product_write_and_read(client, product, make_definition):
    make_definition("width_cm", data_type=DataType.NUMBER, validation_rules={"max": 300})

    response = client.put(f"{API}/products/{product.id}/attributes/width_cm", json={"value": "120"})
    assert response.status_code == 200
    assert response.json()["raw"] == "120"

    response = client.get(f"{API}/products/{product.id}/attributes/width_cm")
    assert response.json() == {"key": "width_cm", "value": 120.0}

    response = client.put(f"{API}/products/{product.id}/attributes/width_cm", json={"value": "900"})
    assert response.status_code == 422
    assert response.json()["detail"] == ["The Width Cm may not be greater than 300."]

    response = client.put(f"{API}/products/{product.id}/attributes/width_cm", json={"value": 10 ** 400})
    assert response.status_code == 422
    assert response.json()["detail"] == ["The Width Cm must be a finite number."]


def test_unknown_owner_and_key(client, product):
    assert client.get(f"{API}/products/9999/attributes").status_code == 404
    assert client.get(f"{API}/variants/9999/attributes").status_code == 404
    assert client.get(f"{API}/products/{product.id}/attributes/nope").status_code == 404


def test_variant_inheritance_flow(client, db, product, variant, make_definition):
    make_definition(
        "light_filtering", data_type=DataType.ENUM, enum_values=["Blackout", "Sheer"],
        is_inheritable=True, inheritance_strategy=InheritanceStrategy.ALWAYS,
    )
    set_attribute_value(db, product, "light_filtering", "Blackout")
    base = f"{API}/variants/{variant.id}/attributes"

    response = client.post(f"{base}/inherit", json={})
    assert response.status_code == 200
    assert response.json()["inherited"] == ["light_filtering"]

    response = client.put(f"{base}/light_filtering/override", json={"value": "Sheer"})
    assert response.status_code == 200
    assert response.json()["is_override"] is True

    path = client.get(f"{base}/light_filtering/path").json()
    assert path["resolved_level"] == "explicit"
    assert [step["level"] for step in path["path"]] == ["explicit", "parent"]

    response = client.delete(f"{base}/light_filtering/override")
    assert response.json() == {"key": "light_filtering", "value": "Blackout"}
    assert client.delete(f"{base}/light_filtering/override").status_code == 404

    summary = client.get(f"{base}/inheritance-summary").json()
    assert summary["inherited"] == 1


def test_invalid_override_returns_errors(client, variant, make_definition):
    make_definition("light_filtering", data_type=DataType.ENUM, enum_values=["Blackout", "Sheer"])
    response = client.put(
        f"{API}/variants/{variant.id}/attributes/light_filtering/override", json={"value": "Dimout"}
    )
    assert response.status_code == 422
    assert response.json()["detail"] == ["The Light Filtering must be one of: Blackout, Sheer."]


def test_refresh_and_bulk_inherit(client, db, product, variant, inheritable):
    inheritable("brand")
    inheritable("material")
    set_attribute_value(db, product, "brand", "Acme")
    base = f"{API}/variants/{variant.id}/attributes"

    result = client.post(f"{base}/bulk-inherit", json={"keys": ["brand", "material"]}).json()
    assert result["inherited"] == ["brand"]
    assert result["skipped"] == [{"key": "material", "reason": "product does not have this attribute"}]

    set_attribute_value(db, product, "brand", "Globex")
    result = client.post(f"{base}/refresh", json={}).json()
    assert result["updated"] == [{"key": "brand", "old": "Acme", "new": "Globex"}]


def test_inherit_for_variant_ids(client, db, product, variant, inheritable):
    inheritable("brand")
    set_attribute_value(db, product, "brand", "Acme")

    response = client.post(f"{API}/variants/inherit", json={"variant_ids": [variant.id, 404]})
    body = response.json()
    assert body[str(variant.id)]["inherited"] == ["brand"]
    assert "variant" in body["404"]["errors"]


def test_sync_validate_and_cleanup(client, db, product, make_definition):
    width = make_definition("width_cm", data_type=DataType.NUMBER, sync_to_shopify=True)
    base = f"{API}/products/{product.id}/attributes"

    result = client.post(f"{base}/sync", json={"values": {"width_cm": "500", "ghost": "x"}}).json()
    assert result["created"] == ["width_cm"]
    assert list(result["errors"]) == ["ghost"]

    width.validation_rules = {"max": 200}
    db.commit()
    report = client.post(f"{base}/validate").json()
    assert report["valid"] is False

    report = client.post(f"{base}/cleanup", json={"action": "report"}).json()
    assert report["processed"] == 1
    assert client.post(f"{base}/cleanup", json={"action": "shred"}).status_code == 422

    status = client.get(f"{base}/sync-status", params={"channel": "shopify"}).json()
    assert status["width_cm"]["needs_sync"] is False

    stats = client.get(f"{base}/statistics").json()
    assert stats["invalid_attributes"] == 1


def test_mark_synced(client, db, product, make_definition):
    make_definition("brand", sync_to_shopify=True)
    set_attribute_value(db, product, "brand", "Acme")
    base = f"{API}/products/{product.id}/attributes"

    assert client.post(f"{base}/sync-status/shopify", json={}).json() == ["brand"]
    status = client.get(f"{base}/sync-status").json()
    assert status["brand"]["shopify"]["status"] == "synced"


def test_definition_listing_is_cached(client, fake_redis, make_definition):
    make_definition("brand")

    assert [d["key"] for d in client.get(f"{API}/attributes/definitions").json()] == ["brand"]
    assert "attribute_definitions:all" in fake_redis.store

    make_definition("gtin")
    assert [d["key"] for d in client.get(f"{API}/attributes/definitions").json()] == ["brand"]


def test_product_inheritance_maintenance(client, db, product, variant, inheritable):
    brand = inheritable("brand")
    set_attribute_value(db, product, "brand", "Acme")
    base = f"{API}/products/{product.id}/attributes"

    body = client.post(f"{base}/inherit-variants", json={}).json()
    assert body["variants_succeeded"] == 1
    assert body["variant_results"][str(variant.id)]["inherited"] == ["brand"]

    stats = client.get(f"{base}/inheritance-statistics").json()
    assert stats["inherited_attributes"] == 1
    assert stats["inheritance_percentage"] == 100.0

    product.detach_attribute(product.attribute_for(brand))
    db.commit()
    conflicts = client.get(f"{base}/inheritance-conflicts").json()
    assert conflicts["orphaned_inheritance"] == [{"variant_id": variant.id, "key": "brand", "errors": []}]

    assert client.post(f"{base}/cleanup-orphans").json()["orphans_removed"] == 1
    assert client.post(f"{base}/inheritance-conflicts/repair").json() == {"repaired": [], "failed": []}
