import fnmatch
import os

os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from attribute_engine.core import cache
from attribute_engine.db.base import Base
from attribute_engine.db.session import get_db
from attribute_engine.main import app
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.enums import AppliesTo, DataType, InheritanceStrategy
from attribute_engine.models.product import Product
from attribute_engine.models.variant import ProductVariant

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_definition(db):
    def _make(key, **fields):
        fields.setdefault("name", key.replace("_", " ").title())
        fields.setdefault("data_type", DataType.STRING)
        definition = AttributeDefinition(key=key, **fields)
        db.add(definition)
        db.commit()
        return definition
    return _make


@pytest.fixture
def inheritable(make_definition):
    """Definition a variant can inherit, defaulting to the ``always`` strategy."""
    def _make(key, strategy=InheritanceStrategy.ALWAYS, **fields):
        fields.setdefault("applies_to", AppliesTo.BOTH)
        return make_definition(key, is_inheritable=True, inheritance_strategy=strategy, **fields)
    return _make


@pytest.fixture
def product(db):
    product = Product(name="Roller Blind", sku="RB-100")
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def make_variant(db, product):
    counter = {"n": 0}

    def _make(parent=None, **fields):
        counter["n"] += 1
        fields.setdefault("sku", f"RB-100-{counter['n']}")
        variant = ProductVariant(product=parent or product, **fields)
        db.add(variant)
        db.commit()
        return variant
    return _make


@pytest.fixture
def variant(make_variant):
    return make_variant(name="Roller Blind 60cm")


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class FakeRedis:
    def __init__(self):
        self.store = {}

    def setex(self, key, expire, value):
        self.store[key] = value

    def get(self, key):
        return self.store.get(key)

    def keys(self, pattern):
        return [key for key in self.store if fnmatch.fnmatch(key, pattern)]

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "redis_client", fake)
    return fake
