from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from attribute_engine.db.session import Base
from attribute_engine.models.enums import OwnerKind
from attribute_engine.models.owner import AttributeOwnerMixin

class Product(AttributeOwnerMixin, Base):
    __tablename__ = "products"

    owner_kind = OwnerKind.PRODUCT

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True)
    sku = Column(String, unique=True, index=True, nullable=True)
    description = Column(String)
    is_active = Column(Boolean, default=True)

    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")
    attribute_values = relationship("AttributeValue", back_populates="product", cascade="all, delete-orphan")
