from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from attribute_engine.db.session import Base
from attribute_engine.models.enums import OwnerKind
from attribute_engine.models.owner import AttributeOwnerMixin

class ProductVariant(AttributeOwnerMixin, Base):
    __tablename__ = "product_variants"

    owner_kind = OwnerKind.VARIANT

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    sku = Column(String, unique=True, index=True)
    name = Column(String)

    product = relationship("Product", back_populates="variants")
    attribute_values = relationship("AttributeValue", back_populates="variant", cascade="all, delete-orphan")

    @property
    def parent(self):
        return self.product
