# Import every model so Base.metadata and relationship names are complete
from attribute_engine.db.session import Base
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.attribute_value import AttributeValue
from attribute_engine.models.product import Product
from attribute_engine.models.variant import ProductVariant
