from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from attribute_engine.db.session import get_db
from attribute_engine.models.attribute_definition import AttributeDefinition
from attribute_engine.models.product import Product
from attribute_engine.models.variant import ProductVariant
from attribute_engine.services.definitions import get_definition

PRODUCT_NOT_FOUND = "Product not found"
VARIANT_NOT_FOUND = "Variant not found"

async def get_product_or_404(product_id: int, db: Session = Depends(get_db)) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=PRODUCT_NOT_FOUND)
    return product

async def get_variant_or_404(variant_id: int, db: Session = Depends(get_db)) -> ProductVariant:
    variant = db.query(ProductVariant).filter(ProductVariant.id == variant_id).first()
    if not variant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=VARIANT_NOT_FOUND)
    return variant

def definition_or_404(db: Session, key: str) -> AttributeDefinition:
    definition = get_definition(db, key)
    if not definition:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Attribute '{key}' not found")
    return definition
