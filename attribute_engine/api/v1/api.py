from fastapi import APIRouter
from attribute_engine.api.v1.endpoints import attribute, product, variant

api_router = APIRouter()

api_router.include_router(attribute.router, prefix="/attributes", tags=["attributes"])
api_router.include_router(product.router, prefix="/products", tags=["products"])
api_router.include_router(variant.router, prefix="/variants", tags=["variants"])
