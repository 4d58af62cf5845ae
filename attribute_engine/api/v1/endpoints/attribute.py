from typing import List, Optional
from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from attribute_engine.api import deps
from attribute_engine.core.cache import get_cache, set_cache
from attribute_engine.db.session import get_db
from attribute_engine.models.enums import OwnerKind
from attribute_engine.schemas.attribute_definition import AttributeDefinition
from attribute_engine.services.definitions import list_definitions

router = APIRouter()

@router.get("/definitions", response_model=List[AttributeDefinition])
async def get_attribute_definitions(
    owner_kind: Optional[OwnerKind] = None,
    db: Session = Depends(get_db)
):
    """
    Retrieve active attribute definitions, optionally only those applicable
    to one owner kind.
    """
    cache_key = f"attribute_definitions:{owner_kind.value if owner_kind else 'all'}"
    cached_data = get_cache(cache_key)
    if cached_data:
        return cached_data

    definitions = [AttributeDefinition.model_validate(d) for d in list_definitions(db, owner_kind)]
    set_cache(cache_key, jsonable_encoder(definitions))
    return definitions

@router.get("/definitions/{key}", response_model=AttributeDefinition)
async def get_attribute_definition(
    key: str,
    db: Session = Depends(get_db)
):
    """
    Get a single attribute definition by key.
    """
    return deps.definition_or_404(db, key)
