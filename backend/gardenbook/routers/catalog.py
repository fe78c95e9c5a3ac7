from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from gardenbook.config import settings
from gardenbook.schemas.catalog import CatalogItem, CatalogType
from gardenbook.services.storage_service import LocalStore, get_store
from gardenbook.utils.catalog_filter import filter_catalog

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/search", response_model=List[CatalogItem])
def search_catalog(
    q: str = Query("", description="Free-text query"),
    type: Optional[CatalogType] = Query(None, description="Restrict to one catalog"),
    store: LocalStore = Depends(get_store),
):
    """Autocomplete suggestions for a line item description"""
    items = []
    for catalog_type in CatalogType:
        items.extend(store.load_catalog(catalog_type))
    return filter_catalog(
        items,
        q,
        type=type,
        max_results=settings.catalog_max_results,
        min_query_length=settings.catalog_min_query_length,
    )


@router.get("/{catalog_type}", response_model=List[CatalogItem])
def get_catalog(catalog_type: CatalogType, store: LocalStore = Depends(get_store)):
    return store.load_catalog(catalog_type)


@router.put("/{catalog_type}", response_model=List[CatalogItem])
def replace_catalog(catalog_type: CatalogType, items: List[CatalogItem], store: LocalStore = Depends(get_store)):
    """Replace one catalog list (operator edits, additions, removals)"""
    # Items always belong to the list they are saved in
    items = [item.model_copy(update={"type": catalog_type}) for item in items]
    store.save_catalog(catalog_type, items)
    return store.load_catalog(catalog_type)
