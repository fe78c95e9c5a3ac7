from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Any, Dict
import logging

from gardenbook.schemas.export import ExportData
from gardenbook.schemas.settings import BusinessSettings
from gardenbook.services.storage_service import ImportRejected, LocalStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings", response_model=BusinessSettings)
def get_settings(store: LocalStore = Depends(get_store)):
    return store.load_settings()


@router.put("/settings", response_model=BusinessSettings)
def update_settings(business_settings: BusinessSettings, store: LocalStore = Depends(get_store)):
    return store.save_settings(business_settings)


@router.get("/data/export", response_model=ExportData)
def export_data(store: LocalStore = Depends(get_store)):
    """Full backup of estimates, settings and catalogs"""
    return store.export_all()


@router.post("/data/import", response_model=ExportData)
def import_data(payload: Dict[str, Any] = Body(...), store: LocalStore = Depends(get_store)):
    """
    Restore a backup. Replaces estimates, settings and catalogs; contracts
    and invoices are left alone.
    """
    try:
        return store.import_all(payload)
    except ImportRejected as e:
        logger.warning(f"Rejected data import: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
