from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Any, Dict, List
import logging

from gardenbook.schemas.estimate import Estimate
from gardenbook.schemas.requests import EstimateDetail, NextNumber
from gardenbook.schemas.totals import DocumentTotals
from gardenbook.services import document_service
from gardenbook.services.document_service import DocumentValidationError
from gardenbook.services.storage_service import ESTIMATES, ImportRejected, LocalStore, get_store
from gardenbook.utils import pricing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/estimates", tags=["estimates"])


@router.get("", response_model=List[Estimate])
def list_estimates(store: LocalStore = Depends(get_store)):
    """List estimates, most recently updated first"""
    return sorted(store.list(ESTIMATES), key=lambda e: e.updated_at, reverse=True)


@router.get("/next-number", response_model=NextNumber)
def next_estimate_number(store: LocalStore = Depends(get_store)):
    """Peek at the number the next saved estimate will get"""
    return NextNumber(number=store.peek_next_estimate_number())


@router.post("/new", response_model=Estimate)
def new_estimate(store: LocalStore = Depends(get_store)):
    """
    Blank draft prefilled from the settings defaults. Nothing is persisted
    and no number is consumed until the first save.
    """
    business_settings = store.load_settings()
    return document_service.create_blank_estimate(
        store.peek_next_estimate_number(), business_settings.defaults
    )


@router.post("/totals", response_model=DocumentTotals)
def preview_totals(estimate: Estimate):
    """Totals for an unsaved estimate (live form recalculation)"""
    return pricing.totals_summary(estimate)


@router.post("/import", response_model=Estimate)
def import_estimate(payload: Dict[str, Any] = Body(...), store: LocalStore = Depends(get_store)):
    """Import a single estimate file as a new draft"""
    try:
        return store.import_estimate(payload)
    except ImportRejected as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{estimate_id}", response_model=EstimateDetail)
def get_estimate(estimate_id: str, store: LocalStore = Depends(get_store)):
    estimate = store.load(ESTIMATES, estimate_id)
    if not estimate:
        raise HTTPException(status_code=404, detail="Estimate not found")
    return EstimateDetail(estimate=estimate, totals=pricing.totals_summary(estimate))


@router.put("/{estimate_id}", response_model=Estimate)
def save_estimate(estimate_id: str, estimate: Estimate, store: LocalStore = Depends(get_store)):
    """Create or update an estimate"""
    if estimate.id != estimate_id:
        raise HTTPException(status_code=400, detail="Estimate id does not match the URL")
    try:
        return store.save_new_estimate(estimate)
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/{estimate_id}")
def delete_estimate(estimate_id: str, store: LocalStore = Depends(get_store)):
    if not store.delete(ESTIMATES, estimate_id):
        raise HTTPException(status_code=404, detail="Estimate not found")
    return {"message": "Estimate deleted"}


@router.post("/{estimate_id}/duplicate", response_model=Estimate)
def duplicate_estimate(estimate_id: str, store: LocalStore = Depends(get_store)):
    """Copy an estimate as a new draft with the next number"""
    duplicate = store.duplicate_estimate(estimate_id)
    if duplicate is None:
        raise HTTPException(status_code=404, detail="Estimate not found")
    logger.info(f"Duplicated estimate {estimate_id} as {duplicate.estimate_number}")
    return duplicate
