from fastapi import APIRouter, Depends, HTTPException
from typing import List

from gardenbook.schemas.contract import Contract
from gardenbook.schemas.requests import ContractCreate, ContractDetail
from gardenbook.services import document_service
from gardenbook.services.document_service import DocumentValidationError
from gardenbook.services.storage_service import CONTRACTS, ESTIMATES, LocalStore, get_store
from gardenbook.utils import pricing

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


@router.get("", response_model=List[Contract])
def list_contracts(store: LocalStore = Depends(get_store)):
    return sorted(store.list(CONTRACTS), key=lambda c: c.updated_at, reverse=True)


@router.post("", response_model=Contract)
def create_contract(request: ContractCreate, store: LocalStore = Depends(get_store)):
    """Derive a contract from an estimate and save it"""
    estimate = store.load(ESTIMATES, request.estimate_id)
    if not estimate:
        raise HTTPException(status_code=404, detail="Estimate not found")

    # Only explicitly supplied texts override the boilerplate
    overrides = request.model_dump(
        include={"terms", "warranty", "exclusions", "change_orders", "payment_methods_note"},
        exclude_none=True,
    )
    contract = document_service.derive_contract(
        estimate,
        store.next_contract_number(),
        payment_checklist=request.payment_checklist,
        **overrides,
    )
    return store.save(contract)


@router.get("/{contract_id}", response_model=ContractDetail)
def get_contract(contract_id: str, store: LocalStore = Depends(get_store)):
    contract = store.load(CONTRACTS, contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")
    return ContractDetail(contract=contract, totals=pricing.totals_summary(contract))


@router.put("/{contract_id}", response_model=Contract)
def save_contract(contract_id: str, contract: Contract, store: LocalStore = Depends(get_store)):
    if contract.id != contract_id:
        raise HTTPException(status_code=400, detail="Contract id does not match the URL")
    try:
        document_service.validate_for_save(contract)
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return store.save(contract)


@router.delete("/{contract_id}")
def delete_contract(contract_id: str, store: LocalStore = Depends(get_store)):
    if not store.delete(CONTRACTS, contract_id):
        raise HTTPException(status_code=404, detail="Contract not found")
    return {"message": "Contract deleted"}
