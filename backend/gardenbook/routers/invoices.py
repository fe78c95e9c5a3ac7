from fastapi import APIRouter, Depends, HTTPException
from typing import List
import logging

from gardenbook.schemas.invoice import Invoice, Payment
from gardenbook.schemas.requests import InvoiceDetail, InvoiceFromEstimate, StandaloneInvoiceCreate
from gardenbook.services import document_service
from gardenbook.services.document_service import DocumentValidationError
from gardenbook.services.storage_service import ESTIMATES, INVOICES, LocalStore, get_store
from gardenbook.utils import pricing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _load_invoice(store: LocalStore, invoice_id: str) -> Invoice:
    invoice = store.load(INVOICES, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get("", response_model=List[Invoice])
def list_invoices(store: LocalStore = Depends(get_store)):
    """List invoices, most recently updated first"""
    return sorted(store.list(INVOICES), key=lambda i: i.updated_at, reverse=True)


@router.post("/from-estimate", response_model=Invoice)
def create_invoice_from_estimate(request: InvoiceFromEstimate, store: LocalStore = Depends(get_store)):
    """Snapshot an estimate into a new invoice"""
    estimate = store.load(ESTIMATES, request.estimate_id)
    if not estimate:
        raise HTTPException(status_code=404, detail="Estimate not found")

    defaults = store.load_settings().defaults
    invoice = document_service.derive_invoice(
        estimate,
        store.consume_invoice_number(),
        invoice_date=request.invoice_date,
        payment_instructions=defaults.invoice_payment_instructions,
        notes=request.notes,
    )
    return store.save(invoice)


@router.post("/standalone", response_model=Invoice)
def create_standalone_invoice(request: StandaloneInvoiceCreate, store: LocalStore = Depends(get_store)):
    """Invoice without an estimate: flat amounts, no tax"""
    defaults = store.load_settings().defaults
    invoice = document_service.create_standalone_invoice(
        store.peek_next_invoice_number(),
        request.client,
        request.items,
        project_description=request.project_description,
        invoice_date=request.invoice_date,
        payment_instructions=defaults.invoice_payment_instructions,
        notes=request.notes,
    )
    try:
        document_service.validate_for_save(invoice)
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    # Consume the number only once the invoice is known to be saveable
    invoice.invoice_number = store.consume_invoice_number()
    document_service.refresh_invoice_status(invoice)
    return store.save(invoice)


@router.get("/{invoice_id}", response_model=InvoiceDetail)
def get_invoice(invoice_id: str, store: LocalStore = Depends(get_store)):
    invoice = _load_invoice(store, invoice_id)
    return InvoiceDetail(invoice=invoice, totals=pricing.totals_summary(invoice))


@router.put("/{invoice_id}", response_model=Invoice)
def save_invoice(invoice_id: str, invoice: Invoice, store: LocalStore = Depends(get_store)):
    """Save an invoice; the stored status is always recomputed from payments"""
    if invoice.id != invoice_id:
        raise HTTPException(status_code=400, detail="Invoice id does not match the URL")
    try:
        document_service.validate_for_save(invoice)
    except DocumentValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    document_service.refresh_invoice_status(invoice)
    return store.save(invoice)


@router.post("/{invoice_id}/payments", response_model=Invoice)
def add_payment(invoice_id: str, payment: Payment, store: LocalStore = Depends(get_store)):
    invoice = _load_invoice(store, invoice_id)
    invoice.payments.append(payment)
    document_service.refresh_invoice_status(invoice)
    logger.info(f"Recorded payment of {payment.amount} on invoice {invoice.invoice_number} ({invoice.status.value})")
    return store.save(invoice)


@router.delete("/{invoice_id}/payments/{payment_id}", response_model=Invoice)
def remove_payment(invoice_id: str, payment_id: str, store: LocalStore = Depends(get_store)):
    invoice = _load_invoice(store, invoice_id)
    remaining = [p for p in invoice.payments if p.id != payment_id]
    if len(remaining) == len(invoice.payments):
        raise HTTPException(status_code=404, detail="Payment not found")
    invoice.payments = remaining
    document_service.refresh_invoice_status(invoice)
    return store.save(invoice)


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: str, store: LocalStore = Depends(get_store)):
    if not store.delete(INVOICES, invoice_id):
        raise HTTPException(status_code=404, detail="Invoice not found")
    return {"message": "Invoice deleted"}
