from typing import List, Optional

from gardenbook.schemas.common import CamelModel
from gardenbook.schemas.contract import Contract, PaymentChecklistItem
from gardenbook.schemas.estimate import ClientInfo, Estimate
from gardenbook.schemas.invoice import Invoice
from gardenbook.schemas.line_item import SimpleLineItem
from gardenbook.schemas.totals import DocumentTotals


class ContractCreate(CamelModel):
    estimate_id: str
    payment_checklist: Optional[List[PaymentChecklistItem]] = None
    terms: Optional[str] = None
    warranty: Optional[str] = None
    exclusions: Optional[str] = None
    change_orders: Optional[str] = None
    payment_methods_note: Optional[str] = None


class InvoiceFromEstimate(CamelModel):
    estimate_id: str
    invoice_date: Optional[str] = None
    notes: str = ""


class StandaloneInvoiceCreate(CamelModel):
    client: ClientInfo
    items: List[SimpleLineItem] = []
    project_description: str = ""
    invoice_date: Optional[str] = None
    notes: str = ""


class EstimateDetail(CamelModel):
    estimate: Estimate
    totals: DocumentTotals


class ContractDetail(CamelModel):
    contract: Contract
    totals: DocumentTotals


class InvoiceDetail(CamelModel):
    invoice: Invoice
    totals: DocumentTotals


class NextNumber(CamelModel):
    number: str
