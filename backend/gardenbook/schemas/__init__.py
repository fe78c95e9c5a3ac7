from gardenbook.schemas.line_item import LineItem, LineItemCategory, ProjectSection, SimpleLineItem
from gardenbook.schemas.estimate import ClientInfo, Estimate, EstimateStatus, PaymentSchedule, PaymentMilestone
from gardenbook.schemas.contract import Contract, PaymentChecklistItem
from gardenbook.schemas.invoice import Invoice, InvoiceStatus, Payment, PaymentMethod
from gardenbook.schemas.catalog import CatalogItem, CatalogType
from gardenbook.schemas.settings import BusinessSettings, CompanyInfo, DocumentDefaults
from gardenbook.schemas.export import ExportData, ExportCatalogs
from gardenbook.schemas.totals import DocumentTotals
from gardenbook.schemas.sync import SyncStatus, SyncStatusResponse, SignInRequest

__all__ = [
    "LineItem",
    "LineItemCategory",
    "ProjectSection",
    "SimpleLineItem",
    "ClientInfo",
    "Estimate",
    "EstimateStatus",
    "PaymentSchedule",
    "PaymentMilestone",
    "Contract",
    "PaymentChecklistItem",
    "Invoice",
    "InvoiceStatus",
    "Payment",
    "PaymentMethod",
    "CatalogItem",
    "CatalogType",
    "BusinessSettings",
    "CompanyInfo",
    "DocumentDefaults",
    "ExportData",
    "ExportCatalogs",
    "DocumentTotals",
    "SyncStatus",
    "SyncStatusResponse",
    "SignInRequest",
]
