"""
Document construction and derivation.

Contracts and invoices are snapshots of an estimate: every nested section
and line item is deep-copied so later edits on either side never leak to
the other.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from gardenbook.schemas.catalog import CatalogItem
from gardenbook.schemas.common import new_id, utcnow
from gardenbook.schemas.contract import Contract, PaymentChecklistItem
from gardenbook.schemas.estimate import (
    ClientInfo,
    Estimate,
    EstimateStatus,
    PaymentMilestone,
    PaymentSchedule,
    PaymentTemplate,
)
from gardenbook.schemas.invoice import Invoice
from gardenbook.schemas.line_item import (
    LineItem,
    LineItemCategory,
    ProjectSection,
    SimpleLineItem,
    LIST_DEFAULT_CATEGORY,
    LIST_KEYS,
)
from gardenbook.schemas.settings import DocumentDefaults
from gardenbook.utils import pricing

logger = logging.getLogger(__name__)

FALLBACK_TAX_RATE = Decimal("9.5")
FALLBACK_VALID_DAYS = 30

DEFAULT_MILESTONES = [
    "Plant material due at time of ordering",
    "50% of design fee as deposit upon acceptance",
    "Remaining balance due upon project completion",
]

CONTRACT_TERMS = """Thank you for choosing Nancy Lyons Garden Design! Here's how we'll work together:

Scheduling & Timeline
Once this estimate is accepted and the deposit is received, we'll schedule your project based on current availability. We'll do our best to stay on timeline, though weather, material availability, and site conditions can sometimes cause adjustments. We'll keep you informed every step of the way.

Changes & Additions
If you'd like to make changes or additions once work has begun, we'll provide an updated estimate for your approval before proceeding with any additional work.

What's Included
This estimate covers the materials, plants, and labor described in the referenced estimate. It's based on the current conditions of your property as observed during our site visit."""

CONTRACT_WARRANTY = """All plant material is covered by a 30-day warranty from the date of installation, as long as the irrigation system is properly maintained and the recommended watering schedule is followed.

If a plant doesn't make it within that 30-day window and the irrigation has been kept up, we'll replace it. You just cover the cost of the new plant material.

Hardscape work is warranted for one year against defects in workmanship. This doesn't cover settling due to natural causes, damage from tree roots, or modifications made by others."""

CONTRACT_EXCLUSIONS = """A few things that aren't included in this project:
- Utility locates and any underground surprises
- Permit fees (if required)
- Hauling soil beyond what's specified
- Ongoing maintenance after installation
- Pest or disease treatment after planting"""

CONTRACT_CHANGE_ORDERS = (
    "If you'd like to add or change anything during the project, we'll talk it through and "
    "provide a written change order with updated pricing before any additional work begins."
)

PAYMENT_METHODS_NOTE = (
    "We accept checks, Venmo, and Zelle. Credit card payments are subject to a 3% processing fee."
)

DEFAULT_PAYMENT_CHECKLIST = [
    ("plant-material", "All plant material costs due at time of ordering"),
    ("design-deposit", "50% of design fee due as deposit upon acceptance"),
    ("hardscape-irrigation", "Hardscape and irrigation materials due at time of ordering"),
    ("remaining-balance", "Remaining balance due upon project completion"),
]


class DocumentValidationError(ValueError):
    """Document rejected before persistence; message is shown to the operator."""


# --- Numbering ---

def generate_number(prefix: str, seq: int, year: Optional[int] = None) -> str:
    """
    Format "{prefix}-{year}-{seq:03}". Has no side effect: the caller peeks
    the counter here and consumes it only when the document is saved.
    """
    year = year or date.today().year
    return f"{prefix}-{year}-{seq:03d}"


def generate_invoice_number(prefix: str, seq: int, year: Optional[int] = None) -> str:
    return generate_number(f"{prefix}-INV", seq, year)


def generate_contract_number(existing_count: int, prefix: str = "NL-C", year: Optional[int] = None) -> str:
    # Live count, not a stored counter: not stable across deletions
    return generate_number(prefix, existing_count + 1, year)


# --- Construction ---

def create_empty_line_item(category: LineItemCategory = LineItemCategory.OTHER, **fields) -> LineItem:
    values = {"category": category, "description": "", "quantity": Decimal("1"), "unit": "ea", "unit_price": Decimal("0")}
    values.update(fields)
    values["id"] = fields.get("id") or new_id()
    return LineItem(**values)


def create_empty_section(name: str = "New Section") -> ProjectSection:
    return ProjectSection(id=new_id(), name=name)


def create_blank_estimate(number: str, defaults: Optional[DocumentDefaults] = None) -> Estimate:
    """
    New draft estimate with a single empty "Main" section. Tax rate, validity
    and boilerplate come from the supplied defaults or the fallbacks.
    """
    now = utcnow()
    return Estimate(
        id=new_id(),
        estimate_number=number,
        status=EstimateStatus.DRAFT,
        created_at=now,
        updated_at=now,
        valid_days=defaults.valid_days if defaults else FALLBACK_VALID_DAYS,
        client=ClientInfo(),
        project_sections=[create_empty_section("Main")],
        design_fee=[],
        tax_rate=defaults.tax_rate if defaults else FALLBACK_TAX_RATE,
        taxable_categories=[LineItemCategory.PLANTING, LineItemCategory.OTHER],
        payment_schedule=PaymentSchedule(
            template=PaymentTemplate.CUSTOM,
            milestones=[PaymentMilestone(description=d) for d in DEFAULT_MILESTONES],
        ),
        terms=defaults.terms if defaults else "",
        warranty=defaults.warranty if defaults else "",
        exclusions=defaults.exclusions if defaults else "",
    )


def duplicate_estimate(estimate: Estimate, number: str) -> Estimate:
    """Revision copy: same content, fresh identity, back to draft."""
    now = utcnow()
    duplicate = estimate.model_copy(deep=True)
    duplicate.id = new_id()
    duplicate.estimate_number = number
    duplicate.status = EstimateStatus.DRAFT
    duplicate.created_at = now
    duplicate.updated_at = now
    return duplicate


# --- Derivation ---

def _snapshot_sections(estimate: Estimate) -> List[ProjectSection]:
    return [section.model_copy(deep=True) for section in estimate.project_sections]


def _snapshot_items(items: Iterable[LineItem]) -> List[LineItem]:
    return [item.model_copy(deep=True) for item in items]


def default_payment_checklist() -> List[PaymentChecklistItem]:
    return [PaymentChecklistItem(id=key, label=label, checked=True) for key, label in DEFAULT_PAYMENT_CHECKLIST]


def derive_contract(
    estimate: Estimate,
    contract_number: str,
    payment_checklist: Optional[List[PaymentChecklistItem]] = None,
    terms: str = CONTRACT_TERMS,
    warranty: str = CONTRACT_WARRANTY,
    exclusions: str = CONTRACT_EXCLUSIONS,
    change_orders: str = CONTRACT_CHANGE_ORDERS,
    payment_methods_note: str = PAYMENT_METHODS_NOTE,
) -> Contract:
    """
    Build a contract from an estimate.

    Client, sections and design fee are deep copies; tax settings are copied
    by value. The checked payment items and the payment-methods note are
    appended to the terms, and the change-order text to the exclusions, as
    they appear on the printed contract.
    """
    now = utcnow()
    checklist = payment_checklist if payment_checklist is not None else default_payment_checklist()
    checked = [item for item in checklist if item.checked]

    full_terms = terms + "\n\nPayment Schedule\n" + "\n".join(f"- {item.label}" for item in checked)
    if payment_methods_note:
        full_terms += "\n\n" + payment_methods_note
    full_exclusions = exclusions + ("\n\nChange Orders\n" + change_orders if change_orders else "")

    logger.info(f"Deriving contract {contract_number} from estimate {estimate.estimate_number}")
    return Contract(
        id=new_id(),
        estimate_id=estimate.id,
        contract_number=contract_number,
        created_at=now,
        updated_at=now,
        client=estimate.client.model_copy(deep=True),
        project_description=estimate.project_description,
        project_sections=_snapshot_sections(estimate),
        design_fee=_snapshot_items(estimate.design_fee),
        tax_rate=estimate.tax_rate,
        taxable_categories=list(estimate.taxable_categories),
        payment_schedule=PaymentSchedule(
            template=PaymentTemplate.CUSTOM,
            milestones=[PaymentMilestone(description=item.label) for item in checked],
        ),
        payment_checklist=[item.model_copy() for item in checklist],
        payment_methods_note=payment_methods_note,
        terms=full_terms,
        warranty=warranty,
        exclusions=full_exclusions,
        change_orders=change_orders,
    )


def derive_invoice(
    estimate: Estimate,
    invoice_number: str,
    invoice_date: Optional[str] = None,
    payment_instructions: str = "",
    notes: str = "",
) -> Invoice:
    """Estimate-linked invoice: full pricing structure, deep-copied."""
    now = utcnow()
    invoice = Invoice(
        id=new_id(),
        estimate_id=estimate.id,
        invoice_number=invoice_number,
        created_at=now,
        updated_at=now,
        client=estimate.client.model_copy(deep=True),
        project_description=estimate.project_description,
        project_sections=_snapshot_sections(estimate),
        design_fee=_snapshot_items(estimate.design_fee),
        tax_rate=estimate.tax_rate,
        taxable_categories=list(estimate.taxable_categories),
        invoice_date=invoice_date or date.today().isoformat(),
        payments=[],
        payment_instructions=payment_instructions,
        notes=notes,
        standalone_items=[],
    )
    refresh_invoice_status(invoice)
    logger.info(f"Derived invoice {invoice_number} from estimate {estimate.estimate_number}")
    return invoice


def create_standalone_invoice(
    invoice_number: str,
    client: ClientInfo,
    items: Iterable[SimpleLineItem],
    project_description: str = "",
    invoice_date: Optional[str] = None,
    payment_instructions: str = "",
    notes: str = "",
) -> Invoice:
    """Invoice with no linked estimate: flat amounts, no sections, no tax."""
    now = utcnow()
    invoice = Invoice(
        id=new_id(),
        estimate_id="",
        invoice_number=invoice_number,
        created_at=now,
        updated_at=now,
        client=client.model_copy(deep=True),
        project_description=project_description,
        tax_rate=Decimal("0"),
        taxable_categories=[],
        invoice_date=invoice_date or date.today().isoformat(),
        payment_instructions=payment_instructions,
        notes=notes,
        standalone_items=[item.model_copy(deep=True) for item in items],
    )
    refresh_invoice_status(invoice)
    return invoice


def refresh_invoice_status(invoice: Invoice) -> Invoice:
    invoice.status = pricing.invoice_status(invoice)
    return invoice


# --- Editing ---

def _find_section(doc, section_id: str) -> ProjectSection:
    for section in doc.project_sections:
        if section.id == section_id:
            return section
    raise KeyError(f"Project section {section_id} not found")


def add_project_section(doc, name: str = "New Section") -> ProjectSection:
    section = create_empty_section(name)
    doc.project_sections.append(section)
    return section


def remove_project_section(doc, section_id: str) -> None:
    doc.project_sections = [s for s in doc.project_sections if s.id != section_id]


def add_line_item(doc, section_id: str, list_key: str, item: Optional[LineItem] = None) -> LineItem:
    """Append to a section list; new rows default to the list's category."""
    if list_key not in LIST_KEYS:
        raise KeyError(f"Unknown item list {list_key}")
    section = _find_section(doc, section_id)
    new_item = item.model_copy(deep=True) if item else create_empty_line_item(LIST_DEFAULT_CATEGORY[list_key])
    section.items(list_key).append(new_item)
    return new_item


def update_line_item(doc, section_id: str, list_key: str, item_id: str, **changes) -> LineItem:
    """Replace a row in place with an updated copy; list position is kept."""
    items = _find_section(doc, section_id).items(list_key)
    for index, item in enumerate(items):
        if item.id == item_id:
            changes.pop("id", None)
            items[index] = LineItem.model_validate({**item.model_dump(), **changes})
            return items[index]
    raise KeyError(f"Line item {item_id} not found")


def remove_line_item(doc, section_id: str, list_key: str, item_id: str) -> None:
    items = _find_section(doc, section_id).items(list_key)
    items[:] = [item for item in items if item.id != item_id]


def move_line_item(doc, item_id: str, list_key: str, from_section_id: str, to_section_id: str) -> LineItem:
    """Move a row to the end of the same list in another section."""
    source = _find_section(doc, from_section_id).items(list_key)
    target = _find_section(doc, to_section_id).items(list_key)
    for index, item in enumerate(source):
        if item.id == item_id:
            moved = source.pop(index)
            target.append(moved)
            return moved
    raise KeyError(f"Line item {item_id} not found")


def add_design_fee_item(doc, item: Optional[LineItem] = None) -> LineItem:
    new_item = item.model_copy(deep=True) if item else create_empty_line_item(LineItemCategory.LABOR, unit="lot")
    doc.design_fee.append(new_item)
    return new_item


def apply_catalog_item(item: LineItem, catalog_item: CatalogItem) -> LineItem:
    """
    Populate a row from a catalog entry. The result keeps no reference to the
    catalog: editing either afterwards never affects the other.
    """
    return item.model_copy(update={
        "description": catalog_item.name,
        "unit": catalog_item.default_unit,
        "unit_price": Decimal(catalog_item.default_unit_price),
        "category": catalog_item.category,
    }, deep=True)


# --- Validation ---

def _has_line_items(doc) -> bool:
    return bool(doc.design_fee) or any(s.all_items() for s in doc.project_sections)


def validate_for_save(doc):
    """
    Reject documents that must not be persisted.

    Raises:
        DocumentValidationError with an operator-facing message
    """
    if isinstance(doc, Estimate):
        if not doc.client.name.strip() and not _has_line_items(doc):
            raise DocumentValidationError("Add a client name or at least one line item before saving.")
        return doc

    if isinstance(doc, Invoice):
        if doc.is_standalone:
            if not doc.client.name.strip():
                raise DocumentValidationError("Please enter a client name and at least one line item.")
            # Blank rows are dropped, not rejected
            valid_items = [
                item for item in doc.standalone_items
                if item.description.strip() and item.amount > 0
            ]
            if not valid_items:
                raise DocumentValidationError("Please enter a client name and at least one line item.")
            doc.standalone_items = valid_items
        return doc

    if isinstance(doc, Contract):
        if not doc.estimate_id:
            raise DocumentValidationError("Please select an estimate first.")
        return doc

    return doc
