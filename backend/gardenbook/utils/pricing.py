"""
Pricing rules shared by the API, printed documents and invoice status.

All functions are pure and total: no I/O, no exceptions on empty lists,
zero quantities or negative (credit) lines.

Rounding point: line products are aggregated exactly and only the returned
aggregate is rounded to cents, half-up. Per-line rounding is never applied
before summing.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence

from gardenbook.schemas.line_item import LineItem, ProjectSection, SimpleLineItem, LIST_KEYS
from gardenbook.schemas.invoice import InvoiceStatus
from gardenbook.schemas.totals import DocumentTotals

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round2(value: Decimal) -> Decimal:
    """Round to cents, half-up (not banker's rounding)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _product(item: LineItem) -> Decimal:
    if item.no_price:
        return ZERO
    return Decimal(item.quantity) * Decimal(item.unit_price)


def _exact_list_total(items: Iterable[LineItem]) -> Decimal:
    return sum((_product(item) for item in items), ZERO)


def _exact_section_total(section: ProjectSection) -> Decimal:
    return sum((_exact_list_total(section.items(key)) for key in LIST_KEYS), ZERO)


def _exact_sections_total(doc) -> Decimal:
    return sum((_exact_section_total(s) for s in doc.project_sections), ZERO)


def _exact_taxable_total(doc) -> Decimal:
    taxable = list(doc.taxable_categories)
    total = ZERO
    for section in doc.project_sections:
        for item in section.all_items():
            if item.category in taxable:
                total += _product(item)
    return total


def _exact_subtotal(doc) -> Decimal:
    return _exact_sections_total(doc) + _exact_list_total(doc.design_fee)


def line_total(item: LineItem) -> Decimal:
    """quantity x unit price, or 0 for a description-only row."""
    return round2(_product(item))


def section_list_subtotal(items: Sequence[LineItem]) -> Decimal:
    return round2(_exact_list_total(items))


def section_subtotal(section: ProjectSection) -> Decimal:
    """Sum of the section's plant, labor and material lists."""
    return round2(_exact_section_total(section))


def category_total(doc, list_key: str) -> Decimal:
    """
    Sum one list (plantMaterial, laborAndServices or otherMaterials) across
    every project section of the document.
    """
    if list_key not in LIST_KEYS:
        return ZERO
    return round2(sum(
        (_exact_list_total(s.items(list_key)) for s in doc.project_sections),
        ZERO,
    ))


def design_fee_total(doc) -> Decimal:
    return section_list_subtotal(doc.design_fee)


def taxable_total(doc) -> Decimal:
    """
    Sum of every section item whose category is taxable, whichever list it
    sits in. The design fee is never part of the tax base.
    """
    return round2(_exact_taxable_total(doc))


def non_taxable_total(doc) -> Decimal:
    exact = _exact_subtotal(doc) - _exact_taxable_total(doc)
    return round2(exact)


def tax(doc) -> Decimal:
    return round2(_exact_taxable_total(doc) * Decimal(doc.tax_rate) / HUNDRED)


def subtotal(doc) -> Decimal:
    """All sections plus design fee, before tax."""
    return round2(_exact_subtotal(doc))


def standalone_total(items: Sequence[SimpleLineItem]) -> Decimal:
    return round2(sum((Decimal(i.amount) for i in items), ZERO))


def is_standalone(doc) -> bool:
    return bool(getattr(doc, "standalone_items", None))


def grand_total(doc) -> Decimal:
    """
    Standalone invoices: plain sum of item amounts, never taxed.
    Everything else: subtotal + tax.
    """
    if is_standalone(doc):
        return standalone_total(doc.standalone_items)
    return round2(_exact_subtotal(doc) + tax(doc))


def amount_paid(invoice) -> Decimal:
    return sum((Decimal(p.amount) for p in invoice.payments), ZERO)


def balance_remaining(invoice) -> Decimal:
    """Signed; negative when the invoice is overpaid."""
    return grand_total(invoice) - amount_paid(invoice)


def display_balance(invoice) -> Decimal:
    """Remaining balance clamped at zero, for display only."""
    return max(balance_remaining(invoice), ZERO)


def invoice_status(invoice) -> InvoiceStatus:
    total = grand_total(invoice)
    paid = amount_paid(invoice)
    if paid >= total:
        return InvoiceStatus.PAID
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


def totals_summary(doc) -> DocumentTotals:
    """Every aggregate of a document in one structure (never persisted)."""
    standalone = is_standalone(doc)
    payments: Optional[list] = getattr(doc, "payments", None)

    totals = DocumentTotals(
        standalone=standalone,
        plant_material=ZERO if standalone else category_total(doc, "plantMaterial"),
        labor_and_services=ZERO if standalone else category_total(doc, "laborAndServices"),
        other_materials=ZERO if standalone else category_total(doc, "otherMaterials"),
        design_fee=ZERO if standalone else design_fee_total(doc),
        taxable_total=ZERO if standalone else taxable_total(doc),
        non_taxable_total=ZERO if standalone else non_taxable_total(doc),
        tax=ZERO if standalone else tax(doc),
        subtotal=standalone_total(doc.standalone_items) if standalone else subtotal(doc),
        grand_total=grand_total(doc),
        section_subtotals={
            s.id: section_subtotal(s) for s in getattr(doc, "project_sections", [])
        },
    )
    if payments is not None:
        totals.amount_paid = amount_paid(doc)
        totals.balance_remaining = balance_remaining(doc)
        totals.display_balance = display_balance(doc)
        totals.status = invoice_status(doc)
    return totals
