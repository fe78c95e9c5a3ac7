from decimal import Decimal
from typing import Dict, Optional

from gardenbook.schemas.common import CamelModel, Money
from gardenbook.schemas.invoice import InvoiceStatus


class DocumentTotals(CamelModel):
    standalone: bool = False
    plant_material: Money = Decimal("0")
    labor_and_services: Money = Decimal("0")
    other_materials: Money = Decimal("0")
    design_fee: Money = Decimal("0")
    taxable_total: Money = Decimal("0")
    non_taxable_total: Money = Decimal("0")
    tax: Money = Decimal("0")
    subtotal: Money = Decimal("0")
    grand_total: Money = Decimal("0")
    section_subtotals: Dict[str, Money] = {}

    # Invoices only
    amount_paid: Optional[Money] = None
    balance_remaining: Optional[Money] = None
    display_balance: Optional[Money] = None
    status: Optional[InvoiceStatus] = None
