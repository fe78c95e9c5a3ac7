from enum import Enum
from datetime import date, datetime
from decimal import Decimal
from typing import List

from pydantic import Field, field_validator

from gardenbook.schemas.common import CamelModel, Money, new_id, utcnow
from gardenbook.schemas.estimate import ClientInfo
from gardenbook.schemas.line_item import (
    LineItem,
    LineItemCategory,
    ProjectSection,
    SimpleLineItem,
)


class InvoiceStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CHECK = "check"
    VENMO = "venmo"
    ZELLE = "zelle"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    OTHER = "other"


class Payment(CamelModel):
    id: str = Field(default_factory=new_id)
    date: str = Field(default_factory=lambda: date.today().isoformat())
    amount: Money
    method: PaymentMethod = PaymentMethod.CHECK
    note: str = ""

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Payment amount must be positive")
        return v


class Invoice(CamelModel):
    id: str = Field(default_factory=new_id)
    # Empty for standalone invoices
    estimate_id: str = ""
    invoice_number: str = ""
    # Recomputed from payments on every save
    status: InvoiceStatus = InvoiceStatus.UNPAID
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    client: ClientInfo = Field(default_factory=ClientInfo)
    project_description: str = ""
    project_sections: List[ProjectSection] = []
    design_fee: List[LineItem] = []
    tax_rate: Money = Decimal("0")
    taxable_categories: List[LineItemCategory] = []

    invoice_date: str = Field(default_factory=lambda: date.today().isoformat())
    payments: List[Payment] = []
    payment_instructions: str = ""
    notes: str = ""

    standalone_items: List[SimpleLineItem] = []

    @property
    def is_standalone(self) -> bool:
        return not self.estimate_id
