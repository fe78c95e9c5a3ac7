from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import Field

from gardenbook.schemas.common import CamelModel, Money, new_id, utcnow
from gardenbook.schemas.estimate import ClientInfo, PaymentSchedule
from gardenbook.schemas.line_item import LineItem, LineItemCategory, ProjectSection


class PaymentChecklistItem(CamelModel):
    id: str
    label: str
    checked: bool = True


class Contract(CamelModel):
    id: str = Field(default_factory=new_id)
    estimate_id: str = ""
    contract_number: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Snapshot of the source estimate
    client: ClientInfo = Field(default_factory=ClientInfo)
    project_description: str = ""
    project_sections: List[ProjectSection] = []
    design_fee: List[LineItem] = []
    tax_rate: Money = Decimal("0")
    taxable_categories: List[LineItemCategory] = []

    payment_schedule: PaymentSchedule = Field(default_factory=PaymentSchedule)
    payment_checklist: List[PaymentChecklistItem] = []
    payment_methods_note: str = ""
    terms: str = ""
    warranty: str = ""
    exclusions: str = ""
    change_orders: str = ""
    accepted_date: str = ""
    client_signature: str = ""
    contractor_signature: str = ""
