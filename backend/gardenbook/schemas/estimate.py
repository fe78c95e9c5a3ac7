from enum import Enum
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import Field

from gardenbook.schemas.common import CamelModel, Money, new_id, utcnow
from gardenbook.schemas.line_item import (
    LineItem,
    LineItemCategory,
    ProjectSection,
    DEFAULT_TAXABLE_CATEGORIES,
)


class EstimateStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class PaymentTemplate(str, Enum):
    FIFTY_FIFTY = "50-50"
    THIRDS = "thirds"
    CUSTOM = "custom"


class PaymentMilestone(CamelModel):
    description: str = ""
    percentage: Money = Decimal("0")
    amount: Money = Decimal("0")  # informational, not wired to totals


class PaymentSchedule(CamelModel):
    template: PaymentTemplate = PaymentTemplate.CUSTOM
    milestones: List[PaymentMilestone] = []


class ClientInfo(CamelModel):
    name: str = ""
    address: str = ""
    city: str = ""
    state: str = "CA"
    zip: str = ""
    phone: str = ""
    email: str = ""
    project_address: str = ""
    project_address_same_as_client: bool = True


class Estimate(CamelModel):
    id: str = Field(default_factory=new_id)
    estimate_number: str = ""
    status: EstimateStatus = EstimateStatus.DRAFT
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    valid_days: int = 30

    client: ClientInfo = Field(default_factory=ClientInfo)

    project_description: str = ""
    estimated_start_date: str = ""
    estimated_duration: str = ""

    project_sections: List[ProjectSection] = []
    # Project-level fee, never taxed
    design_fee: List[LineItem] = []

    tax_rate: Money = Decimal("9.5")
    taxable_categories: List[LineItemCategory] = Field(
        default_factory=lambda: list(DEFAULT_TAXABLE_CATEGORIES)
    )
    payment_schedule: PaymentSchedule = Field(default_factory=PaymentSchedule)

    terms: str = ""
    warranty: str = ""
    exclusions: str = ""
    notes: str = ""
