from datetime import datetime
from decimal import Decimal

from pydantic import Field

from gardenbook.schemas.common import CamelModel, Money, utcnow
from gardenbook.schemas.estimate import PaymentTemplate


DEFAULT_TERMS = (
    "All plant material is due at the time of ordering. 50% of the design fee is due as a "
    "deposit upon acceptance of this estimate. Hardscape and irrigation materials are due at "
    "the time of ordering. The remaining balance is due upon project completion."
)

DEFAULT_WARRANTY = (
    "All plants are guaranteed for 30 days from the date of installation, provided that the "
    "irrigation system is properly maintained and functioning. Hardscape work is guaranteed "
    "for one year against defects in workmanship."
)

DEFAULT_EXCLUSIONS = (
    "This estimate does not include permits, engineering, or structural work unless "
    "specifically noted. Any unforeseen conditions discovered during construction may result "
    "in additional charges, which will be discussed and approved before proceeding."
)

DEFAULT_PAYMENT_INSTRUCTIONS = (
    "We accept checks, Venmo, and Zelle. Please include the invoice number with your payment."
)


class CompanyInfo(CamelModel):
    name: str = "Nancy Lyons Garden Designs"
    address: str = ""
    city: str = "Los Angeles"
    state: str = "CA"
    zip: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    license_number: str = ""
    logo: str = ""  # base64 image


class DocumentDefaults(CamelModel):
    tax_rate: Money = Decimal("9.5")
    valid_days: int = 30
    payment_template: PaymentTemplate = PaymentTemplate.CUSTOM
    terms: str = DEFAULT_TERMS
    warranty: str = DEFAULT_WARRANTY
    exclusions: str = DEFAULT_EXCLUSIONS
    design_fee_description: str = "Landscape design"
    design_fee_price: Money = Decimal("0")
    invoice_payment_instructions: str = DEFAULT_PAYMENT_INSTRUCTIONS


class BusinessSettings(CamelModel):
    """Single settings record: company profile, counters, boilerplate."""
    company: CompanyInfo = Field(default_factory=CompanyInfo)
    defaults: DocumentDefaults = Field(default_factory=DocumentDefaults)

    estimate_number_prefix: str = "NL"
    next_estimate_number: int = 1
    invoice_number_prefix: str = "NL"
    next_invoice_number: int = 1

    updated_at: datetime = Field(default_factory=utcnow)
