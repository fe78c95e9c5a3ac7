from decimal import Decimal

import pytest

from conftest import make_estimate

from gardenbook.data.default_catalog import DEFAULT_CATALOG
from gardenbook.schemas.contract import Contract, PaymentChecklistItem
from gardenbook.schemas.estimate import ClientInfo, Estimate, EstimateStatus
from gardenbook.schemas.invoice import Invoice
from gardenbook.schemas.line_item import LineItem, LineItemCategory, SimpleLineItem
from gardenbook.schemas.settings import DocumentDefaults
from gardenbook.services import document_service
from gardenbook.services.document_service import DocumentValidationError


def test_number_formats():
    assert document_service.generate_number("NL", 7, year=2026) == "NL-2026-007"
    assert document_service.generate_number("NL", 1234, year=2026) == "NL-2026-1234"
    assert document_service.generate_invoice_number("NL", 12, year=2026) == "NL-INV-2026-012"
    assert document_service.generate_contract_number(2, year=2026) == "NL-C-2026-003"


def test_blank_estimate_uses_settings_defaults():
    defaults = DocumentDefaults(tax_rate=Decimal("8.25"), valid_days=45, terms="Net 30")

    estimate = document_service.create_blank_estimate("NL-2026-004", defaults)

    assert estimate.estimate_number == "NL-2026-004"
    assert estimate.status == EstimateStatus.DRAFT
    assert estimate.tax_rate == Decimal("8.25")
    assert estimate.valid_days == 45
    assert estimate.terms == "Net 30"
    assert [s.name for s in estimate.project_sections] == ["Main"]
    assert estimate.taxable_categories == [LineItemCategory.PLANTING, LineItemCategory.OTHER]
    assert len(estimate.payment_schedule.milestones) == 3


def test_blank_estimate_without_defaults_uses_fallbacks():
    estimate = document_service.create_blank_estimate("NL-2026-001")

    assert estimate.tax_rate == Decimal("9.5")
    assert estimate.valid_days == 30


def test_contract_is_independent_of_its_estimate(estimate):
    contract = document_service.derive_contract(estimate, "NL-C-2026-001")

    contract.project_sections[0].plant_material[0].unit_price = Decimal("999")
    contract.client.name = "Someone Else"
    assert estimate.project_sections[0].plant_material[0].unit_price == Decimal("25.00")
    assert estimate.client.name == "Jane Gardener"

    estimate.project_sections[0].labor_and_services[0].quantity = Decimal("5")
    estimate.taxable_categories.append(LineItemCategory.LABOR)
    assert contract.project_sections[0].labor_and_services[0].quantity == Decimal("1")
    assert LineItemCategory.LABOR not in contract.taxable_categories


def test_contract_copies_pricing_and_links_estimate(estimate):
    contract = document_service.derive_contract(estimate, "NL-C-2026-001")

    assert contract.estimate_id == estimate.id
    assert contract.tax_rate == estimate.tax_rate
    assert contract.project_sections[0].plant_material[0].id == estimate.project_sections[0].plant_material[0].id


def test_contract_terms_list_checked_payment_items():
    checklist = [
        PaymentChecklistItem(id="a", label="Deposit on signing", checked=True),
        PaymentChecklistItem(id="b", label="Never shown", checked=False),
    ]

    contract = document_service.derive_contract(
        make_estimate(), "NL-C-2026-001",
        payment_checklist=checklist,
        terms="Base terms",
        exclusions="No permits",
        change_orders="Written change orders only",
        payment_methods_note="Checks accepted",
    )

    assert contract.terms == "Base terms\n\nPayment Schedule\n- Deposit on signing\n\nChecks accepted"
    assert contract.exclusions == "No permits\n\nChange Orders\nWritten change orders only"
    assert [m.description for m in contract.payment_schedule.milestones] == ["Deposit on signing"]
    assert len(contract.payment_checklist) == 2


def test_invoice_is_independent_of_its_estimate(estimate):
    invoice = document_service.derive_invoice(estimate, "NL-INV-2026-001", invoice_date="2026-03-01")

    invoice.project_sections[0].plant_material[0].unit_price = Decimal("1")
    assert estimate.project_sections[0].plant_material[0].unit_price == Decimal("25.00")
    assert invoice.invoice_date == "2026-03-01"
    assert invoice.estimate_id == estimate.id
    assert not invoice.is_standalone


def test_standalone_invoice_has_no_pricing_structure():
    invoice = document_service.create_standalone_invoice(
        "NL-INV-2026-002",
        ClientInfo(name="Walk-in Client"),
        [SimpleLineItem(description="Consult", amount=Decimal("150"))],
    )

    assert invoice.is_standalone
    assert invoice.project_sections == []
    assert invoice.taxable_categories == []
    assert invoice.tax_rate == Decimal("0")


def test_duplicate_gets_fresh_identity(estimate):
    estimate.status = EstimateStatus.ACCEPTED

    duplicate = document_service.duplicate_estimate(estimate, "NL-2026-002")

    assert duplicate.id != estimate.id
    assert duplicate.estimate_number == "NL-2026-002"
    assert duplicate.status == EstimateStatus.DRAFT
    assert [s.to_json_dict() for s in duplicate.project_sections] == [s.to_json_dict() for s in estimate.project_sections]
    duplicate.project_sections[0].plant_material[0].quantity = Decimal("100")
    assert estimate.project_sections[0].plant_material[0].quantity == Decimal("2")


def test_new_line_items_default_to_their_list_category(estimate):
    section_id = estimate.project_sections[0].id

    plant = document_service.add_line_item(estimate, section_id, "plantMaterial")
    labor = document_service.add_line_item(estimate, section_id, "laborAndServices")
    other = document_service.add_line_item(estimate, section_id, "otherMaterials")
    fee = document_service.add_design_fee_item(estimate)

    assert plant.category == LineItemCategory.PLANTING
    assert labor.category == LineItemCategory.LABOR
    assert other.category == LineItemCategory.OTHER
    assert (plant.quantity, plant.unit) == (Decimal("1"), "ea")
    assert (fee.category, fee.unit) == (LineItemCategory.LABOR, "lot")


def test_unknown_list_or_section_raises(estimate):
    with pytest.raises(KeyError):
        document_service.add_line_item(estimate, estimate.project_sections[0].id, "trees")
    with pytest.raises(KeyError):
        document_service.add_line_item(estimate, "missing", "plantMaterial")


def test_update_line_item_keeps_position(estimate):
    section = estimate.project_sections[0]
    first = document_service.add_line_item(estimate, section.id, "plantMaterial")
    document_service.add_line_item(estimate, section.id, "plantMaterial")

    updated = document_service.update_line_item(
        estimate, section.id, "plantMaterial", first.id, description="Olive tree", unit_price=Decimal("300")
    )

    assert section.plant_material[1] is updated
    assert updated.id == first.id
    assert updated.description == "Olive tree"


def test_remove_section_and_line_item(estimate):
    section = estimate.project_sections[0]
    item_id = section.labor_and_services[0].id

    document_service.remove_line_item(estimate, section.id, "laborAndServices", item_id)
    assert section.labor_and_services == []

    document_service.remove_project_section(estimate, section.id)
    assert estimate.project_sections == []


def test_apply_catalog_item_copies_without_link():
    catalog_item = next(item for item in DEFAULT_CATALOG if item.name == "Decomposed granite")
    row = LineItem(category=LineItemCategory.OTHER, quantity=Decimal("3"))

    applied = document_service.apply_catalog_item(row, catalog_item)

    assert applied.description == "Decomposed granite"
    assert applied.unit == "ton"
    assert applied.unit_price == Decimal("95.00")
    assert applied.category == LineItemCategory.HARDSCAPE
    assert applied.quantity == Decimal("3")
    assert applied.id == row.id

    applied.unit_price = Decimal("1")
    assert catalog_item.default_unit_price == Decimal("95.00")


def test_empty_estimate_is_rejected():
    with pytest.raises(DocumentValidationError):
        document_service.validate_for_save(Estimate())


def test_estimate_with_only_client_name_is_accepted():
    estimate = Estimate(client=ClientInfo(name="Jane"))
    assert document_service.validate_for_save(estimate) is estimate


def test_standalone_invoice_drops_blank_rows():
    invoice = Invoice(
        client=ClientInfo(name="Walk-in Client"),
        standalone_items=[
            SimpleLineItem(description="Consult", amount=Decimal("150")),
            SimpleLineItem(description="", amount=Decimal("20")),
            SimpleLineItem(description="Travel", amount=Decimal("0")),
        ],
    )

    document_service.validate_for_save(invoice)

    assert [i.description for i in invoice.standalone_items] == ["Consult"]


def test_standalone_invoice_needs_client_and_a_valid_row():
    no_client = Invoice(standalone_items=[SimpleLineItem(description="Consult", amount=Decimal("150"))])
    blank_rows = Invoice(
        client=ClientInfo(name="Walk-in Client"),
        standalone_items=[SimpleLineItem(description="", amount=Decimal("0"))],
    )

    with pytest.raises(DocumentValidationError):
        document_service.validate_for_save(no_client)
    with pytest.raises(DocumentValidationError):
        document_service.validate_for_save(blank_rows)
    # Rejected documents are left as they were
    assert len(blank_rows.standalone_items) == 1


def test_contract_needs_an_estimate():
    with pytest.raises(DocumentValidationError, match="estimate"):
        document_service.validate_for_save(Contract())
