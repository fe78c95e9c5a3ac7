"""
Seed script to generate synthetic estimates, contracts and invoices for demo purposes
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from decimal import Decimal
from datetime import date, timedelta
from faker import Faker

from gardenbook.data.default_catalog import DEFAULT_CATALOG, MATERIALS, PLANTS, SERVICES
from gardenbook.database import init_db
from gardenbook.schemas.estimate import ClientInfo, Estimate, EstimateStatus
from gardenbook.schemas.invoice import Invoice, Payment, PaymentMethod
from gardenbook.schemas.line_item import LineItem, SimpleLineItem
from gardenbook.services import document_service
from gardenbook.services.storage_service import LocalStore, local_store
from gardenbook.utils import pricing

fake = Faker()

SECTION_NAMES = ["Backyard", "Front of House", "Upper Terrace", "Side Yard", "Parkway"]


def fake_client() -> ClientInfo:
    address = fake.street_address()
    return ClientInfo(
        name=fake.name(),
        address=address,
        city=fake.city(),
        state="CA",
        zip=fake.zipcode(),
        phone=fake.phone_number(),
        email=fake.email(),
        project_address=address,
        project_address_same_as_client=True,
    )


def fake_line_items(catalog, count: int) -> list[LineItem]:
    items = []
    for catalog_item in fake.random_elements(elements=catalog, length=count, unique=True):
        item = document_service.create_empty_line_item(
            catalog_item.category,
            quantity=Decimal(fake.random_int(min=1, max=40)),
        )
        items.append(document_service.apply_catalog_item(item, catalog_item))
    return items


def create_estimates(store: LocalStore, count: int = 6) -> list[Estimate]:
    """Create estimates with one to three sections each"""
    estimates = []
    defaults = store.load_settings().defaults
    for _ in range(count):
        estimate = document_service.create_blank_estimate(store.peek_next_estimate_number(), defaults)
        estimate.client = fake_client()
        estimate.project_description = fake.paragraph(nb_sentences=3)
        estimate.status = fake.random_element(elements=list(EstimateStatus))
        estimate.project_sections = []

        for name in fake.random_elements(elements=SECTION_NAMES, length=fake.random_int(min=1, max=3), unique=True):
            section = document_service.add_project_section(estimate, name)
            section.plant_material = fake_line_items(PLANTS, fake.random_int(min=2, max=4))
            section.labor_and_services = fake_line_items(SERVICES[:2], fake.random_int(min=1, max=2))
            section.other_materials = fake_line_items(MATERIALS, fake.random_int(min=1, max=3))

        document_service.add_design_fee_item(estimate, LineItem(
            category="Labor",
            description=defaults.design_fee_description,
            quantity=Decimal("1"),
            unit="lot",
            unit_price=Decimal(fake.random_int(min=8, max=30) * 100),
        ))
        estimates.append(store.save_new_estimate(estimate))
    return estimates


def create_contracts(store: LocalStore, estimates: list[Estimate]) -> int:
    """Contracts for every accepted estimate"""
    count = 0
    for estimate in estimates:
        if estimate.status != EstimateStatus.ACCEPTED:
            continue
        contract = document_service.derive_contract(estimate, store.next_contract_number())
        contract.accepted_date = (date.today() - timedelta(days=fake.random_int(min=1, max=20))).isoformat()
        store.save(contract)
        count += 1
    return count


def create_invoices(store: LocalStore, estimates: list[Estimate]) -> list[Invoice]:
    """Unpaid, partially paid and paid invoices, plus one standalone"""
    invoices = []
    instructions = store.load_settings().defaults.invoice_payment_instructions

    for estimate in estimates[:3]:
        invoice = document_service.derive_invoice(
            estimate,
            store.consume_invoice_number(),
            payment_instructions=instructions,
        )
        invoices.append(invoice)

    # One partial, one paid in full
    if len(invoices) > 1:
        total = pricing.grand_total(invoices[1])
        invoices[1].payments.append(Payment(amount=(total / 2).quantize(Decimal("0.01")), method=PaymentMethod.CHECK))
    if len(invoices) > 2:
        invoices[2].payments.append(Payment(amount=pricing.grand_total(invoices[2]), method=PaymentMethod.ZELLE))

    standalone = document_service.create_standalone_invoice(
        store.consume_invoice_number(),
        fake_client(),
        [
            SimpleLineItem(description="Seasonal garden maintenance", amount=Decimal("350.00")),
            SimpleLineItem(description="Plant replacement", amount=Decimal("120.00"),
                           sub_items=["2 x 5 gal Lavender", "1 x 1 gal Salvia"]),
        ],
        payment_instructions=instructions,
    )
    invoices.append(standalone)

    saved = []
    for invoice in invoices:
        document_service.refresh_invoice_status(invoice)
        saved.append(store.save(invoice))
    return saved


def main():
    """Main seeding function"""
    print("Creating database tables...")
    init_db()
    local_store.initialize_catalog(DEFAULT_CATALOG)

    try:
        print("Creating estimates...")
        estimates = create_estimates(local_store, count=6)
        print(f"Created {len(estimates)} estimates")

        print("Creating contracts...")
        contracts = create_contracts(local_store, estimates)
        print(f"Created {contracts} contracts")

        print("Creating invoices...")
        invoices = create_invoices(local_store, estimates)
        print(f"Created {len(invoices)} invoices")

        print("\nSeeding complete!")
        print(f"Summary:")
        print(f"  - Estimates: {len(estimates)}")
        print(f"  - Contracts: {contracts}")
        print(f"  - Invoices: {len(invoices)}")
        for invoice in invoices:
            print(f"    - {invoice.invoice_number}: {invoice.status.value}")

    except Exception as e:
        print(f"Error during seeding: {e}")
        raise


if __name__ == "__main__":
    main()
