import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional, Sequence, Type, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from gardenbook.config import settings
from gardenbook.database import SessionLocal
from gardenbook.models.local_record import LocalRecord
from gardenbook.schemas.catalog import CatalogItem, CatalogType
from gardenbook.schemas.common import new_id, utcnow
from gardenbook.schemas.contract import Contract
from gardenbook.schemas.estimate import ClientInfo, Estimate, EstimateStatus
from gardenbook.schemas.export import EXPORT_VERSION, ExportCatalogs, ExportData
from gardenbook.schemas.invoice import Invoice
from gardenbook.schemas.line_item import LineItemCategory, LIST_DEFAULT_CATEGORY, LIST_KEYS
from gardenbook.schemas.settings import BusinessSettings
from gardenbook.services import document_service

logger = logging.getLogger(__name__)

ESTIMATES = "estimates"
CONTRACTS = "contracts"
INVOICES = "invoices"
SETTINGS = "settings"
CATALOG = "catalog"

SETTINGS_KEY = "settings"
# Stamp of defaults that were initialized but never saved; any saved settings are newer
NEVER_SAVED = datetime.min.replace(tzinfo=timezone.utc)

COLLECTION_MODELS: Dict[str, Type[BaseModel]] = {
    ESTIMATES: Estimate,
    CONTRACTS: Contract,
    INVOICES: Invoice,
}
MODEL_COLLECTIONS = {model: name for name, model in COLLECTION_MODELS.items()}

Document = Union[Estimate, Contract, Invoice]


class StorageError(Exception):
    """Generic local persistence failure."""


class StorageCapacityExceeded(StorageError):
    """Local medium is full; the operator should export or clear data."""


class ImportRejected(ValueError):
    """Malformed or unsupported import payload; nothing was applied."""


@dataclass(frozen=True)
class StoreChange:
    collection: str
    action: str  # "save" or "delete"
    record_id: str


ChangeListener = Callable[[StoreChange], None]


class LocalStore:
    """
    Local source of truth for estimates, contracts, invoices, settings and
    catalogs. Every save stamps updated_at; every save/delete notifies the
    change listeners (the sync reconciler subscribes here).
    """

    def __init__(
        self,
        session_factory=SessionLocal,
        quota_bytes: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self.quota_bytes = quota_bytes
        self._clock = clock
        self._listeners: List[ChangeListener] = []

    # --- Listeners ---

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self, collection: str, action: str, record_id: str) -> None:
        change = StoreChange(collection, action, record_id)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                # The write is already committed; a listener must not undo it
                logger.error(f"Store listener failed for {collection}/{record_id}: {str(e)}", exc_info=True)

    # --- Low-level rows ---

    def _row(self, db: Session, collection: str, record_id: str) -> Optional[LocalRecord]:
        return db.query(LocalRecord).filter(
            LocalRecord.collection == collection,
            LocalRecord.record_id == record_id,
        ).first()

    def _check_quota(self, db: Session, collection: str, record_id: str, data: dict) -> None:
        if not self.quota_bytes:
            return
        used = 0
        for row in db.query(LocalRecord).all():
            if row.collection == collection and row.record_id == record_id:
                continue
            used += len(json.dumps(row.data))
        needed = len(json.dumps(data))
        if used + needed > self.quota_bytes:
            raise StorageCapacityExceeded(
                f"Local storage is full ({used + needed} of {self.quota_bytes} bytes). "
                "Export your data and remove old documents."
            )

    def _write(self, db: Session, collection: str, record_id: str, data: dict, updated_at: datetime) -> None:
        self._check_quota(db, collection, record_id, data)
        row = self._row(db, collection, record_id)
        if row is None:
            db.add(LocalRecord(collection=collection, record_id=record_id, data=data, updated_at=updated_at))
        else:
            row.data = data
            row.updated_at = updated_at

    def _commit(self, db: Session) -> None:
        try:
            db.commit()
        except OperationalError as e:
            db.rollback()
            if "full" in str(e.orig).lower():
                raise StorageCapacityExceeded(f"Local database is full: {str(e.orig)}") from e
            raise StorageError(f"Failed to write local storage: {str(e)}") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Failed to write local storage: {str(e)}") from e

    # --- Id-keyed collections ---

    def list(self, collection: str) -> List[Document]:
        """All records in insertion order (sort by updated_at for recency)."""
        model = COLLECTION_MODELS[collection]
        with self._session_factory() as db:
            rows = db.query(LocalRecord).filter(
                LocalRecord.collection == collection
            ).order_by(LocalRecord.seq).all()
            return [model.model_validate(row.data) for row in rows]

    def load(self, collection: str, record_id: str) -> Optional[Document]:
        """Returns None when the record does not exist."""
        model = COLLECTION_MODELS[collection]
        with self._session_factory() as db:
            row = self._row(db, collection, record_id)
            if row is None:
                return None
            return model.model_validate(row.data)

    def count(self, collection: str) -> int:
        with self._session_factory() as db:
            return db.query(LocalRecord).filter(LocalRecord.collection == collection).count()

    def save(self, record: Document) -> Document:
        """
        Upsert by id. updated_at is always rewritten with the current time.

        Returns:
            The stored copy, carrying the new updated_at

        Raises:
            StorageCapacityExceeded: the local quota or disk is full
            StorageError: any other persistence failure
        """
        collection = MODEL_COLLECTIONS[type(record)]
        stored = record.model_copy(deep=True)
        stored.updated_at = self._clock()

        with self._session_factory() as db:
            self._write(db, collection, stored.id, stored.to_json_dict(), stored.updated_at)
            self._commit(db)

        logger.debug(f"Saved {collection}/{stored.id}")
        self._notify(collection, "save", stored.id)
        return stored

    def delete(self, collection: str, record_id: str) -> bool:
        """Hard removal; no tombstone is kept."""
        with self._session_factory() as db:
            row = self._row(db, collection, record_id)
            if row is None:
                return False
            db.delete(row)
            self._commit(db)

        logger.info(f"Deleted {collection}/{record_id}")
        self._notify(collection, "delete", record_id)
        return True

    # --- Settings and counters ---

    def load_settings(self) -> BusinessSettings:
        """Get the settings record, initializing it with defaults on first access."""
        with self._session_factory() as db:
            row = self._row(db, SETTINGS, SETTINGS_KEY)
            if row is not None:
                return BusinessSettings.model_validate(row.data)

            defaults = BusinessSettings(
                estimate_number_prefix=settings.estimate_number_prefix,
                invoice_number_prefix=settings.invoice_number_prefix,
                updated_at=NEVER_SAVED,
            )
            self._write(db, SETTINGS, SETTINGS_KEY, defaults.to_json_dict(), defaults.updated_at)
            self._commit(db)
            logger.info("Initialized settings with defaults")
            return defaults

    def save_settings(self, business_settings: BusinessSettings) -> BusinessSettings:
        stored = business_settings.model_copy(deep=True)
        stored.updated_at = self._clock()
        with self._session_factory() as db:
            self._write(db, SETTINGS, SETTINGS_KEY, stored.to_json_dict(), stored.updated_at)
            self._commit(db)
        self._notify(SETTINGS, "save", SETTINGS_KEY)
        return stored

    def peek_next_estimate_number(self) -> str:
        """Number the next estimate would get; does not consume it."""
        current = self.load_settings()
        return document_service.generate_number(current.estimate_number_prefix, current.next_estimate_number)

    def consume_estimate_number(self) -> str:
        """Take the next estimate number and advance the counter (never reused)."""
        current = self.load_settings()
        number = document_service.generate_number(current.estimate_number_prefix, current.next_estimate_number)
        current.next_estimate_number += 1
        self.save_settings(current)
        return number

    def peek_next_invoice_number(self) -> str:
        current = self.load_settings()
        return document_service.generate_invoice_number(current.invoice_number_prefix, current.next_invoice_number)

    def consume_invoice_number(self) -> str:
        current = self.load_settings()
        number = document_service.generate_invoice_number(current.invoice_number_prefix, current.next_invoice_number)
        current.next_invoice_number += 1
        self.save_settings(current)
        return number

    def next_contract_number(self) -> str:
        return document_service.generate_contract_number(
            self.count(CONTRACTS), prefix=settings.contract_number_prefix
        )

    # --- Catalogs ---

    def load_catalog(self, catalog_type: CatalogType) -> List[CatalogItem]:
        catalog_type = CatalogType(catalog_type)
        with self._session_factory() as db:
            row = self._row(db, CATALOG, catalog_type.value)
            if row is None:
                return []
            return [CatalogItem.model_validate(item) for item in row.data]

    def save_catalog(self, catalog_type: CatalogType, items: Sequence[CatalogItem]) -> None:
        catalog_type = CatalogType(catalog_type)
        data = [item.to_json_dict() for item in items]
        with self._session_factory() as db:
            self._write(db, CATALOG, catalog_type.value, data, self._clock())
            self._commit(db)
        self._notify(CATALOG, "save", catalog_type.value)

    def initialize_catalog(self, default_catalog: Sequence[CatalogItem]) -> None:
        """Seed each catalog type from the built-in list, only where empty."""
        for catalog_type in CatalogType:
            if self.load_catalog(catalog_type):
                continue
            items = [item for item in default_catalog if item.type == catalog_type]
            self.save_catalog(catalog_type, items)
            logger.info(f"Seeded {len(items)} {catalog_type.value} catalog items")

    # --- Estimate helpers ---

    def save_new_estimate(self, estimate: Estimate) -> Estimate:
        """
        Validate and save; consume the estimate counter when the estimate
        carries the number that was peeked for it.
        """
        document_service.validate_for_save(estimate)
        is_new = self.load(ESTIMATES, estimate.id) is None
        peeked = self.peek_next_estimate_number()
        stored = self.save(estimate)
        if is_new and estimate.estimate_number == peeked:
            self.consume_estimate_number()
        return stored

    def duplicate_estimate(self, estimate_id: str) -> Optional[Estimate]:
        original = self.load(ESTIMATES, estimate_id)
        if original is None:
            return None
        duplicate = document_service.duplicate_estimate(original, self.consume_estimate_number())
        return self.save(duplicate)

    # --- Merge writes (sync) ---

    def put_from_remote(self, collection: str, data: dict) -> Document:
        """
        Store a record pulled from the remote replica. Keeps its updated_at
        and does not notify listeners.
        """
        record = COLLECTION_MODELS[collection].model_validate(data)
        with self._session_factory() as db:
            self._write(db, collection, record.id, record.to_json_dict(), record.updated_at)
            self._commit(db)
        return record

    def put_settings_from_remote(self, data: dict) -> BusinessSettings:
        remote = BusinessSettings.model_validate(data)
        with self._session_factory() as db:
            self._write(db, SETTINGS, SETTINGS_KEY, remote.to_json_dict(), remote.updated_at)
            self._commit(db)
        return remote

    def put_catalog_from_remote(self, catalog_type: CatalogType, items: Sequence[dict]) -> List[CatalogItem]:
        catalog_type = CatalogType(catalog_type)
        parsed = [CatalogItem.model_validate(item) for item in items]
        with self._session_factory() as db:
            self._write(db, CATALOG, catalog_type.value, [i.to_json_dict() for i in parsed], self._clock())
            self._commit(db)
        return parsed

    # --- Export / import ---

    def export_all(self) -> ExportData:
        return ExportData(
            version=EXPORT_VERSION,
            exported_at=utcnow(),
            estimates=self.list(ESTIMATES),
            settings=self.load_settings(),
            catalogs=ExportCatalogs(
                plants=self.load_catalog(CatalogType.PLANT),
                services=self.load_catalog(CatalogType.SERVICE),
                materials=self.load_catalog(CatalogType.MATERIAL),
            ),
        )

    def import_all(self, payload: Union[str, bytes, dict]) -> ExportData:
        """
        Replace estimates, settings and catalogs with a backup snapshot.
        All-or-nothing: any problem leaves local data untouched.

        Raises:
            ImportRejected: bad JSON, unsupported version or wrong shape
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise ImportRejected(f"Invalid backup file: {str(e)}") from e
        if not isinstance(payload, dict):
            raise ImportRejected("Invalid backup file: expected a JSON object")

        version = payload.get("version")
        if version != EXPORT_VERSION:
            raise ImportRejected(f"Unsupported data version: {version}")

        try:
            data = ExportData.model_validate(payload)
        except ValidationError as e:
            raise ImportRejected(f"Invalid backup file: {str(e)}") from e

        catalogs = {
            CatalogType.PLANT: data.catalogs.plants,
            CatalogType.SERVICE: data.catalogs.services,
            CatalogType.MATERIAL: data.catalogs.materials,
        }

        with self._session_factory() as db:
            db.query(LocalRecord).filter(
                LocalRecord.collection.in_([ESTIMATES, SETTINGS, CATALOG])
            ).delete(synchronize_session=False)
            for estimate in data.estimates:
                self._write(db, ESTIMATES, estimate.id, estimate.to_json_dict(), estimate.updated_at)
            self._write(db, SETTINGS, SETTINGS_KEY, data.settings.to_json_dict(), data.settings.updated_at)
            for catalog_type, items in catalogs.items():
                self._write(db, CATALOG, catalog_type.value, [i.to_json_dict() for i in items], self._clock())
            self._commit(db)

        logger.info(f"Imported backup with {len(data.estimates)} estimates")
        for estimate in data.estimates:
            self._notify(ESTIMATES, "save", estimate.id)
        self._notify(SETTINGS, "save", SETTINGS_KEY)
        for catalog_type in catalogs:
            self._notify(CATALOG, "save", catalog_type.value)
        return data

    def import_estimate(self, payload: Union[str, bytes, dict]) -> Estimate:
        """
        Import one loosely-typed estimate as a new draft: fresh ids
        everywhere, bad numbers become 0, unknown enums fall back to safe
        defaults, and the next estimate number is consumed.
        """
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise ImportRejected(f"Invalid estimate file: {str(e)}") from e
        if not isinstance(payload, dict):
            raise ImportRejected("Invalid estimate file: expected a JSON object")

        try:
            estimate = _coerce_estimate(payload)
        except ValidationError as e:
            raise ImportRejected(f"Invalid estimate file: {str(e)}") from e

        estimate.estimate_number = self.consume_estimate_number()
        logger.info(f"Imported estimate as {estimate.estimate_number}")
        return self.save(estimate)


# --- Loose single-estimate coercion ---

def _get(data: dict, camel: str, snake: str, default=None):
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _number(value) -> Decimal:
    if isinstance(value, bool) or value is None:
        return Decimal("0")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def _category(value, fallback: LineItemCategory) -> LineItemCategory:
    try:
        return LineItemCategory(value)
    except (TypeError, ValueError):
        return fallback


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def _coerce_items(raw, fallback: LineItemCategory) -> list:
    items = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        sub_items = _get(entry, "subItems", "sub_items")
        items.append({
            "id": new_id(),
            "category": _category(entry.get("category"), fallback),
            "description": _text(entry.get("description")),
            "quantity": _number(entry.get("quantity")),
            "unit": _text(entry.get("unit")) or "ea",
            "unit_price": _number(_get(entry, "unitPrice", "unit_price")),
            "no_price": bool(_get(entry, "noPrice", "no_price", False)),
            "sub_items": [s for s in sub_items if isinstance(s, str)] if isinstance(sub_items, list) else None,
        })
    return items


def _coerce_estimate(data: dict) -> Estimate:
    sections = []
    raw_sections = _get(data, "projectSections", "project_sections")
    for raw_section in raw_sections if isinstance(raw_sections, list) else []:
        if not isinstance(raw_section, dict):
            continue
        section = {"id": new_id(), "name": _text(raw_section.get("name")) or "Main"}
        for key in LIST_KEYS:
            snake = {"plantMaterial": "plant_material", "laborAndServices": "labor_and_services", "otherMaterials": "other_materials"}[key]
            section[snake] = _coerce_items(_get(raw_section, key, snake), LIST_DEFAULT_CATEGORY[key])
        sections.append(section)
    if not sections:
        sections = [document_service.create_empty_section("Main").model_dump()]

    raw_client = data.get("client") if isinstance(data.get("client"), dict) else {}
    client = ClientInfo.model_validate({k: v for k, v in raw_client.items() if isinstance(v, (str, bool))})

    taxable = []
    raw_taxable = _get(data, "taxableCategories", "taxable_categories")
    for value in raw_taxable if isinstance(raw_taxable, list) else []:
        try:
            taxable.append(LineItemCategory(value))
        except (TypeError, ValueError):
            continue
    if not isinstance(raw_taxable, list) or not raw_taxable:
        taxable = [LineItemCategory.PLANTING, LineItemCategory.OTHER]

    valid_days = _number(_get(data, "validDays", "valid_days", 30))
    now = utcnow()
    return Estimate.model_validate({
        "id": new_id(),
        "status": EstimateStatus.DRAFT,
        "created_at": now,
        "updated_at": now,
        "valid_days": int(valid_days) if valid_days > 0 else 30,
        "client": client,
        "project_description": _text(_get(data, "projectDescription", "project_description")),
        "estimated_start_date": _text(_get(data, "estimatedStartDate", "estimated_start_date")),
        "estimated_duration": _text(_get(data, "estimatedDuration", "estimated_duration")),
        "project_sections": sections,
        "design_fee": _coerce_items(_get(data, "designFee", "design_fee"), LineItemCategory.LABOR),
        "tax_rate": _number(_get(data, "taxRate", "tax_rate")),
        "taxable_categories": taxable,
        "terms": _text(data.get("terms")),
        "warranty": _text(data.get("warranty")),
        "exclusions": _text(data.get("exclusions")),
        "notes": _text(data.get("notes")),
    })


local_store = LocalStore(quota_bytes=settings.local_storage_quota_bytes)


def get_store() -> LocalStore:
    return local_store
