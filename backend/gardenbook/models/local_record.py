from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from gardenbook.database import Base


class LocalRecord(Base):
    """
    One record of a named local collection.

    Id-keyed collections (estimates, contracts, invoices) hold one row per
    document. Settings and catalogs are keyed rows in the same table
    ("settings"/"settings", "catalog"/"plant", ...).
    """
    __tablename__ = "local_records"
    __table_args__ = (
        UniqueConstraint("collection", "record_id", name="uq_local_records_collection_record"),
    )

    # Autoincrement sequence doubles as insertion order
    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String, nullable=False, index=True)
    record_id = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
