from sqlalchemy import Column, String, DateTime, JSON, PrimaryKeyConstraint
from sqlalchemy.sql import func
from gardenbook.database import Base


class RemoteRecord(Base):
    """Replica row owned by one operator; lives in the remote database."""
    __tablename__ = "remote_records"
    __table_args__ = (
        PrimaryKeyConstraint("collection", "record_id", "user_id", name="pk_remote_records"),
    )

    collection = Column(String, nullable=False)
    record_id = Column(String, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
