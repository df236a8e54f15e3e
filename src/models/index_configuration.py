from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String
from src.db.interfaces.postgresql import Base


class IndexConfiguration(Base):
    __tablename__ = "index_configurations"

    name = Column(String, primary_key=True)  # Object type name, e.g. "case-reports"
    payload = Column(JSON, nullable=False)  # filters, mapping, mongo/elastic locations

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
