import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from src.db.interfaces.base import BaseRepository
from src.models.index_configuration import IndexConfiguration

logger = logging.getLogger(__name__)


class ConfigurationRepository(BaseRepository):
    """Configuration store: one JSON payload per object type name."""

    def create(self, record_id: str, data: Dict[str, Any]) -> IndexConfiguration:
        record = IndexConfiguration(name=record_id, payload=data)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def get_by_id(self, record_id: str) -> Optional[IndexConfiguration]:
        return self.session.get(IndexConfiguration, record_id)

    def update(self, record_id: str, data: Dict[str, Any]) -> Optional[IndexConfiguration]:
        record = self.get_by_id(record_id)
        if record is None:
            return None
        record.payload = data
        self.session.commit()
        self.session.refresh(record)
        return record

    def delete(self, record_id: str) -> bool:
        record = self.get_by_id(record_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True

    def list(self, limit: int = 100, offset: int = 0) -> List[IndexConfiguration]:
        stmt = select(IndexConfiguration).order_by(IndexConfiguration.name).limit(limit).offset(offset)
        return list(self.session.scalars(stmt))

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        record = self.get_by_id(name)
        return dict(record.payload) if record is not None else None

    def upsert(self, name: str, payload: Dict[str, Any]) -> Tuple[IndexConfiguration, bool]:
        """Create or replace a configuration. Returns the record and whether it was created."""
        if self.exists(name):
            logger.info(f"Updating configuration {name}")
            return self.update(name, payload), False
        logger.info(f"Creating configuration {name}")
        return self.create(name, payload), True
