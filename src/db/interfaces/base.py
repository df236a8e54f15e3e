from abc import ABC, abstractmethod
from typing import Any, ContextManager, Dict, List, Optional

from sqlalchemy.orm import Session


class BaseDatabase(ABC):
    """Connection lifecycle of the configuration store."""

    @abstractmethod
    def startup(self) -> None:
        pass

    @abstractmethod
    def teardown(self) -> None:
        pass

    @abstractmethod
    def get_session(self) -> ContextManager[Session]:
        pass


class BaseRepository(ABC):
    """Session-bound repository for records keyed by a natural name."""

    def __init__(self, session: Session):
        self.session = session

    @abstractmethod
    def create(self, record_id: str, data: Dict[str, Any]) -> Any:
        """Create a record under the given name."""

    @abstractmethod
    def get_by_id(self, record_id: str) -> Optional[Any]:
        """Get a record by name."""

    @abstractmethod
    def update(self, record_id: str, data: Dict[str, Any]) -> Optional[Any]:
        """Replace the data of a record. Returns None when it does not exist."""

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Delete a record by name."""

    @abstractmethod
    def list(self, limit: int = 100, offset: int = 0) -> List[Any]:
        """List records ordered by name."""

    def exists(self, record_id: str) -> bool:
        return self.get_by_id(record_id) is not None
