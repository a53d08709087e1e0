"""Repository port - what the service layer needs from a QAP record store"""
from typing import Iterable, List, Optional, Protocol

from ..domain.models import QAPRecord


class QAPRepository(Protocol):
    """Persistence port for QAP records"""

    def get(self, qap_id: str) -> Optional[QAPRecord]:
        """Get a record by ID"""
        ...

    def get_or_raise(self, qap_id: str) -> QAPRecord:
        """Get a record by ID or raise QAPNotFoundError"""
        ...

    def save(self, record: QAPRecord, expected_version: Optional[int] = None) -> QAPRecord:
        """
        Insert or replace a record.

        With expected_version the write only succeeds if the stored version
        still matches; the returned record carries the bumped version.
        """
        ...

    def list(
        self,
        plant: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None
    ) -> List[QAPRecord]:
        """List records, optionally filtered by plant and status"""
        ...

    def delete(self, qap_id: str) -> bool:
        """Delete a record, True if something was removed"""
        ...
