"""In-memory QAP Repository - dict backed store for tests and local runs"""
from typing import Dict, Iterable, List, Optional

from ..domain.models import QAPRecord
from ..domain.errors import QAPNotFoundError, ConcurrencyError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryQAPRepository:
    """Repository keeping records in a dict; reads and writes are deep copies"""

    def __init__(self, records: Optional[Iterable[QAPRecord]] = None):
        self._records: Dict[str, QAPRecord] = {}
        for record in records or []:
            self._records[record.id] = record.model_copy(deep=True)

    def get(self, qap_id: str) -> Optional[QAPRecord]:
        record = self._records.get(qap_id)
        return record.model_copy(deep=True) if record else None

    def get_or_raise(self, qap_id: str) -> QAPRecord:
        record = self.get(qap_id)
        if not record:
            raise QAPNotFoundError(f"QAP {qap_id} not found", details={"qap_id": qap_id})
        return record

    def save(self, record: QAPRecord, expected_version: Optional[int] = None) -> QAPRecord:
        stored = self._records.get(record.id)
        if expected_version is not None:
            if stored is None:
                raise QAPNotFoundError(f"QAP {record.id} not found", details={"qap_id": record.id})
            if stored.version != expected_version:
                raise ConcurrencyError(
                    f"QAP {record.id} was modified. Please refresh and try again.",
                    details={"expected_version": expected_version, "actual_version": stored.version}
                )
            record = record.model_copy(update={"version": expected_version + 1}, deep=True)
        else:
            record = record.model_copy(deep=True)

        self._records[record.id] = record
        logger.debug(f"Saved QAP: {record.id}", extra={"qap_id": record.id, "status": record.status})
        return record.model_copy(deep=True)

    def list(
        self,
        plant: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None
    ) -> List[QAPRecord]:
        wanted = {getattr(s, "value", s) for s in statuses} if statuses else None
        plant = (plant or "").strip().lower()
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if (not plant or record.plant == plant) and (wanted is None or record.status in wanted)
        ]

    def delete(self, qap_id: str) -> bool:
        return self._records.pop(qap_id, None) is not None
