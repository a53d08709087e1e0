"""QAP Repository - MongoDB data access for QAP records"""
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from .mongo_client import get_collection
from ..config.settings import settings
from ..domain.models import QAPRecord
from ..domain.errors import QAPNotFoundError, ConcurrencyError, PersistenceError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _to_bson(value: Any) -> Any:
    """BSON needs string keys and plain values; datetimes stay native for sorting"""
    if isinstance(value, dict):
        return {str(k): _to_bson(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_bson(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    return value


def to_document(record: QAPRecord) -> Dict[str, Any]:
    """Convert a record into a MongoDB document"""
    # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
    doc = _to_bson(record.model_dump(by_alias=False))
    doc["_id"] = record.id
    return doc


def from_document(doc: Dict[str, Any]) -> QAPRecord:
    """Convert a MongoDB document back into a record"""
    doc = dict(doc)
    doc.pop("_id", None)
    return QAPRecord.model_validate(doc)


class MongoQAPRepository:
    """Repository for QAP record operations"""

    def __init__(self, collection: Optional[Collection] = None):
        self._records: Collection = (
            collection if collection is not None else get_collection(settings.qap_collection)
        )

    def get(self, qap_id: str) -> Optional[QAPRecord]:
        """Get record by ID"""
        doc = self._records.find_one({"id": qap_id})
        if doc:
            return from_document(doc)
        return None

    def get_or_raise(self, qap_id: str) -> QAPRecord:
        """Get record by ID or raise error"""
        record = self.get(qap_id)
        if not record:
            raise QAPNotFoundError(f"QAP {qap_id} not found", details={"qap_id": qap_id})
        return record

    def save(self, record: QAPRecord, expected_version: Optional[int] = None) -> QAPRecord:
        """Upsert a record, with optimistic concurrency when expected_version is given"""
        try:
            if expected_version is None:
                doc = to_document(record)
                self._records.replace_one({"id": record.id}, doc, upsert=True)
                logger.info(f"Saved QAP: {record.id}", extra={"qap_id": record.id, "status": record.status})
                return record

            bumped = record.model_copy(update={"version": expected_version + 1})
            result = self._records.find_one_and_replace(
                {"id": record.id, "version": expected_version},
                to_document(bumped),
                return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            logger.error(f"Failed to save QAP {record.id}: {e}", extra={"qap_id": record.id})
            raise PersistenceError(f"Failed to save QAP {record.id}", details={"qap_id": record.id}) from e

        if result is None:
            if self._records.find_one({"id": record.id}, {"_id": 1}):
                raise ConcurrencyError(
                    f"QAP {record.id} was modified. Please refresh and try again.",
                    details={"expected_version": expected_version}
                )
            raise QAPNotFoundError(f"QAP {record.id} not found", details={"qap_id": record.id})

        logger.info(
            f"Updated QAP: {record.id}",
            extra={"qap_id": record.id, "status": bumped.status}
        )
        return from_document(result)

    def list(
        self,
        plant: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None
    ) -> List[QAPRecord]:
        """List records, newest activity first"""
        query: Dict[str, Any] = {}
        if plant:
            query["plant"] = plant.strip().lower()
        if statuses:
            query["status"] = {"$in": [getattr(s, "value", s) for s in statuses]}

        cursor = self._records.find(query).sort("last_modified_at", DESCENDING)
        return [from_document(doc) for doc in cursor]

    def delete(self, qap_id: str) -> bool:
        """Delete a record"""
        result = self._records.delete_one({"id": qap_id})
        if result.deleted_count:
            logger.info(f"Deleted QAP: {qap_id}", extra={"qap_id": qap_id})
        return bool(result.deleted_count)
