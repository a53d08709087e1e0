"""Audit Writer - Append-only timeline entries on a QAP record"""
from datetime import datetime
from typing import Optional

from ..domain.models import QAPRecord, TimelineEntry, User
from ..utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_USER = "system"


class AuditWriter:
    """
    Write timeline entries (append-only)

    Every level change and review action produces at least one entry. Entries
    are never edited or removed once written.
    """

    def write_event(
        self,
        record: QAPRecord,
        level: int,
        action: str,
        timestamp: datetime,
        user: Optional[User] = None,
        comments: Optional[str] = None
    ) -> TimelineEntry:
        """Append a single timeline entry to the record"""
        entry = TimelineEntry(
            level=level,
            action=action,
            user=user.username if user else SYSTEM_USER,
            timestamp=timestamp,
            comments=comments
        )
        record.timeline.append(entry)

        logger.debug(
            f"Timeline entry: {action}",
            extra={"qap_id": record.id, "review_level": level, "action": action, "actor": entry.user}
        )
        return entry
