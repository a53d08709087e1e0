"""QAP Service - QAP workflow business logic for an authenticated user"""
from typing import Any, Dict, List, Optional

from ..domain.models import (
    QAPRecord, QAPSpecs, User, AnalyticsSummary, TurnaroundFilters, TurnaroundResult
)
from ..domain.enums import QAPStatus, UserRole
from ..domain.errors import PermissionDeniedError, TransitionNotFoundError, InvalidStateError
from ..engine import (
    WorkflowEngine, PermissionGuard, ReviewerRouter,
    build_analytics, calculate_average_turnaround_time
)
from ..repositories.base import QAPRepository
from ..utils.idgen import generate_qap_id
from ..utils.logger import get_logger

logger = get_logger(__name__)

_CREATOR_ROLES = {UserRole.REQUESTOR.value, UserRole.ADMIN.value}
_ANALYTICS_ROLES = {UserRole.ADMIN.value, UserRole.PLANT_HEAD.value}


class QAPService:
    """
    Service for QAP operations

    Loads records through the repository port, checks the user with the
    permission guard, applies the engine and writes the result back with
    optimistic concurrency.
    """

    def __init__(
        self,
        repo: QAPRepository,
        engine: Optional[WorkflowEngine] = None,
        guard: Optional[PermissionGuard] = None,
        router: Optional[ReviewerRouter] = None
    ):
        self.repo = repo
        self.engine = engine or WorkflowEngine()
        self.guard = guard or PermissionGuard()
        self.router = router or ReviewerRouter()

    def _deny(self, user: User, action: str, record: Optional[QAPRecord] = None) -> PermissionDeniedError:
        qap_id = record.id if record else None
        logger.warning(
            f"Permission denied: {user.username} cannot {action}",
            extra={"qap_id": qap_id, "actor": user.username, "role": user.role, "action": action}
        )
        return PermissionDeniedError(
            f"You do not have permission to {action}",
            details={"qap_id": qap_id, "role": user.role}
        )

    def _store(self, original: QAPRecord, updated: QAPRecord) -> QAPRecord:
        return self.repo.save(updated, expected_version=original.version)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_for_user(self, user: User, qap_id: str) -> QAPRecord:
        """Get a record the user is allowed to open"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_user_access_qap(user, record):
            raise self._deny(user, "view this QAP", record)
        return record

    def list_for_user(self, user: User, plant: Optional[str] = None) -> List[QAPRecord]:
        """Records visible in the user's list view"""
        return self.guard.get_user_accessible_qaps(user, self.repo.list(plant=plant))

    def review_queue(self, user: User) -> List[QAPRecord]:
        """Records waiting on the user's action"""
        return self.guard.get_review_queue(user, self.repo.list())

    # =========================================================================
    # Requestor actions
    # =========================================================================

    def create_draft(
        self,
        user: User,
        customer_name: str,
        project_name: str,
        plant: str,
        specs: Optional[QAPSpecs] = None,
        **fields: Any
    ) -> QAPRecord:
        """Create a new draft owned by the user"""
        if user.role not in _CREATOR_ROLES:
            raise self._deny(user, "create QAPs")

        now = self.engine.clock()
        record = QAPRecord(
            id=generate_qap_id(),
            customer_name=customer_name,
            project_name=project_name,
            plant=plant,
            status=QAPStatus.DRAFT.value,
            current_level=1,
            submitted_by=user.username,
            specs=specs or QAPSpecs(),
            level_start_times={1: now},
            created_at=now,
            last_modified_at=now,
            **fields
        )
        logger.info(
            f"Created QAP draft: {record.id}",
            extra={"qap_id": record.id, "actor": user.username, "plant": record.plant}
        )
        return self.repo.save(record)

    def edit(self, user: User, qap_id: str, specs: QAPSpecs) -> QAPRecord:
        """Replace the specs; late-stage and finished records go back to draft"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_edit(user, record):
            raise self._deny(user, "edit this QAP", record)
        return self._store(record, self.engine.apply_edit(record, user, specs))

    def submit(self, user: User, qap_id: str) -> QAPRecord:
        """Send a draft to level 2"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_submit(user, record):
            raise self._deny(user, "submit this QAP", record)
        return self._store(record, self.engine.submit_for_review(record, user))

    def reopen(self, user: User, qap_id: str, reason: Optional[str] = None) -> QAPRecord:
        """Explicitly send a late-stage or finished record back to draft"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_edit(user, record):
            raise self._deny(user, "reopen this QAP", record)
        return self._store(record, self.engine.reopen_for_edit(record, user, reason))

    def submit_final_comments(self, user: User, qap_id: str, comments: str) -> QAPRecord:
        """Requestor's final comments, then on to the plant head"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_act_at_level(user, record, 1):
            raise self._deny(user, "add final comments to this QAP", record)
        return self._store(record, self.engine.submit_final_comments(record, user, comments))

    # =========================================================================
    # Reviewer actions
    # =========================================================================

    def respond(
        self,
        user: User,
        qap_id: str,
        comments: Optional[Dict[int, str]] = None,
        acknowledged: bool = True
    ) -> QAPRecord:
        """
        Record the user's review at the record's current level.

        Level 2 moves on once every assigned role has acknowledged; levels 3 and
        4 have a single reviewer and move on straight away.
        """
        record = self.repo.get_or_raise(qap_id)
        level = record.current_level
        if level not in (2, 3, 4) or not self.guard.can_act_at_level(user, record, level):
            raise self._deny(user, f"review this QAP at level {level}", record)

        updated = self.engine.record_level_response(record, user, level, comments, acknowledged)

        if level != 2 or self.engine.level_reviews_complete(updated, 2):
            updated = self._forward(updated, user)

        return self._store(record, updated)

    def advance(self, user: User, qap_id: str) -> QAPRecord:
        """Move a record on without waiting for outstanding level 2 responses"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_act_at_level(user, record, record.current_level):
            raise self._deny(user, "advance this QAP", record)
        if record.status == QAPStatus.FINAL_COMMENTS.value:
            raise InvalidStateError(
                f"QAP {record.id} needs the requestor's final comments first",
                details={"qap_id": record.id, "status": record.status}
            )
        return self._store(record, self._forward(record, user))

    def _forward(self, record: QAPRecord, user: User) -> QAPRecord:
        target = self.engine.next_target(record)
        if target is None:
            raise TransitionNotFoundError(
                f"No forward transition from status {record.status}",
                details={"qap_id": record.id, "status": record.status}
            )

        recipients = self.router.get_next_level_users(record, record.current_level)
        updated = self.engine.process_workflow_transition(record, target, user=user)
        logger.info(
            f"QAP {record.id} forwarded to {updated.status}",
            extra={"qap_id": record.id, "status": updated.status, "action": "forward", "target": recipients}
        )
        return updated

    def approve(self, user: User, qap_id: str, feedback: Optional[str] = None) -> QAPRecord:
        """Plant head approval"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_act_at_level(user, record, 5):
            raise self._deny(user, "approve this QAP", record)
        return self._store(record, self.engine.approve(record, user, feedback))

    def reject(self, user: User, qap_id: str, feedback: str) -> QAPRecord:
        """Plant head rejection"""
        record = self.repo.get_or_raise(qap_id)
        if not self.guard.can_act_at_level(user, record, 5):
            raise self._deny(user, "reject this QAP", record)
        return self._store(record, self.engine.reject(record, user, feedback))

    # =========================================================================
    # Analytics
    # =========================================================================

    def analytics(self, user: User, plant: str = "all", days: int = 30) -> AnalyticsSummary:
        """Dashboard figures"""
        if user.role not in _ANALYTICS_ROLES:
            raise self._deny(user, "view analytics")
        return build_analytics(self.repo.list(), plant=plant, days=days, now=self.engine.clock())

    def average_turnaround(self, user: User, filters: Optional[TurnaroundFilters] = None) -> TurnaroundResult:
        """Average turnaround over approved records"""
        if user.role not in _ANALYTICS_ROLES:
            raise self._deny(user, "view analytics")
        return calculate_average_turnaround_time(self.repo.list(), filters)
