"""Workflow Engine - level transitions and review actions on QAP records"""
from datetime import datetime
from typing import Dict, Iterable, Optional, Union

from ..domain.models import QAPRecord, QAPSpecs, LevelResponse, User
from ..domain.enums import (
    QAPStatus, TimelineAction, REVIEW_ACTION_PREFIX
)
from ..domain.errors import InvalidStateError, ValidationError
from .audit_writer import AuditWriter
from .transition_resolver import TransitionResolver, Target
from .change_tracker import compute_edited_snos
from .levels import EDITABLE_STATUSES, RESET_ON_EDIT_STATUSES, TERMINAL_STATUSES
from ..utils.time import Clock, utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class WorkflowEngine:
    """
    Drives a QAP record through its review levels.

    Every method takes a record and returns an updated deep copy; the input
    record is never mutated. Timestamps come from the injected clock.

    process_workflow_transition never raises: unknown targets return an
    unchanged copy. The review actions (submit, respond, approve, reject,
    reopen, edit) raise InvalidStateError when the record is in the wrong
    status for the action.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        head_plants: Optional[Iterable[str]] = None,
        audit_writer: Optional[AuditWriter] = None
    ):
        self.clock = clock
        self.resolver = TransitionResolver(head_plants=head_plants)
        self.audit = audit_writer or AuditWriter()

    # =========================================================================
    # Level transitions
    # =========================================================================

    def process_workflow_transition(
        self,
        record: QAPRecord,
        next_level: Target,
        user: Optional[User] = None,
        now: Optional[datetime] = None
    ) -> QAPRecord:
        """
        Move a record to the requested level.

        Args:
            record: Record to transition
            next_level: 3, 4, 5, "final-comments", "level-3-final" or "level-4-final"
            user: Acting user, recorded on the timeline (defaults to "system")
            now: Timestamp to stamp with, read from the clock when omitted

        Returns:
            Updated copy of the record
        """
        updated = record.model_copy(deep=True)
        plan = self.resolver.resolve(updated, next_level)
        if plan is None:
            return updated

        now = now or self.clock()
        updated.level_end_times[updated.current_level] = now

        updated.status = plan.status
        updated.current_level = plan.level
        for level, action in plan.entries:
            self.audit.write_event(updated, level, action, now, user=user)

        updated.level_start_times[plan.level] = now
        updated.last_modified_at = now

        logger.info(
            f"QAP {updated.id} moved to {plan.status}",
            extra={"qap_id": updated.id, "status": plan.status, "review_level": plan.level}
        )
        return updated

    def next_target(self, record: QAPRecord) -> Optional[Union[int, str]]:
        """Forward target for the record's current status"""
        return self.resolver.next_target(record)

    # =========================================================================
    # Requestor actions
    # =========================================================================

    def submit_for_review(self, record: QAPRecord, user: User) -> QAPRecord:
        """Send a draft to level 2 review"""
        if record.status not in EDITABLE_STATUSES:
            raise InvalidStateError(
                f"QAP {record.id} cannot be submitted from status {record.status}",
                details={"qap_id": record.id, "status": record.status}
            )

        updated = record.model_copy(deep=True)
        now = self.clock()
        updated.level_end_times[1] = now

        updated.status = QAPStatus.LEVEL_2.value
        updated.current_level = 2
        updated.submitted_by = updated.submitted_by or user.username
        updated.submitted_at = now
        self.audit.write_event(updated, 1, TimelineAction.SUBMITTED.value, now, user=user)
        self.audit.write_event(updated, 2, TimelineAction.SENT_TO_LEVEL_2.value, now, user=user)

        updated.level_start_times[2] = now
        updated.last_modified_at = now

        logger.info(
            f"QAP {updated.id} submitted for review",
            extra={"qap_id": updated.id, "actor": user.username, "plant": updated.plant}
        )
        return updated

    def submit_final_comments(self, record: QAPRecord, user: User, comments: str) -> QAPRecord:
        """Record the requestor's final comments and forward to the plant head"""
        if record.status != QAPStatus.FINAL_COMMENTS.value:
            raise InvalidStateError(
                f"QAP {record.id} is not awaiting final comments",
                details={"qap_id": record.id, "status": record.status}
            )

        now = self.clock()
        updated = self.record_level_response(record, user, 1, {0: comments} if comments else {}, now=now)
        updated.final_comments = comments
        updated.final_comments_by = user.username
        updated.final_comments_at = now
        return self.process_workflow_transition(updated, 5, user=user, now=now)

    def reopen_for_edit(
        self,
        record: QAPRecord,
        user: User,
        reason: Optional[str] = None
    ) -> QAPRecord:
        """
        Reset a late-stage or finished record to draft so its owner can edit it.

        The previous approval is discarded; timeline and level responses stay.
        """
        if record.status not in RESET_ON_EDIT_STATUSES:
            raise InvalidStateError(
                f"QAP {record.id} cannot be reopened from status {record.status}",
                details={"qap_id": record.id, "status": record.status}
            )

        updated = record.model_copy(deep=True)
        now = self.clock()
        if updated.status not in TERMINAL_STATUSES:
            updated.level_end_times[updated.current_level] = now

        updated.status = QAPStatus.DRAFT.value
        updated.current_level = 1
        updated.approver = None
        updated.approved_at = None
        self.audit.write_event(updated, 1, TimelineAction.REOPENED.value, now, user=user, comments=reason)

        updated.level_start_times[1] = now
        updated.last_modified_at = now

        logger.warning(
            f"QAP {updated.id} reopened for edit from {record.status}",
            extra={"qap_id": updated.id, "status": record.status, "actor": user.username}
        )
        return updated

    def apply_edit(self, record: QAPRecord, user: User, specs: QAPSpecs) -> QAPRecord:
        """
        Replace the record's specifications, tracking which rows changed.

        Drafts are edited in place. Records in a reset-on-edit status are
        reopened first. Records under review at levels 2 to 4 cannot be edited.
        """
        if record.status in RESET_ON_EDIT_STATUSES:
            updated = self.reopen_for_edit(record, user)
        elif record.status in EDITABLE_STATUSES:
            updated = record.model_copy(deep=True)
        else:
            raise InvalidStateError(
                f"QAP {record.id} is under review and cannot be edited",
                details={"qap_id": record.id, "status": record.status}
            )

        edited = compute_edited_snos(updated.specs, specs)
        changed = len(edited.mqp) + len(edited.visual)

        updated.specs = specs.model_copy(deep=True)
        updated.edited_snos = edited
        now = self.clock()
        if changed:
            self.audit.write_event(
                updated, 1, TimelineAction.EDITED.value, now, user=user,
                comments=f"{changed} row(s) changed"
            )
        updated.last_modified_at = now
        return updated

    # =========================================================================
    # Reviewer actions
    # =========================================================================

    def record_level_response(
        self,
        record: QAPRecord,
        user: User,
        level: int,
        comments: Optional[Dict[int, str]] = None,
        acknowledged: bool = True,
        now: Optional[datetime] = None
    ) -> QAPRecord:
        """
        Store a role's response at a review level.

        Responses are append-only: a second response from the same role at the
        same level is ignored.
        """
        if record.current_level != level or record.status in EDITABLE_STATUSES | {
            QAPStatus.APPROVED.value, QAPStatus.REJECTED.value
        }:
            raise InvalidStateError(
                f"QAP {record.id} is not awaiting level {level} responses",
                details={"qap_id": record.id, "status": record.status, "level": level}
            )

        updated = record.model_copy(deep=True)
        responses = updated.level_responses.setdefault(level, {})
        if user.role in responses:
            logger.info(
                f"Ignoring repeat level {level} response from {user.role}",
                extra={"qap_id": updated.id, "review_level": level, "role": user.role}
            )
            return updated

        now = now or self.clock()
        responses[user.role] = LevelResponse(
            responded_by=user.username,
            acknowledged=acknowledged,
            comments=dict(comments or {}),
            responded_at=now
        )
        self.audit.write_event(updated, level, f"{REVIEW_ACTION_PREFIX} {user.role}", now, user=user)
        updated.last_modified_at = now
        return updated

    def level_reviews_complete(self, record: QAPRecord, level: int = 2) -> bool:
        """
        Every role assigned to a mismatched row has acknowledged at this level.

        A record with no assigned roles is never complete; it has to be
        advanced explicitly.
        """
        assigned = {role for row in record.mismatched_rows() for role in row.review_by}
        responded = {
            role for role, response in record.level_responses.get(level, {}).items()
            if response.acknowledged
        }
        return bool(assigned) and assigned <= responded

    def approve(self, record: QAPRecord, user: User, feedback: Optional[str] = None) -> QAPRecord:
        """Plant head approval"""
        return self._decide(record, user, QAPStatus.APPROVED, TimelineAction.APPROVED, feedback)

    def reject(self, record: QAPRecord, user: User, feedback: str) -> QAPRecord:
        """Plant head rejection, feedback is mandatory"""
        if not (feedback or "").strip():
            raise ValidationError(
                "Feedback is required to reject a QAP",
                details={"qap_id": record.id}
            )
        return self._decide(record, user, QAPStatus.REJECTED, TimelineAction.REJECTED, feedback)

    def _decide(
        self,
        record: QAPRecord,
        user: User,
        status: QAPStatus,
        action: TimelineAction,
        feedback: Optional[str]
    ) -> QAPRecord:
        if record.status != QAPStatus.LEVEL_5.value:
            raise InvalidStateError(
                f"QAP {record.id} is not awaiting plant head approval",
                details={"qap_id": record.id, "status": record.status}
            )

        updated = record.model_copy(deep=True)
        now = self.clock()
        updated.level_end_times[5] = now

        updated.status = status.value
        updated.approver = user.username
        updated.feedback = feedback
        # Decision time, for rejections too
        updated.approved_at = now
        self.audit.write_event(updated, 5, action.value, now, user=user, comments=feedback)
        updated.last_modified_at = now

        logger.info(
            f"QAP {updated.id} {status.value} by {user.username}",
            extra={"qap_id": updated.id, "status": status.value, "actor": user.username}
        )
        return updated


__all__ = ["WorkflowEngine"]
