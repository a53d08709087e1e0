"""Permission Guard - role based access to QAP records"""
from typing import Iterable, List, Optional

from ..config.settings import settings
from ..domain.models import QAPRecord, User
from ..domain.enums import QAPStatus, UserRole, LEVEL_2_ROLES
from .levels import EDITABLE_STATUSES, RESET_ON_EDIT_STATUSES, head_plants
from ..utils.logger import get_logger

logger = get_logger(__name__)

_LEVEL_2_ROLE_VALUES = {role.value for role in LEVEL_2_ROLES}

# Roles that act on a record at each review level
_LEVEL_ROLES = {
    2: _LEVEL_2_ROLE_VALUES,
    3: {UserRole.HEAD.value},
    4: {UserRole.TECHNICAL_HEAD.value},
    5: {UserRole.PLANT_HEAD.value},
}


class PermissionGuard:
    """
    Access rules for QAP records

    Rules:
    - Admin can access everything
    - Requestor can access only records they submitted, at any level
    - Production/Quality/Technical can access level 2 records of their plants
    - Head can access level 3 records of their plants, if they belong to a head plant
    - Technical head can access level 4 records, plant head level 5 records

    List views are more permissive for the roles in
    settings.list_view_ungated_roles: those roles see every record.
    """

    def __init__(
        self,
        head_plants_override: Optional[Iterable[str]] = None,
        ungated_list_roles: Optional[Iterable[str]] = None
    ):
        self._head_plants = head_plants(head_plants_override)
        if ungated_list_roles is None:
            ungated_list_roles = settings.list_view_ungated_roles_list
        self._ungated_list_roles = {str(r).strip().lower() for r in ungated_list_roles}

    def _is_owner(self, user: User, record: QAPRecord) -> bool:
        return bool(record.submitted_by) and record.submitted_by == user.username

    def _plant_matches(self, user: User, record: QAPRecord) -> bool:
        return record.plant in user.plants

    def can_user_access_qap(self, user: User, record: QAPRecord) -> bool:
        """Check if user can open a single record"""
        role = user.role

        if role == UserRole.ADMIN.value:
            return True

        if role == UserRole.REQUESTOR.value:
            return self._is_owner(user, record)

        if role in _LEVEL_2_ROLE_VALUES:
            return self._plant_matches(user, record) and record.current_level == 2

        if role == UserRole.HEAD.value:
            return (
                any(plant in self._head_plants for plant in user.plants)
                and self._plant_matches(user, record)
                and (record.current_level == 3 or record.status == QAPStatus.LEVEL_3_FINAL.value)
            )

        if role == UserRole.TECHNICAL_HEAD.value:
            return record.current_level == 4 or record.status == QAPStatus.LEVEL_4_FINAL.value

        if role == UserRole.PLANT_HEAD.value:
            return record.current_level == 5

        return False

    def get_user_accessible_qaps(self, user: User, records: Iterable[QAPRecord]) -> List[QAPRecord]:
        """Filter a record set down to what the user may list"""
        records = list(records)
        if user.role in self._ungated_list_roles:
            return records
        return [record for record in records if self.can_user_access_qap(user, record)]

    def get_review_queue(self, user: User, records: Iterable[QAPRecord]) -> List[QAPRecord]:
        """
        Records waiting on this user's action.

        Level 2 reviewers only see records with a mismatched row assigned to
        their role that their role has not answered yet.
        """
        role = user.role
        queue: List[QAPRecord] = []

        for record in records:
            if role == UserRole.REQUESTOR.value:
                waiting = self._is_owner(user, record) and record.status in (
                    EDITABLE_STATUSES | {QAPStatus.FINAL_COMMENTS.value}
                )
            elif role in _LEVEL_2_ROLE_VALUES:
                waiting = (
                    record.status == QAPStatus.LEVEL_2.value
                    and self._plant_matches(user, record)
                    and self.is_assigned_reviewer(user, record)
                    and role not in record.level_responses.get(2, {})
                )
            elif role == UserRole.HEAD.value:
                waiting = self.can_user_access_qap(user, record) and record.status in (
                    QAPStatus.LEVEL_3.value, QAPStatus.LEVEL_3_FINAL.value
                )
            elif role == UserRole.TECHNICAL_HEAD.value:
                waiting = record.status in (QAPStatus.LEVEL_4.value, QAPStatus.LEVEL_4_FINAL.value)
            elif role == UserRole.PLANT_HEAD.value:
                waiting = record.status == QAPStatus.LEVEL_5.value
            else:
                waiting = False

            if waiting:
                queue.append(record)

        return queue

    def is_assigned_reviewer(self, user: User, record: QAPRecord) -> bool:
        """A mismatched row names the user's role in review_by"""
        return any(user.role in row.review_by for row in record.mismatched_rows())

    def items_for_review(self, user: User, record: QAPRecord):
        """Mismatched rows assigned to the user's role"""
        return [row for row in record.mismatched_rows() if user.role in row.review_by]

    def can_edit(self, user: User, record: QAPRecord) -> bool:
        """Owner may edit drafts, and may reopen late-stage or finished records"""
        if not self._is_owner(user, record):
            return False
        return record.status in EDITABLE_STATUSES or record.status in RESET_ON_EDIT_STATUSES

    def can_submit(self, user: User, record: QAPRecord) -> bool:
        """Owner may submit a draft"""
        return self._is_owner(user, record) and record.status in EDITABLE_STATUSES

    def can_act_at_level(self, user: User, record: QAPRecord, level: int) -> bool:
        """Check that the user's role owns the record's current level"""
        if record.current_level != level:
            return False
        if user.role == UserRole.ADMIN.value:
            return True
        if level == 1:
            return self._is_owner(user, record)

        allowed = user.role in _LEVEL_ROLES.get(level, set()) and self.can_user_access_qap(user, record)
        if allowed and level == 2:
            allowed = self.is_assigned_reviewer(user, record)
        if not allowed:
            logger.info(
                f"Level {level} action denied for {user.username}",
                extra={"qap_id": record.id, "review_level": level, "role": user.role, "actor": user.username}
            )
        return allowed
