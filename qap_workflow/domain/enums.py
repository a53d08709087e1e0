"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class QAPStatus(str, Enum):
    """Global QAP status"""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    LEVEL_2 = "level-2"
    LEVEL_3 = "level-3"
    LEVEL_4 = "level-4"
    FINAL_COMMENTS = "final-comments"  # Back with the requestor before plant head approval
    LEVEL_5 = "level-5"
    APPROVED = "approved"
    REJECTED = "rejected"
    # Legacy variants still found in stored records
    LEVEL_3_FINAL = "level-3-final"
    LEVEL_4_FINAL = "level-4-final"
    EDIT_REQUESTED = "edit-requested"


class UserRole(str, Enum):
    """Roles a user can hold"""
    REQUESTOR = "requestor"
    PRODUCTION = "production"
    QUALITY = "quality"
    TECHNICAL = "technical"
    HEAD = "head"
    TECHNICAL_HEAD = "technical-head"
    PLANT_HEAD = "plant-head"
    ADMIN = "admin"


class SpecCategory(str, Enum):
    """The two specification sections of a QAP"""
    MQP = "mqp"
    VISUAL = "visual"  # Visual and EL checks


class MatchVerdict(str, Enum):
    """Whether the customer requirement matches the standard specification"""
    YES = "yes"
    NO = "no"


class WorkflowTarget(str, Enum):
    """Non-numeric transition targets"""
    FINAL_COMMENTS = "final-comments"
    LEVEL_3_FINAL = "level-3-final"
    LEVEL_4_FINAL = "level-4-final"


class TimelineAction(str, Enum):
    """Timeline action texts. Turnaround analytics match on these substrings."""
    SUBMITTED = "Submitted for review"
    SENT_TO_LEVEL_2 = "Sent to Level 2 review"
    SENT_TO_HEAD = "Sent to Head for review"
    AUTO_BYPASSED = "Auto-bypassed (P2 plant)"
    SENT_TO_TECHNICAL_HEAD = "Sent to Technical Head"
    SENT_TO_FINAL_COMMENTS = "Sent to Requestor for final comments"
    SENT_TO_HEAD_FINAL = "Sent to Head for final review"
    SENT_TO_TECHNICAL_HEAD_FINAL = "Sent to Technical Head for final review"
    SENT_TO_PLANT_HEAD = "Sent to Plant Head for final approval"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REOPENED = "Reopened for edit"
    EDITED = "Specifications edited"


REVIEW_ACTION_PREFIX = "Reviewed by"

LEVEL_2_ROLES = (UserRole.PRODUCTION, UserRole.QUALITY, UserRole.TECHNICAL)
