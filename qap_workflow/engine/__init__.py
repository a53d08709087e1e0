"""Workflow Engine - level transitions, access rules and analytics for QAP records"""
from .engine import WorkflowEngine
from .permission_guard import PermissionGuard
from .transition_resolver import TransitionResolver, TransitionPlan
from .audit_writer import AuditWriter
from .reviewer_routing import ReviewerRouter
from .change_tracker import diff_specs, compute_edited_snos, is_edited
from .turnaround import (
    calculate_turnaround_time,
    calculate_average_turnaround_time,
    calculate_level_durations,
    build_analytics,
    is_qap_expired,
    time_remaining_label,
)

__all__ = [
    "WorkflowEngine",
    "PermissionGuard",
    "TransitionResolver",
    "TransitionPlan",
    "AuditWriter",
    "ReviewerRouter",
    "diff_specs",
    "compute_edited_snos",
    "is_edited",
    "calculate_turnaround_time",
    "calculate_average_turnaround_time",
    "calculate_level_durations",
    "build_analytics",
    "is_qap_expired",
    "time_remaining_label",
]
