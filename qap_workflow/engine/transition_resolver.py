"""Transition Resolver - Determine the next status/level for a requested target"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from ..domain.models import QAPRecord
from ..domain.enums import QAPStatus, TimelineAction, WorkflowTarget
from .levels import routes_through_head
from ..utils.logger import get_logger

logger = get_logger(__name__)

Target = Union[int, str, WorkflowTarget]


@dataclass
class TransitionPlan:
    """Resolved outcome of a transition request"""
    status: str
    level: int
    entries: List[Tuple[int, str]] = field(default_factory=list)


# Targets with no plant-dependent branching
_FIXED_PLANS = {
    4: (QAPStatus.LEVEL_4, 4, [(4, TimelineAction.SENT_TO_TECHNICAL_HEAD)]),
    5: (QAPStatus.LEVEL_5, 5, [(5, TimelineAction.SENT_TO_PLANT_HEAD)]),
    WorkflowTarget.FINAL_COMMENTS.value: (
        QAPStatus.FINAL_COMMENTS, 1, [(1, TimelineAction.SENT_TO_FINAL_COMMENTS)]
    ),
    WorkflowTarget.LEVEL_3_FINAL.value: (
        QAPStatus.LEVEL_3_FINAL, 3, [(3, TimelineAction.SENT_TO_HEAD_FINAL)]
    ),
    WorkflowTarget.LEVEL_4_FINAL.value: (
        QAPStatus.LEVEL_4_FINAL, 4, [(4, TimelineAction.SENT_TO_TECHNICAL_HEAD_FINAL)]
    ),
}

# Natural forward target from each in-flight status
_FORWARD = {
    QAPStatus.SUBMITTED.value: 3,
    QAPStatus.LEVEL_2.value: 3,
    QAPStatus.LEVEL_3.value: 4,
    QAPStatus.LEVEL_4.value: WorkflowTarget.FINAL_COMMENTS.value,
    QAPStatus.FINAL_COMMENTS.value: 5,
    QAPStatus.LEVEL_3_FINAL.value: WorkflowTarget.LEVEL_4_FINAL.value,
    QAPStatus.LEVEL_4_FINAL.value: 5,
}


def normalize_target(target: Target) -> Optional[Union[int, str]]:
    """
    Normalize a requested target.

    Ints and numeric strings become ints, named targets become their string
    value. Anything else yields None.
    """
    if isinstance(target, WorkflowTarget):
        return target.value
    if isinstance(target, bool):
        return None
    if isinstance(target, int):
        return target
    text = str(target or "").strip().lower()
    if text.isdigit():
        return int(text)
    if text.startswith("level-") and text[6:].isdigit():
        return int(text[6:])
    return text or None


class TransitionResolver:
    """
    Resolve a requested target into a transition plan

    Given a record and a target:
    1. Normalize the target (3, "3", "level-3", "final-comments", ...)
    2. Apply plant branching for level 3 (Head level or auto-bypass)
    3. Return the status, level and timeline entries to append
    4. Unknown targets resolve to None; callers leave the record as is
    """

    def __init__(self, head_plants: Optional[Iterable[str]] = None):
        self._head_plants = list(head_plants) if head_plants is not None else None

    def resolve(self, record: QAPRecord, target: Target) -> Optional[TransitionPlan]:
        """
        Resolve the transition for a target

        Args:
            record: Record being transitioned
            target: Requested next level or named target

        Returns:
            TransitionPlan, or None if the target is unknown
        """
        key = normalize_target(target)

        if key == 3:
            if routes_through_head(record.plant, self._head_plants):
                plan = TransitionPlan(
                    status=QAPStatus.LEVEL_3.value,
                    level=3,
                    entries=[(3, TimelineAction.SENT_TO_HEAD.value)]
                )
            else:
                plan = TransitionPlan(
                    status=QAPStatus.LEVEL_4.value,
                    level=4,
                    entries=[
                        (3, TimelineAction.AUTO_BYPASSED.value),
                        (4, TimelineAction.SENT_TO_TECHNICAL_HEAD.value),
                    ]
                )
        elif key in _FIXED_PLANS:
            status, level, entries = _FIXED_PLANS[key]
            plan = TransitionPlan(
                status=status.value,
                level=level,
                entries=[(lvl, action.value) for lvl, action in entries]
            )
        else:
            logger.warning(
                f"No transition for target {target!r}",
                extra={"qap_id": record.id, "status": record.status, "target": str(target)}
            )
            return None

        logger.info(
            f"Resolved transition: {record.status} -> {plan.status}",
            extra={"qap_id": record.id, "status": plan.status, "plant": record.plant, "target": str(key)}
        )
        return plan

    def next_target(self, record: QAPRecord) -> Optional[Union[int, str]]:
        """Forward target for the record's current status, None when nothing follows"""
        return _FORWARD.get(record.status)
