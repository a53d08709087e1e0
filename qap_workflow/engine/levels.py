"""Level table - which review level owns each status, and plant routing"""
from typing import Dict, Iterable, List, Optional, Set

from ..config.settings import settings
from ..domain.enums import QAPStatus


STATUS_LEVELS: Dict[str, int] = {
    QAPStatus.DRAFT.value: 1,
    QAPStatus.EDIT_REQUESTED.value: 1,
    QAPStatus.FINAL_COMMENTS.value: 1,
    QAPStatus.SUBMITTED.value: 2,
    QAPStatus.LEVEL_2.value: 2,
    QAPStatus.LEVEL_3.value: 3,
    QAPStatus.LEVEL_3_FINAL.value: 3,
    QAPStatus.LEVEL_4.value: 4,
    QAPStatus.LEVEL_4_FINAL.value: 4,
    QAPStatus.LEVEL_5.value: 5,
    QAPStatus.APPROVED.value: 5,
    QAPStatus.REJECTED.value: 5,
}

LEVELS: List[int] = [1, 2, 3, 4, 5]

TERMINAL_STATUSES: Set[str] = {QAPStatus.APPROVED.value, QAPStatus.REJECTED.value}

# Editing a record in one of these sends it back to draft
RESET_ON_EDIT_STATUSES: Set[str] = {
    QAPStatus.APPROVED.value,
    QAPStatus.REJECTED.value,
    QAPStatus.LEVEL_5.value,
    QAPStatus.FINAL_COMMENTS.value,
}

EDITABLE_STATUSES: Set[str] = {QAPStatus.DRAFT.value, QAPStatus.EDIT_REQUESTED.value}


def level_for_status(status: str) -> Optional[int]:
    """Level that owns a status, None for unknown statuses"""
    return STATUS_LEVELS.get(str(status or "").strip().lower())


def is_consistent(status: str, current_level: int) -> bool:
    """True when status and current level agree with the level table"""
    return level_for_status(status) == current_level


def head_plants(override: Optional[Iterable[str]] = None) -> Set[str]:
    """Plants whose records pass through the Head level"""
    if override is not None:
        return {str(p).strip().lower() for p in override}
    return set(settings.head_plants_list)


def routes_through_head(plant: str, plants: Optional[Iterable[str]] = None) -> bool:
    """Whether a record from this plant visits level 3"""
    return str(plant or "").strip().lower() in head_plants(plants)
