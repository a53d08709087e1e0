"""Reviewer Routing - who receives a record when it leaves a level"""
from typing import Iterable, List, Optional

from ..config.settings import settings
from ..domain.models import QAPRecord
from .levels import routes_through_head


class ReviewerRouter:
    """
    Resolve the users notified when a record leaves a level.

    - Level 2 -> Head users, or Technical Head users when the plant skips level 3
    - Level 3 -> Technical Head users
    - Level 4 -> Plant Head users
    """

    def __init__(
        self,
        head_users: Optional[Iterable[str]] = None,
        technical_head_users: Optional[Iterable[str]] = None,
        plant_head_users: Optional[Iterable[str]] = None,
        head_plants: Optional[Iterable[str]] = None
    ):
        self.head_users = list(head_users) if head_users is not None else settings.head_users_list
        self.technical_head_users = (
            list(technical_head_users) if technical_head_users is not None
            else settings.technical_head_users_list
        )
        self.plant_head_users = (
            list(plant_head_users) if plant_head_users is not None
            else settings.plant_head_users_list
        )
        self._head_plants = list(head_plants) if head_plants is not None else None

    def get_next_level_users(self, record: QAPRecord, current_level: int) -> List[str]:
        """Usernames for the level after current_level, empty when nobody is next"""
        if current_level == 2:
            if routes_through_head(record.plant, self._head_plants):
                return list(self.head_users)
            return list(self.technical_head_users)

        if current_level == 3:
            return list(self.technical_head_users)

        if current_level == 4:
            return list(self.plant_head_users)

        return []
