"""
Pytest Configuration and Fixtures

Shared fixtures: a controllable clock, an engine/guard/router wired to the
default plant routing, users for every role and a QAP record factory.
"""
from datetime import datetime, timedelta, timezone

import pytest

from qap_workflow.domain.models import QAPRecord, QAPSpecs, SpecRow, User
from qap_workflow.engine import WorkflowEngine, PermissionGuard, ReviewerRouter
from qap_workflow.repositories import InMemoryQAPRepository
from qap_workflow.services import QAPService


HEAD_PLANTS = ["p4", "p5"]
START = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def engine(clock):
    return WorkflowEngine(clock=clock, head_plants=HEAD_PLANTS)


@pytest.fixture()
def guard():
    return PermissionGuard(
        head_plants_override=HEAD_PLANTS,
        ungated_list_roles=["technical-head", "plant-head"]
    )


@pytest.fixture()
def router():
    return ReviewerRouter(
        head_users=["nrao"],
        technical_head_users=["jmr", "baskara"],
        plant_head_users=["cmk"],
        head_plants=HEAD_PLANTS
    )


@pytest.fixture()
def users():
    return {
        "requestor": User(username="praful", role="requestor"),
        "other_requestor": User(username="ravi", role="requestor"),
        "production": User(username="prod", role="production", plant="p2,p4"),
        "quality": User(username="qual", role="quality", plant="p4"),
        "technical": User(username="tech", role="technical", plant="p4"),
        "head": User(username="nrao", role="head", plant="p4,p5"),
        "technical_head": User(username="jmr", role="technical-head"),
        "plant_head": User(username="cmk", role="plant-head"),
        "admin": User(username="root", role="admin"),
    }


def make_specs() -> QAPSpecs:
    return QAPSpecs(
        mqp=[
            SpecRow(sno=1, criteria="MQP", specification="3.2 mm", match="yes"),
            SpecRow(
                sno=2, criteria="MQP", specification=">= 22%", customer_specification=">= 23%",
                match="no", review_by=["production", "quality"]
            ),
        ],
        visual=[
            SpecRow(sno=1, criteria="Visual", defect="Crack", match="no", review_by="quality"),
        ],
    )


@pytest.fixture()
def make_record():
    """Factory for QAP records, owned by 'praful' at level 2 unless overridden"""
    def _make(**overrides) -> QAPRecord:
        data = {
            "id": "QAP-test",
            "customer_name": "Sunrise Energy",
            "project_name": "Rooftop",
            "plant": "p4",
            "status": "level-2",
            "current_level": 2,
            "submitted_by": "praful",
            "specs": make_specs(),
            "created_at": START,
        }
        data.update(overrides)
        return QAPRecord(**data)
    return _make


@pytest.fixture()
def repo():
    return InMemoryQAPRepository()


@pytest.fixture()
def service(repo, engine, guard, router):
    return QAPService(repo, engine=engine, guard=guard, router=router)
