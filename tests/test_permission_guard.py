"""Access control tests for single records, list views and review queues"""
import pytest

from qap_workflow.domain.models import User
from qap_workflow.engine import PermissionGuard


class TestSingleRecordAccess:
    def test_admin_sees_everything(self, guard, make_record, users):
        for status, level in (("draft", 1), ("level-3", 3), ("approved", 5)):
            assert guard.can_user_access_qap(users["admin"], make_record(status=status, current_level=level))

    def test_requestor_sees_only_own_records(self, guard, make_record, users):
        own = make_record(status="level-4", current_level=4)
        assert guard.can_user_access_qap(users["requestor"], own)
        assert not guard.can_user_access_qap(users["other_requestor"], own)

    def test_requestor_needs_a_submitter(self, guard, make_record, users):
        assert not guard.can_user_access_qap(users["requestor"], make_record(submitted_by=None))

    @pytest.mark.parametrize("role", ["production", "quality", "technical"])
    def test_level_2_roles_need_plant_and_level(self, guard, make_record, users, role):
        user = users[role]
        assert guard.can_user_access_qap(user, make_record(plant="p4", current_level=2))
        assert not guard.can_user_access_qap(user, make_record(plant="p4", status="level-3", current_level=3))
        assert not guard.can_user_access_qap(user, make_record(plant="p5", current_level=2))

    def test_plant_match_ignores_case_and_spaces(self, guard, make_record):
        user = User(username="prod", role="production", plant=" P2 , p4 ")
        assert guard.can_user_access_qap(user, make_record(plant="P4"))

    def test_head_with_both_plants_sees_p5_record(self, guard, make_record):
        head = User(username="nrao", role="head", plant="p4,p5")
        assert guard.can_user_access_qap(head, make_record(plant="p5", status="level-3", current_level=3))

    def test_head_needs_the_record_plant_listed(self, guard, make_record):
        head = User(username="nrao", role="head", plant="p4")
        assert not guard.can_user_access_qap(head, make_record(plant="p5", status="level-3", current_level=3))

    def test_head_outside_head_plants_is_denied(self, guard, make_record):
        head = User(username="h2", role="head", plant="p2")
        assert not guard.can_user_access_qap(head, make_record(plant="p2", status="level-3", current_level=3))

    def test_head_sees_level_3_final(self, guard, make_record, users):
        record = make_record(plant="p4", status="level-3-final", current_level=3)
        assert guard.can_user_access_qap(users["head"], record)

    def test_technical_head_is_level_gated(self, guard, make_record, users):
        assert guard.can_user_access_qap(users["technical_head"], make_record(status="level-4", current_level=4))
        assert not guard.can_user_access_qap(users["technical_head"], make_record())

    def test_plant_head_is_level_gated(self, guard, make_record, users):
        assert guard.can_user_access_qap(users["plant_head"], make_record(status="approved", current_level=5))
        assert not guard.can_user_access_qap(users["plant_head"], make_record(status="level-4", current_level=4))

    def test_unknown_role_is_denied(self, guard, make_record):
        assert not guard.can_user_access_qap(User(username="x", role="auditor"), make_record())


class TestListView:
    def test_ungated_roles_see_all(self, guard, make_record, users):
        records = [make_record(id="a"), make_record(id="b", status="draft", current_level=1)]
        assert len(guard.get_user_accessible_qaps(users["technical_head"], records)) == 2
        assert len(guard.get_user_accessible_qaps(users["plant_head"], records)) == 2

    def test_gating_list_views_for_every_role(self, make_record, users):
        strict = PermissionGuard(head_plants_override=["p4", "p5"], ungated_list_roles=[])
        records = [make_record(id="a"), make_record(id="b", status="level-4", current_level=4)]

        visible = strict.get_user_accessible_qaps(users["technical_head"], records)

        assert [r.id for r in visible] == ["b"]

    def test_other_roles_use_single_record_check(self, guard, make_record, users):
        records = [make_record(id="a", plant="p4"), make_record(id="b", plant="p5")]
        assert [r.id for r in guard.get_user_accessible_qaps(users["quality"], records)] == ["a"]


class TestReviewQueue:
    def test_level_2_queue_needs_assignment_and_no_answer(self, guard, engine, make_record, users):
        record = make_record()
        assert guard.get_review_queue(users["quality"], [record]) == [record]
        assert guard.get_review_queue(users["technical"], [record]) == []

        answered = engine.record_level_response(record, users["quality"], 2)
        assert guard.get_review_queue(users["quality"], [answered]) == []

    def test_requestor_queue(self, guard, make_record, users):
        draft = make_record(id="a", status="draft", current_level=1)
        final = make_record(id="b", status="final-comments", current_level=1)
        pending = make_record(id="c")
        queue = guard.get_review_queue(users["requestor"], [draft, final, pending])
        assert [r.id for r in queue] == ["a", "b"]

    def test_head_queues(self, guard, make_record, users):
        level_4 = make_record(id="t", status="level-4-final", current_level=4)
        level_5 = make_record(id="p", status="level-5", current_level=5)
        assert [r.id for r in guard.get_review_queue(users["technical_head"], [level_4, level_5])] == ["t"]
        assert [r.id for r in guard.get_review_queue(users["plant_head"], [level_4, level_5])] == ["p"]

    def test_items_for_review(self, guard, make_record, users):
        rows = guard.items_for_review(users["quality"], make_record())
        assert [row.sno for row in rows] == [2, 1]


class TestActions:
    def test_can_edit_and_submit(self, guard, make_record, users):
        draft = make_record(status="draft", current_level=1)
        approved = make_record(status="approved", current_level=5)
        reviewing = make_record()

        assert guard.can_submit(users["requestor"], draft)
        assert not guard.can_submit(users["requestor"], approved)
        assert guard.can_edit(users["requestor"], approved)
        assert not guard.can_edit(users["requestor"], reviewing)
        assert not guard.can_edit(users["other_requestor"], draft)

    def test_can_act_at_level(self, guard, make_record, users):
        record = make_record(status="level-3", current_level=3)
        assert guard.can_act_at_level(users["head"], record, 3)
        assert guard.can_act_at_level(users["admin"], record, 3)
        assert not guard.can_act_at_level(users["technical_head"], record, 3)
        assert not guard.can_act_at_level(users["head"], record, 4)

    def test_level_2_needs_an_assigned_mismatched_row(self, guard, make_record, users):
        record = make_record(specs={"mqp": [{"sno": 1, "match": "yes", "reviewBy": "production"}]})
        assert not guard.can_act_at_level(users["production"], record, 2)
        assert not guard.can_act_at_level(users["quality"], record, 2)
        assert guard.can_act_at_level(users["admin"], record, 2)

        assigned = make_record()
        assert guard.can_act_at_level(users["quality"], assigned, 2)
        assert not guard.can_act_at_level(users["technical"], assigned, 2)
        assert guard.is_assigned_reviewer(users["production"], assigned)

    def test_owner_cannot_act_at_review_levels(self, guard, make_record, users):
        record = make_record(status="level-5", current_level=5)
        assert not guard.can_act_at_level(users["requestor"], record, 5)
