"""Domain model normalization tests"""
from datetime import datetime, timezone

from qap_workflow.domain.enums import MatchVerdict, QAPStatus
from qap_workflow.domain.models import QAPRecord, SpecRow, User, normalize_roles
from qap_workflow.domain.errors import QAPNotFoundError


class TestReviewBy:
    def test_normalize_roles(self):
        assert normalize_roles(None) == []
        assert normalize_roles("quality") == ["quality"]
        assert normalize_roles("Production, quality,,production") == ["production", "quality"]
        assert normalize_roles(["Technical", " technical ", ""]) == ["technical"]

    def test_spec_row_accepts_any_shape(self):
        assert SpecRow(sno=1, review_by="quality").review_by == ["quality"]
        assert SpecRow(sno=1, reviewBy=["quality", "production"]).review_by == ["quality", "production"]
        assert SpecRow(sno=1).review_by == []

    def test_match_is_case_insensitive(self):
        row = SpecRow(sno=1, match="No")
        assert row.match == MatchVerdict.NO
        assert row.is_mismatch
        assert SpecRow(sno=1, match="").match is None


class TestRecordLoading:
    def test_camel_case_record(self):
        record = QAPRecord.model_validate({
            "id": "QAP-1",
            "customerName": "Sunrise",
            "plant": "P4",
            "status": "LEVEL-2",
            "currentLevel": 2,
            "submittedBy": "praful",
            "specs": {"mqp": [{"sno": 1, "class": "A", "match": "no", "reviewBy": "quality"}]},
            "levelResponses": {"2": {"quality": {
                "respondedBy": "qual", "respondedAt": "2025-01-15T09:00:00Z", "comments": {"0": "ok"}
            }}},
            "timeline": [{"level": 2, "action": "Sent to Level 2 review", "timestamp": "2025-01-15T09:00:00Z"}],
        })

        assert record.customer_name == "Sunrise"
        assert record.plant == "p4"
        assert record.status == "level-2"
        assert record.specs.mqp[0].class_ == "A"
        assert record.level_responses[2]["quality"].comments == {0: "ok"}
        assert record.timeline[0].user == "system"
        assert record.timeline[0].timestamp == datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
        assert [row.sno for row in record.mismatched_rows()] == [1]

    def test_status_enum_is_stored_as_value(self):
        assert QAPRecord(id="x", status=QAPStatus.LEVEL_5).status == "level-5"

    def test_legacy_flat_rows_are_split(self):
        record = QAPRecord.model_validate({
            "id": "QAP-legacy",
            "qaps": [
                {"sno": 1, "criteria": "MQP"},
                {"sno": 1, "criteria": "Visual"},
                {"sno": 2, "criteria": "EL"},
            ],
        })
        assert [r.sno for r in record.specs.mqp] == [1]
        assert [r.sno for r in record.specs.visual] == [1, 2]

    def test_user_plants(self):
        user = User(username="h", role=" Head ", plant="P4, p5,")
        assert user.role == "head"
        assert user.plants == ["p4", "p5"]


def test_errors_serialize():
    error = QAPNotFoundError("QAP x not found", details={"qap_id": "x"})
    assert error.to_dict() == {
        "error": {"code": "QAP_NOT_FOUND", "message": "QAP x not found", "details": {"qap_id": "x"}}
    }
