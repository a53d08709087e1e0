"""Repository tests: in-memory store and MongoDB adapter against a mocked collection"""
from unittest.mock import MagicMock

import pytest
from pymongo.errors import PyMongoError

from qap_workflow.domain.errors import ConcurrencyError, QAPNotFoundError, PersistenceError
from qap_workflow.domain.enums import QAPStatus
from qap_workflow.repositories import InMemoryQAPRepository, MongoQAPRepository
from qap_workflow.repositories.qap_repo import to_document, from_document
from tests.conftest import START


class TestInMemoryRepository:
    def test_save_and_get_are_copies(self, repo, make_record):
        record = make_record()
        repo.save(record)
        record.customer_name = "changed"

        loaded = repo.get(record.id)
        loaded.plant = "p9"

        assert repo.get(record.id).customer_name == "Sunrise Energy"
        assert repo.get(record.id).plant == "p4"

    def test_get_or_raise(self, repo):
        assert repo.get("missing") is None
        with pytest.raises(QAPNotFoundError):
            repo.get_or_raise("missing")

    def test_versioned_save_bumps_version(self, repo, make_record):
        repo.save(make_record())
        saved = repo.save(make_record(status="level-3", current_level=3), expected_version=1)
        assert saved.version == 2
        assert repo.get("QAP-test").status == "level-3"

    def test_stale_version_conflicts(self, repo, make_record):
        repo.save(make_record())
        repo.save(make_record(), expected_version=1)
        with pytest.raises(ConcurrencyError):
            repo.save(make_record(), expected_version=1)

    def test_versioned_save_of_unknown_record(self, repo, make_record):
        with pytest.raises(QAPNotFoundError):
            repo.save(make_record(), expected_version=1)

    def test_list_filters(self, make_record):
        repo = InMemoryQAPRepository([
            make_record(id="a", plant="p4"),
            make_record(id="b", plant="p2", status="approved", current_level=5),
        ])
        assert [r.id for r in repo.list(plant="P2")] == ["b"]
        assert [r.id for r in repo.list(statuses=[QAPStatus.LEVEL_2])] == ["a"]
        assert len(repo.list()) == 2

    def test_delete(self, repo, make_record):
        repo.save(make_record())
        assert repo.delete("QAP-test")
        assert not repo.delete("QAP-test")


class TestDocumentMapping:
    def test_document_shape(self, make_record, engine, users):
        record = engine.record_level_response(make_record(), users["quality"], 2, {0: "ok"})

        doc = to_document(record)

        assert doc["_id"] == "QAP-test"
        assert doc["status"] == "level-2"
        assert set(doc["level_responses"]) == {"2"}
        assert doc["level_responses"]["2"]["quality"]["comments"] == {"0": "ok"}
        assert doc["specs"]["mqp"][1]["match"] == "no"
        assert doc["created_at"] == START

    def test_document_round_trip(self, make_record, engine, users):
        record = engine.record_level_response(make_record(), users["quality"], 2, {0: "ok"})
        assert from_document(to_document(record)).model_dump() == record.model_dump()


class TestMongoRepository:
    @pytest.fixture()
    def collection(self):
        return MagicMock()

    def test_get(self, collection, make_record):
        collection.find_one.return_value = to_document(make_record())
        record = MongoQAPRepository(collection).get("QAP-test")
        collection.find_one.assert_called_once_with({"id": "QAP-test"})
        assert record.plant == "p4"

    def test_get_or_raise_missing(self, collection):
        collection.find_one.return_value = None
        with pytest.raises(QAPNotFoundError):
            MongoQAPRepository(collection).get_or_raise("nope")

    def test_unversioned_save_upserts(self, collection, make_record):
        record = make_record()
        MongoQAPRepository(collection).save(record)
        collection.replace_one.assert_called_once_with({"id": "QAP-test"}, to_document(record), upsert=True)

    def test_versioned_save(self, collection, make_record):
        record = make_record(version=3)
        collection.find_one_and_replace.side_effect = lambda query, doc, **kwargs: doc

        saved = MongoQAPRepository(collection).save(record, expected_version=3)

        query = collection.find_one_and_replace.call_args[0][0]
        assert query == {"id": "QAP-test", "version": 3}
        assert saved.version == 4

    def test_versioned_save_conflict(self, collection, make_record):
        collection.find_one_and_replace.return_value = None
        collection.find_one.return_value = {"_id": "QAP-test"}
        with pytest.raises(ConcurrencyError):
            MongoQAPRepository(collection).save(make_record(), expected_version=1)

    def test_versioned_save_missing_record(self, collection, make_record):
        collection.find_one_and_replace.return_value = None
        collection.find_one.return_value = None
        with pytest.raises(QAPNotFoundError):
            MongoQAPRepository(collection).save(make_record(), expected_version=1)

    def test_driver_errors_become_persistence_errors(self, collection, make_record):
        collection.replace_one.side_effect = PyMongoError("connection reset")
        with pytest.raises(PersistenceError):
            MongoQAPRepository(collection).save(make_record())

    def test_list_builds_query(self, collection, make_record):
        collection.find.return_value.sort.return_value = [to_document(make_record())]

        records = MongoQAPRepository(collection).list(plant=" P4 ", statuses=[QAPStatus.LEVEL_2, "level-3"])

        collection.find.assert_called_once_with({"plant": "p4", "status": {"$in": ["level-2", "level-3"]}})
        assert [r.id for r in records] == ["QAP-test"]

    def test_delete(self, collection):
        collection.delete_one.return_value.deleted_count = 1
        assert MongoQAPRepository(collection).delete("QAP-test")
