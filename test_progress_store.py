"""Answer history: hosted backend first, local JSON fallback."""
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

import db
from src.local_store import DEFAULT_SETTINGS, LocalStore
from src.models import AnswerRecord, ExpectedAnswer, Question, QuestionAnswerKey, SubmittedAnswer
from src.progress_store import ProgressStore


class FakeTable:
    def __init__(self, client, name):
        self.client = client
        self.name = name
        self.filters = {}
        self.pending = None

    def select(self, *columns):
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def order(self, column, desc=False):
        return self

    def upsert(self, row, **kwargs):
        self.pending = row
        return self

    def execute(self):
        rows = self.client.tables.setdefault(self.name, [])
        if self.pending is not None:
            rows.append(self.pending)
            return SimpleNamespace(data=[self.pending])
        return SimpleNamespace(data=[r for r in rows if all(r.get(k) == v for k, v in self.filters.items())])


class FakeClient:
    def __init__(self, fail=False):
        self.fail = fail
        self.tables = {}

    def table(self, name):
        if self.fail:
            raise ConnectionError("backend unreachable")
        return FakeTable(self, name)


T0 = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def record(qid="q1", correct=True, **kwargs):
    return AnswerRecord(SubmittedAnswer(qid, **kwargs), correct, T0)


def test_signed_in_saves_to_hosted_backend(tmp_path):
    client = FakeClient()
    store = ProgressStore(user_id="u1", client=client, local=LocalStore(tmp_path / "p.json"))
    assert store.save_answer(record(selected_option_index=2)) == "hosted"
    rows = client.tables["user_progress"]
    assert rows[0]["user_id"] == "u1"
    assert rows[0]["selected_option"] == 2
    assert not (tmp_path / "p.json").exists()
    loaded = store.load_answers()
    assert loaded == [record(selected_option_index=2)]


def test_hosted_failure_falls_back_to_local(tmp_path):
    local = LocalStore(tmp_path / "p.json")
    store = ProgressStore(user_id="u1", client=FakeClient(fail=True), local=local)
    assert store.save_answer(record(field_answers={"fuel": 1200.0})) == "local"
    assert store.load_answers() == [record(field_answers={"fuel": 1200.0})]


def test_signed_out_uses_local_only(tmp_path):
    client = FakeClient()
    store = ProgressStore(client=client, local=LocalStore(tmp_path / "p.json"))
    assert store.save_answer(record()) == "local"
    assert client.tables == {}


def test_missing_credentials_fall_back(tmp_path, monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    store = ProgressStore(user_id="u1", local=LocalStore(tmp_path / "p.json"))
    assert store.save_answer(record()) == "local"
    assert len(store.load_answers()) == 1


def test_get_supabase_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    with pytest.raises(ValueError, match="SUPABASE_URL and SUPABASE_KEY"):
        db.get_supabase()


def test_submit_grades_then_saves(tmp_path):
    question = Question(
        id="q7", category="fuel_planning", marks=2,
        key=QuestionAnswerKey(question_id="q7", expected_answers=(ExpectedAnswer("fuel", 5400, 100, "kg"),)),
    )
    store = ProgressStore(local=LocalStore(tmp_path / "p.json"))
    saved = store.submit(question, SubmittedAnswer("q7", field_answers={"fuel": 5480}, time_spent_sec=95))
    assert saved.is_correct
    assert store.load_answers()[0].submitted.time_spent_sec == 95


def test_submit_with_malformed_key_saves_nothing(tmp_path):
    question = Question(id="bad", category="navigation", marks=1, key=QuestionAnswerKey(question_id="bad"))
    store = ProgressStore(local=LocalStore(tmp_path / "p.json"))
    with pytest.raises(ValueError):
        store.submit(question, SubmittedAnswer("bad", selected_option_index=0))
    assert store.load_answers() == []


# ---- local store ----

def test_local_store_round_trip_and_settings(tmp_path):
    local = LocalStore(tmp_path / "nested" / "p.json")
    assert local.load_user_answers() == []
    assert local.load_settings() == DEFAULT_SETTINGS
    local.save_user_answers([record("q1"), record("q2", correct=False)])
    local.save_settings({"show_working_steps": False})
    assert [r.question_id for r in local.load_user_answers()] == ["q1", "q2"]
    assert local.load_settings()["show_working_steps"] is False
    exported = json.loads(local.export_data())
    assert len(exported["user_answers"]) == 2
    assert "export_date" in exported
    local.clear_all_data()
    assert local.load_user_answers() == []


def test_local_store_corrupt_file_is_empty_history(tmp_path):
    path = tmp_path / "p.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalStore(path).load_user_answers() == []


def test_local_store_skips_malformed_rows(tmp_path):
    path = tmp_path / "p.json"
    path.write_text(json.dumps({"user_answers": [{"is_correct": True}, record().to_row()]}), encoding="utf-8")
    assert LocalStore(path).load_user_answers() == [record()]


def test_local_store_path_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("ATPL_LOCAL_STORE", str(tmp_path / "env.json"))
    assert LocalStore().path == tmp_path / "env.json"


def test_answer_record_from_naive_timestamp_is_utc():
    row = record().to_row()
    row["attempted_at"] = "2025-03-01T09:30:00"
    assert AnswerRecord.from_row(row).answered_at == T0


def test_hosted_question_bank(monkeypatch):
    from run_trial_exam import load_bank

    client = FakeClient()
    client.tables["questions"] = [
        Question(id="q1", category="navigation", marks=1,
                 key=QuestionAnswerKey(question_id="q1", correct_option_index=0), options=("a", "b")).to_row(),
        Question(id="q2", category="meteorology", marks=2,
                 key=QuestionAnswerKey(question_id="q2", correct_option_index=1), options=("a", "b")).to_row(),
    ]
    monkeypatch.setattr(db, "get_supabase", lambda: client)
    assert [q.id for q in load_bank(hosted=True)] == ["q1", "q2"]
    assert [q.id for q in load_bank(hosted=True, category="meteorology")] == ["q2"]


def test_bulk_upsert_dedupes_and_chunks():
    client = FakeClient()
    rows = [{"id": "a", "title": "old"}, {"id": "b"}, {"id": "a", "title": "new"}, {"id": "c"}]
    db.upsert_questions_bulk(client, rows, chunk_size=2)
    chunks = client.tables["questions"]
    assert [len(c) for c in chunks] == [2, 1]
    assert chunks[0][0] == {"id": "a", "title": "new"}


@pytest.mark.parametrize("settings", [None, [], "dark", 3])
def test_local_store_non_dict_settings_fall_back_to_defaults(tmp_path, settings):
    path = tmp_path / "p.json"
    path.write_text(json.dumps({"settings": settings}), encoding="utf-8")
    local = LocalStore(path)
    assert local.load_settings() == DEFAULT_SETTINGS
    assert json.loads(local.export_data())["settings"] == DEFAULT_SETTINGS
