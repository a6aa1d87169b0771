from __future__ import annotations

from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql

from tutor.core.settings import settings
from tutor.memory import database
from tutor.memory.context import load_quiz_context, recent_answer_results, topic_performance
from tutor.memory.topics import remove_topic, rename_topic
from tutor.memory.tracker import AnswerRecord, complete_exchange, get_or_create_quiz_session, record_quiz_answer
from tutor.models.entities import QuizSession


class ScriptedResult:
    def __init__(self, value=None, rows=(), rowcount: int = 0):
        self.value = value
        self.rows = list(rows)
        self.rowcount = rowcount

    def one(self):
        return self.value

    def scalar_one(self):
        return self.value

    def scalars(self):
        return self

    def all(self):
        return self.rows


class RecordingSession:
    """AsyncSession stand-in that keeps every executed statement and replays scripted results."""

    def __init__(self, results=(), rows: dict | None = None):
        self.results = list(results)
        self.rows = rows or {}
        self.statements: list = []
        self.added: list = []
        self.commits = 0
        self.rollbacks = 0

    async def get(self, model, ident):
        return self.rows.get((model, ident))

    async def execute(self, stmt):
        self.statements.append(stmt)
        result = self.results.pop(0) if self.results else ScriptedResult()
        if isinstance(result, Exception):
            raise result
        return result

    def add(self, obj) -> None:
        self.added.append(obj)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    @asynccontextmanager
    async def begin(self):
        yield self

    def sql(self, index: int) -> str:
        compiled = self.statements[index].compile(
            dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}
        )
        return " ".join(str(compiled).split())


def _flat(sql: str) -> str:
    return sql.replace(" ", "").replace("(", "").replace(")", "")


def _quiz_row(topic: str = "Polynomials", difficulty: str = "hard") -> SimpleNamespace:
    return SimpleNamespace(topic=topic, difficulty=difficulty)


@pytest.mark.asyncio
@pytest.mark.parametrize(("is_correct", "increment"), [(True, 1), (False, 0)])
async def test_submit_adds_one_question_and_matching_correct_count(is_correct, increment):
    counters = SimpleNamespace(total_questions=3, correct_answers=2)
    db = RecordingSession(
        results=[ScriptedResult(), ScriptedResult(value=counters)],
        rows={(QuizSession, 7): _quiz_row()},
    )

    record = await record_quiz_answer(
        db, 7, question="Degree of x^3?", user_answer="B", correct_answer="B", is_correct=is_correct
    )

    assert record == AnswerRecord(
        session_id=7,
        topic="Polynomials",
        difficulty="hard",
        is_correct=is_correct,
        total_questions=3,
        correct_answers=2,
    )
    assert db.sql(0).startswith("INSERT INTO quiz_answers")
    assert "'hard'" in db.sql(0)
    update = _flat(db.sql(1))
    assert "total_questions=quiz_sessions.total_questions+1" in update
    assert f"correct_answers=quiz_sessions.correct_answers+{increment}" in update
    assert "RETURNING" in db.sql(1)
    assert (db.commits, db.rollbacks) == (1, 0)


@pytest.mark.asyncio
async def test_submit_rolls_back_when_counter_update_fails():
    db = RecordingSession(
        results=[ScriptedResult(), ConnectionError("server closed the connection")],
        rows={(QuizSession, 7): _quiz_row()},
    )

    with pytest.raises(ConnectionError):
        await record_quiz_answer(db, 7, question="q", user_answer="A", correct_answer="B", is_correct=False)

    assert (db.commits, db.rollbacks) == (0, 1)


@pytest.mark.asyncio
async def test_unknown_quiz_session_id_starts_a_medium_session():
    db = RecordingSession(results=[ScriptedResult(value=42)])

    assert await get_or_create_quiz_session(db, "Polynomials", 999) == 42
    assert db.sql(0).startswith("INSERT INTO quiz_sessions")
    assert "'medium'" in db.sql(0)
    assert db.commits == 1


@pytest.mark.asyncio
async def test_complete_exchange_counts_both_messages_in_one_commit():
    db = RecordingSession()

    await complete_exchange(db, 11, "Try factorising first.")

    assert [(m.role, m.content) for m in db.added] == [("assistant", "Try factorising first.")]
    assert "message_count=chat_sessions.message_count+2" in _flat(db.sql(0))
    assert db.commits == 1


@pytest.mark.asyncio
async def test_mastery_sums_the_five_latest_sessions_of_the_topic():
    db = RecordingSession(results=[ScriptedResult(value=(4, 6))])

    assert await topic_performance(db, "Polynomials") == (4, 6)
    sql = db.sql(0)
    assert "quiz_sessions.topic = 'Polynomials'" in sql
    assert "ORDER BY quiz_sessions.created_at DESC, quiz_sessions.id DESC LIMIT 5" in sql
    assert "sum(" in sql.lower()


@pytest.mark.asyncio
async def test_streak_window_reads_five_latest_answers_newest_first():
    db = RecordingSession(results=[ScriptedResult(rows=[False, False, True])])

    assert await recent_answer_results(db, "Polynomials") == [False, False, True]
    sql = db.sql(0)
    assert "JOIN quiz_sessions ON quiz_answers.session_id = quiz_sessions.id" in sql
    assert "ORDER BY quiz_answers.created_at DESC, quiz_answers.id DESC LIMIT 5" in sql


@pytest.mark.asyncio
async def test_quiz_context_combines_stored_difficulty_mastery_and_streaks():
    db = RecordingSession(
        results=[ScriptedResult(value=(1, 3)), ScriptedResult(rows=[False, False, True])],
        rows={(QuizSession, 3): _quiz_row(difficulty="hard")},
    )

    ctx = await load_quiz_context(db, 3, "Polynomials")

    assert ctx.mastery == 33
    assert (ctx.correct_count, ctx.total_count) == (1, 3)
    assert (ctx.consecutive_correct, ctx.consecutive_wrong) == (0, 2)
    assert ctx.current_difficulty == "hard"
    assert db.rollbacks == 0


@pytest.mark.asyncio
async def test_remove_topic_deletes_content_and_every_session_under_it():
    db = RecordingSession(
        results=[
            ScriptedResult(value=3),
            ScriptedResult(),
            ScriptedResult(),
            ScriptedResult(rowcount=2),
            ScriptedResult(),
            ScriptedResult(rowcount=1),
        ]
    )

    result = await remove_topic(db, "Probability")

    assert result == {"content_items": 3, "chat_sessions": 2, "quiz_sessions": 1}
    deletes = [db.sql(i) for i in range(1, 6)]
    assert [sql.split(" WHERE")[0] for sql in deletes] == [
        "DELETE FROM content_items",
        "DELETE FROM chat_messages",
        "DELETE FROM chat_sessions",
        "DELETE FROM quiz_answers",
        "DELETE FROM quiz_sessions",
    ]
    assert all("'Probability'" in sql for sql in deletes)


@pytest.mark.asyncio
async def test_rename_topic_updates_content_and_both_session_tables():
    db = RecordingSession(results=[ScriptedResult(value=5), ScriptedResult(value=0)])

    assert await rename_topic(db, "Quadratics", "Quadratic Equations") == 5

    updates = [_flat(db.sql(i)) for i in range(2, 5)]
    for table, sql in zip(("content_items", "chat_sessions", "quiz_sessions"), updates):
        assert sql.startswith(f"UPDATE{table}SETtopic='QuadraticEquations'")
        assert f"{table}.topic='Quadratics'" in sql


def test_engine_bounds_every_statement_with_command_timeout(monkeypatch):
    monkeypatch.setattr(settings, "database_command_timeout_seconds", 2.5)
    options = database.engine_options()
    assert options["connect_args"] == {"command_timeout": 2.5}
    assert options["pool_pre_ping"] is True
