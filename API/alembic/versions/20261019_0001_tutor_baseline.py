"""tutor baseline: curriculum content with pgvector, chat and quiz sessions

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

EMBEDDING_DIMENSIONS = 768


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "content_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("difficulty", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("embedding", Vector(EMBEDDING_DIMENSIONS), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.CheckConstraint("type IN ('explanation', 'question', 'misconception')", name="ck_content_items_type"),
        sa.CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name="ck_content_items_difficulty"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_content_items_topic", "content_items", ["topic"], unique=False)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_content_items_embedding "
        "ON content_items USING hnsw (embedding vector_cosine_ops)"
    )

    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=False),
        sa.Column("message_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_chat_sessions_topic", "chat_sessions", ["topic"], unique=False)

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="ck_chat_messages_role"),
        sa.ForeignKeyConstraint(["session_id"], ["chat_sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_chat_messages_session_created", "chat_messages", ["session_id", "created_at"], unique=False)

    op.create_table(
        "quiz_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=False),
        sa.Column("difficulty", sa.String(length=16), nullable=False),
        sa.Column("total_questions", sa.Integer(), server_default="0", nullable=False),
        sa.Column("correct_answers", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name="ck_quiz_sessions_difficulty"),
        sa.CheckConstraint("correct_answers <= total_questions", name="ck_quiz_sessions_correct_le_total"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quiz_sessions_topic_created", "quiz_sessions", ["topic", "created_at"], unique=False)

    op.create_table(
        "quiz_answers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("user_answer", sa.String(length=8), nullable=False),
        sa.Column("correct_answer", sa.String(length=8), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("difficulty", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["session_id"], ["quiz_sessions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quiz_answers_session_id", "quiz_answers", ["session_id"], unique=False)
    op.create_index("idx_quiz_answers_created_at", "quiz_answers", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_quiz_answers_created_at", table_name="quiz_answers")
    op.drop_index("idx_quiz_answers_session_id", table_name="quiz_answers")
    op.drop_table("quiz_answers")
    op.drop_index("idx_quiz_sessions_topic_created", table_name="quiz_sessions")
    op.drop_table("quiz_sessions")
    op.drop_index("idx_chat_messages_session_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("idx_chat_sessions_topic", table_name="chat_sessions")
    op.drop_table("chat_sessions")
    op.execute("DROP INDEX IF EXISTS idx_content_items_embedding")
    op.drop_index("idx_content_items_topic", table_name="content_items")
    op.drop_table("content_items")
