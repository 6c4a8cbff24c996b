"""Create words, learners, progress and article cache tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("device_id", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("last_active", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_users_device_id", "users", ["device_id"], unique=True)

    op.create_table(
        "words",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("word", sa.String(length=255), nullable=False),
        sa.Column("pronunciation", sa.String(length=255), nullable=True),
        sa.Column("definition", sa.Text(), nullable=False),
        sa.Column("synonym", sa.String(length=255), nullable=True),
        sa.Column("context_difference", sa.Text(), nullable=True),
        sa.Column("usages", sa.Text(), nullable=True),
        sa.Column("difficulty_level", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("word"),
    )
    op.create_index("ix_words_difficulty_level", "words", ["difficulty_level"], unique=False)
    op.create_index("ix_words_category", "words", ["category"], unique=False)

    op.create_table(
        "word_progress",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("word_id", sa.String(length=64), sa.ForeignKey("words.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bucket", sa.String(length=20), server_default=sa.text("'needs_work'"), nullable=False),
        sa.Column("review_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("correct_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("incorrect_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("user_id", "word_id", name="uq_word_progress_user_word"),
    )
    op.create_index("ix_word_progress_user_id", "word_progress", ["user_id"], unique=False)
    op.create_index("ix_word_progress_word_id", "word_progress", ["word_id"], unique=False)
    op.create_index("ix_word_progress_bucket", "word_progress", ["bucket"], unique=False)

    op.create_table(
        "quiz_results",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("word_id", sa.String(length=64), sa.ForeignKey("words.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("quiz_type", sa.String(length=30), server_default=sa.text("'fill_blank'"), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_quiz_results_user_id", "quiz_results", ["user_id"], unique=False)
    op.create_index("ix_quiz_results_word_id", "quiz_results", ["word_id"], unique=False)
    op.create_index("ix_quiz_results_answered_at", "quiz_results", ["answered_at"], unique=False)

    op.create_table(
        "daily_progress",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("words_saved", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("quizzes_completed", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("words_reviewed", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_progress_user_date"),
    )
    op.create_index("ix_daily_progress_user_id", "daily_progress", ["user_id"], unique=False)

    op.create_table(
        "cached_articles",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("cache_key", sa.Text(), nullable=False),
        sa.Column("article_text", sa.Text(), nullable=False),
        sa.Column("word_count", sa.Integer(), nullable=False),
        sa.Column("generator", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("access_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.UniqueConstraint("cache_key"),
    )
    op.create_index("ix_cached_articles_last_accessed_at", "cached_articles", ["last_accessed_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_cached_articles_last_accessed_at", table_name="cached_articles")
    op.drop_table("cached_articles")
    op.drop_index("ix_daily_progress_user_id", table_name="daily_progress")
    op.drop_table("daily_progress")
    op.drop_index("ix_quiz_results_answered_at", table_name="quiz_results")
    op.drop_index("ix_quiz_results_word_id", table_name="quiz_results")
    op.drop_index("ix_quiz_results_user_id", table_name="quiz_results")
    op.drop_table("quiz_results")
    op.drop_index("ix_word_progress_bucket", table_name="word_progress")
    op.drop_index("ix_word_progress_word_id", table_name="word_progress")
    op.drop_index("ix_word_progress_user_id", table_name="word_progress")
    op.drop_table("word_progress")
    op.drop_index("ix_words_category", table_name="words")
    op.drop_index("ix_words_difficulty_level", table_name="words")
    op.drop_table("words")
    op.drop_index("ix_users_device_id", table_name="users")
    op.drop_table("users")
