"""Database models for quizzes and quiz attempts.

Cassandra table definitions for:
- Quizzes: Quiz definition (passing score, time limit)
- Quiz questions: Ordered questions clustered by position
- Quizzes by course: Lookup for listing a course's quizzes
- Quiz attempts: Submitted outcomes partitioned by student
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from scholarsync.courses.models import ensure_utc_aware


DEFAULT_PASSING_SCORE = 70

# Used when a quiz has no explicit time limit
SECONDS_PER_QUESTION = 120

MIN_OPTIONS = 2
MAX_OPTIONS = 6


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

QUIZZES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    description TEXT,
    passing_score INT,
    time_limit_minutes INT,
    created_by UUID,
    created_at TIMESTAMP
)
"""

QUIZ_QUESTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_questions (
    quiz_id UUID,
    position INT,
    question_id UUID,
    text TEXT,
    options LIST<TEXT>,
    correct_option_index INT,
    PRIMARY KEY (quiz_id, position)
) WITH CLUSTERING ORDER BY (position ASC)
"""

QUIZZES_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes_by_course (
    course_id UUID,
    created_at TIMESTAMP,
    quiz_id UUID,
    title TEXT,
    PRIMARY KEY (course_id, created_at, quiz_id)
) WITH CLUSTERING ORDER BY (created_at ASC, quiz_id ASC)
"""

# Attempts by student; clustering by quiz groups a student's retries
QUIZ_ATTEMPTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts (
    student_id UUID,
    quiz_id UUID,
    completed_at TIMESTAMP,
    attempt_id UUID,
    course_id UUID,
    correct_count INT,
    total_questions INT,
    score_percent INT,
    passed BOOLEAN,
    timed_out BOOLEAN,
    time_taken_seconds INT,
    PRIMARY KEY ((student_id), quiz_id, completed_at, attempt_id)
) WITH CLUSTERING ORDER BY (quiz_id ASC, completed_at DESC, attempt_id ASC)
"""

QUIZZES_TABLES_CQL = [
    QUIZZES_TABLE_CQL,
    QUIZ_QUESTIONS_TABLE_CQL,
    QUIZZES_BY_COURSE_TABLE_CQL,
    QUIZ_ATTEMPTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Question:
    """Multiple-choice question with exactly one correct option."""

    def __init__(
        self,
        text: str,
        options: list[str],
        correct_option_index: int,
        id: UUID | None = None,
    ):
        self.id = id or uuid4()
        self.text = text
        self.options = list(options)
        self.correct_option_index = correct_option_index

    def is_correct(self, option_index: int | None) -> bool:
        return option_index is not None and option_index == self.correct_option_index

    @classmethod
    def from_row(cls, row: Any) -> "Question":
        """Create Question instance from Cassandra row.

        Raises:
            ValueError: If the stored answer key does not point at an option
        """
        options = list(row.options or [])
        index = row.correct_option_index
        if len(options) < 2 or index is None or not 0 <= index < len(options):
            raise ValueError(
                f"Question {row.question_id}: correct option {index} "
                f"out of range for {len(options)} options"
            )
        return cls(
            id=row.question_id,
            text=row.text or "",
            options=options,
            correct_option_index=index,
        )

    def __repr__(self) -> str:
        return f"<Question {self.text[:30]!r} ({len(self.options)} options)>"


class Quiz:
    """Quiz entity.

    Attributes:
        id: Unique identifier
        course_id: Owning course
        title: Quiz title
        description: Optional description
        passing_score: Minimum percentage to pass (1-100)
        time_limit_minutes: Explicit time limit, or None for the per-question rule
        questions: Ordered questions
        created_by: Authoring instructor
        created_at: Creation timestamp
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        questions: list[Question] | None = None,
        id: UUID | None = None,
        description: str | None = None,
        passing_score: int | None = None,
        time_limit_minutes: int | None = None,
        created_by: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title.strip()
        self.description = description
        self.passing_score = (
            passing_score if passing_score is not None else DEFAULT_PASSING_SCORE
        )
        self.time_limit_minutes = time_limit_minutes
        self.questions = questions or []
        self.created_by = created_by
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def time_limit_seconds(self) -> int:
        """Countdown length for one attempt."""
        if self.time_limit_minutes:
            return self.time_limit_minutes * 60
        return self.question_count * SECONDS_PER_QUESTION

    @classmethod
    def from_row(cls, row: Any, question_rows: Any = ()) -> "Quiz":
        """Create Quiz from its row plus its question rows."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            description=row.description,
            passing_score=row.passing_score,
            time_limit_minutes=row.time_limit_minutes,
            questions=[Question.from_row(q) for q in question_rows],
            created_by=row.created_by,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Quiz {self.title} ({self.question_count} questions)>"


class QuizAttempt:
    """Persisted outcome of one submitted quiz session."""

    def __init__(
        self,
        student_id: UUID,
        quiz_id: UUID,
        course_id: UUID,
        correct_count: int,
        total_questions: int,
        score_percent: int,
        passed: bool,
        timed_out: bool = False,
        time_taken_seconds: int = 0,
        attempt_id: UUID | None = None,
        completed_at: datetime | None = None,
    ):
        self.attempt_id = attempt_id or uuid4()
        self.student_id = student_id
        self.quiz_id = quiz_id
        self.course_id = course_id
        self.correct_count = correct_count
        self.total_questions = total_questions
        self.score_percent = score_percent
        self.passed = passed
        self.timed_out = timed_out
        self.time_taken_seconds = time_taken_seconds
        self.completed_at = ensure_utc_aware(completed_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        """Create QuizAttempt instance from Cassandra row."""
        return cls(
            attempt_id=row.attempt_id,
            student_id=row.student_id,
            quiz_id=row.quiz_id,
            course_id=row.course_id,
            correct_count=row.correct_count or 0,
            total_questions=row.total_questions or 0,
            score_percent=row.score_percent or 0,
            passed=bool(row.passed),
            timed_out=bool(row.timed_out),
            time_taken_seconds=row.time_taken_seconds or 0,
            completed_at=row.completed_at,
        )

    def __repr__(self) -> str:
        return (
            f"<QuizAttempt student={self.student_id} quiz={self.quiz_id} "
            f"{self.score_percent}% passed={self.passed}>"
        )
