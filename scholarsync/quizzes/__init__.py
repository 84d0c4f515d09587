"""Quizzes, quiz sessions and attempts."""

from .models import QUIZZES_TABLES_CQL, Question, Quiz, QuizAttempt


__all__ = [
    "QUIZZES_TABLES_CQL",
    "Question",
    "Quiz",
    "QuizAttempt",
]
