"""Student progress tracking."""

from .models import (
    COMPLETION_THRESHOLD,
    PROGRESS_TABLES_CQL,
    CourseCompletion,
    VideoProgressEntry,
)


__all__ = [
    "COMPLETION_THRESHOLD",
    "PROGRESS_TABLES_CQL",
    "CourseCompletion",
    "VideoProgressEntry",
]
