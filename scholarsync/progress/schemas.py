"""Pydantic schemas for progress tracking.

Request and response models for:
- Viewing sessions and playback reports
- Watched flags
- Course completion
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import CourseCompletion, VideoProgressEntry
from .tracker import CourseViewingSession, VideoProgressUpdate


# ==============================================================================
# Viewing Session Schemas
# ==============================================================================


class OpenViewingSessionRequest(BaseModel):
    course_id: UUID = Field(..., description="Course UUID")


class ViewingSessionResponse(BaseModel):
    """Viewing session with the lectures watched so far."""

    session_id: UUID
    course_id: UUID
    watched_lecture_ids: list[UUID]
    untracked_lecture_ids: list[UUID] = Field(
        default_factory=list,
        description="Externally hosted lectures, exempt from watch detection",
    )

    @classmethod
    def from_session(
        cls, viewing: CourseViewingSession, watched: set[UUID]
    ) -> "ViewingSessionResponse":
        return cls(
            session_id=viewing.session_id,
            course_id=viewing.course.id,
            watched_lecture_ids=sorted(watched, key=str),
            untracked_lecture_ids=[
                lecture.id
                for lecture in viewing.lectures.values()
                if lecture.is_externally_hosted
            ],
        )


class VideoProgressRequest(BaseModel):
    """Playback report sent periodically by the player."""

    lecture_id: UUID = Field(..., description="Lecture UUID")
    position_seconds: float = Field(
        ..., ge=0, allow_inf_nan=False, description="Current video position"
    )
    duration_seconds: float = Field(
        ...,
        allow_inf_nan=False,
        description="Total video duration; non-positive values are ignored",
    )


class VideoProgressResponse(BaseModel):
    lecture_id: UUID
    tracked: bool = Field(description="False for externally hosted videos")
    completed_now: bool = Field(description="True only for the crossing report")
    watched: bool
    saved: bool = True

    @classmethod
    def from_update(cls, update: VideoProgressUpdate) -> "VideoProgressResponse":
        return cls(
            lecture_id=update.lecture_id,
            tracked=update.tracked,
            completed_now=update.completed_now,
            watched=update.watched,
            saved=update.saved,
        )


# ==============================================================================
# Watched Flag Schemas
# ==============================================================================


class WatchedFlagRequest(BaseModel):
    course_id: UUID = Field(..., description="Course UUID")


class VideoProgressEntryResponse(BaseModel):
    lecture_id: UUID
    course_id: UUID
    watched: bool
    updated_at: datetime

    @classmethod
    def from_entity(cls, entry: VideoProgressEntry) -> "VideoProgressEntryResponse":
        return cls(
            lecture_id=entry.lecture_id,
            course_id=entry.course_id,
            watched=entry.watched,
            updated_at=entry.updated_at,
        )


# ==============================================================================
# Completion Schemas
# ==============================================================================


class CourseCompletionResponse(BaseModel):
    course_id: UUID
    completed: bool
    lectures_watched: int
    lectures_total: int

    @classmethod
    def from_completion(
        cls, completion: CourseCompletion
    ) -> "CourseCompletionResponse":
        return cls(
            course_id=completion.course_id,
            completed=completion.completed,
            lectures_watched=completion.lectures_watched,
            lectures_total=completion.lectures_total,
        )
