"""FastAPI dependencies for quizzes."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from scholarsync.auth.dependencies import CurrentUser

from .service import QuizError, QuizService
from .session import QuizSession


async def get_quiz_service(request: Request) -> QuizService:
    """Get quiz service from app state."""
    service = getattr(request.app.state, "quiz_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Quiz service not available",
        )
    return service


QuizServiceDep = Annotated[QuizService, Depends(get_quiz_service)]


async def get_owned_session(
    session_id: UUID,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> QuizSession:
    """Load a quiz session belonging to the caller."""
    session = quiz_service.get_session(session_id, user.id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quiz session not found",
        )
    return session


OwnedQuizSession = Annotated[QuizSession, Depends(get_owned_session)]


def handle_quiz_error(error: QuizError) -> HTTPException:
    """Convert quiz errors to HTTP exceptions."""
    status_map = {
        "quiz_not_found": status.HTTP_404_NOT_FOUND,
        "quiz_session_not_found": status.HTTP_404_NOT_FOUND,
        "quiz_incomplete": status.HTTP_409_CONFLICT,
        "quiz_empty": status.HTTP_409_CONFLICT,
        "quiz_invalid": status.HTTP_409_CONFLICT,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
