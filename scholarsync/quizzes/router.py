"""Quiz API endpoints.

Provides routes for:
- Quiz authoring by the course instructor
- Quiz sessions: start, answer, navigate, submit
- Attempt history
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from scholarsync.auth.dependencies import CurrentUser
from scholarsync.auth.permissions import can_manage_course
from scholarsync.courses.dependencies import (
    AccessibleCourse,
    CourseServiceDep,
    EditableCourse,
    handle_course_error,
)
from scholarsync.courses.service import CourseError

from .dependencies import OwnedQuizSession, QuizServiceDep, handle_quiz_error
from .schemas import (
    CreateQuizRequest,
    JumpRequest,
    PassedQuizzesResponse,
    QuizAttemptResponse,
    QuizResponse,
    QuizResultResponse,
    QuizSessionResponse,
    QuizSummaryResponse,
    SelectAnswerRequest,
)
from .models import Quiz
from .service import QuizError, QuizNotFoundError, QuizService


router = APIRouter(prefix="/v1", tags=["quizzes"])
sessions_router = APIRouter(prefix="/v1/quiz-sessions", tags=["quiz-sessions"])


# ==============================================================================
# Authoring
# ==============================================================================


@router.post(
    "/courses/{course_id}/quizzes",
    response_model=QuizResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create quiz",
)
async def create_quiz(
    data: CreateQuizRequest,
    course: EditableCourse,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> QuizResponse:
    quiz = await quiz_service.create_quiz(course.id, data, created_by=user.id)
    return QuizResponse.from_entity(quiz, include_answers=True)


@router.get(
    "/courses/{course_id}/quizzes",
    response_model=list[QuizSummaryResponse],
    summary="List quizzes of a course",
)
async def list_course_quizzes(
    course: AccessibleCourse,
    quiz_service: QuizServiceDep,
) -> list[QuizSummaryResponse]:
    quizzes = await quiz_service.list_course_quizzes(course.id)
    return [QuizSummaryResponse.from_entity(q) for q in quizzes]


@router.get(
    "/courses/{course_id}/quizzes/passed",
    response_model=PassedQuizzesResponse,
    summary="Quizzes of a course the caller has passed",
)
async def list_passed_quizzes(
    course_id: UUID,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> PassedQuizzesResponse:
    quiz_ids = await quiz_service.get_passed_quiz_ids(user.id, course_id)
    return PassedQuizzesResponse(course_id=course_id, quiz_ids=sorted(quiz_ids, key=str))


async def load_quiz(quiz_service: QuizService, quiz_id: UUID) -> Quiz:
    try:
        quiz = await quiz_service.get_quiz(quiz_id)
    except QuizError as e:
        raise handle_quiz_error(e) from e
    if not quiz:
        raise handle_quiz_error(QuizNotFoundError())
    return quiz


@router.get("/quizzes/{quiz_id}", response_model=QuizResponse, summary="Get quiz")
async def get_quiz(
    quiz_id: UUID,
    quiz_service: QuizServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> QuizResponse:
    """Get a quiz. Only the course instructor and admins see the answer key."""
    quiz = await load_quiz(quiz_service, quiz_id)
    try:
        course = await course_service.require_access(quiz.course_id, user)
    except CourseError as e:
        raise handle_course_error(e) from e

    include_answers = can_manage_course(
        str(user.id), user.role, str(course.instructor_id)
    )
    return QuizResponse.from_entity(quiz, include_answers=include_answers)


@router.delete(
    "/quizzes/{quiz_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete quiz",
)
async def delete_quiz(
    quiz_id: UUID,
    quiz_service: QuizServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> None:
    course_id = await quiz_service.get_quiz_course_id(quiz_id)
    if course_id is None:
        raise handle_quiz_error(QuizNotFoundError())
    course = await course_service.get_course(course_id)
    instructor_id = str(course.instructor_id) if course else None
    if not can_manage_course(str(user.id), user.role, instructor_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot edit this quiz",
        )
    try:
        await quiz_service.delete_quiz(quiz_id)
    except QuizError as e:
        raise handle_quiz_error(e) from e


# ==============================================================================
# Sessions
# ==============================================================================


@router.post(
    "/quizzes/{quiz_id}/sessions",
    response_model=QuizSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a quiz attempt",
)
async def start_quiz_session(
    quiz_id: UUID,
    quiz_service: QuizServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> QuizSessionResponse:
    """Start a fresh attempt; the countdown begins immediately."""
    quiz = await load_quiz(quiz_service, quiz_id)
    try:
        await course_service.require_access(quiz.course_id, user)
    except CourseError as e:
        raise handle_course_error(e) from e

    try:
        session = await quiz_service.start_session(
            quiz_id, user.id, student_name=user.name
        )
    except QuizError as e:
        raise handle_quiz_error(e) from e
    return QuizSessionResponse.from_session(session)


@router.get(
    "/quizzes/{quiz_id}/attempts",
    response_model=list[QuizAttemptResponse],
    summary="The caller's attempts at a quiz",
)
async def list_quiz_attempts(
    quiz_id: UUID,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=200),
) -> list[QuizAttemptResponse]:
    attempts = await quiz_service.list_attempts(user.id, quiz_id=quiz_id)
    return [QuizAttemptResponse.from_entity(a) for a in attempts[:limit]]


@sessions_router.get(
    "/{session_id}",
    response_model=QuizSessionResponse,
    summary="Get quiz session state",
)
async def get_quiz_session(
    session: OwnedQuizSession,
    quiz_service: QuizServiceDep,
) -> QuizSessionResponse:
    result = None
    outcome = await quiz_service.get_outcome(session.session_id, session.student_id)
    if outcome is not None:
        result = QuizResultResponse.from_result(
            outcome.result,
            attempt_saved=outcome.attempt_saved,
            certificate_id=outcome.certificate_id,
        )
    return QuizSessionResponse.from_session(session, result=result)


@sessions_router.put(
    "/{session_id}/answers",
    response_model=QuizSessionResponse,
    summary="Select an answer",
)
async def select_answer(
    data: SelectAnswerRequest,
    session: OwnedQuizSession,
) -> QuizSessionResponse:
    applied = session.select_answer(data.question_index, data.option_index)
    return QuizSessionResponse.from_session(session, applied=applied)


@sessions_router.post(
    "/{session_id}/next",
    response_model=QuizSessionResponse,
    summary="Go to the next question",
)
async def next_question(session: OwnedQuizSession) -> QuizSessionResponse:
    return QuizSessionResponse.from_session(session, applied=session.next_question())


@sessions_router.post(
    "/{session_id}/previous",
    response_model=QuizSessionResponse,
    summary="Go to the previous question",
)
async def previous_question(session: OwnedQuizSession) -> QuizSessionResponse:
    return QuizSessionResponse.from_session(
        session, applied=session.previous_question()
    )


@sessions_router.post(
    "/{session_id}/jump",
    response_model=QuizSessionResponse,
    summary="Jump to a question",
)
async def jump_to_question(
    data: JumpRequest,
    session: OwnedQuizSession,
) -> QuizSessionResponse:
    return QuizSessionResponse.from_session(
        session, applied=session.jump_to(data.index)
    )


@sessions_router.post(
    "/{session_id}/submit",
    response_model=QuizSessionResponse,
    summary="Submit the attempt",
)
async def submit_quiz(
    session: OwnedQuizSession,
    quiz_service: QuizServiceDep,
) -> QuizSessionResponse:
    """Submit the attempt.

    Returns 409 while questions are unanswered and time remains.
    """
    try:
        outcome = await quiz_service.submit_session(
            session.session_id, session.student_id
        )
    except QuizError as e:
        raise handle_quiz_error(e) from e

    result = QuizResultResponse.from_result(
        outcome.result,
        attempt_saved=outcome.attempt_saved,
        certificate_id=outcome.certificate_id,
    )
    return QuizSessionResponse.from_session(session, result=result)


@sessions_router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard the attempt",
)
async def discard_quiz_session(
    session: OwnedQuizSession,
    quiz_service: QuizServiceDep,
) -> None:
    quiz_service.discard_session(session.session_id, session.student_id)
