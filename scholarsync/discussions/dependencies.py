"""FastAPI dependencies for discussions."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import DiscussionError, DiscussionService


async def get_discussion_service(request: Request) -> DiscussionService:
    """Get discussion service from app state."""
    service = getattr(request.app.state, "discussion_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Discussion service not available",
        )
    return service


DiscussionServiceDep = Annotated[DiscussionService, Depends(get_discussion_service)]


def handle_discussion_error(error: DiscussionError) -> HTTPException:
    """Convert discussion errors to HTTP exceptions."""
    status_map = {
        "post_not_found": status.HTTP_404_NOT_FOUND,
        "nested_reply": status.HTTP_400_BAD_REQUEST,
        "invalid_content": status.HTTP_422_UNPROCESSABLE_ENTITY,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
