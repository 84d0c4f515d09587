"""FastAPI dependencies for course chat."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ChatError, ChatService


async def get_chat_service(request: Request) -> ChatService:
    """Get chat service from app state."""
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Chat service not available",
        )
    return service


ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


def handle_chat_error(error: ChatError) -> HTTPException:
    """Convert chat errors to HTTP exceptions."""
    status_map = {
        "invalid_message": status.HTTP_422_UNPROCESSABLE_ENTITY,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
