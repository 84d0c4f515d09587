# Core infrastructure
from scholarsync.core.context import (
    SessionContext,
    clear_context,
    get_context,
    get_request_id,
    get_session_id,
    get_user_id,
    set_request_id,
    set_session_id,
    set_user_id,
)
from scholarsync.core.database import init_async_cassandra, shutdown_async_cassandra
from scholarsync.core.logging import configure_structlog, get_logger
from scholarsync.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "SessionContext",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_session_id",
    "get_user_id",
    "init_async_cassandra",
    "set_request_id",
    "set_session_id",
    "set_user_id",
    "shutdown_async_cassandra",
]
