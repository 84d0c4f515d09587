"""Course discussion forums."""

from .models import DISCUSSIONS_TABLES_CQL, DiscussionPost, DiscussionThread


__all__ = [
    "DISCUSSIONS_TABLES_CQL",
    "DiscussionPost",
    "DiscussionThread",
]
