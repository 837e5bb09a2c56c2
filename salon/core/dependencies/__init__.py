"""
Shared dependencies for FastAPI endpoints.

"""

from salon.core.dependencies.db import SessionDep, get_async_session

__all__ = [
    "SessionDep",
    "get_async_session",
]
