from salon.core.db.config import (
    async_engine,
    AsyncSessionLocal,
    Base,
    dispose_db,
    init_db,
)

__all__ = [
    "async_engine",
    "AsyncSessionLocal",
    "Base",
    "dispose_db",
    "init_db",
]
