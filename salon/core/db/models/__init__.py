from salon.core.db.models.base import BaseModel, UTCDateTime

__all__ = [
    "BaseModel",
    "UTCDateTime",
]
