from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime, timezone

from app.canvas.geometry import new_object_id
from app.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Chat(Base):
    """
    A named, user-owned canvas document.

    ``elements`` holds the serialized element list (camelCase wire form) and
    is always overwritten as a whole. ``user_id`` is the identity provider's
    subject claim.
    """
    __tablename__ = "chats"

    id = Column(String(24), primary_key=True, default=new_object_id)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    elements = Column(JSON, nullable=False, default=list)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Chat {self.id} user={self.user_id!r} title={self.title!r}>"
