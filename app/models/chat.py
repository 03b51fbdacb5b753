"""Chat model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from app.database import Base


class Chat(Base):
    """Chat model - a named conversation stored as a single message blob."""

    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, index=True)
    # Caller-supplied identifier, distinct from the primary key
    chat_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False, index=True)
    messagesss = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        """Wire representation."""
        return {
            "_id": self.id,
            "id": self.chat_id,
            "name": self.name,
            "messagesss": self.messagesss,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<Chat(id={self.id}, name='{self.name}')>"
