import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


def generate_note_id() -> str:
    return str(uuid.uuid4())


class Note(Base):
    """Personal text note owned by exactly one user."""

    __tablename__ = "notes"

    id = Column(String(36), primary_key=True, index=True, default=generate_note_id)
    title = Column(String(500), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    user_id = Column(String(255), ForeignKey("profiles.id"), nullable=False, index=True)

    # created_at is written once on insert, updated_at on every later save
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("Profile", back_populates="notes")

    def __repr__(self):
        return f"<Note(id={self.id}, title='{self.title}', user_id={self.user_id})>"
