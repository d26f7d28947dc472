import enum

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class UserRole(enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Profile(Base):
    """User profile keyed by the identity provider's subject id."""

    __tablename__ = "profiles"

    # Core identity
    id = Column(String(255), primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=True)

    # Profile information
    avatar_url = Column(String(500), nullable=True)

    # Role is only ever set to admin through the privileged routes
    role = Column(String(20), nullable=False, default=UserRole.USER.value)

    # Audit timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    notes = relationship("Note", back_populates="owner")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role={self.role})>"
