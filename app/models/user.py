"""
User and Role models.

Credentials live in Supabase; this table only maps an authenticated email to a
local user with an application role (admin or evaluator).
"""

import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class RoleName(str, enum.Enum):
    """Application roles"""
    ADMIN = "admin"
    EVALUATOR = "evaluator"


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)

    users = relationship("User", back_populates="role")

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class User(Base):
    """
    Registered application user.

    The email must match the `email` claim of the Supabase access token.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    role = relationship("Role", back_populates="users", lazy="joined")
    projects = relationship("Project", back_populates="creator")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
