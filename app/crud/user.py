"""
CRUD operations for User and Role models.
"""

from typing import List, Optional
from sqlalchemy.orm import Session
from app.models.user import User, Role


def get_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_by_email(db: Session, email: str) -> Optional[User]:
    """
    Retrieve a user by email (the identity carried in the Supabase token).

    Args:
        db: Database session
        email: Email address to look up

    Returns:
        User instance if registered, None otherwise
    """
    return db.query(User).filter(User.email == email).first()


def get_multi(db: Session) -> List[User]:
    return db.query(User).order_by(User.id.asc()).all()


def get_role_by_name(db: Session, role_name: str) -> Optional[Role]:
    return db.query(Role).filter(Role.name == role_name).first()


def update_role(db: Session, user: User, role: Role) -> User:
    """
    Assign a role to a user.

    Args:
        db: Database session
        user: User to update
        role: Role to assign

    Returns:
        Updated User instance
    """
    user.role = role
    db.commit()
    db.refresh(user)
    return user


def create(db: Session, email: str, name: str, role: Optional[Role] = None) -> User:
    user = User(email=email, name=name, role=role)

    db.add(user)
    db.commit()
    db.refresh(user)

    return user
