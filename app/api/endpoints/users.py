"""
User endpoints: profile lookup and role assignment.

Accounts are created through Supabase; /register creates the local profile
row and admins assign roles.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user, get_token_payload, require_admin, require_evaluator
from app.crud import user as user_crud
from app.models.user import User, RoleName
from app.schemas.user import UserResponse, UpdateRoleRequest, RegisterRequest

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    return user_crud.get_multi(db)


@router.post("/register", response_model=UserResponse)
def register(
    request: Optional[RegisterRequest] = None,
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
):
    """
    Create the local profile of a Supabase-authenticated user.

    Called after sign-up or sign-in. New users get the evaluator role; an
    existing profile is returned unchanged.

    Raises:
        401: Token has no email claim
        400: Evaluator role not seeded
    """
    email = payload.get("email")
    if not email:
        raise HTTPException(status_code=401, detail="User email not found in token")

    user = user_crud.get_by_email(db, email)
    if user is not None:
        return user

    role = user_crud.get_role_by_name(db, RoleName.EVALUATOR.value)
    if role is None:
        raise HTTPException(status_code=400, detail=f"Role {RoleName.EVALUATOR.value} not found in database")

    name = (request.name if request and request.name else None) or email.split("@")[0]
    try:
        user = user_crud.create(db, email=email, name=name, role=role)
    except Exception as e:
        db.rollback()
        logger.error(f"Error registering user {email}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to register user: {str(e)}")

    logger.info(f"Registered user {user.id} ({email}) as {role.name}")
    return user


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated user, including the role"""
    return current_user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_evaluator)):
    user = user_crud.get_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    request: UpdateRoleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Assign a role to a user.

    Raises:
        404: User not found
        400: Role does not exist
    """
    user = user_crud.get_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    role = user_crud.get_role_by_name(db, request.role_name)
    if role is None:
        raise HTTPException(status_code=400, detail=f"Role {request.role_name} not found")

    try:
        user = user_crud.update_role(db, user, role)
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating role of user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update user role: {str(e)}")

    logger.info(f"User {user_id} role set to {role.name} by user {current_user.id}")
    return user
