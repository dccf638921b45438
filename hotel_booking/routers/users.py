import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from hotel_booking.db import get_db
from hotel_booking.models.user import User
from hotel_booking.schemas.user import UserCreate, UserResponse, UserUpdate
from hotel_booking.utils.auth import check_role_grant, get_optional_user
from hotel_booking.utils.errors import (
    DuplicateEmail,
    InternalFailure,
    NotFound,
    is_unique_violation,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


def _get_user_or_404(db: Session, user_id: int, action: str) -> User:
    try:
        user = db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"{action} failed for user {user_id}: {e}")
        raise InternalFailure(action, str(e))
    if not user:
        logger.error(f"User not found: {user_id}")
        raise NotFound("User")
    return user


def _commit_user(db: Session, user: User, action: str):
    try:
        db.commit()
        db.refresh(user)
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e, "email"):
            logger.error(f"{action} failed: email already exists")
            raise DuplicateEmail()
        logger.error(f"{action} failed: {e}")
        raise InternalFailure(action, str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed: {e}")
        raise InternalFailure(action, str(e))


@router.get("/", response_model=List[UserResponse])
def get_users(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    Retrieve users. Passwords are never included.
    """
    try:
        users = db.query(User).offset(skip).limit(limit).all()
    except SQLAlchemyError as e:
        logger.error(f"Fetching users failed: {e}")
        raise InternalFailure("Error fetching users", str(e))
    logger.debug(f"Retrieved {len(users)} users")
    return users


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return _get_user_or_404(db, user_id, "Error fetching user")


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Register a new user. The password is hashed before it is stored.

    - **fullName**, **email**, **password** (8+ characters), **phoneNumber**
    - **role**: Guest (default), Customer or Admin
      (Admin may only be granted by an admin)
    """
    check_role_grant(user.role, current_user)
    db_user = User(**user.model_dump())
    db.add(db_user)
    _commit_user(db, db_user, "Error creating user")
    logger.debug(f"Created user {db_user.id} ({db_user.email})")
    return db_user


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Update a user's details. Only the supplied fields change; a new
    password is re-hashed.
    """
    db_user = _get_user_or_404(db, user_id, "Error updating user")

    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("role") != db_user.role:
        check_role_grant(update_data.get("role"), current_user)
    for key, value in update_data.items():
        setattr(db_user, key, value)

    _commit_user(db, db_user, "Error updating user")
    logger.debug(f"Updated user {user_id}: {sorted(update_data)}")
    return db_user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    db_user = _get_user_or_404(db, user_id, "Error deleting user")
    try:
        db.delete(db_user)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting user {user_id} failed: {e}")
        raise InternalFailure("Error deleting user", str(e))
    logger.debug(f"Deleted user {user_id}")
    return None
