import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import ensure_owner_or_admin, get_db, get_password_hash, require_roles
from .auth import commit_user, create_user, ensure_unique_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def get_user_or_404(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post(
    "/",
    response_model=schemas.Envelope[schemas.UserOut],
    status_code=status.HTTP_201_CREATED,
)
def create_user_account(
    user_in: schemas.AdminUserCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("admin")),
):
    """
    Create an account with any role. *(Admin-only)*

    Raises
    ------
    HTTPException
        - 409 if the email or username already exists.
    """
    user = create_user(db, user_in, role=user_in.role)
    logger.info("Admin %s created %s user %s", current_user.username, user.role, user.username)
    return {"message": "User created successfully", "data": user}


@router.get("/", response_model=schemas.Envelope[List[schemas.UserOut]])
def list_users(
    db: Session = Depends(get_db),
    _: models.User = Depends(require_roles("admin")),
):
    """
    List all registered users. *(Admin-only)*
    """
    return {"data": db.query(models.User).order_by(models.User.id).all()}


@router.get("/{user_id}", response_model=schemas.Envelope[schemas.UserOut])
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("user", "admin")),
):
    """
    Get a user's profile. Users may only read their own; admins may read any.

    Raises
    ------
    HTTPException
        - 403 if a user asks for someone else's profile.
        - 404 if the user does not exist.
    """
    ensure_owner_or_admin(current_user, user_id, "Not allowed to view this user")
    return {"data": get_user_or_404(db, user_id)}


@router.put("/{user_id}", response_model=schemas.Envelope[schemas.UserOut])
def update_user(
    user_id: int,
    user_update: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("user", "admin")),
):
    """
    Update a user's account information.

    - Users may update **only their own** profile and may not change their role.
    - Admins may update any profile, including the role.

    Raises
    ------
    HTTPException
        - 403 if a user targets another account or tries to change a role.
        - 404 if the target user does not exist.
        - 409 if the new email or username is already taken.
    """
    ensure_owner_or_admin(current_user, user_id, "Not allowed to update this user")
    user = get_user_or_404(db, user_id)

    data = user_update.model_dump(exclude_unset=True)

    if "role" in data and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Not allowed to change role")

    ensure_unique_identity(db, data.get("email"), data.get("username"), exclude_id=user.id)

    password = data.pop("password", None)
    if password is not None:
        user.hashed_password = get_password_hash(password)

    for field, value in data.items():
        # explicit nulls only clear the optional photo
        if value is None and field != "photo":
            continue
        setattr(user, field, value)

    user = commit_user(db, user)
    return {"message": "User updated successfully", "data": user}


@router.delete("/{user_id}", response_model=schemas.MessageOut)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_roles("user", "admin")),
):
    """
    Delete an account. Users may delete only themselves; admins any account.

    Bookings outlive their owner and are detached from it.

    Raises
    ------
    HTTPException
        - 403 if a user targets another account.
        - 404 if the user does not exist.
    """
    ensure_owner_or_admin(current_user, user_id, "Not allowed to delete this user")
    user = get_user_or_404(db, user_id)

    db.delete(user)
    db.commit()
    logger.info("User id=%s deleted by %s", user_id, current_user.username)
    return {"message": "User deleted successfully"}
