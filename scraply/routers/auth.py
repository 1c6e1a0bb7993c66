import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import (
    create_access_token,
    get_db,
    get_password_hash,
    get_user_by_email,
    get_user_by_username,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def ensure_unique_identity(db: Session, email: str | None, username: str | None, exclude_id: int | None = None):
    """
    Reject an email or username that already belongs to another account.

    The email is checked first so a duplicate email is always reported as
    such, whatever the username. The unique constraints on both columns are
    what actually guarantee uniqueness; this check only picks the message.

    Raises
    ------
    HTTPException
        - 409 if the email or the username is taken.
    """
    if email is not None:
        existing = get_user_by_email(db, email)
        if existing and existing.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    if username is not None:
        existing = get_user_by_username(db, username)
        if existing and existing.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")


def commit_user(db: Session, user: models.User) -> models.User:
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username or email already exists")
    db.refresh(user)
    return user


def create_user(db: Session, user_in: schemas.UserCreate, role: str = "user") -> models.User:
    ensure_unique_identity(db, user_in.email, user_in.username)
    user = models.User(
        username=user_in.username,
        full_name=user_in.full_name,
        phone_number=user_in.phone_number,
        email=user_in.email,
        photo=user_in.photo,
        hashed_password=get_password_hash(user_in.password),
        role=role,
    )
    db.add(user)
    return commit_user(db, user)


@router.post(
    "/register",
    response_model=schemas.Envelope[schemas.UserOut],
    status_code=status.HTTP_201_CREATED,
)
def register_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Register a new account.

    Public registration always creates a ``user``; admins are created
    through ``POST /users``.

    Raises
    ------
    HTTPException
        - 409 if the email or username already exists.
    """
    user = create_user(db, user_in)
    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return {"message": "User registered successfully", "data": user}


@router.post("/login", response_model=schemas.Envelope[schemas.LoginOut])
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate by email and password and return the profile plus a JWT.

    The token embeds the stored role and is valid for 15 days.

    Raises
    ------
    HTTPException
        - 404 if no account uses the email.
        - 401 if the password does not match.
    """
    user = get_user_by_email(db, credentials.email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login for user id=%s", user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    token = create_access_token(user.id, user.role)
    logger.info("User %s logged in", user.username)
    profile = schemas.UserOut.model_validate(user).model_dump()
    return {"message": "Login successful", "data": {**profile, "token": token}}
