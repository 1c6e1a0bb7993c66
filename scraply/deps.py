import logging
from datetime import datetime, timedelta
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models, schemas
from .config import ACCESS_TOKEN_EXPIRE_DAYS, ALGORITHM, SECRET_KEY
from .database import SessionLocal

logger = logging.getLogger(__name__)


# ----- DB -----
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ----- Auth / JWT -----
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Raw header so a missing token and a malformed one can be told apart
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(user_id: int, role: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> schemas.TokenData:
    """
    Validate signature and expiry of ``token`` and return its claims.

    Raises ``JWTError`` for a bad signature, an expired token or a token
    without a usable subject.
    """
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    subject = payload.get("sub")
    if subject is None or not subject.isdigit():
        raise JWTError("Token subject is missing")
    return schemas.TokenData(user_id=int(subject), role=payload.get("role"))


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_username(db: Session, username: str) -> models.User | None:
    return db.query(models.User).filter(models.User.username == username).first()


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    authorization: Optional[str] = Depends(authorization_header),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Resolve the bearer token to a user record.

    The user is re-read on every request, so the role used for permission
    checks is the stored one, not the one embedded in the token.
    """
    if not authorization:
        raise _unauthenticated("No token provided")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthenticated("Invalid token format")

    try:
        token_data = decode_access_token(token.strip())
    except JWTError:
        raise _unauthenticated("Invalid or expired token")

    user = db.get(models.User, token_data.user_id)
    if user is None:
        raise _unauthenticated("Invalid token")
    return user


def require_roles(*allowed_roles: str):
    """
    Usage: current_user: models.User = Depends(require_roles("admin"))

    Roles are matched exactly; an admin is not implicitly a user.
    """
    async def role_checker(current_user: models.User = Depends(get_current_user)) -> models.User:
        if current_user.role not in allowed_roles:
            logger.info(
                "Denied %s (role=%s); requires one of %s",
                current_user.username,
                current_user.role,
                ", ".join(allowed_roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied: {' or '.join(allowed_roles)} only",
            )
        return current_user

    return role_checker


def ensure_owner_or_admin(current_user: models.User, owner_id: int, detail: str) -> None:
    if current_user.role != "admin" and current_user.id != owner_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
