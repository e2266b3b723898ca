"""Authentication service for JWT and password handling."""

import logging
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from tasktracker.config import get_settings
from tasktracker.models.user import User

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised when a bearer token is malformed or its signature does not verify."""


class TokenExpiredError(TokenError):
    """Raised when a bearer token is past its expiry."""


@lru_cache
def get_password_context() -> CryptContext:
    """Password hashing context with the configured bcrypt work factor."""
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_settings().bcrypt_rounds,
    )


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return get_password_context().verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return get_password_context().hash(password)


def create_access_token(user: User) -> str:
    """Create a signed JWT identifying the user."""
    settings = get_settings()
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT token.

    Raises TokenExpiredError for an expired token and TokenError for anything
    else that prevents the token from being trusted.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise TokenExpiredError("Token expired") from e
    except JWTError as e:
        raise TokenError(str(e)) from e


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email, ignoring case."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Get a user by primary key."""
    return db.get(User, user_id)


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        # Spend the same hashing time as a real check
        get_password_context().dummy_verify()
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def create_user(db: Session, name: str, email: str, password: str) -> User:
    """Create a new user."""
    hashed_password = get_password_hash(password)
    user = User(name=name, email=email.strip().lower(), password_hash=hashed_password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def record_login(db: Session, user: User) -> User:
    """Stamp the user's last login time."""
    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, name: str | None, avatar: str | None) -> User:
    """Update the mutable profile fields of a user."""
    if name is not None:
        user.name = name
    if avatar is not None:
        user.avatar = avatar
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> bool:
    """Replace the user's password if the current one verifies.

    Tokens issued before the change stay valid until they expire.
    """
    if not verify_password(current_password, user.password_hash):
        return False
    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info(f"Password changed for user {user.id}")
    return True
