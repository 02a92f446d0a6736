from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
import jwt

from auth.domain.entities import Profile, User
from auth.domain.repository import ProfileRepository, UserRepository
from shared.config import settings
from shared.exceptions import AuthenticationError, ConflictError, ValidationError


async def register_user(
    repo: UserRepository,
    username: str,
    email: str,
    full_name: str,
    password: str,
    avatar_url: str | None = None,
    bio: str | None = None,
) -> User:
    username = username.strip()
    if not username:
        raise ValidationError("Username must not be empty")
    if await repo.get_by_email(email):
        raise ConflictError("Email already registered")
    if await repo.get_by_username(username):
        raise ConflictError("Username already taken")

    user = User(
        username=username,
        email=email,
        full_name=full_name.strip() or username,
        password_hash=bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode(),
        avatar_url=avatar_url,
        bio=bio,
    )
    return await repo.create(user)


async def authenticate_user(
    repo: UserRepository, email: str, password: str
) -> tuple[User, str]:
    user = await repo.get_by_email(email)
    if not user or not bcrypt.checkpw(password.encode(), user.password_hash.encode()):
        raise AuthenticationError("Invalid email or password")

    token = create_token(str(user.id))
    return user, token


async def verify_token(repo: UserRepository, token: str) -> User:
    user_id = decode_token(token)
    user = await repo.get_by_id(user_id)
    if not user:
        raise AuthenticationError("User not found")
    return user


async def lookup_profiles(
    repo: ProfileRepository, user_ids: Iterable[UUID]
) -> dict[UUID, Profile]:
    """Profiles for the given users; unknown ids map to a placeholder profile."""
    ids = {user_id for user_id in user_ids if user_id is not None}
    found = await repo.get_profiles(ids)
    return {user_id: found.get(user_id, Profile.unknown(user_id)) for user_id in ids}


def decode_token(token: str) -> UUID:
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
        return UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise AuthenticationError("Invalid or expired token")


def create_token(user_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
