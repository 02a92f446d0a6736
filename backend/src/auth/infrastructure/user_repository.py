from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from auth.domain.entities import Profile, User
from auth.infrastructure.models import UserModel
from shared.infrastructure.storage import storage_call


class DbUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_call("Load user", read=True)
    async def get_by_id(self, user_id: UUID) -> User | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.id == user_id)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("Load user by email", read=True)
    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("Load user by username", read=True)
    async def get_by_username(self, username: str) -> User | None:
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.username) == username.lower())
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("Create user")
    async def create(self, user: User) -> User:
        model = UserModel(
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            password_hash=user.password_hash,
            avatar_url=user.avatar_url,
            bio=user.bio,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _to_entity(model)

    @storage_call("Find profile", read=True)
    async def find_by_identifier(self, identifier: str) -> Profile | None:
        """Match a username first, then an email address, ignoring case."""
        needle = identifier.strip().lower()
        result = await self.session.execute(
            select(UserModel).where(
                or_(
                    func.lower(UserModel.username) == needle,
                    func.lower(UserModel.email) == needle,
                )
            )
        )
        models = result.scalars().all()
        if not models:
            return None
        by_username = [m for m in models if m.username.lower() == needle]
        return _to_entity((by_username or models)[0]).profile

    @storage_call("Load profiles", read=True)
    async def get_profiles(self, user_ids: Iterable[UUID]) -> dict[UUID, Profile]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(UserModel).where(UserModel.id.in_(ids))
        )
        return {m.id: _to_entity(m).profile for m in result.scalars().all()}


def _to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        email=model.email,
        full_name=model.full_name,
        password_hash=model.password_hash,
        avatar_url=model.avatar_url,
        bio=model.bio,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
