from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from auth.domain.entities import Profile, User


class UserRepository(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...

    async def get_by_email(self, email: str) -> User | None: ...

    async def get_by_username(self, username: str) -> User | None: ...

    async def create(self, user: User) -> User: ...


class ProfileRepository(Protocol):
    async def find_by_identifier(self, identifier: str) -> Profile | None: ...

    async def get_profiles(self, user_ids: Iterable[UUID]) -> dict[UUID, Profile]: ...
