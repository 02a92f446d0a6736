from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass
class User:
    username: str
    email: str
    full_name: str
    password_hash: str
    avatar_url: str | None = None
    bio: str | None = None
    id: UUID | None = field(default=None)
    created_at: datetime | None = field(default=None)
    updated_at: datetime | None = field(default=None)

    @property
    def profile(self) -> "Profile":
        return Profile(
            user_id=self.id,
            full_name=self.full_name,
            username=self.username,
            avatar_url=self.avatar_url,
            bio=self.bio,
        )


@dataclass(frozen=True)
class Profile:
    """Public view of a user, used to label shares, versions and authors."""

    user_id: UUID | None
    full_name: str
    username: str
    avatar_url: str | None = None
    bio: str | None = None

    @classmethod
    def unknown(cls, user_id: UUID | None = None) -> "Profile":
        return cls(user_id=user_id, full_name="Unknown", username="unknown")
