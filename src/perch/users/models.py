"""The user entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class User:
    """A registered user. ``hashed_password`` is a ``hash_password`` result."""

    id: int
    username: str
    hashed_password: str
    roles: frozenset[str] = frozenset()
    date_created: datetime = field(default_factory=lambda: datetime.now(UTC))

    def has_role(self, role: str) -> bool:
        return role in self.roles
