"""Repository contracts and the in-memory user repository.

``Repository`` is the generic contract every entity repository follows;
``UserRepository`` adds lookups by username and by username plus
password. Lookups return the entity, or ``None`` when there is no match.

Implementations are bound in the container, so controllers and services
depend on the protocol::

    container.bind_instance(UserRepository, InMemoryUserRepository())

    class SessionController(Controller):
        def __init__(self, users: UserRepository) -> None:
            self.users = users
"""

from collections.abc import Iterable
from typing import Protocol

from perch.security.passwords import verify_password
from perch.users.models import User


class Repository[T](Protocol):
    """Generic entity repository."""

    def add(self, entity: T) -> None: ...

    def delete(self, entity: T) -> None: ...

    def get_all(self) -> list[T]: ...

    def get_by_id(self, id: int) -> T | None: ...  # noqa: A002


class UserRepository(Repository[User], Protocol):
    """Repository of users with credential lookups."""

    def get_by_username(self, username: str) -> User | None:
        """Return the user named *username*, or ``None``."""
        ...

    def get_by_username_and_password(self, username: str, unhashed_password: str) -> User | None:
        """Return the user named *username* if *unhashed_password* matches, or ``None``."""
        ...


class InMemoryUserRepository:
    """Dict-backed ``UserRepository``. Usernames are unique and case-sensitive."""

    __slots__ = ("_users",)

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[int, User] = {}
        for user in users:
            self.add(user)

    def add(self, entity: User) -> None:
        """Store *entity*.

        Raises ``ValueError`` if the id or the username is already taken.
        """
        if entity.id in self._users:
            msg = f"A user with id {entity.id} already exists"
            raise ValueError(msg)
        if self.get_by_username(entity.username) is not None:
            msg = f"Username {entity.username!r} is already taken"
            raise ValueError(msg)
        self._users[entity.id] = entity

    def delete(self, entity: User) -> None:
        """Remove *entity*. Deleting an unknown user is a no-op."""
        self._users.pop(entity.id, None)

    def get_all(self) -> list[User]:
        return list(self._users.values())

    def get_by_id(self, id: int) -> User | None:  # noqa: A002
        return self._users.get(id)

    def get_by_username(self, username: str) -> User | None:
        for user in self._users.values():
            if user.username == username:
                return user
        return None

    def get_by_username_and_password(self, username: str, unhashed_password: str) -> User | None:
        user = self.get_by_username(username)
        if user is None or not verify_password(unhashed_password, user.hashed_password):
            return None
        return user
