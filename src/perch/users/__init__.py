"""Users: the user entity and its repository contracts."""

from perch.users.models import User
from perch.users.repository import InMemoryUserRepository, Repository, UserRepository

__all__ = ["InMemoryUserRepository", "Repository", "User", "UserRepository"]
