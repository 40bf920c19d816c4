"""Lookups against the identity provider's user records.

Credentials are handled elsewhere; the core only needs names to show.
"""

from typing import Optional, Protocol

from sqlmodel.ext.asyncio.session import AsyncSession

from models import User


class UserDirectory(Protocol):
    async def find_user_by_id(self, user_id: str) -> Optional[User]: ...


class DatabaseUserDirectory:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_user_by_id(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)


def display_name_for(user: Optional[User]) -> Optional[str]:
    if user is None:
        return None
    return user.display_name or user.email
