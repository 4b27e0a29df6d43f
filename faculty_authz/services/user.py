"""
User service.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from faculty_authz.models.user import User


class UserService:
    """User lookups for the credential check and the user listing."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def touch_last_activity(self, user_id: int) -> None:
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(last_activity=datetime.now(timezone.utc))
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def list_visible(
        self,
        subject: Any,
        scope_provider: Any,
        role: str | None = None,
        department: str | None = None,
    ) -> list[User]:
        """Users the subject may list, optionally narrowed to one role or department."""
        stmt = scope_provider.scoped(subject, select(User), User)
        if role:
            stmt = stmt.where(User.role == role)
        if department:
            stmt = stmt.where(User.department == department)
        stmt = stmt.order_by(User.username)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
