"""
User Repository
Lookup-or-create by identity provider subject.
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_tracker.infrastructure.db.models import UserModel


class UserRepository:
    """Repository for users"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_subject(self, subject: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(UserModel.subject == subject)
        )
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        subject: str,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> UserModel:
        existing = await self.get_by_subject(subject)
        if existing:
            return existing

        user = UserModel(
            subject=subject,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        self.session.add(user)
        await self.session.flush()
        return user
