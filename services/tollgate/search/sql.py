"""Relational user search: a LIKE clause over the users table."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tollgate.db.models import User
from tollgate.search.protocol import UserRecord


class SQLSearchStrategy:
    """Case-insensitive substring match; LIKE wildcards in the term are escaped."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def search(self, term: str) -> list[UserRecord]:
        stmt = (
            select(User)
            .where(
                or_(
                    User.username.icontains(term, autoescape=True),
                    User.email.icontains(term, autoescape=True),
                )
            )
            .order_by(User.id)
        )
        async with self._session_factory() as session:
            users = (await session.execute(stmt)).scalars().all()

        return [
            UserRecord(
                id=user.id,
                username=user.username,
                email=user.email,
                provider=user.provider,
                confirmed=user.confirmed,
                blocked=user.blocked,
                role_id=user.role_id,
            )
            for user in users
        ]
