from uuid import UUID
from sqlalchemy import select, or_, func, update, exists, literal
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession
from videotube.models.user import User
from videotube.models.subscription import Subscription
from videotube.models.video import Video, WatchHistoryEntry
from videotube.repositories.base import BaseRepository

class UserRepository(BaseRepository[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email(self, email: str) -> User | None:
        query = select(User).where(User.email == email)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_username_or_email(self, username: str | None, email: str | None) -> User | None:
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return None
        query = select(User).where(or_(*conditions)).limit(1)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def exists_with_username_or_email(self, username: str, email: str) -> bool:
        query = select(exists().where(or_(User.username == username, User.email == email)))
        return bool((await self.db.execute(query)).scalar())

    async def set_refresh_token(self, user: User, token: str | None) -> User:
        """Unconditional write, used on login (rotation point) and logout."""
        user.refresh_token = token
        return await self.update(user)

    async def swap_refresh_token(self, user: User, expected: str, new: str) -> bool:
        """
        Compare-and-swap the stored refresh token.

        Returns False when the stored token no longer equals ``expected``, i.e.
        a concurrent login/refresh/logout won the race.
        """
        stmt = (
            update(User)
            .where(User.id == user.id, User.refresh_token == expected)
            .values(refresh_token=new)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            return False
        await self.db.refresh(user)
        return True

    async def get_channel_profile(self, username: str, viewer_id: UUID | None) -> dict | None:
        subscribers_count = (
            select(func.count(Subscription.id))
            .where(Subscription.channel_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        subscribed_to_count = (
            select(func.count(Subscription.id))
            .where(Subscription.subscriber_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        if viewer_id is not None:
            is_subscribed = exists().where(
                Subscription.channel_id == User.id,
                Subscription.subscriber_id == viewer_id,
            ).correlate(User)
        else:
            is_subscribed = literal(False)

        query = select(
            User.full_name,
            User.username,
            User.email,
            User.avatar,
            User.cover_image,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("channels_subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(User.username == username)
        row = (await self.db.execute(query)).mappings().one_or_none()
        return dict(row) if row else None

    async def get_watch_history(self, user_id: UUID) -> list[Video]:
        query = (
            select(WatchHistoryEntry)
            .where(WatchHistoryEntry.user_id == user_id)
            .options(selectinload(WatchHistoryEntry.video).selectinload(Video.owner))
            .order_by(WatchHistoryEntry.id)
        )
        result = await self.db.execute(query)
        return [entry.video for entry in result.scalars().all()]
