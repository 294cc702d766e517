from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.likes.models import Like, LikeTargetKind
from app.likes.repository import delete_likes_for
from app.tweets.models import Tweet
from app.users.models import User


async def create_tweet(db: AsyncSession, *, owner_id: int, content: str) -> Tweet:
    tweet = Tweet(owner_id=owner_id, content=content)
    db.add(tweet)
    await db.flush()
    await db.refresh(tweet)
    return tweet


async def get_tweet(db: AsyncSession, tweet_id: int) -> Tweet | None:
    res = await db.execute(select(Tweet).where(Tweet.id == tweet_id))
    return res.scalar_one_or_none()


async def list_tweets(db: AsyncSession, owner_id: int | None = None):
    """
    Filas (Tweet, User, likes_count), los más nuevos primero.
    """
    likes = (
        select(func.count(Like.id))
        .where(
            Like.target_kind == LikeTargetKind.TWEET.value,
            Like.target_id == Tweet.id,
        )
        .correlate(Tweet)
        .scalar_subquery()
    )
    q = (
        select(Tweet, User, likes)
        .join(User, User.id == Tweet.owner_id)
        .order_by(desc(Tweet.created_at), desc(Tweet.id))
    )
    if owner_id is not None:
        q = q.where(Tweet.owner_id == owner_id)
    res = await db.execute(q)
    return res.all()


async def update_tweet(db: AsyncSession, tweet: Tweet, content: str) -> Tweet:
    tweet.content = content
    await db.flush()
    await db.refresh(tweet)
    return tweet


async def delete_tweet(db: AsyncSession, tweet: Tweet) -> None:
    await delete_likes_for(db, LikeTargetKind.TWEET, tweet.id)
    await db.delete(tweet)
    await db.flush()
