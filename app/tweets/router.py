from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.errors import forbidden, not_found
from app.core.json import api_response
from app.db.session import get_session
from app.tweets import repository as repo
from app.tweets.schemas import TweetIn, TweetOut, tweet_with_owner
from app.users.models import User
from app.users.repository import get_by_id

router = APIRouter(prefix="/api/v1/tweets", tags=["tweets"])


async def _owned_tweet(db: AsyncSession, tweet_id: int, user: User):
    tweet = await repo.get_tweet(db, tweet_id)
    if not tweet:
        raise not_found("Tweet not found")
    if tweet.owner_id != user.id:
        raise forbidden("You are not allowed to modify this tweet")
    return tweet


@router.post("")
async def create_tweet(
    payload: TweetIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    tweet = await repo.create_tweet(db, owner_id=user.id, content=payload.content)
    await db.commit()
    return api_response(status.HTTP_201_CREATED, tweet_with_owner(tweet, user), "Tweet created successfully")


@router.get("")
async def all_tweets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await repo.list_tweets(db)
    items = [tweet_with_owner(t, owner, likes or 0) for t, owner, likes in rows]
    return api_response(status.HTTP_200_OK, items, "Tweets fetched successfully")


@router.get("/user/{user_id}")
async def user_tweets(
    user_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_by_id(db, user_id):
        raise not_found("User not found")
    rows = await repo.list_tweets(db, owner_id=user_id)
    items = [tweet_with_owner(t, owner, likes or 0) for t, owner, likes in rows]
    return api_response(status.HTTP_200_OK, items, "User tweets fetched successfully")


@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: int,
    payload: TweetIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    tweet = await _owned_tweet(db, tweet_id, user)
    tweet = await repo.update_tweet(db, tweet, payload.content)
    await db.commit()
    return api_response(status.HTTP_200_OK, TweetOut.model_validate(tweet), "Tweet updated successfully")


@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    tweet = await _owned_tweet(db, tweet_id, user)
    await repo.delete_tweet(db, tweet)
    await db.commit()
    return api_response(status.HTTP_200_OK, {}, "Tweet deleted successfully")
