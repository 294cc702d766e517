from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.core.json import api_response
from app.dashboard import repository as repo
from app.dashboard.schemas import ChannelStatsOut, ChannelVideoOut
from app.db.session import get_session
from app.users.models import User
from app.videos.schemas import VideoOut

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("/stats/{channel_id}")
async def channel_stats(
    channel_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    stats = ChannelStatsOut(**await repo.channel_stats(db, channel_id))
    return api_response(status.HTTP_200_OK, stats, "Channel stats fetched successfully")


@router.get("/videos/{channel_id}")
async def channel_videos(
    channel_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    rows = await repo.channel_videos(db, channel_id)
    items = [
        ChannelVideoOut(
            **VideoOut.model_validate(video).model_dump(),
            likes_count=likes or 0,
            comments_count=comments or 0,
        )
        for video, likes, comments in rows
    ]
    return api_response(status.HTTP_200_OK, items, "Channel videos fetched successfully")
