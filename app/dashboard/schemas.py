from pydantic import BaseModel

from app.videos.schemas import VideoOut


class ChannelStatsOut(BaseModel):
    total_videos: int = 0
    total_subscribers: int = 0
    total_likes: int = 0
    total_views: int = 0
    total_comments: int = 0


class ChannelVideoOut(VideoOut):
    likes_count: int = 0
    comments_count: int = 0
