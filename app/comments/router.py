from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.comments import repository as repo
from app.comments.schemas import CommentIn, CommentOut, comment_with_owner
from app.core.deps import get_current_user
from app.core.errors import forbidden, not_found
from app.core.json import api_response
from app.db.pagination import paginate
from app.db.session import get_session
from app.users.models import User
from app.videos.repository import get_video

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


async def _owned_comment(db: AsyncSession, comment_id: int, user: User):
    comment = await repo.get_comment(db, comment_id)
    if not comment:
        raise not_found("Comment not found")
    if comment.owner_id != user.id:
        raise forbidden("You are not allowed to modify this comment")
    return comment


@router.get("/{video_id}")
async def video_comments(
    video_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_video(db, video_id):
        raise not_found("Video not found")

    result = await paginate(
        db,
        repo.list_video_comments_stmt(video_id),
        page=page,
        limit=limit,
        transform=lambda rows: [comment_with_owner(c, owner, likes or 0) for c, owner, likes in rows],
    )
    return api_response(status.HTTP_200_OK, result, "Comments fetched successfully")


@router.post("/{video_id}")
async def add_comment(
    video_id: int,
    payload: CommentIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    if not await get_video(db, video_id):
        raise not_found("Video not found")

    comment = await repo.create_comment(db, video_id=video_id, owner_id=user.id, content=payload.content)
    await db.commit()
    return api_response(
        status.HTTP_201_CREATED,
        comment_with_owner(comment, user),
        "Comment added successfully",
    )


@router.patch("/c/{comment_id}")
async def update_comment(
    comment_id: int,
    payload: CommentIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    comment = await _owned_comment(db, comment_id, user)
    comment = await repo.update_comment(db, comment, payload.content)
    await db.commit()
    return api_response(status.HTTP_200_OK, CommentOut.model_validate(comment), "Comment updated successfully")


@router.delete("/c/{comment_id}")
async def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    comment = await _owned_comment(db, comment_id, user)
    await repo.delete_comment(db, comment)
    await db.commit()
    return api_response(status.HTTP_200_OK, {}, "Comment deleted successfully")
