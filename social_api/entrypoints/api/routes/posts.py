"""投稿・コメント API ルート

GET    /api/posts/{id}            → 200 Post
DELETE /api/posts/{id}            → 204
GET    /api/posts/{id}/comments   → 200 [Comment...]（古い順）
POST   /api/posts/{id}/comments   → 201 Comment

投稿の作成はグループ / イベント側のルート（/api/groups/{id}/posts 等）で行う。
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from social_api.domain.models import Comment
from social_api.domain.ports import CommentRepository, PostRepository
from social_api.entrypoints.api.deps import get_comment_repo, get_post_repo
from social_api.entrypoints.api.results import unwrap
from social_api.entrypoints.api.schemas import CamelModel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/posts", tags=["posts"])

POST_NOT_FOUND = "Post not found"


class CommentCreateRequest(CamelModel):
    author_id: str = ""
    content: str = ""


@router.get("/{post_id}")
async def get_post(
    post_id: str,
    repo: PostRepository = Depends(get_post_repo),
) -> dict:
    return unwrap(repo.get_by_id(post_id), POST_NOT_FOUND).to_dict()


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    repo: PostRepository = Depends(get_post_repo),
) -> None:
    unwrap(repo.delete(post_id), POST_NOT_FOUND)
    logger.info("Post deleted: id=%s", post_id)


@router.get("/{post_id}/comments")
async def list_comments(
    post_id: str,
    posts: PostRepository = Depends(get_post_repo),
    comments: CommentRepository = Depends(get_comment_repo),
) -> list[dict]:
    unwrap(posts.get_by_id(post_id), POST_NOT_FOUND)
    return [c.to_dict() for c in unwrap(comments.list_for_post(post_id))]


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: str,
    body: CommentCreateRequest,
    posts: PostRepository = Depends(get_post_repo),
    comments: CommentRepository = Depends(get_comment_repo),
) -> dict:
    unwrap(posts.get_by_id(post_id), POST_NOT_FOUND)
    comment = Comment(post_id=post_id, author_id=body.author_id, content=body.content)
    comment.validate()

    created = unwrap(comments.create(comment))
    logger.info("Comment created: post=%s, comment=%s", post_id, created.id)
    return created.to_dict()
