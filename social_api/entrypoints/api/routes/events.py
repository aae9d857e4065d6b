"""イベント API ルート

GET    /api/events?organizerId=&userId=  → 200 [Event...]
GET    /api/events/upcoming              → 200 [Event...]
GET    /api/events/{id}                  → 200 Event
POST   /api/events                       → 201 Event
PUT    /api/events/{id}                  → 200 Event
DELETE /api/events/{id}                  → 204
POST   /api/events/{id}/rsvp             → 200 Event
GET    /api/events/{id}/posts            → 200 [Post...]
POST   /api/events/{id}/posts            → 201 Post
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status

from social_api.domain.errors import ValidationError
from social_api.domain.models import Event, Post
from social_api.domain.ports import EventRepository, PostRepository
from social_api.entrypoints.api.deps import get_event_repo, get_post_repo
from social_api.entrypoints.api.results import unwrap
from social_api.entrypoints.api.schemas import CamelModel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])

EVENT_NOT_FOUND = "Event not found"


class EventCreateRequest(CamelModel):
    organizer_id: str = ""
    title: str = ""
    description: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    invited_user_ids: list[str] = []
    invited_group_ids: list[str] = []


class EventUpdateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    location: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    invited_user_ids: list[str] | None = None
    invited_group_ids: list[str] | None = None
    revision: int | None = None


class RsvpRequest(CamelModel):
    user_id: str | None = None
    status: str | None = None


class PostCreateRequest(CamelModel):
    author_id: str = ""
    content: str = ""
    attachments: list[str] = []


def _involves(event: Event, user_id: str) -> bool:
    return event.is_invited(user_id) or event.get_rsvp(user_id) is not None


# ── 一覧 ─────────────────────────────────────────────────────────────────────


@router.get("")
async def list_events(
    organizer_id: str | None = Query(None, alias="organizerId"),
    user_id: str | None = Query(None, alias="userId"),
    repo: EventRepository = Depends(get_event_repo),
) -> list[dict]:
    """
    イベント一覧（開始日時の昇順）。

    organizerId: 主催者で絞り込む
    userId: 招待されている、または出欠回答済みのイベントに絞り込む
    """
    if organizer_id:
        events = unwrap(repo.list_by_organizer(organizer_id))
    else:
        events = unwrap(repo.query(order_by="startDate"))
    if user_id:
        events = [e for e in events if _involves(e, user_id)]
    return [e.to_dict() for e in events]


@router.get("/upcoming")
async def list_upcoming_events(
    repo: EventRepository = Depends(get_event_repo),
) -> list[dict]:
    return [e.to_dict() for e in unwrap(repo.list_upcoming())]


# ── CRUD ─────────────────────────────────────────────────────────────────────


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    repo: EventRepository = Depends(get_event_repo),
) -> dict:
    return unwrap(repo.get_by_id(event_id), EVENT_NOT_FOUND).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventCreateRequest,
    repo: EventRepository = Depends(get_event_repo),
) -> dict:
    event = Event.from_dict(body.to_wire())
    event.validate()

    created = unwrap(repo.create(event))
    logger.info(
        "Event created: id=%s, organizer=%s", created.id, created.organizer_id
    )
    return created.to_dict()


@router.put("/{event_id}")
async def update_event(
    event_id: str,
    body: EventUpdateRequest,
    repo: EventRepository = Depends(get_event_repo),
) -> dict:
    """イベントを更新する。主催者と出欠は変更できない"""
    existing = unwrap(repo.get_by_id(event_id), EVENT_NOT_FOUND)
    updates = body.to_wire()
    expected_revision = updates.pop("revision", None)

    merged = Event.from_dict({**existing.to_dict(), **updates})
    merged.validate()

    payload = merged.to_dict()
    for key in ("id", "createdAt", "type", "revision"):
        payload.pop(key)
    updated = unwrap(
        repo.update(event_id, payload, expected_revision=expected_revision),
        EVENT_NOT_FOUND,
    )
    logger.info("Event updated: id=%s, revision=%d", event_id, updated.revision)
    return updated.to_dict()


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    repo: EventRepository = Depends(get_event_repo),
) -> None:
    unwrap(repo.delete(event_id), EVENT_NOT_FOUND)
    logger.info("Event deleted: id=%s", event_id)


# ── 出欠 ─────────────────────────────────────────────────────────────────────


@router.post("/{event_id}/rsvp")
async def rsvp_to_event(
    event_id: str,
    body: RsvpRequest,
    repo: EventRepository = Depends(get_event_repo),
) -> dict:
    """出欠を登録する。同じユーザーの回答は上書きされる"""
    if not body.user_id or not body.status:
        raise ValidationError("User ID and status are required")

    event = unwrap(repo.get_by_id(event_id), EVENT_NOT_FOUND)
    event.update_rsvp(body.user_id, body.status)

    updated = unwrap(
        repo.update(
            event_id,
            {"rsvps": [r.to_dict() for r in event.rsvps]},
            expected_revision=event.revision,
        ),
        EVENT_NOT_FOUND,
    )
    logger.info(
        "RSVP updated: event=%s, user=%s, status=%s",
        event_id,
        body.user_id,
        body.status,
    )
    return updated.to_dict()


# ── 投稿 ─────────────────────────────────────────────────────────────────────


@router.get("/{event_id}/posts")
async def list_event_posts(
    event_id: str,
    events: EventRepository = Depends(get_event_repo),
    posts: PostRepository = Depends(get_post_repo),
) -> list[dict]:
    unwrap(events.get_by_id(event_id), EVENT_NOT_FOUND)
    return [p.to_dict() for p in unwrap(posts.list_for_event(event_id))]


@router.post("/{event_id}/posts", status_code=status.HTTP_201_CREATED)
async def create_event_post(
    event_id: str,
    body: PostCreateRequest,
    events: EventRepository = Depends(get_event_repo),
    posts: PostRepository = Depends(get_post_repo),
) -> dict:
    unwrap(events.get_by_id(event_id), EVENT_NOT_FOUND)
    post = Post(
        author_id=body.author_id,
        content=body.content,
        event_id=event_id,
        attachments=list(body.attachments),
    )
    post.validate()

    created = unwrap(posts.create(post))
    logger.info("Event post created: event=%s, post=%s", event_id, created.id)
    return created.to_dict()
