"""
News API Module
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from zemon.accessor import CacheKeys, CachedAccessor, parse_page_params
from zemon.auth import Identity, require_identity
from zemon.controllers.common import (
    append_comment,
    ensure_owner,
    get_or_404,
    isoformat,
    populate_user,
    success,
    toggle_member,
    touch_user,
)
from zemon.dependencies import get_accessor, get_session
from zemon.errors import ValidationError
from zemon.models import News, utcnow
from zemon.schemas import CommentCreate, NewsCreate, NewsUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/news", tags=["news"])


def news_summary(item: News) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "excerpt": item.excerpt,
        "category": item.category,
        "image": item.image,
        "tags": list(item.tags or []),
        "author": populate_user(item.author_user),
        "created_at": isoformat(item.created_at),
    }


def news_detail(item: News) -> dict:
    data = news_summary(item)
    data["content"] = item.content
    data["updated_at"] = isoformat(item.updated_at)
    data["views"] = item.views
    data["likes"] = list(item.likes or [])
    data["comments"] = list(item.comments or [])
    return data


@router.get("")
def get_all_news(
    page: str = Query(None),
    limit: str = Query(None),
    category: str = Query(None),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    pagination = parse_page_params(page, limit)
    category = category if category and category != "all" else None

    def load():
        conditions = [News.category == category] if category else []
        total = session.scalar(select(func.count()).select_from(News).where(*conditions))
        items = (
            session.execute(
                select(News)
                .where(*conditions)
                .order_by(News.created_at.desc(), News.id.desc())
                .offset(pagination.skip)
                .limit(pagination.limit)
            )
            .scalars()
            .all()
        )
        return {
            "news": [news_summary(item) for item in items],
            "pagination": pagination.with_total(total).as_dict(),
        }

    key = CacheKeys.news_list(pagination.page, pagination.limit, category)
    return success(accessor.read(key, load))


@router.get("/{news_id}")
def get_news_details(
    news_id: str,
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        return news_detail(get_or_404(session, News, news_id, "News item"))

    data = accessor.read(CacheKeys.news(news_id), load)

    session.execute(update(News).where(News.id == news_id).values(views=News.views + 1))
    session.commit()
    return success(data)


@router.post("", status_code=201)
def create_news(
    body: NewsCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    touch_user(session, identity)
    item = News(**body.model_dump(), author=identity.id, views=0, likes=[], comments=[])
    session.add(item)
    session.commit()
    session.refresh(item)

    accessor.invalidate(patterns=[CacheKeys.NEWS_LISTS])
    return success(news_detail(item))


@router.put("/{news_id}")
def update_news(
    news_id: str,
    body: NewsUpdate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    item = get_or_404(session, News, news_id, "News item")
    ensure_owner(item.author, identity, "Only the author can update this news item")

    changes = body.model_dump(exclude_unset=True)
    for field in ("title", "content", "category"):
        if field in changes and not (changes[field] or "").strip():
            raise ValidationError(f"{field} cannot be empty")
    for field, value in changes.items():
        setattr(item, field, value)
    session.commit()
    session.refresh(item)

    accessor.invalidate(keys=[CacheKeys.news(news_id)], patterns=[CacheKeys.NEWS_LISTS])
    return success(news_detail(item))


@router.delete("/{news_id}")
def delete_news(
    news_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    item = get_or_404(session, News, news_id, "News item")
    ensure_owner(item.author, identity, "Only the author can delete this news item")

    session.delete(item)
    session.commit()

    accessor.invalidate(keys=[CacheKeys.news(news_id)], patterns=[CacheKeys.NEWS_LISTS])
    return success(message="News item deleted successfully")


@router.post("/{news_id}/like")
def like_news(
    news_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    item = get_or_404(session, News, news_id, "News item")
    item.likes = toggle_member(item.likes, identity.id)
    session.commit()

    accessor.invalidate(keys=[CacheKeys.news(news_id)])
    return success(news_detail(item))


@router.post("/{news_id}/comments")
def add_news_comment(
    news_id: str,
    body: CommentCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    item = get_or_404(session, News, news_id, "News item")
    touch_user(session, identity)
    item.comments = append_comment(
        item.comments,
        {
            "user": identity.id,
            "name": identity.name,
            "content": body.content,
            "created_at": utcnow().isoformat(),
        },
    )
    session.commit()

    accessor.invalidate(keys=[CacheKeys.news(news_id)])
    return success(news_detail(item))
