"""
Store API Module

Developer tools listed by community members. Items are approved on creation;
moderation states exist on the model but nothing moves an item between them.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from zemon.accessor import CacheKeys, CachedAccessor, parse_page_params
from zemon.auth import Identity, require_identity
from zemon.config import STORE_PAGE_SIZE
from zemon.controllers.common import (
    ensure_owner,
    get_or_404,
    isoformat,
    populate_user,
    success,
    touch_user,
)
from zemon.dependencies import get_accessor, get_session
from zemon.models import StoreItem, utcnow
from zemon.schemas import ReviewCreate, StoreItemCreate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/store", tags=["store"])

STORE_STATUSES = ("pending", "approved", "rejected")


def store_summary(item: StoreItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "thumbnail": item.thumbnail,
        "url": item.url,
        "category": item.category,
        "tags": list(item.tags or []),
        "price": item.price,
        "author": populate_user(item.author_user),
        "average_rating": item.average_rating,
        "total_reviews": item.total_reviews,
        "status": item.status,
        "created_at": isoformat(item.created_at),
    }


def store_detail(item: StoreItem) -> dict:
    data = store_summary(item)
    data["images"] = list(item.images or [])
    data["dev_docs"] = item.dev_docs
    data["github_url"] = item.github_url
    data["reviews"] = list(item.reviews or [])
    data["views"] = item.views
    data["updated_at"] = isoformat(item.updated_at)
    return data


def upsert_review(reviews, user_id: str, user_name: str, rating: int, comment: Optional[str] = None):
    """
    Add a review, or overwrite the existing one written under the same
    display name. Returns a new list.
    """
    reviews = [dict(review) for review in reviews or []]
    now = utcnow().isoformat()
    for review in reviews:
        if review.get("user_name") == user_name:
            review["rating"] = rating
            if comment:
                review["comment"] = comment
            review["created_at"] = now
            return reviews
    reviews.append(
        {
            "user_id": user_id,
            "user_name": user_name,
            "rating": rating,
            "comment": comment or "No comment provided",
            "created_at": now,
        }
    )
    return reviews


def rating_stats(reviews):
    if not reviews:
        return 0.0, 0
    total = len(reviews)
    return round(sum(review["rating"] for review in reviews) / total, 2), total


@router.get("")
def get_all_store_items(
    page: str = Query(None),
    limit: str = Query(None),
    category: str = Query(None),
    status: str = Query("approved"),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    pagination = parse_page_params(page, limit, default_limit=STORE_PAGE_SIZE)
    category = category if category and category != "all" else None
    status = status if status in STORE_STATUSES else "approved"

    def load():
        conditions = [StoreItem.status == status]
        if category:
            conditions.append(StoreItem.category == category)
        total = session.scalar(select(func.count()).select_from(StoreItem).where(*conditions))
        items = (
            session.execute(
                select(StoreItem)
                .where(*conditions)
                .order_by(StoreItem.created_at.desc(), StoreItem.id.desc())
                .offset(pagination.skip)
                .limit(pagination.limit)
            )
            .scalars()
            .all()
        )
        return {
            "items": [store_summary(item) for item in items],
            "pagination": pagination.with_total(total).as_dict(),
        }

    key = CacheKeys.store_list(pagination.page, pagination.limit, category, status)
    return success(accessor.read(key, load))


@router.get("/user/tools")
def get_user_tools(
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        items = (
            session.execute(
                select(StoreItem)
                .where(StoreItem.author == identity.id)
                .order_by(StoreItem.created_at.desc(), StoreItem.id.desc())
            )
            .scalars()
            .all()
        )
        return [store_summary(item) for item in items]

    tools = accessor.read(CacheKeys.user_tools(identity.id), load)
    return success({"tools": tools})


@router.get("/{item_id}")
def get_store_item_details(
    item_id: str,
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        return store_detail(get_or_404(session, StoreItem, item_id, "Store item"))

    data = accessor.read(CacheKeys.store_item(item_id), load)

    session.execute(
        update(StoreItem).where(StoreItem.id == item_id).values(views=StoreItem.views + 1)
    )
    session.commit()
    return success(data)


@router.post("", status_code=201)
def add_store_item(
    body: StoreItemCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    touch_user(session, identity)
    item = StoreItem(
        **body.model_dump(),
        author=identity.id,
        reviews=[],
        average_rating=0.0,
        total_reviews=0,
        views=0,
        status="approved",
    )
    session.add(item)
    session.commit()
    session.refresh(item)

    accessor.invalidate(
        keys=[CacheKeys.user_tools(identity.id)], patterns=[CacheKeys.STORE_LISTS]
    )
    return success(store_detail(item))


@router.post("/{item_id}/reviews")
def add_review(
    item_id: str,
    body: ReviewCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    """
    Add or replace the requester's review.

    Reviews are matched by display name, so two users sharing a name share
    one review slot.
    """
    item = get_or_404(session, StoreItem, item_id, "Store item")
    reviews = upsert_review(item.reviews, identity.id, identity.name, body.rating, body.comment)
    item.reviews = reviews
    item.average_rating, item.total_reviews = rating_stats(reviews)
    session.commit()

    # Rating figures are part of every list projection
    keys = [CacheKeys.store_item(item_id)]
    if item.author:
        keys.append(CacheKeys.user_tools(item.author))
    accessor.invalidate(keys=keys, patterns=[CacheKeys.STORE_LISTS])
    return success(store_detail(item))


@router.delete("/{item_id}")
def delete_store_item(
    item_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    item = get_or_404(session, StoreItem, item_id, "Store item")
    ensure_owner(item.author, identity, "Only the author can delete this store item")

    session.delete(item)
    session.commit()

    accessor.invalidate(
        keys=[CacheKeys.store_item(item_id), CacheKeys.user_tools(item.author)],
        patterns=[CacheKeys.STORE_LISTS],
    )
    return success(message="Store item deleted successfully")
