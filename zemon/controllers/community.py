"""
Community API Module

Ideas (cached, with comments) and shared learning resources (plain
create/list, not cached).
"""
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from zemon.accessor import CacheKeys, CachedAccessor, parse_page_params
from zemon.auth import Identity, require_identity
from zemon.controllers.common import (
    append_comment,
    ensure_owner,
    get_or_404,
    is_valid_url,
    isoformat,
    populate_user,
    success,
    touch_user,
)
from zemon.dependencies import get_accessor, get_session
from zemon.errors import ValidationError
from zemon.models import CommunityResource, Idea, utcnow
from zemon.schemas import CommunityResourceCreate, IdeaCommentCreate, IdeaCreate, IdeaUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/community", tags=["community"])

AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=random"


def idea_summary(idea: Idea) -> dict:
    return {
        "id": idea.id,
        "title": idea.title,
        "description": idea.description,
        "author": populate_user(idea.author_user),
        "created_at": isoformat(idea.created_at),
    }


def idea_detail(idea: Idea) -> dict:
    data = idea_summary(idea)
    data["comments"] = list(idea.comments or [])
    data["updated_at"] = isoformat(idea.updated_at)
    return data


def resource_payload(resource: CommunityResource) -> dict:
    return {
        "id": resource.id,
        "title": resource.title,
        "description": resource.description,
        "resource_type": resource.resource_type,
        "url": resource.url,
        "added_by": populate_user(resource.added_by_user),
        "created_at": isoformat(resource.created_at),
    }


@router.get("/ideas")
def get_ideas(
    page: str = Query(None),
    limit: str = Query(None),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    pagination = parse_page_params(page, limit)

    def load():
        total = session.scalar(select(func.count()).select_from(Idea))
        ideas = (
            session.execute(
                select(Idea)
                .order_by(Idea.created_at.desc(), Idea.id.desc())
                .offset(pagination.skip)
                .limit(pagination.limit)
            )
            .scalars()
            .all()
        )
        return {
            "ideas": [idea_summary(idea) for idea in ideas],
            "pagination": pagination.with_total(total).as_dict(),
        }

    return success(accessor.read(CacheKeys.idea_list(pagination.page, pagination.limit), load))


@router.get("/ideas/{idea_id}")
def get_idea_details(
    idea_id: str,
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        return idea_detail(get_or_404(session, Idea, idea_id, "Idea"))

    return success(accessor.read(CacheKeys.idea(idea_id), load))


@router.post("/ideas", status_code=201)
def create_idea(
    body: IdeaCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    touch_user(session, identity)
    idea = Idea(title=body.title, description=body.description, author=identity.id, comments=[])
    session.add(idea)
    session.commit()
    session.refresh(idea)

    accessor.invalidate(patterns=[CacheKeys.IDEA_LISTS])
    return success(idea_detail(idea))


@router.put("/ideas/{idea_id}")
def update_idea(
    idea_id: str,
    body: IdeaUpdate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    idea = get_or_404(session, Idea, idea_id, "Idea")
    ensure_owner(idea.author, identity, "Not authorized to update this idea")

    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if not (value or "").strip():
            raise ValidationError(f"{field} cannot be empty")
        setattr(idea, field, value.strip())
    session.commit()
    session.refresh(idea)

    accessor.invalidate(keys=[CacheKeys.idea(idea_id)], patterns=[CacheKeys.IDEA_LISTS])
    return success(idea_detail(idea))


@router.delete("/ideas/{idea_id}")
def delete_idea(
    idea_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    idea = get_or_404(session, Idea, idea_id, "Idea")
    ensure_owner(idea.author, identity, "Not authorized to delete this idea")

    session.delete(idea)
    session.commit()

    accessor.invalidate(keys=[CacheKeys.idea(idea_id)], patterns=[CacheKeys.IDEA_LISTS])
    return success(message="Idea deleted successfully")


@router.post("/ideas/{idea_id}/comments", status_code=201)
def add_idea_comment(
    idea_id: str,
    body: IdeaCommentCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    idea = get_or_404(session, Idea, idea_id, "Idea")
    comment = {
        "user_id": identity.id,
        "username": identity.name,
        "avatar": AVATAR_URL.format(name=quote(identity.name)),
        "text": body.text,
        "created_at": utcnow().isoformat(),
    }
    idea.comments = append_comment(idea.comments, comment)
    session.commit()

    accessor.invalidate(keys=[CacheKeys.idea(idea_id)])
    return success(comment)


@router.get("/resources")
def get_resources(session: Session = Depends(get_session)):
    resources = (
        session.execute(
            select(CommunityResource).order_by(
                CommunityResource.created_at.desc(), CommunityResource.id.desc()
            )
        )
        .scalars()
        .all()
    )
    return success([resource_payload(resource) for resource in resources])


@router.post("/resources", status_code=201)
def create_resource(
    body: CommunityResourceCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
):
    if not is_valid_url(body.url):
        raise ValidationError("Invalid URL format")

    touch_user(session, identity)
    resource = CommunityResource(
        title=body.title,
        description=body.description,
        resource_type=body.resource_type,
        url=body.url,
        added_by=identity.id,
    )
    session.add(resource)
    session.commit()
    session.refresh(resource)
    logger.info(f"Community resource {resource.id} added by {identity.id}")
    return success(resource_payload(resource))
