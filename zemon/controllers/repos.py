"""
Repository API Module

Community-submitted GitHub repositories. Creation and sync pull metadata
from GitHub; every read goes through the cache.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
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
from zemon.dependencies import get_accessor, get_github, get_session
from zemon.errors import ConflictError, ValidationError
from zemon.github import GitHubClient, validate_url
from zemon.models import Repo, utcnow
from zemon.schemas import CommentCreate, RepoCreate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/repos", tags=["repos"])


def repo_summary(repo: Repo) -> dict:
    """List projection: no engagement arrays."""
    return {
        "id": repo.id,
        "name": repo.name,
        "owner": repo.owner,
        "github_url": repo.github_url,
        "description": repo.description,
        "stars": repo.stars,
        "forks": repo.forks,
        "contributors": repo.contributors,
        "language": repo.programming_language or "Not Specified",
        "programming_language": repo.programming_language,
        "topics": list(repo.topics or []),
        "tags": list(repo.tags or []),
        "added_by": populate_user(repo.added_by_user),
        "last_synced": isoformat(repo.last_synced),
        "created_at": isoformat(repo.created_at),
    }


def repo_detail(repo: Repo) -> dict:
    data = repo_summary(repo)
    data["github_language"] = repo.language
    data["updated_at"] = isoformat(repo.updated_at)
    data["likes"] = list(repo.likes or [])
    data["comments"] = list(repo.comments or [])
    return data


def _invalidate_repo(accessor: CachedAccessor, repo: Repo) -> None:
    keys = [CacheKeys.repo(repo.id)]
    if repo.added_by:
        keys.append(CacheKeys.user_repos(repo.added_by))
    accessor.invalidate(keys=keys, patterns=[CacheKeys.REPO_LISTS])


@router.get("")
def get_repos(
    page: str = Query(None),
    limit: str = Query(None),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    """
    Get a page of repositories, newest first.
    """
    pagination = parse_page_params(page, limit)

    def load():
        total = session.scalar(select(func.count()).select_from(Repo))
        repos = (
            session.execute(
                select(Repo)
                .order_by(Repo.created_at.desc(), Repo.id.desc())
                .offset(pagination.skip)
                .limit(pagination.limit)
            )
            .scalars()
            .all()
        )
        return {
            "repos": [repo_summary(repo) for repo in repos],
            "pagination": pagination.with_total(total).as_dict(),
        }

    data = accessor.read(CacheKeys.repo_list(pagination.page, pagination.limit), load)
    return success(data)


@router.get("/user")
def get_user_repos(
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    """
    Get every repository added by the requester.
    """
    def load():
        repos = (
            session.execute(
                select(Repo)
                .where(Repo.added_by == identity.id)
                .order_by(Repo.created_at.desc(), Repo.id.desc())
            )
            .scalars()
            .all()
        )
        return [repo_summary(repo) for repo in repos]

    repos = accessor.read(CacheKeys.user_repos(identity.id), load)
    return success({"repos": repos})


@router.get("/{repo_id}")
def get_repo_details(
    repo_id: str,
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        return repo_detail(get_or_404(session, Repo, repo_id, "Repository"))

    return success(accessor.read(CacheKeys.repo(repo_id), load))


@router.post("", status_code=201)
def add_repo(
    body: RepoCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
    github: GitHubClient = Depends(get_github),
):
    """
    Register a GitHub repository. Nothing is stored unless the metadata
    fetch succeeds.
    """
    logger.info(f"Attempting to add repository: {body.github_url}")

    ref = validate_url(body.github_url)
    if ref is None:
        raise ValidationError("Invalid GitHub URL format")

    github_url = ref.html_url
    existing = session.execute(
        select(Repo.id).where(Repo.github_url == github_url)
    ).scalar_one_or_none()
    if existing:
        raise ConflictError("Repository already exists")

    metadata = github.fetch_metadata(ref.owner, ref.name)

    language = body.language or metadata.language
    touch_user(session, identity)
    repo = Repo(
        name=metadata.name or ref.name,
        owner=metadata.owner or ref.owner,
        github_url=github_url,
        description=body.description or metadata.description,
        stars=metadata.stars,
        forks=metadata.forks,
        contributors=metadata.contributors,
        language=metadata.language,
        programming_language=language.lower() if language else "not specified",
        topics=list(metadata.topics),
        tags=body.tags,
        likes=[],
        comments=[],
        added_by=identity.id,
        last_synced=utcnow(),
    )
    session.add(repo)
    try:
        session.commit()
    except IntegrityError:
        # Lost a race against an identical submission
        session.rollback()
        raise ConflictError("Repository already exists")
    session.refresh(repo)

    _invalidate_repo(accessor, repo)
    logger.info(f"Added repository {github_url} as {repo.id}")
    return success(repo_detail(repo))


@router.put("/{repo_id}")
def sync_repo(
    repo_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
    github: GitHubClient = Depends(get_github),
):
    """
    Re-fetch GitHub metadata and overwrite the stored copy.
    """
    repo = get_or_404(session, Repo, repo_id, "Repository")
    ensure_owner(repo.added_by, identity, "Only the owner can sync this repository")

    ref = validate_url(repo.github_url)
    if ref is None:
        raise ValidationError("Invalid GitHub URL")

    # Fetch before touching the row so a failure leaves it unchanged
    metadata = github.fetch_metadata(ref.owner, ref.name)

    repo.stars = metadata.stars
    repo.forks = metadata.forks
    repo.contributors = metadata.contributors
    repo.language = metadata.language
    repo.topics = list(metadata.topics)
    repo.last_synced = utcnow()
    session.commit()
    session.refresh(repo)

    _invalidate_repo(accessor, repo)
    return success(repo_detail(repo))


@router.delete("/{repo_id}")
def delete_repo(
    repo_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    repo = get_or_404(session, Repo, repo_id, "Repository")
    ensure_owner(repo.added_by, identity, "Only the owner can delete this repository")

    session.delete(repo)
    session.commit()

    _invalidate_repo(accessor, repo)
    return success(message="Repository deleted successfully")


@router.post("/{repo_id}/like")
def like_repo(
    repo_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    """
    Toggle the requester's like. Read-modify-write: concurrent toggles on
    the same repository can lose an update.
    """
    repo = get_or_404(session, Repo, repo_id, "Repository")
    repo.likes = toggle_member(repo.likes, identity.id)
    session.commit()

    # Likes are not part of the list projection
    accessor.invalidate(keys=[CacheKeys.repo(repo_id)])
    return success(repo_detail(repo))


@router.post("/{repo_id}/comments")
def add_repo_comment(
    repo_id: str,
    body: CommentCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    repo = get_or_404(session, Repo, repo_id, "Repository")
    touch_user(session, identity)
    repo.comments = append_comment(
        repo.comments,
        {
            "user": identity.id,
            "name": identity.name,
            "content": body.content,
            "created_at": utcnow().isoformat(),
        },
    )
    session.commit()

    accessor.invalidate(keys=[CacheKeys.repo(repo_id)])
    return success(repo_detail(repo))
