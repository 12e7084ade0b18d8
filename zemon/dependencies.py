"""
FastAPI dependencies resolving the per-process collaborators built by
`create_app` and stored on `app.state`.
"""
from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from zemon.accessor import CachedAccessor
from zemon.database import get_sync_session
from zemon.github import GitHubClient


def get_session(request: Request) -> Iterator[Session]:
    with get_sync_session(request.app.state.session_factory) as session:
        yield session


def get_accessor(request: Request) -> CachedAccessor:
    return request.app.state.accessor


def get_github(request: Request) -> GitHubClient:
    return request.app.state.github
