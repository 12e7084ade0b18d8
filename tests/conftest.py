import fnmatch

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from zemon.app import create_app
from zemon.cache import CacheClient
from zemon.config import Settings
from zemon.github import RepoMetadata

JWT_SECRET = "test-secret"


class FakeRedis:
    """In-memory stand-in for the part of redis.Redis the cache client uses."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def scan_iter(self, match="*", count=None):
        return iter([key for key in list(self.store) if fnmatch.fnmatchcase(key, match)])

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis_client):
        self.redis = redis_client
        self.queued = []

    def get(self, key):
        self.queued.append(key)
        return self

    def execute(self):
        values = [self.redis.get(key) for key in self.queued]
        self.queued = []
        return values


class FakeGitHub:
    """Records fetches and answers with canned metadata, or raises `error`."""

    def __init__(self):
        self.calls = []
        self.error = None
        self.language = "Python"
        self.stars = 42

    def fetch_metadata(self, owner, name):
        self.calls.append((owner, name))
        if self.error is not None:
            raise self.error
        return RepoMetadata(
            owner=owner,
            name=name,
            description=f"{name} description",
            stars=self.stars,
            forks=7,
            contributors=3,
            language=self.language,
            topics=["community"],
            github_url=f"https://github.com/{owner}/{name}",
        )


def make_token(user_id="user-1", name="Ada", role="user"):
    return jwt.encode({"id": user_id, "name": name, "role": role}, JWT_SECRET, algorithm="HS256")


def auth_headers(user_id="user-1", name="Ada"):
    return {"Authorization": f"Bearer {make_token(user_id, name)}"}


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        redis_url="redis://unused:6379/0",
        jwt_secret=JWT_SECRET,
        cache_expiration=60,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def app(settings, fake_redis, fake_github):
    return create_app(settings, cache=CacheClient(fake_redis, default_ttl=60), github=fake_github)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def alice():
    return auth_headers("user-alice", "Alice")


@pytest.fixture
def bob():
    return auth_headers("user-bob", "Bob")


@pytest.fixture
def headers_for():
    return auth_headers
