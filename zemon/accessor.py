"""
Cache-Augmented Accessor Module

Read-through / write-invalidate protocol shared by every resource controller:
reads build a deterministic key and fall back to the database on a miss,
writes delete every key whose cached value could now be wrong.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from fastapi.encoders import jsonable_encoder

from zemon.cache import CacheClient
from zemon.config import DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)


class CacheKeys:
    """
    Centralized cache key definitions.

    Naming convention: {type}:{scope}:{params...}, parts always in the same
    order so equivalent queries share a key.
    """

    @staticmethod
    def repo_list(page: int, limit: int) -> str:
        return f"repos:all:{page}:{limit}"

    @staticmethod
    def repo(repo_id: str) -> str:
        return f"repos:{repo_id}"

    @staticmethod
    def user_repos(user_id: str) -> str:
        return f"repos:user:{user_id}"

    REPO_LISTS = "repos:all:*"

    @staticmethod
    def event_list(page: int, limit: int, event_type: Optional[str], status: Optional[str]) -> str:
        return f"events:all:{page}:{limit}:{event_type or 'all'}:{status or 'all'}"

    @staticmethod
    def event(event_id: str) -> str:
        return f"events:{event_id}"

    UPCOMING_EVENTS = "events:upcoming"
    EVENT_LISTS = "events:all:*"

    @staticmethod
    def news_list(page: int, limit: int, category: Optional[str]) -> str:
        return f"news:all:{page}:{limit}:{category or 'all'}"

    @staticmethod
    def news(news_id: str) -> str:
        return f"news:{news_id}"

    NEWS_LISTS = "news:all:*"

    @staticmethod
    def store_list(page: int, limit: int, category: Optional[str], status: str) -> str:
        return f"store:items:{page}:{limit}:{category or 'all'}:{status}"

    @staticmethod
    def store_item(item_id: str) -> str:
        return f"store:item:{item_id}"

    @staticmethod
    def user_tools(user_id: str) -> str:
        return f"store:user:tools:{user_id}"

    STORE_LISTS = "store:items:*"

    @staticmethod
    def idea_list(page: int, limit: int) -> str:
        return f"ideas:all:{page}:{limit}"

    @staticmethod
    def idea(idea_id: str) -> str:
        return f"ideas:{idea_id}"

    IDEA_LISTS = "ideas:all:*"


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int = 0

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    def with_total(self, total: int) -> "Pagination":
        return Pagination(page=self.page, limit=self.limit, total=total)

    def as_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def _positive_int(raw: Any, default: int, maximum: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value <= 0:
        return default
    return min(value, maximum)


def parse_page_params(page: Any, limit: Any, default_limit: int = DEFAULT_PAGE_SIZE) -> Pagination:
    """
    Query-string page/limit. Anything unparsable or non-positive falls back
    to the default; oversized values are clamped to MAX_PAGE / MAX_PAGE_SIZE.
    """
    return Pagination(
        page=_positive_int(page, 1, MAX_PAGE),
        limit=_positive_int(limit, default_limit, MAX_PAGE_SIZE),
    )


class CachedAccessor:
    """
    Applies the read-through / write-invalidate protocol on top of a CacheClient.
    """

    def __init__(self, cache: CacheClient, ttl: int):
        self.cache = cache
        self.ttl = ttl

    def read(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for `key`, or load, cache and return it.

        A loader result of None means "not found" and is never cached.
        """
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        value = loader()
        if value is None:
            return None
        # Cached and freshly loaded responses must serialize identically
        value = jsonable_encoder(value)
        self.cache.set(key, value, self.ttl)
        return value

    def invalidate(self, keys: Iterable[str] = (), patterns: Iterable[str] = ()) -> None:
        for key in keys:
            self.cache.delete(key)
        for pattern in patterns:
            self.cache.delete_pattern(pattern)
