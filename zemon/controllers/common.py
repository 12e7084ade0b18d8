"""
Helpers shared by the resource controllers: id checks, ownership checks,
owner population and the response envelope.
"""
import re
from typing import Any, List, Optional
from urllib.parse import urlparse

from sqlalchemy.orm import Session

from zemon.auth import Identity
from zemon.errors import AuthorizationError, NotFoundError, ValidationError
from zemon.models import User, utcnow

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")

DELETED_USER = {"id": "deleted", "name": "Deleted User"}


def success(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def check_object_id(value: str, label: str) -> str:
    if not OBJECT_ID_PATTERN.match(value or ""):
        raise ValidationError(f"Invalid {label} ID")
    return value


def get_or_404(session: Session, model, object_id: str, label: str):
    check_object_id(object_id, label.lower())
    instance = session.get(model, object_id)
    if instance is None:
        raise NotFoundError(f"{label} not found")
    return instance


def ensure_owner(owner_id: Optional[str], identity: Identity, message: str) -> None:
    if owner_id != identity.id:
        raise AuthorizationError(message)


def touch_user(session: Session, identity: Identity) -> User:
    """
    Create the requester's user row from the token claims on first write.

    An existing row is left as it is: cached payloads embed the stored name
    and avatar, so resource writes must not change them.
    """
    user = session.get(User, identity.id)
    if user is None:
        user = User(id=identity.id, name=identity.name, avatar=identity.avatar,
                    role=identity.role, created_at=utcnow())
        session.add(user)
    return user


def populate_user(user: Optional[User]) -> dict:
    if user is None:
        return dict(DELETED_USER)
    return {"id": user.id, "name": user.name, "avatar": user.avatar}


def populate_users(session: Session, user_ids: List[str]) -> List[dict]:
    if not user_ids:
        return []
    found = {
        user.id: user
        for user in session.query(User).filter(User.id.in_(user_ids)).all()
    }
    return [populate_user(found.get(user_id)) for user_id in user_ids]


def toggle_member(members: Optional[List[str]], user_id: str) -> List[str]:
    """Remove `user_id` if present, otherwise append it. Returns a new list."""
    members = list(members or [])
    if user_id in members:
        members.remove(user_id)
    else:
        members.append(user_id)
    return members


def append_comment(comments: Optional[List[dict]], comment: dict) -> List[dict]:
    return list(comments or []) + [comment]


def isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


URL_HOST_PATTERN = re.compile(r"^[\da-z.-]+\.[a-z.]{2,6}$", re.IGNORECASE)


def is_valid_url(raw: str) -> bool:
    """Loose shape check: optional http(s) scheme, a dotted host, any path."""
    candidate = raw.strip()
    if not re.match(r"^https?://", candidate, re.IGNORECASE):
        candidate = f"http://{candidate}"
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return bool(URL_HOST_PATTERN.match(parsed.hostname)) and " " not in candidate
