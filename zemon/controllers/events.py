"""
Event API Module

Community events. The upcoming/ongoing/past status is derived from the
start and end dates at request time and is never stored.
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session

from zemon.accessor import CacheKeys, CachedAccessor, parse_page_params
from zemon.auth import Identity, require_identity
from zemon.config import UPCOMING_EVENTS_LIMIT
from zemon.controllers.common import (
    ensure_owner,
    get_or_404,
    isoformat,
    populate_user,
    populate_users,
    success,
    toggle_member,
    touch_user,
)
from zemon.dependencies import get_accessor, get_session
from zemon.errors import ValidationError
from zemon.models import Event, utcnow
from zemon.schemas import EventCreate, EventUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])

EVENT_STATUSES = ("upcoming", "ongoing", "past")


def status_filter(status: str, now: datetime):
    """Translate a derived status into a date-range predicate, or None."""
    if status == "upcoming":
        return Event.start_date > now
    if status == "past":
        return Event.end_date < now
    if status == "ongoing":
        return and_(Event.start_date <= now, Event.end_date >= now)
    return None


def event_summary(event: Event) -> dict:
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "type": event.type,
        "mode": event.mode,
        "location": event.location,
        "start_date": isoformat(event.start_date),
        "end_date": isoformat(event.end_date),
        "image": event.image,
        "tags": list(event.tags or []),
        "capacity": event.capacity,
        "registration_url": event.registration_url,
        "organizer": populate_user(event.organizer_user),
        "created_at": isoformat(event.created_at),
    }


def event_detail(session: Session, event: Event) -> dict:
    data = event_summary(event)
    data["views"] = event.views
    data["updated_at"] = isoformat(event.updated_at)
    data["attendees"] = populate_users(session, list(event.attendees or []))
    return data


def _invalidate_event(accessor: CachedAccessor, event_id: str) -> None:
    accessor.invalidate(
        keys=[CacheKeys.event(event_id), CacheKeys.UPCOMING_EVENTS],
        patterns=[CacheKeys.EVENT_LISTS],
    )


@router.get("")
def get_all_events(
    page: str = Query(None),
    limit: str = Query(None),
    type: str = Query(None, description="Event type, or 'all'"),
    status: str = Query(None, description="upcoming, ongoing, past or 'all'"),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    """
    Get a page of events ordered by start date.
    """
    pagination = parse_page_params(page, limit)
    event_type = type if type and type != "all" else None
    status = status if status in EVENT_STATUSES else None

    def load():
        conditions = []
        if event_type:
            conditions.append(Event.type == event_type)
        if status:
            conditions.append(status_filter(status, utcnow()))

        total = session.scalar(select(func.count()).select_from(Event).where(*conditions))
        events = (
            session.execute(
                select(Event)
                .where(*conditions)
                .order_by(Event.start_date.asc(), Event.id.asc())
                .offset(pagination.skip)
                .limit(pagination.limit)
            )
            .scalars()
            .all()
        )
        return {
            "events": [event_summary(event) for event in events],
            "pagination": pagination.with_total(total).as_dict(),
        }

    key = CacheKeys.event_list(pagination.page, pagination.limit, event_type, status)
    return success(accessor.read(key, load))


@router.get("/upcoming")
def get_upcoming_events(
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        events = (
            session.execute(
                select(Event)
                .where(status_filter("upcoming", utcnow()))
                .order_by(Event.start_date.asc(), Event.id.asc())
                .limit(UPCOMING_EVENTS_LIMIT)
            )
            .scalars()
            .all()
        )
        return [event_summary(event) for event in events]

    return success(accessor.read(CacheKeys.UPCOMING_EVENTS, load))


@router.get("/{event_id}")
def get_event_details(
    event_id: str,
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    def load():
        return event_detail(session, get_or_404(session, Event, event_id, "Event"))

    data = accessor.read(CacheKeys.event(event_id), load)

    session.execute(
        update(Event).where(Event.id == event_id).values(views=Event.views + 1)
    )
    session.commit()
    return success(data)


@router.post("", status_code=201)
def create_event(
    body: EventCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    touch_user(session, identity)
    event = Event(
        **body.model_dump(),
        organizer=identity.id,
        attendees=[identity.id],
        views=0,
    )
    session.add(event)
    session.commit()
    session.refresh(event)

    accessor.invalidate(keys=[CacheKeys.UPCOMING_EVENTS], patterns=[CacheKeys.EVENT_LISTS])
    logger.info(f"Event {event.id} created by {identity.id}")
    return success(event_detail(session, event))


@router.put("/{event_id}")
def update_event(
    event_id: str,
    body: EventUpdate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    event = get_or_404(session, Event, event_id, "Event")
    ensure_owner(event.organizer, identity, "Only the organizer can update the event")

    changes = body.model_dump(exclude_unset=True)
    for field in ("title", "description", "type", "mode", "start_date", "end_date", "tags"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be empty")
    start_date = changes.get("start_date", event.start_date)
    end_date = changes.get("end_date", event.end_date)
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    for field, value in changes.items():
        setattr(event, field, value)
    session.commit()
    session.refresh(event)

    _invalidate_event(accessor, event_id)
    return success(event_detail(session, event))


@router.delete("/{event_id}")
def delete_event(
    event_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    event = get_or_404(session, Event, event_id, "Event")
    ensure_owner(event.organizer, identity, "Only the organizer can delete the event")

    session.delete(event)
    session.commit()

    _invalidate_event(accessor, event_id)
    return success(message="Event deleted successfully")


@router.post("/{event_id}/attend")
def attend_event(
    event_id: str,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_session),
    accessor: CachedAccessor = Depends(get_accessor),
):
    """
    Toggle the requester's attendance.
    """
    event = get_or_404(session, Event, event_id, "Event")
    touch_user(session, identity)
    event.attendees = toggle_member(event.attendees, identity.id)
    session.commit()

    # Attendees only appear in the detail view
    accessor.invalidate(keys=[CacheKeys.event(event_id)])
    return success(event_detail(session, event))
