"""
Repository layer for database operations.

Provides async functions for find/create/update/delete on User and Event
entities. Event queries are cached via Redis; every event mutation
invalidates the cached lists, counts and details, as do owner renames
and deletions.
"""
from sqlalchemy import select, or_, and_, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models.user import User
from app.db.models.event import Event
from app.schemas import RegisterRequest, EventCreate, EventFilter, EventSortField, EventOut, SortOrder
from typing import Any, Dict, List, Optional
from app.cache.cache_decorators import cached
from app.cache import redis_client
from app.core.security import hash_password
from app.core.exceptions import ConflictError


SORT_COLUMNS = {
    EventSortField.title: Event.title,
    EventSortField.start_date: Event.start_date,
    EventSortField.end_date: Event.end_date,
    EventSortField.total_guests: Event.total_guests,
    EventSortField.category: Event.category,
    EventSortField.created_at: Event.created_at,
}


# Users

async def create_user(db: AsyncSession, user_in: RegisterRequest) -> User:
    """
    Create a new user with hashed password.

    Args:
        db: Database session
        user_in: Registration data

    Returns:
        Created User object

    Raises:
        ConflictError: If a concurrent insert took the username or email
    """
    user = User(
        username=user_in.username,
        email=user_in.email,
        hashed_password=hash_password(user_in.password),
    )
    db.add(user)
    await _commit_unique(db)
    await db.refresh(user)
    return user

async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    q = select(User).where(User.id == user_id)
    res = await db.execute(q)
    return res.scalars().first()

async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email)
    res = await db.execute(q)
    return res.scalars().first()

async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    q = select(User).where(User.username == username)
    res = await db.execute(q)
    return res.scalars().first()

async def find_user_by_identifier(db: AsyncSession, identifier: str) -> Optional[User]:
    """Find the user whose username OR email equals the identifier."""
    q = select(User).where(or_(User.username == identifier, User.email == identifier))
    res = await db.execute(q)
    return res.scalars().first()

async def find_conflicting_user(
    db: AsyncSession,
    username: Optional[str] = None,
    email: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> Optional[User]:
    """
    Find another user already holding the given username or email.

    Args:
        db: Database session
        username: Username to check (skipped when None)
        email: Email to check (skipped when None)
        exclude_id: User id to ignore, for updates of that user

    Returns:
        The conflicting User, or None
    """
    clauses = []
    if username is not None:
        clauses.append(User.username == username)
    if email is not None:
        clauses.append(User.email == email)
    if not clauses:
        return None
    q = select(User).where(or_(*clauses))
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    res = await db.execute(q)
    return res.scalars().first()

async def _commit_unique(db: AsyncSession) -> None:
    # The unique indexes settle races the conflict pre-check cannot
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username or email already exists")

async def update_user(db: AsyncSession, user: User, changes: Dict[str, Any]) -> User:
    """Apply changes to a user, re-hashing the password only when one is given."""
    changes = dict(changes)
    password = changes.pop("password", None)
    if password:
        user.hashed_password = hash_password(password)
    for field, value in changes.items():
        setattr(user, field, value)
    await _commit_unique(db)
    await db.refresh(user)
    # Cached events carry the owner summary
    if "username" in changes or "email" in changes:
        await invalidate_event_cache()
    return user

async def delete_user(db: AsyncSession, user: User) -> int:
    """
    Delete a user and the events they own.

    Returns:
        Number of owned events removed alongside the user
    """
    res = await db.execute(delete(Event).where(Event.user_id == user.id))
    await db.delete(user)
    await db.commit()
    if res.rowcount:
        await invalidate_event_cache()
    return res.rowcount or 0


# Events

def _event_conditions(filters: EventFilter) -> list:
    conditions = []
    if filters.search:
        term = filters.search.lower()
        conditions.append(or_(
            func.lower(Event.title).contains(term, autoescape=True),
            func.lower(Event.description).contains(term, autoescape=True),
            func.lower(Event.category).contains(term, autoescape=True),
        ))
    if filters.category:
        conditions.append(Event.category == filters.category)
    if filters.start_date:
        conditions.append(Event.start_date >= filters.start_date)
    if filters.end_date:
        conditions.append(Event.end_date <= filters.end_date)
    if filters.min_guests is not None:
        conditions.append(Event.total_guests >= filters.min_guests)
    if filters.max_guests is not None:
        conditions.append(Event.total_guests <= filters.max_guests)
    return conditions

def event_to_dict(ev: Event) -> Dict[str, Any]:
    """Serialise an event (with owner summary) to a JSON-safe dict for caching."""
    return EventOut.model_validate(ev).model_dump(mode="json")

async def create_event(db: AsyncSession, payload: EventCreate, owner_id: int) -> Event:
    """
    Create a new event owned by owner_id and invalidate events cache.

    Returns:
        Created Event object with its owner loaded
    """
    ev = Event(**payload.model_dump(), user_id=owner_id)
    db.add(ev)
    await db.commit()
    await invalidate_event_cache()
    return await get_event_row(db, ev.id)

async def get_event_row(db: AsyncSession, event_id: int) -> Optional[Event]:
    """Load the event entity itself (uncached), e.g. for ownership checks."""
    q = select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    res = await db.execute(q)
    return res.scalars().first()

@cached('events:detail', expire=300)
async def get_event(db: AsyncSession, event_id: int) -> Optional[Dict[str, Any]]:
    ev = await get_event_row(db, event_id)
    if ev is None:
        return None
    return event_to_dict(ev)

@cached('events:list', expire=300)
async def list_events(db: AsyncSession, filters: EventFilter) -> List[Dict[str, Any]]:
    """
    List one page of events matching the filters, in the requested order.
    Returns a list of event dictionaries for caching compatibility.
    """
    column = SORT_COLUMNS[filters.sort_by]
    order = column.desc() if filters.sort_order == SortOrder.desc else column.asc()

    q = select(Event).order_by(order)
    conditions = _event_conditions(filters)
    if conditions:
        q = q.where(and_(*conditions))
    q = q.limit(filters.limit).offset((filters.page - 1) * filters.limit)

    res = await db.execute(q)
    return [event_to_dict(ev) for ev in res.scalars().unique().all()]

@cached('events:count', expire=300)
async def count_events(db: AsyncSession, filters: EventFilter) -> int:
    """
    Count total events matching the filters, ignoring pagination.
    Used for pagination metadata.
    """
    q = select(func.count(Event.id))
    conditions = _event_conditions(filters)
    if conditions:
        q = q.where(and_(*conditions))
    res = await db.execute(q)
    return res.scalar() or 0

async def update_event(db: AsyncSession, ev: Event, changes: Dict[str, Any]) -> Event:
    for field, value in changes.items():
        setattr(ev, field, value)
    await db.commit()
    await invalidate_event_cache()
    return await get_event_row(db, ev.id)

async def delete_event(db: AsyncSession, ev: Event) -> None:
    await db.delete(ev)
    await db.commit()
    await invalidate_event_cache()

async def invalidate_event_cache() -> None:
    """Drop cached event lists, counts and detail entries."""
    cache = redis_client.cache
    await cache.delete_pattern("events:list:*")
    await cache.delete_pattern("events:count:*")
    # Detail keys are hashed from the arguments, so they cannot be targeted per id
    await cache.delete_pattern("events:detail:*")
